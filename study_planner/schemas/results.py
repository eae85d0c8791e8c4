from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from study_planner.exceptions import PlannerError
from study_planner.schemas.submission import AdmissionPlan, CamelModel, Program, Submission

# Generic Wrapper
T = TypeVar('T')


class OperationResult(CamelModel, Generic[T]):
    """Outcome of a service call: either data, or an error message plus error code."""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, data: T):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: PlannerError):
        return cls(success=False, error=str(exc), error_code=exc.error_code)


class SubmitResult(CamelModel):
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class PlanResult(CamelModel):
    success: bool
    plan: Optional[AdmissionPlan] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class IndexedProgram(CamelModel):
    # Position in the normalized program list, the index plan generation accepts
    index: int
    program: Program


class CountryResults(CamelModel):
    can_apply: List[IndexedProgram] = []
    need_improvement: List[IndexedProgram] = []


class SubmissionResults(CamelModel):
    submission: Submission
    countries: Dict[str, CountryResults] = {}


class SubmissionList(BaseModel):
    submissions: List[Submission]
    count: int
