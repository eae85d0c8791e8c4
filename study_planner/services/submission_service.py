"""
Submission orchestration: form validation, pipeline runs, persistence and the
read models used by the routers. Errors come back as result objects.
"""
import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from fastapi import HTTPException
from pydantic import ValidationError

from study_planner.exceptions import InputValidationError, NotFoundError, PlannerError
from study_planner.schemas.guides import CountryInfo, DocumentGuide, HousingOption
from study_planner.schemas.results import (
    CountryResults,
    IndexedProgram,
    OperationResult,
    PlanResult,
    SubmissionResults,
    SubmitResult,
)
from study_planner.schemas.submission import Submission, UserInput
from study_planner.services.planner_pipeline import PlannerPipeline
from study_planner.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("admissionType", "countries", "programs", "programLanguage", "grades", "languageExam", "budget", "email")
LIST_FIELDS = ("countries", "programs")
GENERIC_ERROR = "Failed to process your request. Please try again."

_CITY_BEFORE_UNIVERSITY = re.compile(r"(\w+)\s+University", re.IGNORECASE)
_CITY_AFTER_UNIVERSITY = re.compile(r"University\s+of\s+(\w+)", re.IGNORECASE)

# Words that precede "University" without being a place
NON_CITY_WORDS = {
    "technical", "free", "state", "national", "international", "private", "open",
    "catholic", "medical", "polytechnic", "central", "the", "humboldt",
}


def guess_city(university: str, country: str) -> str:
    """
    City from names like "Vienna University of Economics" or "Technical
    University of Munich", otherwise the country. A heuristic: names such as
    "University of Economics" still yield a non-city word.
    """
    university = university or ""
    match = _CITY_BEFORE_UNIVERSITY.search(university)
    if match and match.group(1).lower() not in NON_CITY_WORDS:
        return match.group(1)
    match = _CITY_AFTER_UNIVERSITY.search(university)
    if match:
        return match.group(1)
    return country


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not any(not _is_blank(item) for item in value)
    return False


class SubmissionService:
    def __init__(self, store: SubmissionStore, pipeline: PlannerPipeline):
        self.store = store
        self.pipeline = pipeline

    def _run(self, what: str, operation: Callable[[], Any]) -> OperationResult:
        """Run an operation, converting planner errors into a failed result"""
        try:
            return OperationResult.ok(operation())
        except HTTPException:
            raise
        except PlannerError as e:
            logger.error(f"{what} failed: {e}")
            return OperationResult.fail(e)
        except Exception:
            logger.exception(f"Unexpected error in {what}")
            return OperationResult(success=False, error=GENERIC_ERROR, error_code="error")

    # Form submission

    @staticmethod
    def parse_form(form: Mapping[str, Any]) -> UserInput:
        """
        Validate raw form fields into a UserInput.
        Presence is checked first; an invalid email is reported ahead of any
        other invalid field.
        """
        values: Dict[str, Any] = {}
        for field in REQUIRED_FIELDS + ("examScore",):
            value = form.get(field)
            if field in LIST_FIELDS:
                if value is None:
                    value = []
                elif isinstance(value, str):
                    value = [value]
                value = [item for item in value if not _is_blank(item)]
            values[field] = value

        if any(_is_blank(values[field]) for field in REQUIRED_FIELDS):
            raise InputValidationError("All required fields must be filled")

        try:
            return UserInput.model_validate(values)
        except ValidationError as e:
            errors = e.errors()
            if any(error.get("loc") and error["loc"][0] == "email" for error in errors):
                raise InputValidationError("Invalid email address", field="email") from e
            first = errors[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise InputValidationError(f"Invalid value for {field}", field=field) from e

    def submit(self, form: Mapping[str, Any]) -> SubmitResult:
        """Validate, generate recommendations, persist. Nothing is stored on failure."""
        try:
            user_input = self.parse_form(form)
            response = self.pipeline.generate_admission_plan(user_input)
            submission = Submission(
                id=str(uuid.uuid4()),
                email=user_input.email,
                input=user_input,
                response=response,
            )
            self.store.save(submission)
            logger.info(f"Saved submission {submission.id} with {len(response.programs)} programs")
            return SubmitResult(success=True, id=submission.id)
        except HTTPException:
            raise
        except PlannerError as e:
            logger.error(f"Submission error: {e}")
            return SubmitResult(success=False, error=str(e), error_code=e.error_code)
        except Exception:
            logger.exception("Unexpected submission error")
            return SubmitResult(success=False, error=GENERIC_ERROR, error_code="error")

    # Queries

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        return self.store.get_by_id(submission_id)

    def get_submissions_for_email(self, email: str) -> List[Submission]:
        if not email or not email.strip():
            return []
        return self.store.get_by_email(email.strip())

    def list_submissions(self) -> List[Submission]:
        return self.store.get_all()

    def get_results(self, submission_id: str) -> OperationResult[SubmissionResults]:
        """Programs grouped by country, split into can-apply and need-improvement"""
        def build():
            submission = self.store.get_by_id(submission_id)
            if submission is None:
                raise NotFoundError("Submission not found")
            countries: Dict[str, CountryResults] = {}
            for index, program in enumerate(submission.response.programs):
                group = countries.setdefault(program.country, CountryResults())
                entry = IndexedProgram(index=index, program=program)
                if program.can_apply:
                    group.can_apply.append(entry)
                else:
                    group.need_improvement.append(entry)
            return SubmissionResults(submission=submission, countries=countries)

        return self._run("get_results", build)

    # Plans

    def generate_plan_for_program(self, submission_id: str, program_index: int) -> PlanResult:
        try:
            submission = self.store.get_by_id(submission_id)
            if submission is None:
                raise NotFoundError("Submission not found")
            programs = submission.response.programs
            if not programs:
                raise NotFoundError("Programs not found in submission")
            if program_index < 0 or program_index >= len(programs):
                raise NotFoundError("Program not found")

            plan = self.pipeline.generate_program_plan(programs[program_index], submission.input)
            if not self.store.update_plan(submission_id, plan, program_index):
                logger.warning(f"Plan generated but submission {submission_id} was not updated")
            return PlanResult(success=True, plan=plan)
        except HTTPException:
            raise
        except PlannerError as e:
            logger.error(f"Error generating program plan: {e}")
            return PlanResult(success=False, error=str(e), error_code=e.error_code)
        except Exception:
            logger.exception("Unexpected error generating program plan")
            return PlanResult(success=False, error="Failed to generate plan", error_code="error")

    # Informational sub-pages

    def get_housing_options(self, university: str, city: Optional[str], country: str) -> OperationResult[List[HousingOption]]:
        def build():
            if _is_blank(university) or _is_blank(country):
                raise InputValidationError("University and country are required")
            search_city = city if not _is_blank(city) else guess_city(university, country)
            return self.pipeline.generate_housing_options(university, search_city, country)

        return self._run("get_housing_options", build)

    def get_country_info(self, country: str) -> OperationResult[CountryInfo]:
        def build():
            if _is_blank(country):
                raise InputValidationError("Country is required")
            return self.pipeline.generate_country_info(country)

        return self._run("get_country_info", build)

    def get_document_guide(self, country: str, document_type: str) -> OperationResult[DocumentGuide]:
        def build():
            if _is_blank(country) or _is_blank(document_type):
                raise InputValidationError("Country and document type are required")
            return self.pipeline.generate_document_guide(country, document_type)

        return self._run("get_document_guide", build)
