from fastapi import APIRouter, Depends

from study_planner.dependencies import get_submission_service
from study_planner.schemas.results import SubmissionList
from study_planner.services.submission_service import SubmissionService

router = APIRouter()


@router.get("/submissions", response_model=SubmissionList, response_model_exclude_none=True)
def list_submissions(service: SubmissionService = Depends(get_submission_service)):
    """All submissions, newest first"""
    submissions = service.list_submissions()
    return SubmissionList(submissions=submissions, count=len(submissions))
