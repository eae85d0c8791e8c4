"""
Submission endpoints: form submission, lookup by id or email, grouped results
and per-program plan generation
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from typing import Any, Dict, List
import logging

from study_planner.dependencies import get_submission_service
from study_planner.routers.responses import result_response
from study_planner.schemas.submission import Submission
from study_planner.services.submission_service import LIST_FIELDS, SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_form(request: Request) -> Dict[str, Any]:
    """
    Form fields from a urlencoded/multipart body (repeated `countries` and
    `programs`, with or without a `[]` suffix) or from a JSON body.
    """
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Expected a JSON object")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Expected a JSON object")
        return body

    form = await request.form()
    data: Dict[str, Any] = {}
    for key in form.keys():
        name = key[:-2] if key.endswith("[]") else key
        if name in LIST_FIELDS:
            data.setdefault(name, []).extend(v for v in form.getlist(key) if isinstance(v, str))
        else:
            value = form.get(key)
            data[name] = value if isinstance(value, str) else None
    return data


@router.post("")
async def submit_form(
    request: Request,
    service: SubmissionService = Depends(get_submission_service),
):
    """Validate the study-abroad form, generate recommendations and store them"""
    form = await read_form(request)
    result = await run_in_threadpool(service.submit, form)
    return result_response(result)


@router.get("", response_model=List[Submission], response_model_exclude_none=True)
def get_submissions_for_email(
    email: str = Query(..., min_length=1),
    service: SubmissionService = Depends(get_submission_service),
):
    return service.get_submissions_for_email(email)


@router.get("/{submission_id}", response_model=Submission, response_model_exclude_none=True)
def get_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    submission = service.get_submission(submission_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@router.get("/{submission_id}/results")
def get_results(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    return result_response(service.get_results(submission_id))


@router.post("/{submission_id}/programs/{program_index}/plan")
def generate_plan_for_program(
    submission_id: str,
    program_index: int,
    service: SubmissionService = Depends(get_submission_service),
):
    return result_response(service.generate_plan_for_program(submission_id, program_index))
