"""
Informational sub-pages: student housing, country information and document guides
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from study_planner.dependencies import get_submission_service
from study_planner.routers.responses import result_response
from study_planner.services.submission_service import SubmissionService

router = APIRouter()


@router.get("/housing")
def get_housing_options(
    university: str = Query(..., min_length=1),
    country: str = Query(..., min_length=1),
    city: Optional[str] = None,
    service: SubmissionService = Depends(get_submission_service),
):
    """Housing options near a university; the city is guessed from the university name when omitted"""
    return result_response(service.get_housing_options(university, city, country))


@router.get("/country-info/{country}")
def get_country_info(
    country: str,
    service: SubmissionService = Depends(get_submission_service),
):
    return result_response(service.get_country_info(country))


@router.get("/documents/{country}/{document_type}")
def get_document_guide(
    country: str,
    document_type: str,
    service: SubmissionService = Depends(get_submission_service),
):
    """Document type is one of visa, residence_permit, bank_account, health_insurance, registration, or free text"""
    return result_response(service.get_document_guide(country, document_type))
