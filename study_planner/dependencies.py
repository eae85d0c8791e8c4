from functools import lru_cache

from study_planner.config import settings
from study_planner.services.openai_service import OpenAIService
from study_planner.services.planner_pipeline import PlannerPipeline
from study_planner.services.submission_service import SubmissionService
from study_planner.services.submission_store import build_submission_store
from study_planner.services.tavily_service import TavilyService


@lru_cache(maxsize=1)
def get_submission_service() -> SubmissionService:
    """Process-wide service; tests swap it out through app.dependency_overrides"""
    store = build_submission_store(settings)
    pipeline = PlannerPipeline(OpenAIService(settings), TavilyService(settings), settings)
    return SubmissionService(store, pipeline)
