"""
Shared fixtures: fake OpenAI / Tavily clients and ready-made domain objects.
No test talks to the network.
"""
import pytest

from study_planner.config import Settings
from study_planner.schemas.submission import PLAN_DEADLINES, PLAN_MID, PLAN_NOW, UserInput
from study_planner.services.openai_service import OpenAIService
from study_planner.services.planner_pipeline import PlannerPipeline
from study_planner.services.tavily_service import TavilyService
from tests.fakes import FakeOpenAIClient, FakeTavilyClient


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        TAVILY_API_KEY="",
        DATABASE_URL="",
        SUBMISSIONS_FILE=str(tmp_path / "submissions.json"),
        VERCEL="",
        AWS_LAMBDA_FUNCTION_NAME=None,
        OPENAI_MAX_RETRIES=3,
        OPENAI_RETRY_BASE_DELAY_S=0.0,
        SEARCH_WORKERS=4,
    )


@pytest.fixture
def fake_openai():
    return FakeOpenAIClient()


@pytest.fixture
def fake_tavily():
    return FakeTavilyClient(
        results=[
            {"title": "TUM admissions", "url": "https://www.tum.de/en/studies/application", "content": "Apply by May 31", "score": 0.9},
        ],
        images=["https://upload.example.org/tum-campus-garching.jpg"],
    )


@pytest.fixture
def openai_service(test_settings, fake_openai):
    return OpenAIService(test_settings, client=fake_openai, sleep=lambda _: None)


@pytest.fixture
def tavily_service(test_settings, fake_tavily):
    return TavilyService(test_settings, client=fake_tavily)


@pytest.fixture
def pipeline(openai_service, tavily_service, test_settings):
    return PlannerPipeline(openai_service, tavily_service, test_settings)


@pytest.fixture
def user_input():
    return UserInput(
        admission_type="Master",
        countries=["Germany"],
        programs=["Computer Science & IT"],
        program_language="English",
        grades="GPA 3.7/4.0",
        language_exam="IELTS",
        exam_score="7.5",
        budget="Free",
        email="Student@Example.com",
    )


@pytest.fixture
def valid_form():
    return {
        "admissionType": "Master",
        "countries": ["Germany"],
        "programs": ["Computer Science & IT"],
        "programLanguage": "English",
        "grades": "GPA 3.7/4.0",
        "languageExam": "IELTS",
        "examScore": "7.5",
        "budget": "Free",
        "email": "Student@Example.com",
    }


@pytest.fixture
def tum_program_payload():
    """Program as the model tends to return it: placeholders where it does not know"""
    return {
        "name": "Master of Science in Informatics",
        "field": "Computer Science & IT",
        "university": "Technical University of Munich",
        "country": "Germany",
        "language": "english",
        "category": "Reach",
        "reason": "Strong CS department",
        "websiteUrl": "https://made-up.example.com",
        "contactEmail": "Not specified",
        "tuitionFee": "",
        "admissionStatus": "can apply now",
    }


@pytest.fixture
def plan_payload():
    return {
        "requirements": {
            "languageExams": ["IELTS: 6.5 minimum"],
            "gpaRequirements": "Good bachelor degree",
            "entranceExams": [],
            "videoEssay": False,
            "portfolio": False,
            "recommendationLetters": 2,
            "otherRequirements": ["Motivation letter"],
        },
        PLAN_NOW: ["Book IELTS test"],
        PLAN_MID: ["Collect recommendation letters"],
        PLAN_DEADLINES: ["Submit application by May 31, 2026"],
    }
