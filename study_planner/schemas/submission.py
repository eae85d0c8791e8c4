"""
Pydantic schemas for submissions and the AI response stored with them.

Attributes are snake_case; the JSON form (API payloads, the JSON file and the
JSONB columns) keeps the camelCase names the frontend has always used, so every
model here validates and dumps by alias.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from study_planner.models import (
    AdmissionStatus,
    AdmissionType,
    Budget,
    Country,
    LanguageExam,
    ProgramCategory,
    ProgramField,
    ProgramLanguagePreference,
    TeachingLanguage,
)

# Timeline buckets of an admission plan, in display order
PLAN_NOW = "Now – 3 months"
PLAN_MID = "3–6 months"
PLAN_DEADLINES = "Before deadlines"
PLAN_BUCKETS = (PLAN_NOW, PLAN_MID, PLAN_DEADLINES)


def _as_optional_text(value: Any) -> Any:
    """Models sometimes emit numbers or lists where text is expected."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(str(v) for v in value if v is not None)
    return value


def _as_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready dict in the stored/wire shape"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserInput(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, use_enum_values=True
    )

    admission_type: AdmissionType
    countries: List[Country] = Field(..., min_length=1)
    programs: List[ProgramField] = Field(..., min_length=1)
    program_language: ProgramLanguagePreference
    grades: str = Field(..., min_length=1)
    language_exam: LanguageExam
    exam_score: Optional[str] = None
    budget: Budget
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str):
        # Lookups by email are case-insensitive; store one canonical form
        return v.lower()

    @field_validator("exam_score", mode="before")
    @classmethod
    def empty_score_is_none(cls, v):
        if v is None or (isinstance(v, str) and v.strip() == ""):
            return None
        return str(v).strip()

    def language_preference_text(self) -> str:
        if self.program_language == ProgramLanguagePreference.ENGLISH.value:
            return "English-taught programs only"
        if self.program_language == ProgramLanguagePreference.LOCAL.value:
            return "Local language programs only"
        return "Either English or local language"

    def exam_text(self) -> str:
        if self.exam_score:
            return f"{self.language_exam} (Score: {self.exam_score})"
        return str(self.language_exam)


class Program(CamelModel):
    """A recommended degree program as returned by the model, then enriched."""

    name: str = ""
    field: str = ""
    university: str
    country: str
    language: Literal["English", "Local"] = "English"
    category: Literal["Realistic", "Reach"] = "Realistic"
    reason: str = ""
    website_url: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    application_start_date: Optional[str] = None
    application_deadline: Optional[str] = None
    semester_start_date: Optional[str] = None
    tuition_fee: Optional[str] = None
    admission_status: Optional[Literal["Can apply now", "Need improvement", "Eligible now"]] = None
    required_improvements: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    program_structure: Optional[str] = None

    @field_validator("language", mode="before")
    @classmethod
    def canonical_language(cls, v):
        return TeachingLanguage.canonicalize(v)

    @field_validator("category", mode="before")
    @classmethod
    def canonical_category(cls, v):
        return ProgramCategory.canonicalize(v)

    @field_validator("admission_status", mode="before")
    @classmethod
    def canonical_status(cls, v):
        return AdmissionStatus.canonicalize(v)

    @field_validator("name", "field", "reason", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        v = _as_optional_text(v)
        return "" if v is None else v

    @field_validator(
        "website_url", "contact_email", "contact_phone", "application_start_date",
        "application_deadline", "semester_start_date", "tuition_fee",
        "required_improvements", "image_url", "description", "program_structure",
        mode="before",
    )
    @classmethod
    def optional_text(cls, v):
        return _as_optional_text(v)

    @property
    def can_apply(self) -> bool:
        return self.admission_status in (
            AdmissionStatus.CAN_APPLY_NOW.value,
            AdmissionStatus.ELIGIBLE_NOW.value,
        )


class LegacyUniversity(CamelModel):
    """Response shape used before programs existed: one entry per university."""

    name: str = ""
    country: str = ""
    field: Optional[str] = None
    category: Optional[str] = None
    reason: str = ""
    admission_status: Optional[str] = None
    required_improvements: Optional[str] = None
    website_url: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    application_start_date: Optional[str] = None
    application_deadline: Optional[str] = None
    semester_start_date: Optional[str] = None
    tuition_fee: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name", "country", "reason", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        v = _as_optional_text(v)
        return "" if v is None else v

    def to_program(self) -> Program:
        # Lossy: the old shape has no program name or teaching language
        return Program(
            name=self.name or "Program",
            field=self.field or "",
            university=self.name,
            country=self.country,
            language=TeachingLanguage.ENGLISH.value,
            category=self.category or ProgramCategory.REALISTIC.value,
            reason=self.reason,
            admission_status=self.admission_status,
            required_improvements=self.required_improvements,
            website_url=self.website_url,
            contact_email=self.contact_email,
            contact_phone=self.contact_phone,
            application_start_date=self.application_start_date,
            application_deadline=self.application_deadline,
            semester_start_date=self.semester_start_date,
            tuition_fee=self.tuition_fee,
            description=self.description,
        )


class PlanRequirements(CamelModel):
    language_exams: List[str] = Field(default_factory=list)
    gpa_requirements: Optional[str] = None
    entrance_exams: List[str] = Field(default_factory=list)
    video_essay: bool = False
    portfolio: bool = False
    recommendation_letters: int = 0
    other_requirements: List[str] = Field(default_factory=list)

    @field_validator("language_exams", "entrance_exams", "other_requirements", mode="before")
    @classmethod
    def coerce_list(cls, v):
        if isinstance(v, str) and v.strip():
            return [v.strip()]
        return _as_text_list(v)

    @field_validator("gpa_requirements", mode="before")
    @classmethod
    def gpa_text(cls, v):
        return _as_optional_text(v)

    @field_validator("video_essay", "portfolio", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("true", "yes", "required", "1")
        return bool(v)

    @field_validator("recommendation_letters", mode="before")
    @classmethod
    def coerce_count(cls, v):
        if v is None or isinstance(v, bool):
            return 0
        if isinstance(v, (int, float)):
            return max(int(v), 0)
        match = re.search(r"\d+", str(v))
        return int(match.group()) if match else 0


class AdmissionPlan(CamelModel):
    """
    Timeline of actions in three fixed buckets, plus the program requirements.
    The bucket keys are always present as lists once a plan exists.
    """

    requirements: Optional[PlanRequirements] = None
    now_to_three_months: List[str] = Field(default_factory=list, alias=PLAN_NOW)
    three_to_six_months: List[str] = Field(default_factory=list, alias=PLAN_MID)
    before_deadlines: List[str] = Field(default_factory=list, alias=PLAN_DEADLINES)

    @field_validator("now_to_three_months", "three_to_six_months", "before_deadlines", mode="before")
    @classmethod
    def coerce_bucket(cls, v):
        return _as_text_list(v)

    def bucket(self, key: str) -> List[str]:
        return {
            PLAN_NOW: self.now_to_three_months,
            PLAN_MID: self.three_to_six_months,
            PLAN_DEADLINES: self.before_deadlines,
        }[key]


class AIResponse(CamelModel):
    programs: List[Program] = Field(default_factory=list)
    universities: Optional[List[LegacyUniversity]] = None
    plan: Optional[AdmissionPlan] = None
    # Per-program plans keyed by the program's index in `programs`
    program_plans: Dict[str, AdmissionPlan] = Field(default_factory=dict)

    @field_validator("programs", mode="before")
    @classmethod
    def programs_list(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("universities", mode="before")
    @classmethod
    def universities_list(cls, v):
        if v is None:
            return None
        return v if isinstance(v, list) else []

    @field_validator("program_plans", mode="before")
    @classmethod
    def plans_mapping(cls, v):
        return v if isinstance(v, dict) else {}

    @model_validator(mode="after")
    def translate_legacy_universities(self):
        if not self.programs and self.universities:
            self.programs = [university.to_program() for university in self.universities]
        return self


class Submission(CamelModel):
    id: str = Field(..., min_length=1)
    email: EmailStr
    input: UserInput
    response: AIResponse = Field(default_factory=AIResponse)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("created_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime):
        # Rows written by older code may carry naive timestamps
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
