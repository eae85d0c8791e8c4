"""Request-scoped projections returned by the housing, country-info and document-guide calls."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from study_planner.models import HousingDifficulty
from study_planner.schemas.submission import CamelModel, _as_optional_text, _as_text_list


class SearchResult(BaseModel):
    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0


class HousingOption(CamelModel):
    name: str
    address: str = ""
    cost: str = ""
    availability: str = ""
    contact: str = ""
    facilities: List[str] = Field(default_factory=list)
    room_types: List[str] = Field(default_factory=list)
    difficulty: Literal["Easy", "Medium", "Hard"] = "Medium"
    image_url: Optional[str] = None
    website_url: Optional[str] = None
    description: Optional[str] = None

    @field_validator("address", "cost", "availability", "contact", mode="before")
    @classmethod
    def text(cls, v):
        v = _as_optional_text(v)
        return "" if v is None else v

    @field_validator("facilities", "room_types", mode="before")
    @classmethod
    def text_list(cls, v):
        return _as_text_list(v)

    @field_validator("difficulty", mode="before")
    @classmethod
    def canonical_difficulty(cls, v):
        value_lower = str(v or "").strip().lower()
        for difficulty in HousingDifficulty:
            if difficulty.value.lower() == value_lower:
                return difficulty.value
        return HousingDifficulty.MEDIUM.value


class CostOfLiving(CamelModel):
    accommodation: str = ""
    food: str = ""
    transport: str = ""
    utilities: str = ""
    entertainment: str = ""
    health_insurance: str = ""
    total_monthly: str = ""
    detailed_breakdown: Optional[str] = None

    @field_validator(
        "accommodation", "food", "transport", "utilities", "entertainment",
        "health_insurance", "total_monthly", mode="before",
    )
    @classmethod
    def text(cls, v):
        v = _as_optional_text(v)
        return "" if v is None else v


class CountryInfo(CamelModel):
    name: str
    overview: str
    advantages: List[str] = Field(default_factory=list)
    benefits_for_students: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)
    nuances: List[str] = Field(default_factory=list)
    cost_of_living: CostOfLiving = Field(default_factory=CostOfLiving)

    @field_validator("advantages", "benefits_for_students", "challenges", "nuances", mode="before")
    @classmethod
    def text_list(cls, v):
        return _as_text_list(v)

    @field_validator("cost_of_living", mode="before")
    @classmethod
    def cost_mapping(cls, v):
        return v if isinstance(v, dict) else {}


class DocumentGuide(CamelModel):
    document_type: str
    country: str
    overview: str
    requirements: List[str] = Field(default_factory=list)
    documents_needed: List[str] = Field(default_factory=list)
    application_steps: List[str] = Field(default_factory=list)
    processing_time: str = ""
    costs: str = ""
    important_notes: List[str] = Field(default_factory=list)
    official_links: List[str] = Field(default_factory=list)

    @field_validator(
        "requirements", "documents_needed", "application_steps", "important_notes",
        "official_links", mode="before",
    )
    @classmethod
    def text_list(cls, v):
        return _as_text_list(v)

    @field_validator("processing_time", "costs", mode="before")
    @classmethod
    def text(cls, v):
        v = _as_optional_text(v)
        return "" if v is None else v
