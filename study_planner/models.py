from sqlalchemy import Column, Text, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from study_planner.database import Base
from typing import Optional
import enum

class AdmissionType(str, enum.Enum):
    BACHELOR = "Bachelor"
    MASTER = "Master"

class Country(str, enum.Enum):
    GERMANY = "Germany"
    NETHERLANDS = "Netherlands"
    ITALY = "Italy"
    FRANCE = "France"
    UK = "UK"
    AUSTRIA = "Austria"
    NOT_SURE = "Not sure"

class ProgramField(str, enum.Enum):
    BUSINESS = "Business & Management"
    COMPUTER_SCIENCE = "Computer Science & IT"
    ENGINEERING = "Engineering"
    MEDICINE = "Medicine & Health"
    LAW = "Law"
    ARTS = "Arts & Humanities"
    SOCIAL_SCIENCES = "Social Sciences"
    NATURAL_SCIENCES = "Natural Sciences"
    ECONOMICS = "Economics"
    PSYCHOLOGY = "Psychology"
    ARCHITECTURE = "Architecture"
    NOT_SURE = "Not sure"

class ProgramLanguagePreference(str, enum.Enum):
    ENGLISH = "English"
    LOCAL = "Local"
    EITHER = "Either"

class LanguageExam(str, enum.Enum):
    IELTS = "IELTS"
    TOEFL = "TOEFL"
    NONE = "None"

class Budget(str, enum.Enum):
    FREE = "Free"
    UNDER_3K = "< 3,000"
    FROM_3K_TO_10K = "3,000 - 10,000"
    FROM_10K_TO_30K = "10,000 - 30,000"
    OVER_30K = "> 30,000"

class TeachingLanguage(str, enum.Enum):
    ENGLISH = "English"
    LOCAL = "Local"

    @staticmethod
    def canonicalize(value: Optional[str]) -> str:
        """
        Map free-form model output ("english", "German", "EN") to a teaching language.
        Anything that is not English counts as the local language; empty means English.
        """
        if not value or not str(value).strip():
            return TeachingLanguage.ENGLISH.value
        value_lower = str(value).strip().lower()
        if value_lower in ("english", "en", "english-taught"):
            return TeachingLanguage.ENGLISH.value
        return TeachingLanguage.LOCAL.value

class ProgramCategory(str, enum.Enum):
    REALISTIC = "Realistic"
    REACH = "Reach"

    @staticmethod
    def canonicalize(value: Optional[str]) -> str:
        if value and str(value).strip().lower() == "reach":
            return ProgramCategory.REACH.value
        return ProgramCategory.REALISTIC.value

class AdmissionStatus(str, enum.Enum):
    CAN_APPLY_NOW = "Can apply now"
    NEED_IMPROVEMENT = "Need improvement"
    ELIGIBLE_NOW = "Eligible now"

    @staticmethod
    def canonicalize(value: Optional[str]) -> Optional[str]:
        """Case-insensitive match against the known statuses, None if unrecognized"""
        if not value:
            return None
        value_lower = str(value).strip().lower()
        for status in AdmissionStatus:
            if status.value.lower() == value_lower:
                return status.value
        return None

class HousingDifficulty(str, enum.Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

class DocumentType(str, enum.Enum):
    VISA = "visa"
    RESIDENCE_PERMIT = "residence_permit"
    BANK_ACCOUNT = "bank_account"
    HEALTH_INSURANCE = "health_insurance"
    REGISTRATION = "registration"

# Search-friendly phrase for each document type
DOCUMENT_SEARCH_TERMS = {
    DocumentType.VISA.value: "student visa",
    DocumentType.RESIDENCE_PERMIT.value: "residence permit",
    DocumentType.BANK_ACCOUNT.value: "student bank account",
    DocumentType.HEALTH_INSURANCE.value: "student health insurance",
    DocumentType.REGISTRATION.value: "student registration residence registration",
}

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

class SubmissionRecord(Base):
    __tablename__ = "submissions"

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False, index=True)
    input = Column(JSONDocument, nullable=False)
    response = Column(JSONDocument, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
