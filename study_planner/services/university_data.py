"""
Static knowledge base of known universities.

Fills in the contact details, application dates and fees the model tends to
hallucinate. Entries here are authoritative over whatever the model returned.
"""
import logging
from typing import Dict, Optional

from study_planner.schemas.submission import Program

logger = logging.getLogger(__name__)

# Program fields filled from the knowledge base
ENRICHED_FIELDS = (
    "website_url",
    "contact_email",
    "contact_phone",
    "application_start_date",
    "application_deadline",
    "semester_start_date",
    "tuition_fee",
)

PLACEHOLDER_VALUES = ("", "not specified")

_LMU = {
    "website_url": "https://www.lmu.de/en/",
    "contact_email": "info@lmu.de",
    "contact_phone": "+49 89 2180-0",
    "application_start_date": "May 1, 2026",
    "application_deadline": "July 15, 2026",
    "semester_start_date": "October 2026",
    "tuition_fee": "€0 (free tuition)",
}

UNIVERSITY_DATABASE: Dict[str, Dict[str, Dict]] = {
    "Austria": {
        "University of Vienna": {
            "website_url": "https://www.univie.ac.at/en/",
            "contact_email": "studienabteilung@univie.ac.at",
            "contact_phone": "+43 1 4277-0",
            "application_start_date": "March 1, 2026",
            "application_deadline": "September 5, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "€726.72 per semester for non-EU students, €0 for EU students",
            "common_programs": [
                "Bachelor in Business and Economics (BBE)",
                "Master in Business Administration",
                "Bachelor in Computer Science",
                "Master in Computer Science",
            ],
        },
        "Vienna University of Economics and Business": {
            "website_url": "https://www.wu.ac.at/en/",
            "contact_email": "admissions@wu.ac.at",
            "contact_phone": "+43 1 31336-0",
            "application_start_date": "February 1, 2026",
            "application_deadline": "May 15, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "€726.72 per semester",
            "common_programs": [
                "Bachelor in Business and Economics (BBE)",
                "Master in International Business",
                "Master in Finance",
                "Master in Marketing",
            ],
        },
    },
    "Germany": {
        "University of Heidelberg": {
            "website_url": "https://www.uni-heidelberg.de/en",
            "contact_email": "studium@uni-heidelberg.de",
            "contact_phone": "+49 6221 54-0",
            "application_start_date": "May 1, 2026",
            "application_deadline": "July 15, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "€0 (free tuition for all students)",
        },
        "Technical University of Munich": {
            "website_url": "https://www.tum.de/en/",
            "contact_email": "studium@tum.de",
            "contact_phone": "+49 89 289-01",
            "application_start_date": "April 1, 2026",
            "application_deadline": "May 31, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "€0 (free tuition)",
            "common_programs": [
                "Master of Science in Computer Science",
                "Bachelor of Science in Computer Science",
                "Master of Science in Management",
            ],
        },
        "Ludwig Maximilian University of Munich": {
            **_LMU,
            "common_programs": [
                "Bachelor of Science in Business Administration",
                "Master of Science in Business Administration",
                "Bachelor of Science in Computer Science",
            ],
        },
        # Common short names
        "LMU Munich": dict(_LMU),
        "LMU": dict(_LMU),
    },
    "Netherlands": {
        "University of Amsterdam": {
            "website_url": "https://www.uva.nl/en",
            "contact_email": "info@uva.nl",
            "contact_phone": "+31 20 525-9111",
            "application_start_date": "October 1, 2025",
            "application_deadline": "January 15, 2026",
            "semester_start_date": "September 2026",
            "tuition_fee": "€2,314 per year for EU students, €9,000-15,000 for non-EU",
        },
        "Delft University of Technology": {
            "website_url": "https://www.tudelft.nl/en/",
            "contact_email": "contactcenter-esa@tudelft.nl",
            "contact_phone": "+31 15 278-2222",
            "application_start_date": "October 1, 2025",
            "application_deadline": "January 15, 2026",
            "semester_start_date": "September 2026",
            "tuition_fee": "€2,314 per year for EU students, €15,000-19,000 for non-EU",
        },
    },
    "France": {
        "Sorbonne University": {
            "website_url": "https://www.sorbonne-universite.fr/en",
            "contact_email": "scolarite@sorbonne-universite.fr",
            "contact_phone": "+33 1 44 27 30 00",
            "application_start_date": "January 1, 2026",
            "application_deadline": "April 1, 2026",
            "semester_start_date": "September 2026",
            "tuition_fee": "€2,770 per year for EU students, €3,770 for non-EU",
        },
    },
    "UK": {
        "University of Oxford": {
            "website_url": "https://www.ox.ac.uk/",
            "contact_email": "admissions@ox.ac.uk",
            "contact_phone": "+44 1865 270000",
            "application_start_date": "June 1, 2026",
            "application_deadline": "October 15, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "£9,250 per year for UK students, £27,840-39,010 for international",
        },
        "University of Cambridge": {
            "website_url": "https://www.cam.ac.uk/",
            "contact_email": "admissions@cam.ac.uk",
            "contact_phone": "+44 1223 333300",
            "application_start_date": "June 1, 2026",
            "application_deadline": "October 15, 2026",
            "semester_start_date": "October 2026",
            "tuition_fee": "£9,250 per year for UK students, £24,507-63,990 for international",
        },
    },
}


def has_value(value: Optional[str]) -> bool:
    """True unless the value is empty or a "Not specified" placeholder"""
    if value is None:
        return False
    return str(value).strip().lower() not in PLACEHOLDER_VALUES


def _significant_words(text: str) -> set:
    return {word for word in text.split() if len(word) > 3}


def get_university_data(university: str, country: str) -> Optional[Dict]:
    """
    Look up a university in the knowledge base.

    Matching order: exact name, case-insensitive name, substring containment in
    either direction, then at least two shared words longer than 3 characters.
    """
    country_data = UNIVERSITY_DATABASE.get(country)
    if not country_data or not university:
        return None

    normalized = university.strip()
    if normalized in country_data:
        return country_data[normalized]

    normalized_lower = normalized.lower()
    for key, info in country_data.items():
        if key.lower() == normalized_lower:
            return info

    for key, info in country_data.items():
        key_lower = key.lower()
        if normalized_lower in key_lower or key_lower in normalized_lower:
            return info
        shared = _significant_words(normalized_lower) & _significant_words(key_lower)
        if len(shared) >= 2:
            return info

    return None


def suggest_program_name(program: Program, common_programs) -> Optional[str]:
    """First known program of the university matching the program's field"""
    if not common_programs or not program.field:
        return None
    field_lower = program.field.lower()
    for candidate in common_programs:
        candidate_lower = candidate.lower()
        if field_lower in candidate_lower:
            return candidate
        if "business" in field_lower and "business" in candidate_lower:
            return candidate
        if "economics" in field_lower and "economics" in candidate_lower:
            return candidate
    return None


def enrich_program(program: Program) -> Program:
    """
    Return a copy of the program with knowledge-base fields filled in.

    Knowledge-base values win. Fields the entry does not list keep the
    program's own value only when it is meaningful. Programs of unknown
    universities come back unchanged. Safe to apply more than once.
    """
    info = get_university_data(program.university, program.country)
    if info is None:
        return program

    updates = {}
    for field_name in ENRICHED_FIELDS:
        known = info.get(field_name)
        if known:
            updates[field_name] = known
        else:
            current = getattr(program, field_name)
            updates[field_name] = current if has_value(current) else None

    if not has_value(program.name):
        suggested = suggest_program_name(program, info.get("common_programs"))
        if suggested:
            updates["name"] = suggested

    logger.debug(f"Enriched {program.university} ({program.country}) from knowledge base")
    return program.model_copy(update=updates)
