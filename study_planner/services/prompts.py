"""
Prompt templates for the planner calls.

Each builder takes already-formatted search context (see
TavilyService.format_search_results) so prompts stay free of I/O.
"""
from typing import Optional

from study_planner.schemas.submission import PLAN_DEADLINES, PLAN_MID, PLAN_NOW, Program, UserInput

ADVISOR_SYSTEM_PROMPT = "You are a helpful admissions advisor. Always return valid JSON only, no markdown formatting."
HOUSING_SYSTEM_PROMPT = "You are a helpful student housing advisor. Always return valid JSON only, no markdown formatting."
COUNTRY_SYSTEM_PROMPT = "You are a helpful study abroad advisor. Always return valid JSON only, no markdown formatting."

JSON_ONLY = "Return ONLY valid JSON, no markdown, no emojis, no additional text."

NO_SEARCH_NOTE = (
    "Note: Real-time web search is not available. "
    "Use your knowledge base and typical university information."
)


def search_section(heading: str, formatted_results: Optional[str], instruction: str) -> str:
    """Wrap formatted search results in a titled block, or nothing when there are none"""
    if not formatted_results:
        return ""
    return f"\n\n{heading}:\n{formatted_results}\n\n{instruction}"


def admission_plan_prompt(user_input: UserInput, search_context: str) -> str:
    countries = ", ".join(user_input.countries)
    fields = ", ".join(user_input.programs)
    return f"""You are an admissions advisor. Recommend specific degree programs with complete, real-world information.

Use REAL information about each university: official program pages, admissions office contacts
(email and phone), application dates for the 2026-2027 intake, tuition fees and program descriptions.

Student profile:
- Admission type: {user_input.admission_type}
- Countries: {countries}
- Desired programs/fields: {fields}
- Program language preference: {user_input.language_preference_text()}
- Grades: {user_input.grades}
- Language exam: {user_input.exam_text()}
- Budget: {user_input.budget}
{search_context}

Return JSON:
{{
  "programs": [
    {{
      "name": "Exact program name as on the university website, including abbreviations like BSc, MSc, BBE",
      "field": "Field of study",
      "university": "Real university name",
      "country": "Country name",
      "language": "English" or "Local",
      "category": "Realistic" or "Reach",
      "reason": "Why this program matches the profile",
      "websiteUrl": "Official university or program URL",
      "contactEmail": "Admissions office email",
      "contactPhone": "Admissions office phone with country code",
      "applicationStartDate": "Application opening date (e.g. 'October 1, 2025')",
      "applicationDeadline": "Application deadline (e.g. 'January 15, 2026')",
      "semesterStartDate": "Semester start (e.g. 'September 2026')",
      "tuitionFee": "Tuition fee with currency (e.g. '€726.72 per semester')",
      "admissionStatus": "Can apply now" or "Need improvement" or "Eligible now",
      "requiredImprovements": "Specific, actionable improvement (only when status is 'Need improvement')",
      "description": "2-3 sentence description of the program and university",
      "programStructure": "Core courses, electives, modules, specialization tracks, thesis and internship requirements"
    }}
  ]
}}

Requirements:
- Return 8-12 programs from real universities in: {countries}
- Match the fields: {fields}
- Respect the language preference: {user_input.program_language}
- "admissionStatus": "Can apply now" if grades and exam scores meet the requirements, "Eligible now" if already qualified, "Need improvement" otherwise
- Never return "Not specified" or empty strings; when exact data is unknown use realistic values typical for that country

Examples of real program names:
- Austria: "Bachelor in Business and Economics (BBE)" at WU Vienna
- Germany: "Master of Science in Computer Science" at TU Munich
- Netherlands: "Master of Science in Computer Science" at TU Delft
- UK: "MSc in Computer Science" at Cambridge

{JSON_ONLY}"""


def _or_unspecified(value: Optional[str]) -> str:
    return value if value else "Not specified"


def program_plan_prompt(
    program: Program,
    user_input: UserInput,
    requirements_context: str,
    program_context: str,
) -> str:
    improvements = f"\n- Required improvements: {program.required_improvements}" if program.required_improvements else ""
    return f"""You are an admissions advisor. Create a detailed, personalized admission plan for one specific program.

Program:
- Program: {program.name}
- University: {program.university}
- Country: {program.country}
- Website: {_or_unspecified(program.website_url)}
- Contact email: {_or_unspecified(program.contact_email)}
- Contact phone: {_or_unspecified(program.contact_phone)}
- Application start: {_or_unspecified(program.application_start_date)}
- Application deadline: {_or_unspecified(program.application_deadline)}
- Semester start: {_or_unspecified(program.semester_start_date)}
- Tuition fee: {_or_unspecified(program.tuition_fee)}

Student profile:
- Admission type: {user_input.admission_type}
- Grades: {user_input.grades}
- Language exam: {user_input.exam_text()}
- Budget: {user_input.budget}
- Admission status: {_or_unspecified(program.admission_status)}{improvements}
{requirements_context}
{program_context}

Return JSON:
{{
  "requirements": {{
    "languageExams": ["Language exam requirements with minimum scores (e.g. 'IELTS: 7.0 minimum')"],
    "gpaRequirements": "GPA or grade requirements",
    "entranceExams": ["Entrance exams (e.g. 'GMAT: minimum 600')"],
    "videoEssay": true or false,
    "portfolio": true or false,
    "recommendationLetters": number of letters required,
    "otherRequirements": ["Other requirements (e.g. 'Motivation letter', 'CV/Resume', 'Interview')"]
  }},
  "{PLAN_NOW}": ["Action with exact dates", "..."],
  "{PLAN_MID}": ["Action with exact dates", "..."],
  "{PLAN_DEADLINES}": ["Final steps with exact deadlines", "..."]
}}

Requirements:
- List every admission requirement for {program.university} {program.name}; each university has different requirements
- Use the program's dates and tuition fee above and reference its contact details
- If the admission status is "Need improvement", include steps to reach the target scores or grades
- Make every action specific and time-bound

Return ONLY valid JSON, no markdown, no emojis."""


def housing_prompt(university: str, city: str, country: str, search_context: str) -> str:
    return f"""You are a student housing advisor. Extract structured information about student housing options.

University: {university}
City: {city}
Country: {country}
{search_context}

Return JSON:
{{
  "housingOptions": [
    {{
      "name": "Name of the housing facility",
      "address": "Street address, or city/area",
      "cost": "Monthly cost with currency (e.g. '€300-600/month')",
      "availability": "Availability (e.g. 'Usually available', 'Limited availability', 'Competitive')",
      "contact": "Contact email or phone, or 'Contact via website'",
      "facilities": ["wifi", "kitchen", "laundry", "..."],
      "roomTypes": ["single room", "shared room", "studio", "..."],
      "difficulty": "Easy" or "Medium" or "Hard",
      "websiteUrl": "Official website URL if found",
      "description": "1-2 sentence description"
    }}
  ]
}}

Requirements:
- Return 3-8 housing options, preferring real facilities named in the search results
- "difficulty": "Easy" = usually available, "Medium" = limited availability, "Hard" = competitive
- Only include website URLs found in the search results
- Never return "Not specified"; use reasonable defaults for typical student housing

{JSON_ONLY}"""


def country_info_prompt(country: str, cost_context: str, advantages_context: str) -> str:
    return f"""You are a study abroad advisor. Provide comprehensive information about studying in {country} for international students.
{cost_context}
{advantages_context}

Return JSON:
{{
  "name": "{country}",
  "overview": "2-3 sentence overview of the country as a study destination",
  "advantages": ["5-7 main advantages of studying here"],
  "benefitsForStudents": ["5-7 specific benefits for international students"],
  "challenges": ["3-5 main challenges"],
  "nuances": ["3-5 important things to know (visa, insurance, transport...)"],
  "costOfLiving": {{
    "accommodation": "e.g. '€300-800/month for student dorms'",
    "food": "e.g. '€200-400/month'",
    "transport": "e.g. '€50-100/month for a student pass'",
    "utilities": "e.g. '€50-150/month'",
    "entertainment": "e.g. '€100-200/month'",
    "healthInsurance": "e.g. '€50-100/month'",
    "totalMonthly": "e.g. '€750-1850/month'",
    "detailedBreakdown": "Paragraph with specific examples and ranges"
  }}
}}

Requirements:
- Use the exact numbers from the search results when they contain costs
- Mention real challenges international students face
- Include visa, language and cultural nuances

{JSON_ONLY}"""


def document_guide_prompt(country: str, document_name: str, search_context: str) -> str:
    return f"""You are a documentation advisor for international students. Explain, step by step, how to obtain {document_name} in {country} as an international student.

{search_context}

Return JSON:
{{
  "documentType": "{document_name}",
  "country": "{country}",
  "overview": "2-3 sentences on what this document is and why students need it",
  "requirements": ["5-8 eligibility requirements"],
  "documentsNeeded": ["8-12 specific documents required for the application"],
  "applicationSteps": ["8-15 chronological steps, e.g. 'Step 1: Gather all required documents'"],
  "processingTime": "Processing time, including express options",
  "costs": "Cost breakdown",
  "importantNotes": ["5-10 warnings, tips and common mistakes"],
  "officialLinks": ["Official URLs found in the search results"]
}}

Requirements:
- Name the authorities, embassies or offices that process the application
- Say when to apply relative to the program start date
- Never return "Not specified"; fall back to general knowledge and say so

{JSON_ONLY}"""
