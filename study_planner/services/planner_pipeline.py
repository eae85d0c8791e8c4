"""
Prompt/response pipeline: search fan-out, prompt build, LLM call, shape check,
validation into typed models and enrichment.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar
import logging

from pydantic import BaseModel, ValidationError

from study_planner.config import Settings, settings as default_settings
from study_planner.exceptions import ResponseValidationError
from study_planner.models import DOCUMENT_SEARCH_TERMS
from study_planner.schemas.guides import CountryInfo, DocumentGuide, HousingOption, SearchResult
from study_planner.schemas.submission import (
    PLAN_BUCKETS,
    AdmissionPlan,
    AIResponse,
    PlanRequirements,
    Program,
    UserInput,
)
from study_planner.services import prompts
from study_planner.services.openai_service import OpenAIService
from study_planner.services.tavily_service import TavilyService
from study_planner.services.university_data import enrich_program

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")
M = TypeVar("M", bound=BaseModel)

DOCUMENT_GUIDE_TEMPERATURE = 0.3


def resolve_document_name(document_type: str) -> str:
    """Search phrase for a document type key; unknown keys are used verbatim"""
    return DOCUMENT_SEARCH_TERMS.get(document_type, document_type)


class PlannerPipeline:
    def __init__(
        self,
        openai_service: OpenAIService,
        tavily_service: TavilyService,
        settings: Settings = None,
    ):
        self.openai = openai_service
        self.tavily = tavily_service
        self.settings = settings or default_settings
        self.max_workers = max(1, self.settings.SEARCH_WORKERS)

    # Fan-out helpers

    def _fan_out(self, fn: Callable[[T], R], items: Iterable[T], default: Any = None) -> List[R]:
        """
        Run fn over items concurrently and join all of them, preserving order.
        A failed item contributes `default` instead of aborting the batch.
        """
        items = list(items)
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
            futures = [executor.submit(fn, item) for item in items]
            results = []
            for item, future in zip(items, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning(f"Sub-task failed for {item!r}: {e}")
                    results.append(default)
            return results

    def _search_all(self, searches: List[Callable[[], List[SearchResult]]]) -> List[List[SearchResult]]:
        return [results or [] for results in self._fan_out(lambda search: search(), searches, default=[])]

    def _context(self, heading: str, results: List[SearchResult], instruction: str) -> str:
        if not results:
            if not self.tavily.enabled:
                return f"\n\n{prompts.NO_SEARCH_NOTE}"
            return ""
        return prompts.search_section(heading, self.tavily.format_search_results(results), instruction)

    # Validation helpers

    @staticmethod
    def _validate(model: type, data: Dict[str, Any], what: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid {what} from OpenAI: {e}")
            raise ResponseValidationError(f"The AI response contained an invalid {what}. Please try again.") from e

    @staticmethod
    def _validate_items(model: type, items: List[Any], what: str) -> List[M]:
        """Validate list entries one by one, dropping the malformed ones"""
        valid = []
        for item in items:
            try:
                valid.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Dropping malformed {what}: {e}")
        if items and not valid:
            raise ResponseValidationError(f"The AI response contained no valid {what} entries. Please try again.")
        return valid

    # Variants

    def _enrich_with_image(self, program: Program) -> Program:
        enriched = enrich_program(program)
        try:
            image_url = self.tavily.search_university_image(enriched.university, enriched.country)
        except Exception as e:
            logger.warning(f"Image search failed for {enriched.university}: {e}")
            image_url = None
        if image_url:
            return enriched.model_copy(update={"image_url": image_url})
        logger.warning(f"No image found for {enriched.university} in {enriched.country}")
        return enriched

    def generate_admission_plan(self, user_input: UserInput) -> AIResponse:
        """Recommend programs for a profile, enriched with known-university data and images"""
        self.openai.ensure_configured()

        searches = [
            (lambda country=country, field=field: self.tavily.search_university_admission_info("", field, country))
            for country in user_input.countries
            for field in user_input.programs
        ]
        search_results = [result for batch in self._search_all(searches) for result in batch]
        context = self._context(
            "REAL-TIME SEARCH RESULTS FROM INTERNET",
            search_results,
            "USE THIS REAL-TIME DATA to get accurate admission requirements, deadlines, and contact "
            "information. Prioritize information from these search results over general knowledge.",
        )

        data = self.openai.complete_json(
            prompts.ADVISOR_SYSTEM_PROMPT,
            prompts.admission_plan_prompt(user_input, context),
        )
        if not isinstance(data.get("programs"), list):
            logger.error(f"OpenAI response has no programs list: {str(data)[:500]}")
            raise ResponseValidationError("The AI response did not include any programs. Please try again.")

        programs = self._validate_items(Program, data["programs"], "program")
        enriched = self._fan_out(self._enrich_with_image, programs)
        # A program whose enrichment blew up still goes out, unenriched and without image
        enriched = [result if result is not None else program for result, program in zip(enriched, programs)]
        logger.info(f"Generated {len(enriched)} programs")
        return AIResponse(programs=enriched)

    def generate_program_plan(self, program: Program, user_input: UserInput) -> AdmissionPlan:
        """Step-by-step admission plan for one program"""
        self.openai.ensure_configured()

        requirements, admission, structure = self._search_all([
            lambda: self.tavily.search_admission_requirements(program.university, program.name, program.country),
            lambda: self.tavily.search_university_admission_info(program.university, program.name, program.country),
            lambda: self.tavily.search_program_structure(program.university, program.name),
        ])
        requirements_context = self._context(
            "REAL-TIME ADMISSION REQUIREMENTS SEARCH RESULTS",
            requirements,
            "USE THIS REAL-TIME DATA to extract the exact requirements for this program: GPA, language "
            "exams with minimum scores, entrance exams, video essay, CV, portfolio, recommendation letters.",
        )
        program_context = "" if not (admission or structure) else prompts.search_section(
            "REAL-TIME PROGRAM DATA",
            self.tavily.format_search_results(admission + structure),
            "USE THIS REAL-TIME DATA for accurate deadlines and program structure.",
        )

        data = self.openai.complete_json(
            prompts.ADVISOR_SYSTEM_PROMPT,
            prompts.program_plan_prompt(program, user_input, requirements_context, program_context),
        )
        missing = [bucket for bucket in PLAN_BUCKETS if bucket not in data]
        if missing:
            logger.error(f"Plan is missing buckets {missing}: {str(data)[:500]}")
            raise ResponseValidationError("The AI response did not include a complete admission plan. Please try again.")

        plan = self._validate(AdmissionPlan, data, "admission plan")
        if plan.requirements is None:
            plan = plan.model_copy(update={"requirements": PlanRequirements()})
        return plan

    def _housing_with_image(self, option: HousingOption, city: str, country: str) -> HousingOption:
        image_url = self.tavily.search_housing_image(option.name, city, country)
        if image_url:
            return option.model_copy(update={"image_url": image_url})
        return option

    def generate_housing_options(self, university: str, city: str, country: str) -> List[HousingOption]:
        self.openai.ensure_configured()

        results = self.tavily.search_student_housing(university, city, country)
        context = self._context(
            "REAL-TIME HOUSING SEARCH RESULTS FROM INTERNET",
            results,
            "USE THIS REAL-TIME DATA to extract exact information about student housing options.",
        )

        data = self.openai.complete_json(
            prompts.HOUSING_SYSTEM_PROMPT,
            prompts.housing_prompt(university, city, country, context),
        )
        if not isinstance(data.get("housingOptions"), list):
            logger.error(f"OpenAI response has no housingOptions list: {str(data)[:500]}")
            raise ResponseValidationError("The AI response did not include housing options. Please try again.")

        options = self._validate_items(HousingOption, data["housingOptions"], "housing option")
        with_images = self._fan_out(lambda option: self._housing_with_image(option, city, country), options)
        return [result if result is not None else option for result, option in zip(with_images, options)]

    def generate_country_info(self, country: str) -> CountryInfo:
        self.openai.ensure_configured()

        costs, advantages = self._search_all([
            lambda: self.tavily.search_country_info(country),
            lambda: self.tavily.search_country_advantages(country),
        ])
        cost_context = self._context(
            "REAL-TIME COST OF LIVING DATA",
            costs,
            "USE THIS REAL-TIME DATA to extract exact costs and expenses.",
        )
        advantages_context = "" if not advantages else prompts.search_section(
            "REAL-TIME COUNTRY ADVANTAGES/CHALLENGES DATA",
            self.tavily.format_search_results(advantages),
            "USE THIS REAL-TIME DATA to extract pros, cons, benefits, and challenges.",
        )

        data = self.openai.complete_json(
            prompts.COUNTRY_SYSTEM_PROMPT,
            prompts.country_info_prompt(country, cost_context, advantages_context),
        )
        if not data.get("name") or not data.get("overview"):
            logger.error(f"Country info without name/overview: {str(data)[:500]}")
            raise ResponseValidationError("The AI response did not include country information. Please try again.")
        return self._validate(CountryInfo, data, "country info")

    def generate_document_guide(self, country: str, document_type: str) -> DocumentGuide:
        self.openai.ensure_configured()

        document_name = resolve_document_name(document_type)
        results = self.tavily.search_document_requirements(country, document_name)
        context = self.tavily.format_search_results(results)

        data = self.openai.complete_json(
            None,
            prompts.document_guide_prompt(country, document_name, context),
            temperature=DOCUMENT_GUIDE_TEMPERATURE,
            json_mode=False,
        )
        if not data.get("overview"):
            logger.error(f"Document guide without overview: {str(data)[:500]}")
            raise ResponseValidationError("The AI response did not include a document guide. Please try again.")
        if not data.get("documentType"):
            data["documentType"] = document_name
        if not data.get("country"):
            data["country"] = country
        return self._validate(DocumentGuide, data, "document guide")
