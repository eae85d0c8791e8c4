from tavily import TavilyClient
from study_planner.config import Settings, settings as default_settings
from study_planner.schemas.guides import SearchResult
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# URL fragments that mark an image as branding rather than a photo
REJECTED_IMAGE_TOKENS = ("logo", "icon", "avatar", "favicon")
CAMPUS_IMAGE_HINTS = ("campus", "university", "building", "college")

class TavilyService:
    """
    Web search for real-time admission data and images.
    Without a TAVILY_API_KEY every call returns an empty result; errors are
    logged and never raised, so prompts simply go without search context.
    """

    def __init__(self, settings: Settings = None, client: TavilyClient = None):
        self.settings = settings or default_settings
        self.search_depth = self.settings.TAVILY_SEARCH_DEPTH
        if client is not None:
            self.client = client
        elif self.settings.TAVILY_API_KEY:
            self.client = TavilyClient(api_key=self.settings.TAVILY_API_KEY)
        else:
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _raw_search(self, query: str, max_results: int, include_images: bool = False) -> Dict[str, Any]:
        return self.client.search(
            query=query,
            max_results=max_results,
            search_depth=self.search_depth,
            include_images=include_images,
        )

    def search(self, query: str, max_results: int = 5) -> List[SearchResult]:
        """Search the web using Tavily"""
        if not self.enabled:
            logger.warning(f"TAVILY_API_KEY not configured, skipping web search: {query}")
            return []
        try:
            response = self._raw_search(query, max_results)

            results = []
            for result in response.get("results", []) or []:
                results.append(SearchResult(
                    title=result.get("title") or "",
                    url=result.get("url") or "",
                    content=result.get("content") or "",
                    score=result.get("score") or 0,
                ))

            return results
        except Exception as e:
            logger.warning(f"Tavily search error for '{query}': {e}")
            return []

    @staticmethod
    def _image_url(image: Any) -> Optional[str]:
        # Tavily returns plain URLs, or dicts when image descriptions are requested
        if isinstance(image, str):
            return image
        if isinstance(image, dict):
            for key in ("original", "link", "url", "source"):
                if image.get(key):
                    return image[key]
            thumbnail = image.get("thumbnail")
            if thumbnail:
                return thumbnail.replace("/thumb/", "/")
        return None

    @staticmethod
    def _is_preferred_image(image: Any, url: str, hints) -> bool:
        url_lower = url.lower()
        if any(token in url_lower for token in REJECTED_IMAGE_TOKENS):
            return False
        if any(hint in url_lower for hint in hints):
            return True
        return isinstance(image, dict) and bool(image.get("original"))

    def search_image(self, queries: List[str], hints=CAMPUS_IMAGE_HINTS) -> Optional[str]:
        """
        Try query variants in order and return the first image that looks like
        a photo of the place. Falls back to the first valid URL seen across all
        variants, or None.
        """
        if not self.enabled:
            logger.warning("TAVILY_API_KEY not configured, skipping image search")
            return None

        fallback = None
        for query in queries:
            try:
                response = self._raw_search(query, max_results=10, include_images=True)
            except Exception as e:
                logger.warning(f"Tavily image search error for '{query}': {e}")
                continue

            for image in response.get("images", []) or []:
                url = self._image_url(image)
                if not url or not url.startswith("http"):
                    continue
                if self._is_preferred_image(image, url, hints):
                    logger.info(f"Found image for '{query}': {url}")
                    return url
                if fallback is None:
                    fallback = url

        if fallback:
            logger.info(f"Using fallback image {fallback}")
        else:
            logger.warning(f"No images found after trying {len(queries)} queries")
        return fallback

    def search_university_admission_info(self, university: str, program: str, country: str) -> List[SearchResult]:
        query = f"{university} {program} admission requirements deadlines {country} 2026"
        return self.search(" ".join(query.split()), max_results=10)

    def search_program_structure(self, university: str, program: str) -> List[SearchResult]:
        return self.search(f"{university} {program} curriculum courses modules structure", max_results=5)

    def search_admission_requirements(self, university: str, program: str, country: str) -> List[SearchResult]:
        query = f"{university} {program} admission requirements GPA exam scores video essay resume CV {country} 2026"
        return self.search(query, max_results=10)

    def search_student_housing(self, university: str, city: str, country: str) -> List[SearchResult]:
        query = f"{university} {city} {country} student housing dormitory accommodation residence hall 2026"
        return self.search(query, max_results=10)

    def search_country_info(self, country: str) -> List[SearchResult]:
        query = f"{country} student life cost of living 2026 accommodation food transport expenses university study"
        return self.search(query, max_results=10)

    def search_country_advantages(self, country: str) -> List[SearchResult]:
        query = f"{country} study abroad advantages benefits challenges pros cons for international students"
        return self.search(query, max_results=10)

    def search_document_requirements(self, country: str, document_type: str) -> List[SearchResult]:
        query = f"{country} student {document_type} requirements application process 2026"
        return self.search(query, max_results=10)

    def search_university_image(self, university: str, country: str) -> Optional[str]:
        # Most specific first
        queries = [
            f"{university} {country} campus building exterior architecture",
            f"{university} {country} university campus main building",
            f"{university} {country} campus aerial view",
            f"{university} {country} university building",
            f"{university} {country} campus",
            f"{university} campus {country}",
            f"{university} {country}",
        ]
        return self.search_image(queries)

    def search_housing_image(self, housing_name: str, city: str, country: str) -> Optional[str]:
        query = f"{housing_name} {city} {country} student housing dormitory building exterior interior"
        if not self.enabled:
            logger.warning("TAVILY_API_KEY not configured, skipping housing image search")
            return None
        try:
            response = self._raw_search(query, max_results=5, include_images=True)
        except Exception as e:
            logger.warning(f"Tavily housing image search error for {housing_name}: {e}")
            return None
        for image in response.get("images", []) or []:
            url = self._image_url(image)
            if url and url.startswith("http"):
                return url
        logger.warning(f"No images found for {housing_name}")
        return None

    def format_search_results(self, results: List[SearchResult]) -> str:
        """Format search results into a prompt-ready block"""
        if not results:
            return "No search results available."

        return "\n\n".join(
            f"Result {i}:\nTitle: {result.title}\nURL: {result.url}\nSnippet: {result.content}"
            for i, result in enumerate(results, 1)
        )
