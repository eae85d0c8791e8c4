from openai import OpenAI
from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
)
from study_planner.config import Settings, settings as default_settings
from study_planner.exceptions import (
    ConfigurationError,
    ResponseParseError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
)
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import random
import re
import time

logger = logging.getLogger(__name__)

# Failures worth another attempt; everything else is returned to the caller at once
TRANSIENT_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


def strip_code_fences(content: str) -> str:
    """Remove ```json fences some models wrap around JSON output"""
    return _FENCE_RE.sub("", content.strip()).strip()


class OpenAIService:
    def __init__(
        self,
        settings: Settings = None,
        client: OpenAI = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or default_settings
        self.model = self.settings.OPENAI_MODEL
        self.temperature = self.settings.OPENAI_TEMPERATURE
        self.max_retries = max(1, self.settings.OPENAI_MAX_RETRIES)
        self.base_delay = self.settings.OPENAI_RETRY_BASE_DELAY_S
        self._client = client
        self._sleep = sleep

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            # Retries are handled here, not by the SDK
            self._client = OpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                timeout=self.settings.OPENAI_TIMEOUT_S,
                max_retries=0,
            )
        return self._client

    def ensure_configured(self):
        """Raise before any network call when the API key is missing or the template placeholder"""
        if self._client is None and not self.settings.openai_configured:
            raise ConfigurationError()

    def _backoff(self, attempt: int) -> float:
        # Exponential, jittered by up to 50% either way
        return self.base_delay * (2 ** attempt) * random.uniform(0.5, 1.5)

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        json_mode: bool = True,
    ):
        """Generate chat completion with retry logic for transient failures"""
        self.ensure_configured()
        kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        for attempt in range(self.max_retries):
            try:
                return self.client.chat.completions.create(**kwargs)
            except TRANSIENT_ERRORS as e:
                if attempt < self.max_retries - 1:
                    wait_time = self._backoff(attempt)
                    logger.warning(
                        f"OpenAI transient error (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    self._sleep(wait_time)
                    continue
                logger.error(f"OpenAI call failed after {self.max_retries} attempts: {e}")
                raise UpstreamError() from e
            except RateLimitError as e:
                logger.error(f"OpenAI rate limit: {e}")
                raise UpstreamRateLimitError() from e
            except (AuthenticationError, PermissionDeniedError) as e:
                logger.error(f"OpenAI authentication error: {e}")
                raise UpstreamAuthError() from e
            except (APIStatusError, APIError) as e:
                # For other errors, don't retry
                logger.error(f"OpenAI API error: {e}")
                raise UpstreamError() from e

    def complete_json(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        temperature: Optional[float] = None,
        json_mode: bool = True,
    ) -> Dict[str, Any]:
        """
        Run one completion and parse its content as a JSON object.

        Raises UpstreamError (or a subclass) for API failures and
        ResponseParseError when the content is empty or not a JSON object.
        The raw content is logged, never put into the error message.
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        response = self.chat_completion(messages, temperature=temperature, json_mode=json_mode)

        content = None
        if response is not None and response.choices:
            content = response.choices[0].message.content
        if not content:
            logger.error("Empty response from OpenAI")
            raise ResponseParseError()

        try:
            parsed = json.loads(strip_code_fences(content))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse OpenAI JSON ({e}): {content[:500]}")
            raise ResponseParseError() from e

        if not isinstance(parsed, dict):
            logger.error(f"OpenAI returned JSON that is not an object: {content[:500]}")
            raise ResponseParseError()
        return parsed
