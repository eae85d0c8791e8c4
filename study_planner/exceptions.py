"""
Error taxonomy shared by the pipeline, the storage layer and the routers.

Every error carries a user-facing message (``str(exc)``) and an ``error_code``
that the routers translate into an HTTP status.
"""


class PlannerError(Exception):
    error_code = "error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class ConfigurationError(PlannerError):
    """A required API key is missing. Raised before any network call."""
    error_code = "configuration"
    default_message = "OpenAI API key is not configured. Please set OPENAI_API_KEY in .env"


class InputValidationError(PlannerError):
    error_code = "validation"
    default_message = "All required fields must be filled"

    def __init__(self, message: str = None, field: str = None):
        super().__init__(message)
        self.field = field


class UpstreamError(PlannerError):
    """LLM or search provider call failed."""
    error_code = "upstream"
    default_message = "The AI service is temporarily unavailable. Please try again."


class UpstreamRateLimitError(UpstreamError):
    error_code = "upstream_rate_limited"
    default_message = "OpenAI API rate limit exceeded. Please try again later."


class UpstreamAuthError(UpstreamError):
    error_code = "upstream_auth"
    default_message = "OpenAI API key authentication failed. Please verify OPENAI_API_KEY and restart the server."


class ResponseParseError(PlannerError):
    """Model output is not valid JSON. Details are logged, never shown."""
    error_code = "parse"
    default_message = "We could not read the AI response. Please try again."


class ResponseValidationError(PlannerError):
    """Model output parsed but lacks the keys the caller needs."""
    error_code = "invalid_response"
    default_message = "The AI response was incomplete. Please try again."


class NotFoundError(PlannerError):
    error_code = "not_found"
    default_message = "Not found"


class StorageError(PlannerError):
    error_code = "storage"
    default_message = "Failed to save your submission. Please try again."
