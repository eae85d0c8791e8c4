from pydantic_settings import BaseSettings
from typing import List, Optional

# Placeholder shipped in .env templates; treated the same as a missing key
OPENAI_KEY_PLACEHOLDER = "your_openai_api_key_here"

class Settings(BaseSettings):
    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT_S: float = 120.0
    OPENAI_MAX_RETRIES: int = 3
    OPENAI_RETRY_BASE_DELAY_S: float = 1.0

    # Tavily web search (optional; prompts go without real-time context when unset)
    TAVILY_API_KEY: str = ""
    TAVILY_SEARCH_DEPTH: str = "advanced"
    SEARCH_WORKERS: int = 8

    # Storage: database first, then in-memory (serverless) or JSON file
    DATABASE_URL: str = ""
    SUBMISSIONS_FILE: str = "data/submissions.json"
    VERCEL: str = ""
    AWS_LAMBDA_FUNCTION_NAME: Optional[str] = None

    ALLOWED_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def is_serverless(self) -> bool:
        """True when running without a durable local disk (Vercel, AWS Lambda)."""
        return self.VERCEL == "1" or self.AWS_LAMBDA_FUNCTION_NAME is not None

    @property
    def openai_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY) and self.OPENAI_API_KEY != OPENAI_KEY_PLACEHOLDER

    @property
    def allowed_origins_list(self) -> List[str]:
        # Comma-separated string, whitespace stripped
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

settings = Settings()
