import os
from enum import Enum
from typing import Optional
from urllib.parse import urlparse
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator, ConfigDict
from functools import lru_cache
import logging


def _get_env_file() -> str:
    """Determine which environment file to load based on the current environment."""
    environment = os.environ.get("ENVIRONMENT", "development")

    # Priority order for env files:
    # 1. .env.{environment} (e.g., .env.production)
    # 2. .env.local (local overrides)
    # 3. .env (default)
    possible_env_files = [
        f".env.{environment}",
        ".env.local",
        ".env"
    ]

    for env_file in possible_env_files:
        if os.path.exists(env_file):
            logging.info(f"Loading environment from: {env_file}")
            return env_file

    return ".env"  # Fallback, won't be loaded if doesn't exist


class SearchProvider(str, Enum):
    """Reference search strategies."""
    API = "api"
    FALLBACK = "fallback"


class GenerationBackendName(str, Enum):
    """Text generation backends."""
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA = "ollama"


class LinkSelectionPolicy(str, Enum):
    """Which end of a listing page is treated as oldest."""
    TAIL = "tail"
    HEAD = "head"


class Settings(BaseSettings):
    ENVIRONMENT: str = Field(
        default="development",
        description="Application environment"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    LOG_FORMAT: str = Field(
        default="json",
        description="Log format (json/console)"
    )

    # Article store
    ARTICLE_STORE_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL of the article store API"
    )

    ARTICLE_STORE_TIMEOUT: int = Field(
        default=15,
        description="Timeout for article store requests in seconds"
    )

    # Acquisition
    LISTING_ROOT_URL: str = Field(
        default="https://beyondchats.com/blogs/",
        description="Root URL of the paginated source listing"
    )

    ARTICLE_PATH_SEGMENT: str = Field(
        default="/blogs/",
        description="Path segment every source article URL contains"
    )

    BATCH_SIZE: int = Field(
        default=5,
        description="Number of source articles collected per acquisition run"
    )

    LINK_SELECTION_POLICY: LinkSelectionPolicy = Field(
        default=LinkSelectionPolicy.TAIL,
        description="Take the last (tail) or first (head) links of each listing page"
    )

    LISTING_TIMEOUT: int = Field(
        default=30,
        description="Timeout for listing page requests in seconds"
    )

    # Extraction
    REQUEST_TIMEOUT: int = Field(
        default=15,
        description="Timeout for article and search page requests in seconds"
    )

    USER_AGENT: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="Browser-like user agent sent with page requests"
    )

    TITLE_PREFERRED_LENGTH: int = Field(
        default=10,
        description="Title candidates longer than this are accepted immediately"
    )

    TITLE_MIN_LENGTH: int = Field(
        default=3,
        description="Titles shorter than this make the extraction a failure"
    )

    CONTENT_SELECTOR_MIN_LENGTH: int = Field(
        default=200,
        description="Minimum text length for a body container to be accepted"
    )

    CONTENT_MIN_LENGTH: int = Field(
        default=100,
        description="Minimum normalized body length for a successful extraction"
    )

    # Reference search
    SEARCH_PROVIDER: SearchProvider = Field(
        default=SearchProvider.FALLBACK,
        description="Reference search strategy (api/fallback)"
    )

    SERP_API_KEY: Optional[str] = Field(
        default=None,
        description="SerpAPI key, required when SEARCH_PROVIDER=api"
    )

    SOURCE_DOMAIN: Optional[str] = Field(
        default=None,
        description="Domain excluded from reference results (defaults to the listing host)"
    )

    REFERENCE_COUNT: int = Field(
        default=2,
        description="Number of reference articles used per rewrite"
    )

    CLOUDSCRAPER_ENABLED: bool = Field(
        default=True,
        description="Use CloudScraper for scraped search result pages"
    )

    CLOUDSCRAPER_DELAY: float = Field(
        default=1.0,
        description="Delay before a CloudScraper request in seconds"
    )

    # Generation
    GENERATION_BACKEND: GenerationBackendName = Field(
        default=GenerationBackendName.GEMINI,
        description="Text generation backend (gemini/openai/ollama)"
    )

    GOOGLE_AI_API_KEY: Optional[str] = Field(
        default=None,
        description="Google AI Studio key for the gemini backend"
    )

    GOOGLE_AI_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model name"
    )

    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="OpenAI key for the openai backend"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="OpenAI chat model name"
    )

    OLLAMA_BASE_URL: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL for the local backend"
    )

    OLLAMA_MODEL: str = Field(
        default="llama3.2",
        description="Ollama model name"
    )

    GENERATION_TEMPERATURE: float = Field(
        default=0.7,
        description="Sampling temperature for all backends"
    )

    GENERATION_MAX_TOKENS: int = Field(
        default=3000,
        description="Maximum output tokens for all backends"
    )

    GENERATION_TIMEOUT: int = Field(
        default=120,
        description="Timeout for a single generation request in seconds"
    )

    REFERENCE_EXCERPT_CHARS: int = Field(
        default=800,
        description="Characters of each reference body included in the prompt"
    )

    RETRY_LIMIT: int = Field(
        default=3,
        description="Total generation attempts when a backend is rate limited"
    )

    RETRY_BASE_DELAY: float = Field(
        default=10.0,
        description="Base delay in seconds for rate-limit backoff"
    )

    RETRY_MAX_DELAY: float = Field(
        default=600.0,
        description="Largest allowed rate-limit backoff delay; the final retry must not wait longer"
    )

    # Trigger API
    API_HOST: str = Field(
        default="0.0.0.0",
        description="API host binding address"
    )

    API_PORT: int = Field(
        default=3001,
        description="API port number"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"LOG_FORMAT must be one of {valid_formats}")
        return v.lower()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ["development", "testing", "staging", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of {valid_envs}")
        return v.lower()

    @field_validator("SEARCH_PROVIDER", "GENERATION_BACKEND", "LINK_SELECTION_POLICY", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("ARTICLE_STORE_BASE_URL", "LISTING_ROOT_URL", "OLLAMA_BASE_URL")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL settings must start with http:// or https://")
        return v

    @field_validator("BATCH_SIZE")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("BATCH_SIZE must be positive")
        if v > 100:
            raise ValueError("BATCH_SIZE must not exceed 100")
        return v

    @field_validator("REFERENCE_COUNT")
    @classmethod
    def validate_reference_count(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("REFERENCE_COUNT must be positive")
        if v > 10:
            raise ValueError("REFERENCE_COUNT must not exceed 10")
        return v

    @field_validator("RETRY_LIMIT")
    @classmethod
    def validate_retry_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("RETRY_LIMIT must be at least 1")
        if v > 10:
            raise ValueError("RETRY_LIMIT must not exceed 10")
        return v

    @field_validator("RETRY_BASE_DELAY")
    @classmethod
    def validate_retry_base_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("RETRY_BASE_DELAY must be positive")
        return v

    @field_validator("REQUEST_TIMEOUT", "LISTING_TIMEOUT", "ARTICLE_STORE_TIMEOUT")
    @classmethod
    def validate_request_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Request timeouts must be positive")
        if v > 300:  # 5 minutes max
            raise ValueError("Request timeouts must not exceed 300 seconds")
        return v

    @field_validator("GENERATION_TIMEOUT")
    @classmethod
    def validate_generation_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("GENERATION_TIMEOUT must be positive")
        if v > 900:
            raise ValueError("GENERATION_TIMEOUT must not exceed 900 seconds")
        return v

    @field_validator("GENERATION_TEMPERATURE")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if v < 0.0 or v > 2.0:
            raise ValueError("GENERATION_TEMPERATURE must be between 0.0 and 2.0")
        return v

    @field_validator("TITLE_MIN_LENGTH", "TITLE_PREFERRED_LENGTH", "CONTENT_MIN_LENGTH",
                     "CONTENT_SELECTOR_MIN_LENGTH", "REFERENCE_EXCERPT_CHARS")
    @classmethod
    def validate_lengths(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Length thresholds must be positive")
        return v

    @field_validator("API_PORT")
    @classmethod
    def validate_api_port(cls, v: int) -> int:
        if v <= 0 or v > 65535:
            raise ValueError("API_PORT must be between 1 and 65535")
        return v

    @model_validator(mode="after")
    def validate_retry_schedule(self) -> "Settings":
        # Backoff doubles per retry; the last wait must fit under RETRY_MAX_DELAY.
        if self.RETRY_LIMIT > 1:
            final_delay = self.RETRY_BASE_DELAY * 2 ** (self.RETRY_LIMIT - 2)
            if final_delay > self.RETRY_MAX_DELAY:
                raise ValueError(
                    f"RETRY_BASE_DELAY * 2 ** (RETRY_LIMIT - 2) = {final_delay}s "
                    f"exceeds RETRY_MAX_DELAY {self.RETRY_MAX_DELAY}s"
                )
        return self

    @property
    def excluded_source_domain(self) -> str:
        """Domain whose pages never count as references."""
        if self.SOURCE_DOMAIN:
            return self.SOURCE_DOMAIN.lower()
        host = urlparse(self.LISTING_ROOT_URL).netloc.lower()
        return host[4:] if host.startswith("www.") else host

    model_config = ConfigDict(
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
