"""Text generation backends.

Each backend takes one prompt string and returns plain text. Rate limits are
raised as RateLimitExceededError so the orchestrator can back off; every other
failure becomes GenerationBackendError and is not retried.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import openai
import requests
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from article_pipeline.core.rewriter.prompt import SYSTEM_PROMPT
from article_pipeline.shared.config import GenerationBackendName, Settings
from article_pipeline.shared.exceptions import (
    ConfigurationError,
    GenerationBackendError,
    RateLimitExceededError,
)

logger = structlog.get_logger(__name__)


class GenerationBackend(ABC):
    name = "base"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.temperature = settings.GENERATION_TEMPERATURE
        self.max_tokens = settings.GENERATION_MAX_TOKENS
        self.timeout = settings.GENERATION_TIMEOUT

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's text for `prompt`."""

    def _require_text(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            raise GenerationBackendError(self.name, "empty response")
        return text.strip()


class GeminiBackend(GenerationBackend):
    """Google Gemini through the google-genai SDK."""

    name = GenerationBackendName.GEMINI.value

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        super().__init__(settings)
        if not settings.GOOGLE_AI_API_KEY and client is None:
            raise ConfigurationError(
                "GOOGLE_AI_API_KEY is required when GENERATION_BACKEND=gemini",
                details={"setting": "GOOGLE_AI_API_KEY"}
            )
        self.model = settings.GOOGLE_AI_MODEL
        self.client = client or genai.Client(
            api_key=settings.GOOGLE_AI_API_KEY,
            http_options=types.HttpOptions(timeout=self.timeout * 1000),
        )

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    temperature=self.temperature,
                    max_output_tokens=self.max_tokens,
                )
            )
        except genai_errors.APIError as e:
            if e.code == 429:
                raise RateLimitExceededError(
                    f"{self.name} rate limited: {e.message}",
                    details={"backend": self.name, "model": self.model}
                )
            raise GenerationBackendError(
                self.name, str(e), details={"backend": self.name, "status_code": e.code}
            )
        except httpx.HTTPError as e:
            raise GenerationBackendError(
                self.name, str(e) or type(e).__name__, details={"backend": self.name, "model": self.model}
            )

        return self._require_text(response.text)


class OpenAIBackend(GenerationBackend):
    """OpenAI chat completions."""

    name = GenerationBackendName.OPENAI.value

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        super().__init__(settings)
        if not settings.OPENAI_API_KEY and client is None:
            raise ConfigurationError(
                "OPENAI_API_KEY is required when GENERATION_BACKEND=openai",
                details={"setting": "OPENAI_API_KEY"}
            )
        self.model = settings.OPENAI_MODEL
        self.client = client or openai.OpenAI(api_key=settings.OPENAI_API_KEY, timeout=self.timeout)

    def generate(self, prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.RateLimitError as e:
            raise RateLimitExceededError(
                f"{self.name} rate limited: {e}",
                details={"backend": self.name, "model": self.model}
            )
        except openai.APIError as e:
            raise GenerationBackendError(self.name, str(e))

        if not completion.choices:
            raise GenerationBackendError(self.name, "no choices returned")
        return self._require_text(completion.choices[0].message.content)


class OllamaBackend(GenerationBackend):
    """Local model served by Ollama's generate endpoint."""

    name = GenerationBackendName.OLLAMA.value

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        super().__init__(settings)
        self.model = settings.OLLAMA_MODEL
        self.endpoint = f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/generate"
        self.session = session or requests.Session()

    def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "prompt": f"{SYSTEM_PROMPT}\n\n{prompt}",
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        try:
            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise GenerationBackendError(self.name, str(e), details={"endpoint": self.endpoint})

        if response.status_code == 429:
            raise RateLimitExceededError(
                f"{self.name} rate limited",
                details={"backend": self.name, "model": self.model}
            )
        if not 200 <= response.status_code < 300:
            raise GenerationBackendError(
                self.name,
                f"unexpected status {response.status_code}",
                details={"endpoint": self.endpoint, "status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationBackendError(self.name, f"invalid JSON: {e}")
        if not isinstance(data, dict):
            raise GenerationBackendError(self.name, f"unexpected response body: {type(data).__name__}")
        return self._require_text(data.get("response"))


BACKENDS = {
    GenerationBackendName.GEMINI: GeminiBackend,
    GenerationBackendName.OPENAI: OpenAIBackend,
    GenerationBackendName.OLLAMA: OllamaBackend,
}


def build_generation_backend(settings: Settings) -> GenerationBackend:
    """Instantiate the configured backend.

    Raises:
        ConfigurationError: Unknown backend or missing credentials
    """
    backend_class = BACKENDS.get(settings.GENERATION_BACKEND)
    if backend_class is None:
        raise ConfigurationError(f"Unsupported generation backend: {settings.GENERATION_BACKEND}")

    backend = backend_class(settings)
    logger.info("Generation backend ready", backend=backend.name, model=backend.model)
    return backend
