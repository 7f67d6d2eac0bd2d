"""Article rewriting with pluggable generation backends."""

from .backends import (
    GeminiBackend,
    GenerationBackend,
    OllamaBackend,
    OpenAIBackend,
    build_generation_backend,
)
from .orchestrator import RewriteOrchestrator
from .prompt import build_rewrite_prompt, ensure_references_section

__all__ = [
    "GeminiBackend",
    "GenerationBackend",
    "OllamaBackend",
    "OpenAIBackend",
    "RewriteOrchestrator",
    "build_generation_backend",
    "build_rewrite_prompt",
    "ensure_references_section",
]
