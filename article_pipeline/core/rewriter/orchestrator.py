"""Drives a generation backend to rewrite a source article in the references' style."""

from typing import Optional, Sequence

import structlog

from article_pipeline.core.error_handling.retry_handler import RetryConfig, RetryHandler
from article_pipeline.core.models import ReferenceArticle, RewrittenArticle, SourceArticle
from article_pipeline.core.rewriter.backends import GenerationBackend
from article_pipeline.core.rewriter.prompt import build_rewrite_prompt, ensure_references_section
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import NoReferencesError

logger = structlog.get_logger(__name__)

REWRITTEN_TITLE_SUFFIX = " (Rewritten)"


class RewriteOrchestrator:
    """Builds the prompt, calls the backend with rate-limit backoff and fixes up citations."""

    def __init__(
        self,
        settings: Settings,
        backend: GenerationBackend,
        retry_handler: Optional[RetryHandler] = None,
    ):
        self.settings = settings
        self.backend = backend
        self.retry_handler = retry_handler or RetryHandler(RetryConfig.from_settings(settings))

    def rewrite(
        self,
        source: SourceArticle,
        references: Sequence[ReferenceArticle],
        correlation_id: Optional[str] = None,
    ) -> RewrittenArticle:
        """Produce a rewrite citing exactly `references`, in order.

        Raises:
            NoReferencesError: `references` is empty, the backend is never called
            RateLimitExceededError: Still rate limited after the last attempt
            GenerationBackendError: Any other backend failure
        """
        if not references:
            raise NoReferencesError(source_id=source.id)

        prompt = build_rewrite_prompt(source, references, self.settings.REFERENCE_EXCERPT_CHARS)
        logger.info(
            "Requesting rewrite",
            correlation_id=correlation_id,
            source_id=source.id,
            backend=self.backend.name,
            references=len(references),
            prompt_length=len(prompt),
        )

        text = self.retry_handler.execute_with_retry(
            self.backend.generate, prompt, correlation_id=correlation_id
        )

        return RewrittenArticle(
            title=f"{source.title}{REWRITTEN_TITLE_SUFFIX}",
            body_text=ensure_references_section(text, references),
            source_id=source.id,
            reference_urls=tuple(reference.url for reference in references),
        )
