"""Rewrite job: take one unprocessed source, gather references, rewrite and publish."""

from typing import List, Optional
from uuid import uuid4

import structlog

from article_pipeline.core.crawler.extractor import ContentExtractor
from article_pipeline.core.models import JobResult, ReferenceArticle, SourceArticle
from article_pipeline.core.publisher.publisher import Publisher
from article_pipeline.core.publisher.schemas import ArticleVersion, StoredArticle
from article_pipeline.core.publisher.store_client import ArticleStoreClient
from article_pipeline.core.rewriter.backends import build_generation_backend
from article_pipeline.core.rewriter.orchestrator import RewriteOrchestrator
from article_pipeline.core.search import ReferenceSearchProvider, build_search_provider
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import (
    ArticleStoreError,
    ExternalServiceError,
    NoReferencesError,
)

logger = structlog.get_logger(__name__)


def to_source_article(article: StoredArticle) -> SourceArticle:
    return SourceArticle(
        id=str(article.id),
        url=article.source_url,
        title=article.title,
        body_text=article.content,
        discovered_at=article.created_at,
        processed=article.is_rewritten,
    )


class RewriteJob:
    """Rewrites at most one source article per run.

    Search provider and generation backend are built on construction, so a
    misconfiguration raises ConfigurationError before any network call.

    The processed flag is read here and written by the store when the rewrite
    is published. Two overlapping runs can therefore rewrite the same source
    twice; runs are expected to be triggered one at a time.
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[ArticleStoreClient] = None,
        search_provider: Optional[ReferenceSearchProvider] = None,
        extractor: Optional[ContentExtractor] = None,
        orchestrator: Optional[RewriteOrchestrator] = None,
        publisher: Optional[Publisher] = None,
    ):
        self.settings = settings
        self.store = store or ArticleStoreClient(settings)
        self.search_provider = search_provider or build_search_provider(settings)
        self.extractor = extractor or ContentExtractor(settings)
        self.orchestrator = orchestrator or RewriteOrchestrator(settings, build_generation_backend(settings))
        self.publisher = publisher or Publisher(self.store)

    def run(self) -> JobResult:
        correlation_id = str(uuid4())
        result = JobResult(job="rewrite", status="completed", correlation_id=correlation_id)
        logger.info("Starting rewrite job", correlation_id=correlation_id)

        try:
            stored = self.store.get_latest_unprocessed()
        except ArticleStoreError as e:
            return self._fail(result, "store_unavailable", e)

        if stored is None:
            return self._skip(result, "no_unprocessed_article")

        source = to_source_article(stored)
        result.source_id = source.id
        if source.processed or stored.version == ArticleVersion.REWRITTEN:
            return self._skip(result, "already_processed")

        logger.info(
            "Processed flag checked without a lock",
            correlation_id=correlation_id,
            source_id=source.id,
            title=source.title,
        )

        references = self.gather_references(source, correlation_id)
        result.reference_urls = tuple(reference.url for reference in references)

        try:
            rewritten = self.orchestrator.rewrite(source, references, correlation_id=correlation_id)
        except NoReferencesError:
            return self._skip(result, "no_references")
        except ExternalServiceError as e:
            return self._fail(result, "generation_failed", e)

        try:
            result.published_id = self.publisher.publish_rewrite(rewritten, source.id)
        except ArticleStoreError as e:
            return self._fail(result, "publish_failed", e)

        logger.info(
            "Rewrite job finished",
            correlation_id=correlation_id,
            status=result.status,
            source_id=source.id,
            published_id=result.published_id,
            reference_urls=list(result.reference_urls),
        )
        return result

    def gather_references(self, source: SourceArticle, correlation_id: str) -> List[ReferenceArticle]:
        """Search by source title and extract each candidate, in search order."""
        urls = self.search_provider.search(source.title, max_results=self.settings.REFERENCE_COUNT)
        references = []
        for url in urls:
            extracted = self.extractor.extract(url, correlation_id=correlation_id)
            if extracted is None:
                continue
            references.append(ReferenceArticle(url=url, title=extracted.title, body_text=extracted.body_text))

        logger.info(
            "References gathered",
            correlation_id=correlation_id,
            source_id=source.id,
            candidates=len(urls),
            references=len(references),
        )
        return references

    def _skip(self, result: JobResult, reason: str) -> JobResult:
        result.status = "skipped"
        result.reason = reason
        logger.info("Rewrite job skipped", correlation_id=result.correlation_id, source_id=result.source_id, reason=reason)
        return result

    def _fail(self, result: JobResult, reason: str, error: Exception) -> JobResult:
        result.status = "failed"
        result.reason = reason
        result.error = str(error)
        logger.error(
            "Rewrite job failed",
            correlation_id=result.correlation_id,
            source_id=result.source_id,
            reason=reason,
            error=str(error),
            error_type=type(error).__name__,
        )
        return result
