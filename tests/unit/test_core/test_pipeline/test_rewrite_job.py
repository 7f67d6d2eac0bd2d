"""Unit tests for RewriteJob with mocked collaborators."""

import httpx
import pytest
from unittest.mock import Mock

from article_pipeline.core.crawler import ContentExtractor
from article_pipeline.core.error_handling import RetryConfig, RetryHandler
from article_pipeline.core.models import ExtractionResult, RewrittenArticle
from article_pipeline.core.pipeline import RewriteJob
from article_pipeline.core.pipeline.rewrite import to_source_article
from article_pipeline.core.publisher import ArticleStoreClient, Publisher
from article_pipeline.core.publisher.schemas import ArticleVersion, StoredArticle
from article_pipeline.core.rewriter import RewriteOrchestrator
from article_pipeline.core.rewriter.backends import GeminiBackend
from article_pipeline.core.search import ReferenceSearchProvider
from article_pipeline.shared.exceptions import (
    ArticleStoreError,
    ConfigurationError,
    GenerationBackendError,
    NoReferencesError,
    RateLimitExceededError,
)

REFERENCE_URLS = ["https://first.com/blog/ai", "https://second.com/blog/ai"]

STORED = StoredArticle(
    id=42,
    title="How AI Chatbots Improve Customer Support",
    content="Chatbots answer routine questions.",
    source_url="https://blog.example.com/blogs/ai-chatbots/",
)


class TestRewriteJob:

    @pytest.fixture
    def store(self):
        store = Mock(spec=ArticleStoreClient)
        store.get_latest_unprocessed.return_value = STORED
        return store

    @pytest.fixture
    def search_provider(self):
        provider = Mock(spec=ReferenceSearchProvider)
        provider.search.return_value = list(REFERENCE_URLS)
        return provider

    @pytest.fixture
    def extractor(self):
        extractor = Mock(spec=ContentExtractor)
        extractor.extract.side_effect = lambda url, correlation_id=None: ExtractionResult(
            url=url, title=f"Reference {url}", body_text="Reference body " * 20
        )
        return extractor

    @pytest.fixture
    def orchestrator(self):
        orchestrator = Mock(spec=RewriteOrchestrator)
        orchestrator.rewrite.side_effect = lambda source, references, correlation_id=None: RewrittenArticle(
            title=source.title + " (Rewritten)",
            body_text="Rewritten body.",
            source_id=source.id,
            reference_urls=tuple(r.url for r in references),
        )
        return orchestrator

    @pytest.fixture
    def publisher(self):
        publisher = Mock(spec=Publisher)
        publisher.publish_rewrite.return_value = "43"
        return publisher

    @pytest.fixture
    def job(self, test_settings, store, search_provider, extractor, orchestrator, publisher):
        return RewriteJob(
            test_settings,
            store=store,
            search_provider=search_provider,
            extractor=extractor,
            orchestrator=orchestrator,
            publisher=publisher,
        )

    def test_successful_rewrite(self, job, search_provider, orchestrator, publisher, test_settings):
        result = job.run()

        assert result.status == "completed"
        assert result.source_id == "42"
        assert result.published_id == "43"
        assert result.reference_urls == tuple(REFERENCE_URLS)
        search_provider.search.assert_called_once_with(STORED.title, max_results=test_settings.REFERENCE_COUNT)

        source, references = orchestrator.rewrite.call_args.args
        assert source.id == "42"
        assert [r.url for r in references] == REFERENCE_URLS

        rewritten, source_id = publisher.publish_rewrite.call_args.args
        assert source_id == "42"
        assert rewritten.reference_urls == tuple(REFERENCE_URLS)

    def test_no_unprocessed_article(self, job, store, search_provider):
        store.get_latest_unprocessed.return_value = None

        result = job.run()

        assert result.status == "skipped"
        assert result.reason == "no_unprocessed_article"
        search_provider.search.assert_not_called()

    def test_already_processed_source(self, job, store, search_provider):
        store.get_latest_unprocessed.return_value = STORED.model_copy(update={"is_rewritten": True})

        result = job.run()

        assert result.status == "skipped"
        assert result.reason == "already_processed"
        search_provider.search.assert_not_called()

    def test_rewritten_version_not_rewritten_again(self, job, store, search_provider, orchestrator):
        store.get_latest_unprocessed.return_value = STORED.model_copy(
            update={"version": ArticleVersion.REWRITTEN, "parent_article_id": 7}
        )

        result = job.run()

        assert result.status == "skipped"
        assert result.reason == "already_processed"
        search_provider.search.assert_not_called()
        orchestrator.rewrite.assert_not_called()

    def test_no_references_leaves_source_unprocessed(self, job, search_provider, orchestrator, publisher):
        search_provider.search.return_value = []
        orchestrator.rewrite.side_effect = NoReferencesError(source_id="42")

        result = job.run()

        assert result.status == "skipped"
        assert result.reason == "no_references"
        assert result.reference_urls == ()
        publisher.publish_rewrite.assert_not_called()

    def test_unextractable_references_dropped(self, job, extractor, orchestrator):
        extractor.extract.side_effect = [None, ExtractionResult(
            url=REFERENCE_URLS[1], title="Second", body_text="Reference body " * 20
        )]

        result = job.run()

        assert result.reference_urls == (REFERENCE_URLS[1],)
        _, references = orchestrator.rewrite.call_args.args
        assert [r.url for r in references] == [REFERENCE_URLS[1]]

    def test_store_unavailable(self, job, store):
        store.get_latest_unprocessed.side_effect = ArticleStoreError("down")

        result = job.run()

        assert result.status == "failed"
        assert result.reason == "store_unavailable"
        assert result.error == "down"

    @pytest.mark.parametrize("error", [
        RateLimitExceededError("still limited"),
        GenerationBackendError("gemini", "bad request"),
    ])
    def test_generation_failure(self, job, orchestrator, publisher, error):
        orchestrator.rewrite.side_effect = error

        result = job.run()

        assert result.status == "failed"
        assert result.reason == "generation_failed"
        publisher.publish_rewrite.assert_not_called()

    def test_generation_timeout_reported_as_failure(self, test_settings, store, search_provider, extractor, publisher):
        client = Mock()
        client.models.generate_content.side_effect = httpx.ReadTimeout("timed out")
        orchestrator = RewriteOrchestrator(
            test_settings,
            GeminiBackend(test_settings, client=client),
            retry_handler=RetryHandler(RetryConfig.from_settings(test_settings), sleep=Mock()),
        )
        job = RewriteJob(
            test_settings,
            store=store,
            search_provider=search_provider,
            extractor=extractor,
            orchestrator=orchestrator,
            publisher=publisher,
        )

        result = job.run()

        assert result.status == "failed"
        assert result.reason == "generation_failed"
        assert "timed out" in result.error
        client.models.generate_content.assert_called_once()
        publisher.publish_rewrite.assert_not_called()

    def test_publish_failure(self, job, publisher):
        publisher.publish_rewrite.side_effect = ArticleStoreError("down")

        result = job.run()

        assert result.status == "failed"
        assert result.reason == "publish_failed"
        assert result.succeeded is False

    def test_misconfiguration_raises_on_construction(self, test_settings):
        test_settings.SEARCH_PROVIDER = "api"

        with pytest.raises(ConfigurationError):
            RewriteJob(test_settings)


def test_to_source_article():
    source = to_source_article(STORED)

    assert source.id == "42"
    assert source.url == STORED.source_url
    assert source.body_text == STORED.content
    assert source.processed is False
