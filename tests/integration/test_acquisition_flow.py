"""End-to-end acquisition: listing walk, extraction and publishing to the store."""

import pytest

from article_pipeline.core.crawler import ContentExtractor, PageLocator
from article_pipeline.core.pipeline import AcquisitionJob
from article_pipeline.core.publisher import ArticleStoreClient, Publisher
from article_pipeline.shared.exceptions import ExtractionTimeoutError

ROOT = "https://blog.example.com/blogs/"
PAGE_2 = "https://blog.example.com/blogs/page/2/"

OLD = ["onboarding-basics", "ticket-triage", "first-response-time"]
NEW = ["chatbot-handoff", "knowledge-base-seo", "support-metrics", "ai-chatbots"]


def article_url(slug: str) -> str:
    return f"{ROOT}{slug}/"


@pytest.fixture
def pages(make_listing_html, make_article_html):
    pages = {
        ROOT: make_listing_html(NEW, pagination=[1, 2]),
        PAGE_2: make_listing_html(OLD, pagination=[1, 2]),
    }
    for slug in OLD + NEW:
        pages[article_url(slug)] = make_article_html(title=f"Customer Support Guide: {slug.replace('-', ' ')}")
    return pages


def build_job(settings, fetcher, article_store) -> AcquisitionJob:
    return AcquisitionJob(
        settings,
        locator=PageLocator(settings, fetcher=fetcher),
        extractor=ContentExtractor(settings, fetcher=fetcher),
        publisher=Publisher(ArticleStoreClient(settings, session=article_store)),
    )


@pytest.mark.integration
class TestAcquisitionFlow:

    def test_oldest_articles_stored(self, test_settings, fake_fetcher, pages, article_store):
        job = build_job(test_settings, fake_fetcher(pages), article_store)

        result = job.run()

        assert result.status == "completed"
        assert (result.candidates, result.scraped, result.skipped, result.failed) == (5, 5, 0, 0)
        stored_urls = [a["source_url"] for a in article_store.originals]
        assert stored_urls == [article_url(s) for s in OLD] + [article_url("support-metrics"), article_url("ai-chatbots")]

        stored = article_store.originals[0]
        assert stored["title"] == "Customer Support Guide: onboarding basics"
        assert stored["published_at"] == "2024-03-05T10:00:00+00:00"
        assert "trackPageView" not in stored["content"]
        assert stored["content"].count("\n\n") == 3

    def test_second_run_is_idempotent(self, test_settings, fake_fetcher, pages, article_store):
        fetcher = fake_fetcher(pages)
        build_job(test_settings, fetcher, article_store).run()

        result = build_job(test_settings, fetcher, article_store).run()

        assert result.status == "completed"
        assert (result.scraped, result.skipped) == (0, 5)
        assert len(article_store.originals) == 5

    def test_unreachable_article_counted_as_failed(self, test_settings, fake_fetcher, pages, article_store):
        url = article_url("ticket-triage")
        pages[url] = ExtractionTimeoutError(url, test_settings.REQUEST_TIMEOUT)

        result = build_job(test_settings, fake_fetcher(pages), article_store).run()

        assert (result.scraped, result.failed) == (4, 1)
        assert url not in [a["source_url"] for a in article_store.originals]

    def test_store_outage_fails_run(self, test_settings, fake_fetcher, pages, article_store):
        article_store.unavailable = True

        result = build_job(test_settings, fake_fetcher(pages), article_store).run()

        assert result.status == "failed"
        assert result.reason == "store_unavailable"
        assert result.scraped == 0
