"""Acquisition job: locate the oldest listing articles, extract and store them."""

from typing import Optional
from uuid import uuid4

import structlog

from article_pipeline.core.crawler.extractor import ContentExtractor
from article_pipeline.core.crawler.locator import PageLocator
from article_pipeline.core.models import JobResult
from article_pipeline.core.publisher.publisher import Publisher
from article_pipeline.core.publisher.store_client import ArticleStoreClient
from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import (
    ArticleStoreError,
    DuplicateArticleError,
    PublishValidationError,
)

logger = structlog.get_logger(__name__)


class AcquisitionJob:
    """Runs one acquisition batch.

    Re-running over the same listing is safe: already stored URLs come back
    from the store as duplicates and are counted as skipped.
    """

    def __init__(
        self,
        settings: Settings,
        locator: Optional[PageLocator] = None,
        extractor: Optional[ContentExtractor] = None,
        publisher: Optional[Publisher] = None,
    ):
        self.settings = settings
        self.locator = locator or PageLocator(settings)
        self.extractor = extractor or ContentExtractor(settings)
        self.publisher = publisher or Publisher(ArticleStoreClient(settings))

    def run(self, listing_url: Optional[str] = None, batch_size: Optional[int] = None) -> JobResult:
        correlation_id = str(uuid4())
        listing_url = listing_url or self.settings.LISTING_ROOT_URL
        if batch_size is None:
            batch_size = self.settings.BATCH_SIZE
        result = JobResult(job="acquire", status="completed", correlation_id=correlation_id)

        logger.info(
            "Starting acquisition job",
            correlation_id=correlation_id,
            listing_url=listing_url,
            batch_size=batch_size,
        )

        urls = self.locator.locate_batch(listing_url, batch_size, correlation_id=correlation_id)
        result.candidates = len(urls)
        if not urls:
            result.status = "skipped"
            result.reason = "no_candidates"
            logger.warning("No candidate articles located", correlation_id=correlation_id, listing_url=listing_url)
            return result

        for url in urls:
            extracted = self.extractor.extract(url, correlation_id=correlation_id)
            if extracted is None:
                result.failed += 1
                continue

            try:
                article_id = self.publisher.publish_original(extracted, source_url=url)
            except DuplicateArticleError:
                result.skipped += 1
                logger.info("Article already stored", correlation_id=correlation_id, url=url)
                continue
            except PublishValidationError as e:
                result.failed += 1
                logger.warning(
                    "Article rejected by store",
                    correlation_id=correlation_id,
                    url=url,
                    errors=e.errors,
                )
                continue
            except ArticleStoreError as e:
                # Store unreachable, the rest of the batch would fail the same way
                result.failed += 1
                result.status = "failed"
                result.reason = "store_unavailable"
                result.error = e.message
                logger.error("Article store unavailable", correlation_id=correlation_id, url=url, error=e.message)
                break

            result.scraped += 1
            logger.info("Article acquired", correlation_id=correlation_id, url=url, article_id=article_id)

        logger.info(
            "Acquisition job finished",
            correlation_id=correlation_id,
            status=result.status,
            candidates=result.candidates,
            scraped=result.scraped,
            skipped=result.skipped,
            failed=result.failed,
        )
        return result
