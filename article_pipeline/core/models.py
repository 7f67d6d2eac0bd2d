"""Domain records passed between acquisition, search, rewrite and publish steps."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from article_pipeline.shared.exceptions import NoReferencesError


@dataclass
class SourceArticle:
    """An article acquired from the listing and persisted in the store."""
    id: str
    url: Optional[str]
    title: str
    body_text: str
    discovered_at: Optional[datetime] = None
    processed: bool = False


@dataclass
class ReferenceArticle:
    """A third-party article used only as style and tone context."""
    url: str
    title: str
    body_text: str


@dataclass(frozen=True)
class ExtractionResult:
    """Clean text pulled from one HTML page.

    Only built when both title and body passed their thresholds, so an
    instance is always complete.
    """
    url: str
    title: str
    body_text: str
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class RewrittenArticle:
    title: str
    body_text: str
    source_id: str
    reference_urls: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.reference_urls:
            raise NoReferencesError(source_id=self.source_id)
        # Lists are accepted from callers but stored as a tuple
        object.__setattr__(self, "reference_urls", tuple(self.reference_urls))


@dataclass
class JobResult:
    """Summary of one job run, returned to the CLI and the trigger API."""
    job: str
    status: str
    correlation_id: str
    reason: Optional[str] = None
    error: Optional[str] = None
    candidates: int = 0
    scraped: int = 0
    skipped: int = 0
    failed: int = 0
    source_id: Optional[str] = None
    published_id: Optional[str] = None
    reference_urls: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.status in ("completed", "skipped")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "status": self.status,
            "reason": self.reason,
            "error": self.error,
            "correlation_id": self.correlation_id,
            "candidates": self.candidates,
            "scraped": self.scraped,
            "skipped": self.skipped,
            "failed": self.failed,
            "source_id": self.source_id,
            "published_id": self.published_id,
            "reference_urls": list(self.reference_urls),
        }
