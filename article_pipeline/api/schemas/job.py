"""Job trigger schemas for the HTTP API."""

from typing import List, Optional

from pydantic import BaseModel, Field


class AcquireJobRequest(BaseModel):
    """Optional overrides for an acquisition run."""

    batch_size: Optional[int] = Field(None, ge=1, le=100, description="Number of articles to collect")
    listing_url: Optional[str] = Field(None, description="Listing root URL to walk")


class JobResultResponse(BaseModel):
    """Summary of a finished job run."""

    job: str = Field(..., description="acquire or rewrite")
    status: str = Field(..., description="completed, skipped or failed")
    reason: Optional[str] = Field(None, description="Why the job was skipped or failed")
    error: Optional[str] = Field(None, description="Error message for failed runs")
    correlation_id: str = Field(..., description="Correlation ID for log lookup")
    candidates: int = Field(0, description="Article URLs located")
    scraped: int = Field(0, description="Articles extracted and stored")
    skipped: int = Field(0, description="Articles already stored")
    failed: int = Field(0, description="Articles that could not be extracted or stored")
    source_id: Optional[str] = Field(None, description="Source article of a rewrite")
    published_id: Optional[str] = Field(None, description="Store id of the published rewrite")
    reference_urls: List[str] = Field(default_factory=list, description="References cited by the rewrite")
