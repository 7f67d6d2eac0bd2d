"""Manual trigger endpoints for acquisition and rewrite jobs.

Jobs run synchronously inside the request; FastAPI executes these plain
`def` handlers in its threadpool.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from article_pipeline.api.schemas.job import AcquireJobRequest, JobResultResponse
from article_pipeline.core.models import JobResult
from article_pipeline.core.pipeline import AcquisitionJob, RewriteJob
from article_pipeline.shared.config import get_settings
from article_pipeline.shared.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def get_acquisition_job() -> AcquisitionJob:
    """Dependency to get an AcquisitionJob instance."""
    return AcquisitionJob(get_settings())


def get_rewrite_job() -> RewriteJob:
    """Dependency to get a RewriteJob instance.

    Raises:
        HTTPException: 503 when the search provider or backend is misconfigured
    """
    try:
        return RewriteJob(get_settings())
    except ConfigurationError as e:
        logger.error("Rewrite job misconfigured", **e.to_dict())
        raise HTTPException(status_code=503, detail=e.message)


def _respond(result: JobResult) -> JSONResponse:
    status_code = 200 if result.succeeded else 500
    return JSONResponse(status_code=status_code, content=JobResultResponse(**result.to_dict()).model_dump())


@router.post("/acquire", response_model=JobResultResponse)
def trigger_acquisition(
    request: Request,
    job_request: Optional[AcquireJobRequest] = None,
    job: AcquisitionJob = Depends(get_acquisition_job),
):
    """Run one acquisition batch and return its summary."""
    job_request = job_request or AcquireJobRequest()
    logger.info(
        "Acquisition triggered",
        correlation_id=getattr(request.state, "correlation_id", "unknown"),
        batch_size=job_request.batch_size,
        listing_url=job_request.listing_url,
    )
    return _respond(job.run(listing_url=job_request.listing_url, batch_size=job_request.batch_size))


@router.post("/rewrite", response_model=JobResultResponse)
def trigger_rewrite(request: Request, job: RewriteJob = Depends(get_rewrite_job)):
    """Rewrite the latest unprocessed article and return the outcome."""
    logger.info("Rewrite triggered", correlation_id=getattr(request.state, "correlation_id", "unknown"))
    return _respond(job.run())
