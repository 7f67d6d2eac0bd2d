"""Tests for the job trigger API routes.

Jobs are replaced through FastAPI dependency overrides, so no listing,
store or generation backend is contacted.
"""

import pytest
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient
from fastapi import status

from article_pipeline.api.main import app
from article_pipeline.api.routes.jobs import get_acquisition_job, get_rewrite_job
from article_pipeline.core.models import JobResult
from article_pipeline.core.pipeline import AcquisitionJob, RewriteJob
from article_pipeline.shared.exceptions import ConfigurationError


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def acquisition_job():
    job = Mock(spec=AcquisitionJob)
    job.run.return_value = JobResult(
        job="acquire", status="completed", correlation_id="acq-123", candidates=5, scraped=4, skipped=1
    )
    app.dependency_overrides[get_acquisition_job] = lambda: job
    return job


@pytest.fixture
def rewrite_job():
    job = Mock(spec=RewriteJob)
    job.run.return_value = JobResult(
        job="rewrite",
        status="completed",
        correlation_id="rw-123",
        source_id="42",
        published_id="43",
        reference_urls=("https://first.com/blog/ai", "https://second.com/blog/ai"),
    )
    app.dependency_overrides[get_rewrite_job] = lambda: job
    return job


class TestAcquireEndpoint:

    def test_trigger_without_body(self, client, acquisition_job):
        response = client.post("/jobs/acquire")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["job"] == "acquire"
        assert data["status"] == "completed"
        assert data["scraped"] == 4
        assert data["skipped"] == 1
        acquisition_job.run.assert_called_once_with(listing_url=None, batch_size=None)

    def test_trigger_with_overrides(self, client, acquisition_job):
        response = client.post(
            "/jobs/acquire", json={"batch_size": 3, "listing_url": "https://other.example.com/blog/"}
        )

        assert response.status_code == status.HTTP_200_OK
        acquisition_job.run.assert_called_once_with(listing_url="https://other.example.com/blog/", batch_size=3)

    def test_invalid_batch_size(self, client, acquisition_job):
        response = client.post("/jobs/acquire", json={"batch_size": 0})

        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"
        acquisition_job.run.assert_not_called()

    def test_skipped_run_is_ok(self, client, acquisition_job):
        acquisition_job.run.return_value = JobResult(
            job="acquire", status="skipped", correlation_id="acq-1", reason="no_candidates"
        )

        response = client.post("/jobs/acquire")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["reason"] == "no_candidates"

    def test_failed_run_is_server_error(self, client, acquisition_job):
        acquisition_job.run.return_value = JobResult(
            job="acquire", status="failed", correlation_id="acq-1", reason="store_unavailable", error="down"
        )

        response = client.post("/jobs/acquire")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == "down"


class TestRewriteEndpoint:

    def test_trigger(self, client, rewrite_job):
        response = client.post("/jobs/rewrite")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["published_id"] == "43"
        assert data["reference_urls"] == ["https://first.com/blog/ai", "https://second.com/blog/ai"]
        assert response.headers["X-Correlation-ID"]

    def test_no_references_is_skipped(self, client, rewrite_job):
        rewrite_job.run.return_value = JobResult(
            job="rewrite", status="skipped", correlation_id="rw-1", source_id="42", reason="no_references"
        )

        response = client.post("/jobs/rewrite")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "skipped"

    def test_misconfigured_backend(self, client, test_settings):
        with patch("article_pipeline.api.routes.jobs.get_settings", return_value=test_settings), \
                patch("article_pipeline.api.routes.jobs.RewriteJob") as job_class:
            job_class.side_effect = ConfigurationError("OPENAI_API_KEY is required when GENERATION_BACKEND=openai")
            response = client.post("/jobs/rewrite")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "OPENAI_API_KEY" in response.json()["detail"]
