"""Integration tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from strategy_extraction import __version__
from strategy_extraction.api import create_app
from strategy_extraction.core.errors import UpstreamRateLimited, UpstreamUnavailable


class ExplodingPipeline:
    """Pipeline stub whose run raises an unexpected exception."""

    def __init__(self, error):
        self.error = error

    def run(self, url=None, transcript=None):
        raise self.error


@pytest.fixture
def api_client(config):
    """Build a TestClient around a given pipeline."""

    def _build(pipeline):
        return TestClient(create_app(config, pipeline=pipeline))

    return _build


class TestImportEndpoint:
    """Tests for POST /."""

    def test_empty_body(self, api_client, make_pipeline):
        """Test a body without url or transcript answers 400."""
        pipeline, _, _ = make_pipeline()

        response = api_client(pipeline).post("/", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "failed"
        assert body["debug"]["processingSteps"][0]["step"] == "input_validation"

    def test_missing_body(self, api_client, make_pipeline):
        """Test a request with no body answers 400."""
        pipeline, _, _ = make_pipeline()

        response = api_client(pipeline).post("/")

        assert response.status_code == 400

    def test_invalid_json(self, api_client, make_pipeline):
        """Test malformed JSON answers 400 with the failure envelope."""
        pipeline, _, _ = make_pipeline()

        response = api_client(pipeline).post(
            "/", content="{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["status"] == "failed"

    def test_transcript_import(
        self, api_client, make_pipeline, methodology_response, strategy_response, sample_transcript
    ):
        """Test a transcript import answers 200 with the full envelope."""
        pipeline, _, _ = make_pipeline([methodology_response(), strategy_response()])

        response = api_client(pipeline).post("/", json={"transcript": sample_transcript})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["reason"] == "Strategy extracted successfully with 86% confidence."
        assert body["strategy"]["confidence"] == 86
        assert body["strategy"]["entryRules"][0]["id"] == "entry_0"
        assert body["validation"]["score"] == 100
        assert "videoTitle" not in body

    def test_blocked_is_200(self, api_client, make_pipeline, methodology_response, sample_transcript):
        """Test blocked runs still answer 200."""
        pipeline, _, _ = make_pipeline([methodology_response(confidence=30)])

        response = api_client(pipeline).post("/", json={"transcript": sample_transcript})

        assert response.status_code == 200
        assert response.json()["status"] == "blocked"

    def test_url_import_has_title(self, api_client, make_pipeline, unified_response):
        """Test URL imports report the video title."""
        pipeline, _, _ = make_pipeline([unified_response()])

        response = api_client(pipeline).post(
            "/", json={"url": "https://youtu.be/dQw4w9WgXcQ"}
        )

        assert response.status_code == 200
        assert response.json()["videoTitle"] == "London Killzone Order Block Strategy"

    def test_rate_limited(self, api_client, make_pipeline, sample_transcript):
        """Test upstream 429 is passed through."""
        pipeline, _, _ = make_pipeline([
            UpstreamRateLimited("Rate limit exceeded. Please try again later.", 429),
        ])

        response = api_client(pipeline).post("/", json={"transcript": sample_transcript})

        assert response.status_code == 429
        assert response.json()["reason"] == "Rate limit exceeded. Please try again later."

    def test_upstream_outage_is_500(self, api_client, make_pipeline, sample_transcript):
        """Test a completion outage after acquisition answers 500."""
        pipeline, _, _ = make_pipeline([UpstreamUnavailable("AI request failed: 503", status_code=503)])

        response = api_client(pipeline).post("/", json={"transcript": sample_transcript})

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "failed"
        assert body["debug"]["processingSteps"][-1]["step"] == "methodology_detection"

    @pytest.mark.parametrize("message,status", [
        ("Not enough credits on the account", 402),
        ("Upstream said: rate limit reached", 429),
        ("Something else broke", 500),
    ])
    def test_unexpected_errors(self, api_client, message, status):
        """Test unexpected exceptions are mapped by their message."""
        response = api_client(ExplodingPipeline(RuntimeError(message))).post(
            "/", json={"transcript": "anything"}
        )

        assert response.status_code == status
        body = response.json()
        assert body["status"] == "failed"
        assert body["reason"] == message


class TestCors:
    """Tests for cross-origin support."""

    def test_preflight(self, api_client, make_pipeline):
        """Test browser preflight requests are answered."""
        pipeline, _, _ = make_pipeline()

        response = api_client(pipeline).options(
            "/",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, apikey",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_simple_request_headers(
        self, api_client, make_pipeline, methodology_response, sample_transcript
    ):
        """Test CORS headers are attached to normal responses."""
        pipeline, _, _ = make_pipeline([methodology_response(confidence=10)])

        response = api_client(pipeline).post(
            "/", json={"transcript": sample_transcript}, headers={"Origin": "https://app.example.com"}
        )

        assert response.headers["access-control-allow-origin"] == "*"


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, api_client, make_pipeline):
        """Test the liveness endpoint."""
        pipeline, _, _ = make_pipeline()

        response = api_client(pipeline).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}
