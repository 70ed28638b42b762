"""Error taxonomy for the extraction pipeline.

Each error carries the HTTP status the endpoint answers with and the import
status the run ends in. Stage code raises these; the orchestrator decides
whether a stage failure triggers the next fallback or ends the run.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for expected pipeline failures."""

    http_status: int = 500
    import_status: str = "failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(PipelineError):
    """Missing URL/transcript or a URL without a recognisable video id."""

    http_status = 400


class UpstreamError(PipelineError):
    """A failure reported by the completion service or the caption API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimited(UpstreamError):
    """HTTP 429 from the completion service. Never retried."""

    http_status = 429


class UpstreamBillingExhausted(UpstreamError):
    """HTTP 402 from the completion service."""

    http_status = 402


class UpstreamUnavailable(UpstreamError):
    """Any other non-2xx answer, a timeout or a dropped connection."""

    http_status = 500


class ParseFailure(PipelineError):
    """Model output was not a JSON object even after fence and brace cleanup."""

    def __init__(self, message: str, raw_response: str | None = None):
        super().__init__(message)
        self.raw_response = raw_response


class ContentRejected(PipelineError):
    """Model output parsed, but reads as a refusal or is too thin to be real."""

    def __init__(self, message: str, verdict: str | None = None):
        super().__init__(message)
        self.verdict = verdict


class LowConfidenceMethodology(PipelineError):
    """Methodology confidence fell below the extraction gate."""

    http_status = 200
    import_status = "blocked"

    def __init__(self, message: str, confidence: int, gate: int):
        super().__init__(message)
        self.confidence = confidence
        self.gate = gate


# Substrings the top-level handler uses to classify unexpected exceptions
RATE_LIMIT_MARKERS = ("rate limit", "Rate limit", "429")
BILLING_MARKERS = ("credits", "payment required", "Payment required", "402")


def http_status_for_message(message: str) -> int:
    """Map an unexpected error message to the HTTP status to answer with."""
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return 429
    if any(marker in message for marker in BILLING_MARKERS):
        return 402
    return 500
