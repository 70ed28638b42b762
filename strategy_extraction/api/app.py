"""
Strategy Import API - FastAPI Application
==========================================

Exposes the extraction pipeline as a single JSON operation:

    POST /   {"url": "...", "transcript": "..."}  (at least one)

The response body is always the import envelope
({status, reason, strategy, validation, videoTitle?, debug}). HTTP status is
200 for every non-exceptional outcome (including blocked and failed runs),
400 for missing input and 429/402/500 for upstream failures.

Usage:
    uvicorn strategy_extraction.api.app:create_app --factory --port 8000
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from strategy_extraction import __version__
from strategy_extraction.core.config import Config, load_config
from strategy_extraction.core.errors import http_status_for_message
from strategy_extraction.core.logging import setup_logging
from strategy_extraction.pipeline.orchestrator import StrategyImportPipeline
from strategy_extraction.schemas.pipeline import ImportRequest, ImportResult, ImportStatus

logger = logging.getLogger(__name__)

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def _envelope(result: ImportResult) -> JSONResponse:
    return JSONResponse(status_code=result.http_status, content=result.to_response())


def _error_envelope(message: str, http_status: int) -> JSONResponse:
    return _envelope(ImportResult(
        status=ImportStatus.FAILED,
        reason=message,
        http_status=http_status,
    ))


def create_app(
    config: Optional[Config] = None,
    pipeline: Optional[StrategyImportPipeline] = None,
) -> FastAPI:
    """
    Build the application.

    A missing completion-service API key fails here, at startup, rather than
    on the first request.

    Raises:
        ConfigurationError: If the pipeline must be built and no API key is set.
    """
    config = config or load_config()
    setup_logging(config)
    pipeline = pipeline or StrategyImportPipeline.from_config(config)

    app = FastAPI(
        title="Strategy Extraction API",
        description="Turns YouTube trading-education videos into structured, scored strategies.",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOWED_HEADERS,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_envelope("Request body must be a JSON object with a url or transcript", 400)

    @app.post("/", summary="Import a strategy from a YouTube URL or transcript")
    def import_strategy(payload: Optional[ImportRequest] = None) -> JSONResponse:
        """Run the full pipeline once and return the import envelope."""
        payload = payload or ImportRequest()
        try:
            result = pipeline.run(url=payload.url, transcript=payload.transcript)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.exception("Unhandled error in strategy import")
            return _error_envelope(message, http_status_for_message(message))
        return _envelope(result)

    @app.get("/health", summary="Liveness check")
    def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app
