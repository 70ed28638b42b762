"""
Unified single-pass extraction.

One completion call is asked to access the video, classify its methodology
and extract the strategy. The answer is only trusted when it clears the same
refusal and length checks applied to every transcript.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from pydantic import ValidationError

from strategy_extraction.acquisition.refusal import (
    MIN_RESPONSE_CHARS,
    MIN_TRANSCRIPT_WORDS,
    TranscriptVerdict,
    find_refusal_phrase,
)
from strategy_extraction.core.config import StageSettings
from strategy_extraction.core.errors import ContentRejected, ParseFailure
from strategy_extraction.llm.client import extract_json_object
from strategy_extraction.prompts.builder import CANNOT_ACCESS_SENTINEL, build_unified_prompt
from strategy_extraction.schemas.pipeline import MethodologyResult
from strategy_extraction.schemas.strategy import ExtractedStrategy, coerce_optional_float

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


@dataclass
class UnifiedExtraction:
    """A unified response that passed every check."""
    methodology: MethodologyResult
    strategy: ExtractedStrategy
    transcript_preview: str
    word_count: int


def run_unified_extraction(
    client,
    url: str,
    video_id: str,
    stage: StageSettings,
    min_chars: int = MIN_RESPONSE_CHARS,
    min_words: int = MIN_TRANSCRIPT_WORDS,
) -> UnifiedExtraction:
    """
    Make the unified completion call and validate its answer.

    Raises:
        ContentRejected: Refusal, missing keys or an implausibly short answer.
        ParseFailure: The answer held no JSON object.
        UpstreamError: Propagated from the client.
    """
    prompt = build_unified_prompt(url, video_id)
    content = client.complete(
        prompt,
        model=stage.model,
        temperature=stage.temperature,
        timeout=stage.timeout,
    )
    return parse_unified_response(content, min_chars=min_chars, min_words=min_words)


def parse_unified_response(
    content: str,
    min_chars: int = MIN_RESPONSE_CHARS,
    min_words: int = MIN_TRANSCRIPT_WORDS,
) -> UnifiedExtraction:
    """Validate raw unified output and bind its methodology and strategy."""
    content = content or ""
    if len(content.strip()) < min_chars:
        raise ContentRejected(
            f"Unified response too short ({len(content.strip())} chars)",
            verdict=TranscriptVerdict.TOO_SHORT.value,
        )

    try:
        data = extract_json_object(content)
    except ParseFailure:
        phrase = find_refusal_phrase(content)
        if phrase is not None:
            raise ContentRejected(
                f"Unified response reads as a refusal ('{phrase}')",
                verdict=TranscriptVerdict.IMPLICIT_REFUSAL.value,
            )
        raise

    if data.get("error") == CANNOT_ACCESS_SENTINEL or data.get("canAccessVideo") is False:
        details = data.get("errorDetails") or data.get("error") or "video not accessible"
        raise ContentRejected(
            f"Model cannot access video: {details}",
            verdict=TranscriptVerdict.EXPLICIT_REFUSAL.value,
        )
    if not isinstance(data.get("canAccessVideo"), bool):
        raise ContentRejected("Unified response has no canAccessVideo flag")

    methodology_data = data.get("methodology")
    strategy_data = data.get("strategy")
    if not isinstance(methodology_data, dict) or not methodology_data.get("methodology"):
        raise ContentRejected("Unified response has no methodology label")
    if coerce_optional_float(methodology_data.get("confidence")) is None:
        raise ContentRejected("Unified response has no numeric methodology confidence")
    if not isinstance(strategy_data, dict):
        raise ContentRejected("Unified response has no strategy")

    word_count = _word_count(data.get("transcriptWordCount"))
    if word_count < min_words:
        raise ContentRejected(
            f"Unified response reports only {word_count} transcript words",
            verdict=TranscriptVerdict.TOO_SHORT.value,
        )

    try:
        methodology = MethodologyResult.model_validate(methodology_data)
        strategy = ExtractedStrategy.model_validate(
            _with_extraction_quality(strategy_data, data.get("validation"))
        )
    except ValidationError as e:
        raise ParseFailure(f"Unified response failed schema validation: {e}") from e

    strategy = strategy.model_copy(update={"methodology": methodology.methodology})

    preview = str(data.get("transcriptPreview") or "")[:PREVIEW_CHARS]
    logger.info(
        "Unified extraction accepted: %s (%d%%), %d entry rules, %d words",
        methodology.methodology, methodology.confidence,
        len(strategy.entry_rules), word_count,
    )
    return UnifiedExtraction(
        methodology=methodology,
        strategy=strategy,
        transcript_preview=preview,
        word_count=word_count,
    )


def _with_extraction_quality(strategy: Dict[str, Any], validation: Any) -> Dict[str, Any]:
    """Carry validation.extractionQuality over as the strategy's self-reported confidence."""
    if strategy.get("extractionConfidence") is not None or not isinstance(validation, dict):
        return strategy
    quality = validation.get("extractionQuality")
    if not isinstance(quality, dict):
        return strategy
    return {**strategy, "extractionConfidence": quality}


def _word_count(value: Any) -> int:
    if isinstance(value, str):
        value = value.replace(",", "").replace("_", "")
    return int(coerce_optional_float(value) or 0)
