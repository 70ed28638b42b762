"""
Methodology classification.

Single-label classification of a transcript into the closed taxonomy, with a
confidence score and evidence quotes. Confidence below the gate blocks the
run before any extraction call is made.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from strategy_extraction.core.config import Config, StageSettings
from strategy_extraction.core.errors import LowConfidenceMethodology, ParseFailure
from strategy_extraction.llm.client import extract_json_object
from strategy_extraction.prompts.builder import (
    DEFAULT_MAX_TRANSCRIPT_CHARS,
    build_methodology_prompt,
)
from strategy_extraction.schemas.pipeline import MethodologyResult

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_GATE = 60


class MethodologyClassifier:
    """
    Classifies transcripts by trading methodology.

    Usage:
        classifier = MethodologyClassifier(client, config.stages.classification)
        result = classifier.classify(transcript)
        classifier.enforce_gate(result)
    """

    def __init__(
        self,
        client,
        stage: Optional[StageSettings] = None,
        confidence_gate: int = DEFAULT_CONFIDENCE_GATE,
        max_transcript_chars: int = DEFAULT_MAX_TRANSCRIPT_CHARS,
    ):
        self.client = client
        self.stage = stage or StageSettings(temperature=0.1, timeout=60.0)
        self.confidence_gate = confidence_gate
        self.max_transcript_chars = max_transcript_chars

    @classmethod
    def from_config(cls, client, config: Config) -> "MethodologyClassifier":
        return cls(
            client,
            stage=config.stages.classification,
            confidence_gate=config.classification.confidence_gate,
            max_transcript_chars=config.classification.max_transcript_chars,
        )

    def classify(self, transcript: str) -> MethodologyResult:
        """
        Classify a transcript.

        Raises:
            ParseFailure: The answer was not a valid classification.
            UpstreamError: Propagated from the client.
        """
        prompt = build_methodology_prompt(transcript, max_chars=self.max_transcript_chars)
        content = self.client.complete(
            prompt,
            model=self.stage.model,
            temperature=self.stage.temperature,
            timeout=self.stage.timeout,
        )
        data = extract_json_object(content)

        try:
            result = MethodologyResult.model_validate(data)
        except ValidationError as e:
            raise ParseFailure(
                f"Methodology response failed validation: {e.error_count()} error(s)",
                raw_response=(content or "")[:500],
            ) from e

        logger.info(
            "Methodology detected: %s (%d%% confidence)", result.methodology, result.confidence
        )
        return result

    def passes_gate(self, result: MethodologyResult) -> bool:
        return result.confidence >= self.confidence_gate

    def enforce_gate(self, result: MethodologyResult) -> MethodologyResult:
        """
        Raises:
            LowConfidenceMethodology: If confidence is below the gate.
        """
        if not self.passes_gate(result):
            raise LowConfidenceMethodology(
                f"Methodology confidence too low ({result.confidence}%). "
                "The video may not contain a clear trading strategy.",
                confidence=result.confidence,
                gate=self.confidence_gate,
            )
        return result
