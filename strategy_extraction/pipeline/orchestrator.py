"""
Strategy import pipeline.

Sequences acquisition, classification, extraction, normalization,
validation and status resolution for one request:

    acquire -> (unified result | transcript -> classify -> gate -> extract)
            -> normalize -> validate -> resolve

Expected failures end the run as an ImportResult carrying the HTTP status to
answer with; the debug trail is returned with every result.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from strategy_extraction.acquisition.acquirer import (
    AcquisitionFailure,
    TranscriptAcquirer,
    TranscriptOnly,
    UnifiedSuccess,
)
from strategy_extraction.acquisition.youtube import CaptionFetcher
from strategy_extraction.core.config import Config
from strategy_extraction.core.errors import (
    InputError,
    LowConfidenceMethodology,
    ParseFailure,
    PipelineError,
    UpstreamBillingExhausted,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from strategy_extraction.extraction.classifier import MethodologyClassifier
from strategy_extraction.extraction.extractor import StrategyExtractor
from strategy_extraction.extraction.normalizer import normalize_rules
from strategy_extraction.llm.client import CompletionClient
from strategy_extraction.pipeline.debug import DebugRecorder
from strategy_extraction.schemas.pipeline import (
    ImportResult,
    ImportStatus,
    MethodologyResult,
    StepStatus,
)
from strategy_extraction.schemas.strategy import ExtractedStrategy, ImportedStrategy
from strategy_extraction.validation.actionability import validate_actionability
from strategy_extraction.validation.status import resolve

logger = logging.getLogger(__name__)

INPUT_STEP = "input_validation"
METHODOLOGY_STEP = "methodology_detection"
EXTRACTION_STEP = "strategy_extraction"
VALIDATION_STEP = "actionability_validation"
STATUS_STEP = "status_resolution"

# Failures that end the run with their own HTTP status
_TERMINAL_ERRORS = (UpstreamRateLimited, UpstreamBillingExhausted, UpstreamUnavailable)


class StrategyImportPipeline:
    """
    Runs one import per call. Holds no per-request state.

    Usage:
        pipeline = StrategyImportPipeline.from_config(config)
        result = pipeline.run(url="https://www.youtube.com/watch?v=...")
        print(result.status, result.reason)
    """

    def __init__(
        self,
        config: Config,
        acquirer: TranscriptAcquirer,
        classifier: MethodologyClassifier,
        extractor: StrategyExtractor,
    ):
        self.config = config
        self.acquirer = acquirer
        self.classifier = classifier
        self.extractor = extractor

    @classmethod
    def from_config(
        cls,
        config: Config,
        client=None,
        caption_fetcher: Optional[CaptionFetcher] = None,
        title_lookup: Optional[Callable[[str], Optional[str]]] = None,
    ) -> "StrategyImportPipeline":
        """
        Wire the pipeline from configuration.

        Raises:
            ConfigurationError: If no client is given and no API key is configured.
        """
        client = client or CompletionClient.from_config(config)
        return cls(
            config,
            acquirer=TranscriptAcquirer(
                client, config, caption_fetcher=caption_fetcher, title_lookup=title_lookup
            ),
            classifier=MethodologyClassifier.from_config(client, config),
            extractor=StrategyExtractor.from_config(client, config),
        )

    def run(self, url: Optional[str] = None, transcript: Optional[str] = None) -> ImportResult:
        """Run one import. Only unexpected exceptions escape."""
        debug = DebugRecorder()
        try:
            return self._run(url, transcript, debug)
        except InputError as e:
            debug.record(INPUT_STEP, StepStatus.FAILED, e.message)
            return self._failed(e, debug)
        except _TERMINAL_ERRORS as e:
            logger.error("Import aborted by upstream (%s): %s", e.http_status, e.message)
            return self._failed(e, debug)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _run(self, url: Optional[str], transcript: Optional[str], debug: DebugRecorder) -> ImportResult:
        outcome = self.acquirer.acquire(url=url, transcript=transcript, debug=debug)

        if isinstance(outcome, AcquisitionFailure):
            return ImportResult(
                status=ImportStatus.FAILED,
                reason=outcome.reason,
                video_title=outcome.video_title,
                debug=debug.snapshot(),
            )

        if isinstance(outcome, UnifiedSuccess):
            debug.set_transcript(outcome.source, outcome.word_count, outcome.transcript_preview)
            methodology = outcome.methodology
            debug.set_methodology(methodology)
            blocked = self._gate(methodology, debug, outcome.video_title)
            if blocked is not None:
                return blocked
            strategy = outcome.strategy
            is_auto_generated = False
        else:
            debug.set_transcript(outcome.source, outcome.word_count, outcome.text)
            try:
                methodology = self.classifier.classify(outcome.text)
            except ParseFailure as e:
                debug.record(METHODOLOGY_STEP, StepStatus.FAILED, e.message)
                return self._stage_failed(f"Methodology detection failed: {e.message}", debug, outcome)
            except _TERMINAL_ERRORS as e:
                debug.record(METHODOLOGY_STEP, StepStatus.FAILED, e.message)
                raise
            debug.set_methodology(methodology)

            blocked = self._gate(methodology, debug, outcome.video_title)
            if blocked is not None:
                return blocked

            try:
                strategy = self.extractor.extract(
                    outcome.text, methodology.methodology, methodology.confidence
                )
            except ParseFailure as e:
                debug.record(EXTRACTION_STEP, StepStatus.FAILED, e.message)
                return self._stage_failed(f"Strategy extraction failed: {e.message}", debug, outcome)
            except _TERMINAL_ERRORS as e:
                debug.record(EXTRACTION_STEP, StepStatus.FAILED, e.message)
                raise
            debug.record(
                EXTRACTION_STEP, StepStatus.SUCCESS,
                f"{len(strategy.entry_rules)} entry rules, {len(strategy.exit_rules)} exit rules",
            )
            is_auto_generated = outcome.is_auto_generated

        return self._finish(strategy, methodology, outcome, is_auto_generated, url, debug)

    def _gate(
        self,
        methodology: MethodologyResult,
        debug: DebugRecorder,
        video_title: Optional[str],
    ) -> Optional[ImportResult]:
        try:
            self.classifier.enforce_gate(methodology)
        except LowConfidenceMethodology as e:
            debug.record(
                METHODOLOGY_STEP, StepStatus.FAILED,
                f"{methodology.methodology} at {e.confidence}% is below the {e.gate}% gate",
            )
            return ImportResult(
                status=ImportStatus.BLOCKED,
                reason=e.message,
                video_title=video_title,
                debug=debug.snapshot(),
            )
        debug.record(
            METHODOLOGY_STEP, StepStatus.SUCCESS,
            f"{methodology.methodology} ({methodology.confidence}%)",
        )
        return None

    def _finish(
        self,
        strategy: ExtractedStrategy,
        methodology: MethodologyResult,
        outcome,
        is_auto_generated: bool,
        url: Optional[str],
        debug: DebugRecorder,
    ) -> ImportResult:
        scoring = self.config.scoring
        normalized = normalize_rules(strategy, mandatory_count=scoring.mandatory_entry_rules)

        actionability = validate_actionability(normalized, scoring)
        debug.record(
            VALIDATION_STEP,
            StepStatus.SUCCESS if actionability.is_actionable else StepStatus.WARNING,
            f"score {actionability.score}, missing: "
            f"{', '.join(actionability.missing_elements) or 'none'}",
        )

        resolution = resolve(
            methodology.confidence,
            actionability,
            outcome.word_count,
            is_auto_generated=is_auto_generated,
            extraction_confidence=normalized.extraction_confidence,
            scoring=scoring,
            thresholds=self.config.status,
        )
        debug.record(
            STATUS_STEP,
            StepStatus.SUCCESS if resolution.status == ImportStatus.SUCCESS else StepStatus.WARNING,
            f"{resolution.status.value} via {resolution.rule} at {resolution.final_confidence}%",
        )

        video_title = outcome.video_title
        imported = ImportedStrategy.model_validate({
            **normalized.model_dump(),
            "name": normalized.name or video_title,
            "methodology_confidence": methodology.confidence,
            "confidence": resolution.final_confidence,
            "source_url": url or "",
            "source_title": video_title or "",
            "transcript_length": outcome.word_count,
        })

        logger.info(
            "Import finished: %s (%d%%) for '%s'",
            resolution.status.value, resolution.final_confidence, imported.name or "unnamed",
        )
        return ImportResult(
            status=resolution.status,
            reason=resolution.reason,
            strategy=imported,
            validation=actionability,
            video_title=video_title,
            debug=debug.snapshot(),
        )

    @staticmethod
    def _stage_failed(reason: str, debug: DebugRecorder, outcome: TranscriptOnly) -> ImportResult:
        return ImportResult(
            status=ImportStatus.FAILED,
            reason=reason,
            video_title=outcome.video_title,
            debug=debug.snapshot(),
        )

    @staticmethod
    def _failed(error: PipelineError, debug: DebugRecorder) -> ImportResult:
        return ImportResult(
            status=ImportStatus.FAILED,
            reason=error.message,
            debug=debug.snapshot(),
            http_status=error.http_status,
        )
