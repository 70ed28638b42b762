"""
Transcript acquisition fallback chain.

Stages run in a fixed order and the first success wins:

1. Manual transcript supplied by the caller (no network)
2. Unified extraction (access + classify + extract in one call)
3. Direct transcription by the fast model
4. Grounded transcription by the capable model
5. Public captions via youtube-transcript-api

Every attempted stage leaves exactly one debug step. Rate limiting and
exhausted credits are recorded and then propagated; they end the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, Union

from strategy_extraction.acquisition.refusal import assess_transcript, count_words
from strategy_extraction.acquisition.unified import run_unified_extraction
from strategy_extraction.acquisition.youtube import (
    CaptionFetcher,
    canonical_url,
    extract_video_id,
    fetch_video_title,
)
from strategy_extraction.core.config import Config, StageSettings
from strategy_extraction.core.errors import (
    ContentRejected,
    InputError,
    ParseFailure,
    UpstreamBillingExhausted,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from strategy_extraction.prompts.builder import (
    build_grounding_prompt,
    build_transcription_prompt,
)
from strategy_extraction.schemas.pipeline import MethodologyResult, StepStatus, TranscriptSource
from strategy_extraction.schemas.strategy import ExtractedStrategy

if TYPE_CHECKING:
    from strategy_extraction.pipeline.debug import DebugRecorder

logger = logging.getLogger(__name__)

MANUAL_TRANSCRIPT_STEP = "manual_transcript"
UNIFIED_STEP = "unified_extraction"
DIRECT_TRANSCRIPTION_STEP = "direct_transcription"
GROUNDED_TRANSCRIPTION_STEP = "grounded_transcription"
CAPTION_STEP = "caption_fetch"

ACQUISITION_FAILED_REASON = (
    "Could not retrieve a transcript for this video. "
    "Please copy the transcript from YouTube and paste it manually."
)

# Stage failures that move on to the next fallback
_FALLBACK_ERRORS = (UpstreamUnavailable, ParseFailure, ContentRejected)

# Stage failures that end the run
_TERMINAL_ERRORS = (UpstreamRateLimited, UpstreamBillingExhausted)


# =============================================================================
# OUTCOMES
# =============================================================================


@dataclass
class UnifiedSuccess:
    """The unified call produced a finished, classified strategy."""
    methodology: MethodologyResult
    strategy: ExtractedStrategy
    transcript_preview: str
    word_count: int
    video_title: Optional[str] = None
    source: TranscriptSource = TranscriptSource.UNIFIED


@dataclass
class TranscriptOnly:
    """A transcript that still needs classification and extraction."""
    text: str
    source: TranscriptSource
    word_count: int
    is_auto_generated: bool = False
    video_title: Optional[str] = None


@dataclass
class AcquisitionFailure:
    """Every stage failed."""
    reason: str
    video_title: Optional[str] = None


AcquisitionOutcome = Union[UnifiedSuccess, TranscriptOnly, AcquisitionFailure]


# =============================================================================
# ACQUIRER
# =============================================================================


class TranscriptAcquirer:
    """
    Runs the acquisition chain for one request.

    Usage:
        acquirer = TranscriptAcquirer(client, config)
        outcome = acquirer.acquire(url="https://youtu.be/...", debug=recorder)
    """

    def __init__(
        self,
        client,
        config: Config,
        caption_fetcher: Optional[CaptionFetcher] = None,
        title_lookup: Optional[Callable[[str], Optional[str]]] = None,
    ):
        """
        Initialize the acquirer.

        Args:
            client: Anything with `complete(prompt, model=, temperature=, timeout=)`.
            config: Loaded configuration.
            caption_fetcher: Caption source; built from config if omitted.
            title_lookup: video_id -> title; oEmbed if omitted.
        """
        self.client = client
        self.config = config
        self.settings = config.acquisition
        self.caption_fetcher = caption_fetcher or CaptionFetcher(
            languages=self.settings.caption_languages,
            metadata_timeout=self.settings.metadata_timeout,
        )
        self.title_lookup = title_lookup or (
            lambda video_id: fetch_video_title(video_id, timeout=self.settings.metadata_timeout)
        )

    def acquire(
        self,
        url: Optional[str] = None,
        transcript: Optional[str] = None,
        debug: Optional["DebugRecorder"] = None,
    ) -> AcquisitionOutcome:
        """
        Produce a transcript or a finished strategy.

        Raises:
            InputError: Neither input given, or the URL has no video id.
            UpstreamRateLimited: The completion service answered 429.
            UpstreamBillingExhausted: The completion service answered 402.
        """
        if transcript and transcript.strip():
            text = transcript.strip()
            words = count_words(text)
            self._record(debug, MANUAL_TRANSCRIPT_STEP, StepStatus.SUCCESS,
                         f"Using provided transcript ({words} words)")
            return TranscriptOnly(text=text, source=TranscriptSource.MANUAL, word_count=words)

        if not url or not url.strip():
            raise InputError("Either a YouTube URL or a transcript is required")

        video_id = extract_video_id(url)
        video_title = self.title_lookup(video_id)
        logger.info("Acquiring transcript for %s (%s)", video_id, video_title or "untitled")

        stages: List[Tuple[str, bool, Callable[[], AcquisitionOutcome]]] = [
            (UNIFIED_STEP, self.settings.enable_unified,
             lambda: self._unified(url, video_id)),
            (DIRECT_TRANSCRIPTION_STEP, self.settings.enable_direct_transcription,
             lambda: self._transcribe(
                 build_transcription_prompt(canonical_url(video_id)),
                 self.config.stages.transcription,
                 TranscriptSource.GEMINI_DIRECT,
             )),
            (GROUNDED_TRANSCRIPTION_STEP, self.settings.enable_grounded_transcription,
             lambda: self._transcribe(
                 build_grounding_prompt(canonical_url(video_id), video_id),
                 self.config.stages.grounding,
                 TranscriptSource.GEMINI_GROUNDING,
             )),
            (CAPTION_STEP, self.settings.enable_captions,
             lambda: self._captions(video_id, video_title)),
        ]

        for name, enabled, attempt in stages:
            if not enabled:
                self._record(debug, name, StepStatus.SKIPPED, "Disabled in configuration")
                continue
            try:
                outcome = attempt()
            except _TERMINAL_ERRORS as e:
                self._record(debug, name, StepStatus.FAILED, e.message)
                raise
            except _FALLBACK_ERRORS as e:
                self._record(debug, name, StepStatus.FAILED, e.message)
                continue

            outcome.video_title = outcome.video_title or video_title
            self._record(debug, name, StepStatus.SUCCESS, _describe(outcome))
            return outcome

        logger.warning("All acquisition stages failed for %s", video_id)
        return AcquisitionFailure(reason=ACQUISITION_FAILED_REASON, video_title=video_title)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _unified(self, url: str, video_id: str) -> UnifiedSuccess:
        result = run_unified_extraction(
            self.client,
            url,
            video_id,
            self.config.stages.unified,
            min_chars=self.settings.min_response_chars,
            min_words=self.settings.min_transcript_words,
        )
        return UnifiedSuccess(
            methodology=result.methodology,
            strategy=result.strategy,
            transcript_preview=result.transcript_preview,
            word_count=result.word_count,
        )

    def _transcribe(
        self, prompt: str, stage: StageSettings, source: TranscriptSource
    ) -> TranscriptOnly:
        content = self.client.complete(
            prompt,
            model=stage.model,
            temperature=stage.temperature,
            timeout=stage.timeout,
        )
        text = (content or "").strip()
        assessment = assess_transcript(
            text,
            min_chars=self.settings.min_response_chars,
            min_words=self.settings.min_transcript_words,
        )
        if not assessment.is_valid:
            raise ContentRejected(assessment.describe(), verdict=assessment.verdict.value)
        return TranscriptOnly(text=text, source=source, word_count=assessment.word_count)

    def _captions(self, video_id: str, video_title: Optional[str]) -> TranscriptOnly:
        result = self.caption_fetcher.fetch(video_id, video_title=video_title)
        words = count_words(result.transcript)
        if words < self.settings.min_transcript_words:
            raise ContentRejected(f"Caption track too short ({words} words)")
        return TranscriptOnly(
            text=result.transcript,
            source=TranscriptSource.YOUTUBE_CAPTIONS,
            word_count=words,
            is_auto_generated=result.is_auto_generated,
            video_title=result.video_title,
        )

    @staticmethod
    def _record(debug, step: str, status: StepStatus, details: str) -> None:
        if debug is not None:
            debug.record(step, status, details)


def _describe(outcome: AcquisitionOutcome) -> str:
    if isinstance(outcome, UnifiedSuccess):
        return (
            f"{outcome.methodology.methodology} ({outcome.methodology.confidence}%), "
            f"{len(outcome.strategy.entry_rules)} entry rules, {outcome.word_count} words"
        )
    if isinstance(outcome, TranscriptOnly):
        suffix = ", auto-generated" if outcome.is_auto_generated else ""
        return f"{outcome.word_count} words{suffix}"
    return outcome.reason
