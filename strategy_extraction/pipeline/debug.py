"""Debug trail recording for one pipeline run."""

from __future__ import annotations

import logging
from typing import Optional

from strategy_extraction.schemas.pipeline import (
    DebugInfo,
    DebugStep,
    MethodologyResult,
    StepStatus,
    TranscriptSource,
)

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


class DebugRecorder:
    """
    Append-only recorder behind the response's `debug` block.

    Every recorded step is also logged: INFO for success/skipped,
    WARNING for warning/failed.
    """

    def __init__(self) -> None:
        self.info = DebugInfo()

    def record(self, step: str, status: StepStatus, details: str = "") -> DebugStep:
        entry = DebugStep(step=step, status=status, details=details)
        self.info.processing_steps.append(entry)

        level = logging.WARNING if entry.status in (
            StepStatus.FAILED.value, StepStatus.WARNING.value
        ) else logging.INFO
        logger.log(level, "[%s] %s: %s", step, entry.status, details)
        return entry

    def set_transcript(
        self,
        source: TranscriptSource,
        word_count: int,
        preview: Optional[str] = None,
    ) -> None:
        self.info.transcript_source = source
        self.info.transcript_length = word_count
        self.info.transcript_preview = (preview or "")[:PREVIEW_CHARS]

    def set_methodology(self, result: MethodologyResult) -> None:
        self.info.methodology_raw = result

    @property
    def steps(self) -> list[DebugStep]:
        return self.info.processing_steps

    def snapshot(self) -> DebugInfo:
        return self.info.model_copy(deep=True)
