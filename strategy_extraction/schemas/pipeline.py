"""Pipeline result models.

This module defines everything a pipeline run produces besides the strategy:
- Methodology classification result
- Actionability result (derived, never stored)
- Import status (terminal classification of one run)
- Debug trail (append-only record of every stage outcome)
- The HTTP response envelope
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from strategy_extraction.schemas.strategy import (
    ImportedStrategy,
    Methodology,
    WireModel,
    coerce_optional_float,
    coerce_str_list,
)


# =============================================================================
# ENUMS
# =============================================================================


class ImportStatus(str, Enum):
    """Terminal classification of a pipeline run.

    Gates whether the caller accepts, flags for review, or discards the
    result. "review" is accepted as an alias for WARNING.
    """

    SUCCESS = "success"
    WARNING = "warning"
    BLOCKED = "blocked"
    FAILED = "failed"

    @classmethod
    def _missing_(cls, value: object) -> "ImportStatus | None":
        if isinstance(value, str) and value.strip().lower() == "review":
            return cls.WARNING
        return None


class StepStatus(str, Enum):
    """Outcome of a single pipeline step."""

    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"
    SKIPPED = "skipped"


class TranscriptSource(str, Enum):
    """Where the transcript (or finished strategy) came from."""

    MANUAL = "manual"
    UNIFIED = "unified"
    GEMINI_DIRECT = "gemini_direct"
    GEMINI_GROUNDING = "gemini_grounding"
    YOUTUBE_CAPTIONS = "youtube_captions"
    UNKNOWN = "unknown"


# =============================================================================
# CLASSIFICATION
# =============================================================================


class MethodologyResult(WireModel):
    """Single-label methodology classification with evidence."""

    methodology: Methodology = Field(..., description="Primary methodology")
    confidence: int = Field(..., ge=0, le=100)
    evidence: list[str] = Field(default_factory=list, description="Supporting quotes")
    reasoning: str = Field("", description="Why this label won")

    @field_validator("methodology", mode="before")
    @classmethod
    def normalize_label(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_").replace(" ", "_")
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> int:
        number = coerce_optional_float(v)
        if number is None:
            raise ValueError("confidence must be a number")
        # Some models answer on a 0-1 scale
        if 0 < number <= 1 and not float(number).is_integer():
            number *= 100
        return int(round(max(0.0, min(100.0, number))))

    @field_validator("evidence", mode="before")
    @classmethod
    def coerce_evidence(cls, v: Any) -> list[str]:
        return coerce_str_list(v)

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, v: Any) -> str:
        return "" if v is None else str(v)


# =============================================================================
# ACTIONABILITY
# =============================================================================


class ActionabilityResult(WireModel):
    """Whether a strategy holds enough structure to be mechanically usable."""

    is_actionable: bool = Field(False, alias="isActionable")
    has_entry: bool = Field(False, alias="hasEntry")
    has_exit: bool = Field(False, alias="hasExit")
    has_risk_management: bool = Field(False, alias="hasRiskManagement")
    warnings: list[str] = Field(default_factory=list)
    missing_elements: list[str] = Field(default_factory=list, alias="missingElements")
    score: int = Field(0, ge=0, le=100)


# =============================================================================
# DEBUG TRAIL
# =============================================================================


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DebugStep(WireModel):
    """One recorded stage outcome."""

    step: str
    status: StepStatus
    details: str = ""
    timestamp: str = Field(default_factory=_utc_now)


class DebugInfo(WireModel):
    """Append-only record of a run. Has no effect on control flow."""

    transcript_source: TranscriptSource = Field(TranscriptSource.UNKNOWN, alias="transcriptSource")
    transcript_length: int = Field(0, ge=0, alias="transcriptLength", description="Words")
    transcript_preview: str = Field("", alias="transcriptPreview", description="First 500 chars")
    methodology_raw: MethodologyResult | None = Field(None, alias="methodologyRaw")
    processing_steps: list[DebugStep] = Field(default_factory=list, alias="processingSteps")

    def steps_named(self, name: str) -> list[DebugStep]:
        return [s for s in self.processing_steps if s.step == name]


# =============================================================================
# RESPONSE ENVELOPE
# =============================================================================


class ImportRequest(BaseModel):
    """Inbound request body. At least one field is required."""

    url: str | None = None
    transcript: str | None = None


class ImportResult(WireModel):
    """Outcome of one pipeline run, shaped as the HTTP response body."""

    status: ImportStatus
    reason: str
    strategy: ImportedStrategy | None = None
    validation: ActionabilityResult | None = None
    video_title: str | None = Field(None, alias="videoTitle")
    debug: DebugInfo | None = None
    http_status: int = Field(200, exclude=True)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> Any:
        return ImportStatus(v.strip().lower()) if isinstance(v, str) else v

    def to_response(self) -> dict[str, Any]:
        """Serialize to the camelCase response body."""
        body = self.model_dump(by_alias=True, mode="json")
        if body.get("videoTitle") is None:
            body.pop("videoTitle", None)
        return body
