"""Confidence aggregation and import status resolution.

The status decision table is an ordered list of rules; the first rule whose
predicate holds decides the status. It is the only place that decides
whether a strategy is importable.

    1. no entry and no exit   -> failed
    2. not actionable         -> blocked
    3. confidence >= success  -> success
    4. confidence >= review   -> warning
    5. otherwise              -> blocked
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from strategy_extraction.core.config import ScoringConfig, StatusConfig
from strategy_extraction.schemas.pipeline import ActionabilityResult, ImportStatus
from strategy_extraction.schemas.strategy import ExtractionConfidence
from strategy_extraction.validation.actionability import round_half_up


# =============================================================================
# FINAL CONFIDENCE
# =============================================================================


def calculate_final_confidence(
    methodology_confidence: float,
    actionability_score: float,
    transcript_word_count: int,
    is_auto_generated: bool = False,
    extraction_confidence: Optional[ExtractionConfidence] = None,
    scoring: Optional[ScoringConfig] = None,
) -> int:
    """Combine every quality signal into one 0-100 score."""
    scoring = scoring or ScoringConfig()

    confidence = (
        methodology_confidence * scoring.methodology_weight
        + actionability_score * scoring.actionability_weight
    )

    if extraction_confidence is not None:
        confidence = (
            confidence * (1 - scoring.extraction_overall_weight)
            + extraction_confidence.overall * scoring.extraction_overall_weight
        )

    if transcript_word_count >= scoring.long_transcript_words:
        confidence += scoring.long_transcript_bonus
    elif transcript_word_count >= scoring.medium_transcript_words:
        confidence += scoring.medium_transcript_bonus

    if is_auto_generated:
        confidence -= scoring.auto_caption_penalty

    return max(0, min(100, round_half_up(confidence)))


# =============================================================================
# DECISION TABLE
# =============================================================================


@dataclass(frozen=True)
class StatusRule:
    """One row of the status decision table."""

    name: str
    status: ImportStatus
    applies: Callable[[int, ActionabilityResult, StatusConfig], bool]


STATUS_RULES: Tuple[StatusRule, ...] = (
    StatusRule(
        "no_entry_or_exit",
        ImportStatus.FAILED,
        lambda confidence, actionability, thresholds: (
            not actionability.has_entry and not actionability.has_exit
        ),
    ),
    StatusRule(
        "not_actionable",
        ImportStatus.BLOCKED,
        lambda confidence, actionability, thresholds: not actionability.is_actionable,
    ),
    StatusRule(
        "high_confidence",
        ImportStatus.SUCCESS,
        lambda confidence, actionability, thresholds: confidence >= thresholds.success_threshold,
    ),
    StatusRule(
        "review_confidence",
        ImportStatus.WARNING,
        lambda confidence, actionability, thresholds: confidence >= thresholds.review_threshold,
    ),
    StatusRule(
        "low_confidence",
        ImportStatus.BLOCKED,
        lambda confidence, actionability, thresholds: True,
    ),
)


def match_status_rule(
    confidence: int,
    actionability: ActionabilityResult,
    thresholds: Optional[StatusConfig] = None,
) -> StatusRule:
    """Return the first rule of the table that applies."""
    thresholds = thresholds or StatusConfig()
    for rule in STATUS_RULES:
        if rule.applies(confidence, actionability, thresholds):
            return rule
    # The last rule always applies
    return STATUS_RULES[-1]


def determine_import_status(
    confidence: int,
    actionability: ActionabilityResult,
    thresholds: Optional[StatusConfig] = None,
) -> ImportStatus:
    return match_status_rule(confidence, actionability, thresholds).status


def generate_status_reason(
    status: ImportStatus,
    actionability: ActionabilityResult,
    confidence: int,
) -> str:
    """Human-readable explanation of a status."""
    status = ImportStatus(status)
    missing = ", ".join(actionability.missing_elements)

    if status == ImportStatus.FAILED:
        return f"Strategy extraction failed. Missing: {missing}"
    if status == ImportStatus.BLOCKED:
        if not actionability.is_actionable:
            return f"Strategy is not actionable. Missing: {missing}"
        return f"Confidence too low ({confidence}%). Manual review required."
    if status == ImportStatus.WARNING:
        return f"Strategy extracted with {confidence}% confidence. Review before using."
    return f"Strategy extracted successfully with {confidence}% confidence."


# =============================================================================
# RESOLVER
# =============================================================================


@dataclass
class StatusResolution:
    """Final confidence, status and the rule that decided it."""

    final_confidence: int
    status: ImportStatus
    reason: str
    rule: str


def resolve(
    methodology_confidence: float,
    actionability: ActionabilityResult,
    transcript_word_count: int,
    is_auto_generated: bool = False,
    extraction_confidence: Optional[ExtractionConfidence] = None,
    scoring: Optional[ScoringConfig] = None,
    thresholds: Optional[StatusConfig] = None,
) -> StatusResolution:
    """Aggregate confidence and run the decision table."""
    final_confidence = calculate_final_confidence(
        methodology_confidence,
        actionability.score,
        transcript_word_count,
        is_auto_generated=is_auto_generated,
        extraction_confidence=extraction_confidence,
        scoring=scoring,
    )
    rule = match_status_rule(final_confidence, actionability, thresholds)
    return StatusResolution(
        final_confidence=final_confidence,
        status=rule.status,
        reason=generate_status_reason(rule.status, actionability, final_confidence),
        rule=rule.name,
    )
