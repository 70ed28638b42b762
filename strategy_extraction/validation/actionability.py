"""Actionability validation.

Checks a normalized strategy against minimum-viability rules and scores it.

Missing elements (each costs the missing-element penalty):
- Entry rules/conditions
- Take profit level
- Stop loss level
- Risk management rules
- SMC/ICT concepts, for smc/ict strategies
- Indicator specifications, for indicator_based strategies

Warnings (each costs the warning penalty) flag weaker evidence without
rejecting: unclear or single-condition entries, entries without source quotes,
no primary timeframe, no suitable pairs, and every extractor note.
"""

from __future__ import annotations

import math
from typing import List, Optional

from strategy_extraction.core.config import ScoringConfig
from strategy_extraction.extraction.normalizer import parse_risk_reward_ratio
from strategy_extraction.schemas.pipeline import ActionabilityResult
from strategy_extraction.schemas.strategy import ExtractedStrategy, Methodology

# Legacy free-text stop descriptions shorter than this are ignored
MIN_STOP_LOSS_LOGIC_LENGTH = 5

MISSING_ENTRY = "Entry rules/conditions"
MISSING_TAKE_PROFIT = "Take profit level"
MISSING_STOP_LOSS = "Stop loss level"
MISSING_RISK_MANAGEMENT = "Risk management rules"
MISSING_CONCEPTS = "SMC/ICT concepts (Order Block, FVG, BOS, etc.)"
MISSING_INDICATORS = "Indicator specifications"

WARNING_UNCLEAR_ENTRIES = "Entry rules exist but lack specific conditions"
WARNING_LOW_CONFLUENCE = "Strategy has less than 2 entry conditions (low confluence)"
WARNING_NO_QUOTES = "Entry rules lack source quotes (lower confidence)"
WARNING_NO_TIMEFRAME = "No primary timeframe specified"
WARNING_NO_PAIRS = "No suitable trading pairs specified"
WARNING_CONCEPTS_AS_INDICATORS = "SMC/ICT strategy detected but no SMC concepts found"

_CONCEPT_DRIVEN = frozenset({Methodology.SMC.value, Methodology.ICT.value})


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (round() rounds half to even)."""
    return int(math.floor(value + 0.5))


def validate_actionability(
    strategy: ExtractedStrategy,
    scoring: Optional[ScoringConfig] = None,
) -> ActionabilityResult:
    """Score a strategy for mechanical usability."""
    scoring = scoring or ScoringConfig()
    warnings: List[str] = []
    missing: List[str] = []

    # Entry
    has_entry = len(strategy.entry_rules) > 0
    if not has_entry:
        missing.append(MISSING_ENTRY)
    else:
        clear_rules = [
            rule for rule in strategy.entry_rules
            if rule.type and len(rule.condition) > scoring.clear_condition_min_length
        ]
        if not clear_rules:
            warnings.append(WARNING_UNCLEAR_ENTRIES)
        if len(clear_rules) < scoring.min_clear_entry_rules:
            warnings.append(WARNING_LOW_CONFLUENCE)
        if not any(rule.has_source_quote for rule in strategy.entry_rules):
            warnings.append(WARNING_NO_QUOTES)

    # Exit
    risk = strategy.risk_management
    ratio = parse_risk_reward_ratio(risk.risk_reward_ratio)
    has_stop_object = risk.stop_loss is not None and risk.stop_loss.is_populated
    has_stop_logic = len(risk.stop_loss_logic or "") > MIN_STOP_LOSS_LOGIC_LENGTH
    has_take_profit_rule = any(rule.is_take_profit for rule in strategy.exit_rules)
    has_stop_rule = any(rule.is_stop_loss for rule in strategy.exit_rules)

    has_exit = has_take_profit_rule or has_stop_rule or has_stop_object or has_stop_logic
    if not (has_take_profit_rule or ratio is not None):
        missing.append(MISSING_TAKE_PROFIT)
    if not (has_stop_rule or has_stop_object or has_stop_logic):
        missing.append(MISSING_STOP_LOSS)

    # Risk management
    has_position_sizing = risk.position_sizing is not None and risk.position_sizing.is_populated
    has_risk_management = (
        ratio is not None or has_stop_object or has_stop_logic or has_position_sizing
    )
    if not has_risk_management:
        missing.append(MISSING_RISK_MANAGEMENT)

    # Context
    metadata = strategy.metadata
    primary = strategy.timeframe_context.primary or (
        metadata.timeframes[0] if metadata and metadata.timeframes else None
    )
    if not primary:
        warnings.append(WARNING_NO_TIMEFRAME)
    if not strategy.suitable_pairs and not (metadata and metadata.instruments):
        warnings.append(WARNING_NO_PAIRS)

    # Methodology-specific
    if strategy.methodology in _CONCEPT_DRIVEN and not strategy.concepts_used:
        if strategy.indicators_used:
            warnings.append(WARNING_CONCEPTS_AS_INDICATORS)
        missing.append(MISSING_CONCEPTS)
    if strategy.methodology == Methodology.INDICATOR_BASED.value and not strategy.indicators_used:
        missing.append(MISSING_INDICATORS)

    for note in strategy.notes:
        warning = f"Note: {note}"
        if warning not in warnings:
            warnings.append(warning)

    score = _score(strategy, missing, warnings, scoring)
    is_actionable = has_entry and has_exit and len(missing) <= scoring.max_missing_elements

    return ActionabilityResult(
        is_actionable=is_actionable,
        has_entry=has_entry,
        has_exit=has_exit,
        has_risk_management=has_risk_management,
        warnings=warnings,
        missing_elements=missing,
        score=score,
    )


def _score(
    strategy: ExtractedStrategy,
    missing: List[str],
    warnings: List[str],
    scoring: ScoringConfig,
) -> int:
    score = 100 - scoring.missing_element_penalty * len(missing) - scoring.warning_penalty * len(warnings)
    score = max(0, min(100, score))

    if strategy.extraction_confidence is not None:
        blended = (
            score * scoring.computed_score_weight
            + strategy.extraction_confidence.average_clarity * scoring.self_reported_weight
        )
        score = max(0, min(100, round_half_up(blended)))

    return score
