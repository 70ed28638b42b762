"""Rule normalization.

Pure post-processing of extractor output into canonical shape:
- stable rule ids (entry_<index>, exit_<index>) in extraction order
- default mandatory flags for the leading entry rules
- risk-reward ratios coerced from text ("1:2", "3R", "1 to 4") to numbers
- legacy metadata merged into timeframe context and suitable pairs

No network calls. Normalizing an already-normalized strategy changes nothing.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from strategy_extraction.schemas.strategy import (
    ExtractedStrategy,
    Methodology,
    TimeframeContext,
    coerce_label,
    coerce_optional_float,
)

# First N entry rules default to mandatory
DEFAULT_MANDATORY_ENTRY_RULES = 2

_NUMBER = r"(\d+(?:\.\d+)?)"

# "1:2", "1/2", "1 to 2" (risk first, reward second)
_RATIO_PATTERN = re.compile(_NUMBER + r"\s*(?::|/|\bto\b)\s*" + _NUMBER, re.IGNORECASE)

# "3R", "2.5 R"
_R_MULTIPLE_PATTERN = re.compile(r"^\s*" + _NUMBER + r"\s*R\s*$", re.IGNORECASE)


def parse_risk_reward_ratio(value: Any) -> Optional[float]:
    """
    Coerce a risk-reward ratio to reward per unit of risk.

    Returns None for anything unparseable or non-positive, never zero.

    Examples:
        >>> parse_risk_reward_ratio("1:2")
        2.0
        >>> parse_risk_reward_ratio("2:1")
        0.5
        >>> parse_risk_reward_ratio("3R")
        3.0
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = _RATIO_PATTERN.search(text)
    if match:
        risk, reward = float(match.group(1)), float(match.group(2))
        if risk == 0:
            return None
        ratio = reward / risk
        return ratio if ratio > 0 else None

    match = _R_MULTIPLE_PATTERN.match(text)
    if match:
        ratio = float(match.group(1))
        return ratio if ratio > 0 else None

    number = coerce_optional_float(text)
    if number is not None and number > 0:
        return number
    return None


def normalize_rules(
    strategy: ExtractedStrategy,
    mandatory_count: int = DEFAULT_MANDATORY_ENTRY_RULES,
) -> ExtractedStrategy:
    """
    Return a canonical copy of strategy.

    Args:
        strategy: Extractor output (left untouched).
        mandatory_count: Leading entry rules that default to mandatory.
    """
    entry_rules = [
        rule.model_copy(update={
            "id": rule.id or f"entry_{index}",
            "is_mandatory": rule.is_mandatory if rule.is_mandatory is not None
            else index < mandatory_count,
        })
        for index, rule in enumerate(strategy.entry_rules)
    ]

    exit_rules = [
        rule.model_copy(update={"id": rule.id or f"exit_{index}"})
        for index, rule in enumerate(strategy.exit_rules)
    ]

    risk = strategy.risk_management.model_copy(update={
        "risk_reward_ratio": parse_risk_reward_ratio(strategy.risk_management.risk_reward_ratio),
    })

    metadata = strategy.metadata
    methodology = strategy.methodology or (
        coerce_label(metadata.methodology, Methodology) if metadata else None
    )

    context = strategy.timeframe_context
    if metadata and metadata.timeframes and not context.primary:
        context = TimeframeContext(
            primary=metadata.timeframes[0],
            higher_tf=context.higher_tf,
            lower_tf=context.lower_tf,
        )

    pairs = list(strategy.suitable_pairs)
    if metadata and metadata.instruments:
        for instrument in metadata.instruments:
            if instrument not in pairs:
                pairs.append(instrument)

    return strategy.model_copy(update={
        "methodology": methodology,
        "entry_rules": entry_rules,
        "exit_rules": exit_rules,
        "risk_management": risk,
        "timeframe_context": context,
        "suitable_pairs": pairs,
    })
