"""Actionability validation, confidence aggregation and status resolution."""

from strategy_extraction.validation.actionability import validate_actionability
from strategy_extraction.validation.status import (
    STATUS_RULES,
    StatusResolution,
    StatusRule,
    calculate_final_confidence,
    determine_import_status,
    generate_status_reason,
    match_status_rule,
    resolve,
)

__all__ = [
    "validate_actionability",
    "STATUS_RULES",
    "StatusResolution",
    "StatusRule",
    "calculate_final_confidence",
    "determine_import_status",
    "generate_status_reason",
    "match_status_rule",
    "resolve",
]
