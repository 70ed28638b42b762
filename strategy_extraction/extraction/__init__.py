"""Methodology classification, strategy extraction and rule normalization."""

from strategy_extraction.extraction.classifier import MethodologyClassifier
from strategy_extraction.extraction.extractor import StrategyExtractor
from strategy_extraction.extraction.normalizer import normalize_rules, parse_risk_reward_ratio

__all__ = [
    "MethodologyClassifier",
    "StrategyExtractor",
    "normalize_rules",
    "parse_risk_reward_ratio",
]
