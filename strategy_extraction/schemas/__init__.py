"""Schema models for the extraction pipeline."""

from strategy_extraction.schemas.strategy import (
    # Enums
    Methodology,
    EntryRuleType,
    ExitRuleType,
    ExitUnit,
    DifficultyLevel,
    RiskLevel,
    TAKE_PROFIT_EXIT_TYPES,
    STOP_LOSS_EXIT_TYPES,
    # Models
    EntryRule,
    ExitRule,
    StopLoss,
    PositionSizing,
    RiskManagement,
    ExtractionConfidence,
    TimeframeContext,
    StrategyMetadata,
    ExtractedStrategy,
    ImportedStrategy,
)
from strategy_extraction.schemas.pipeline import (
    ImportStatus,
    StepStatus,
    TranscriptSource,
    MethodologyResult,
    ActionabilityResult,
    DebugStep,
    DebugInfo,
    ImportRequest,
    ImportResult,
)

__all__ = [
    "Methodology",
    "EntryRuleType",
    "ExitRuleType",
    "ExitUnit",
    "DifficultyLevel",
    "RiskLevel",
    "TAKE_PROFIT_EXIT_TYPES",
    "STOP_LOSS_EXIT_TYPES",
    "EntryRule",
    "ExitRule",
    "StopLoss",
    "PositionSizing",
    "RiskManagement",
    "ExtractionConfidence",
    "TimeframeContext",
    "StrategyMetadata",
    "ExtractedStrategy",
    "ImportedStrategy",
    "ImportStatus",
    "StepStatus",
    "TranscriptSource",
    "MethodologyResult",
    "ActionabilityResult",
    "DebugStep",
    "DebugInfo",
    "ImportRequest",
    "ImportResult",
]
