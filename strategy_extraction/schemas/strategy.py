"""Strategy schema models.

This module defines the typed data model for an extracted trading strategy:
- Entry and exit rules with evidence quotes
- Risk management (stop loss, position sizing, risk-reward ratio)
- The extractor's self-reported confidence breakdown
- Timeframe context and legacy metadata

Field names are snake_case in Python and camelCase on the wire. Model output
is untrusted, so every model coerces loosely: unknown enum labels become None,
null lists become empty lists, and placeholders such as "not_specified" are
treated as absent.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Methodology(str, Enum):
    """Closed taxonomy of trading methodologies."""

    INDICATOR_BASED = "indicator_based"
    PRICE_ACTION = "price_action"
    SMC = "smc"
    ICT = "ict"
    WYCKOFF = "wyckoff"
    ELLIOTT_WAVE = "elliott_wave"
    HYBRID = "hybrid"


class EntryRuleType(str, Enum):
    """Kind of condition an entry rule checks."""

    SMC = "smc"
    ICT = "ict"
    INDICATOR = "indicator"
    PRICE_ACTION = "price_action"
    LIQUIDITY = "liquidity"
    STRUCTURE = "structure"
    TIME = "time"
    CONFLUENCE = "confluence"


class ExitRuleType(str, Enum):
    """Kind of exit an exit rule describes."""

    TAKE_PROFIT = "take_profit"
    STOP_LOSS = "stop_loss"
    TRAILING_STOP = "trailing_stop"
    TIME_BASED = "time_based"
    FIXED_TARGET = "fixed_target"
    RISK_REWARD = "risk_reward"
    STRUCTURE = "structure"
    INDICATOR = "indicator"
    TRAILING = "trailing"


class ExitUnit(str, Enum):
    """Unit of an exit rule's numeric value."""

    PERCENT = "percent"
    ATR = "atr"
    RR = "rr"
    PIPS = "pips"


class DifficultyLevel(str, Enum):
    """How hard the strategy is to execute."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class RiskLevel(str, Enum):
    """Risk tier of the strategy."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Exit types that take profit
TAKE_PROFIT_EXIT_TYPES = frozenset({
    ExitRuleType.TAKE_PROFIT.value,
    ExitRuleType.FIXED_TARGET.value,
    ExitRuleType.RISK_REWARD.value,
})

# Exit types that cap the loss
STOP_LOSS_EXIT_TYPES = frozenset({
    ExitRuleType.STOP_LOSS.value,
    ExitRuleType.TRAILING_STOP.value,
    ExitRuleType.TRAILING.value,
})

# Placeholder strings models emit instead of null
PLACEHOLDER_VALUES = frozenset({"", "null", "none", "n/a", "not_specified", "not specified", "unknown"})


# =============================================================================
# COERCION HELPERS
# =============================================================================


def blank_to_none(value: Any) -> Any:
    """Map placeholder strings to None, pass everything else through."""
    if isinstance(value, str) and value.strip().lower() in PLACEHOLDER_VALUES:
        return None
    return value


def coerce_label(value: Any, enum_cls: type[Enum]) -> str | None:
    """Normalize a label to one of enum_cls's values, or None if unknown."""
    value = blank_to_none(value)
    if value is None:
        return None
    label = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    valid = {member.value for member in enum_cls}
    return label if label in valid else None


def coerce_str_list(value: Any) -> list[str]:
    """Turn null, a scalar or a list into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    items = []
    for item in value:
        if item is None:
            continue
        text = str(item).strip()
        if text and text.lower() not in PLACEHOLDER_VALUES:
            items.append(text)
    return items


def coerce_optional_float(value: Any) -> float | None:
    """Parse numbers and numeric strings ("2", "1.5%"), else None."""
    value = blank_to_none(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip().rstrip("%").strip()
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        use_enum_values = True


# =============================================================================
# RULES
# =============================================================================


class EntryRule(WireModel):
    """A single observable condition that must hold before entering.

    is_mandatory stays None until the normalizer applies the default.
    """

    id: str | None = Field(None, description="Stable rule id (entry_<index>)")
    type: EntryRuleType | None = Field(None, description="Condition family")
    concept: str | None = Field(None, description="Specific concept, e.g. 'order_block'")
    condition: str = Field("", description="Testable, observable condition")
    parameters: dict[str, Any] = Field(default_factory=dict)
    source_quote: str | None = Field(None, alias="sourceQuote", description="Verbatim transcript excerpt")
    timeframe: str | None = Field(None, description="Timeframe the condition is read on")
    priority: str | None = Field(None, description="required|preferred|optional as stated by the model")
    is_mandatory: bool | None = Field(None, alias="isMandatory")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str | None:
        return coerce_label(v, EntryRuleType)

    @field_validator("condition", mode="before")
    @classmethod
    def coerce_condition(cls, v: Any) -> str:
        v = blank_to_none(v)
        return "" if v is None else str(v).strip()

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("id", "concept", "source_quote", "timeframe", "priority", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        v = blank_to_none(v)
        return None if v is None else str(v).strip()

    @property
    def has_source_quote(self) -> bool:
        return bool(self.source_quote)


class ExitRule(WireModel):
    """A single exit condition (target, stop, trail, time, ...)."""

    id: str | None = Field(None, description="Stable rule id (exit_<index>)")
    type: ExitRuleType | None = Field(None, description="Exit family")
    value: float | None = Field(None, description="Numeric level if stated")
    unit: ExitUnit | None = Field(None, description="Unit of value")
    description: str | None = Field(None)
    concept: str | None = Field(None)
    parameters: dict[str, Any] = Field(default_factory=dict)
    source_quote: str | None = Field(None, alias="sourceQuote")

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str | None:
        return coerce_label(v, ExitRuleType)

    @field_validator("unit", mode="before")
    @classmethod
    def coerce_unit(cls, v: Any) -> str | None:
        return coerce_label(v, ExitUnit)

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> float | None:
        return coerce_optional_float(v)

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_parameters(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("id", "description", "concept", "source_quote", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        v = blank_to_none(v)
        return None if v is None else str(v).strip()

    @property
    def is_take_profit(self) -> bool:
        return self.type in TAKE_PROFIT_EXIT_TYPES

    @property
    def is_stop_loss(self) -> bool:
        return self.type in STOP_LOSS_EXIT_TYPES


# =============================================================================
# RISK MANAGEMENT
# =============================================================================


class StopLoss(WireModel):
    """Stop-loss specification."""

    type: str | None = Field(None, description="fixed_points|atr|structure|percentage")
    value: str | float | None = Field(None)
    placement: str | None = Field(None, description="Where the stop goes")
    source_quote: str | None = Field(None, alias="sourceQuote")

    @field_validator("type", "value", "placement", "source_quote", mode="before")
    @classmethod
    def drop_placeholders(cls, v: Any) -> Any:
        return blank_to_none(v)

    @property
    def is_populated(self) -> bool:
        return bool(self.type or self.placement or self.value is not None)


class PositionSizing(WireModel):
    """Position-sizing specification."""

    method: str | None = Field(None, description="fixed_percentage|fixed_lots|risk_amount")
    value: str | float | None = Field(None)
    source_quote: str | None = Field(None, alias="sourceQuote")

    @field_validator("method", "value", "source_quote", mode="before")
    @classmethod
    def drop_placeholders(cls, v: Any) -> Any:
        return blank_to_none(v)

    @property
    def is_populated(self) -> bool:
        return bool(self.method or self.value is not None)


class RiskManagement(WireModel):
    """Risk controls of a strategy.

    risk_reward_ratio may hold the model's text ("1:2") until the normalizer
    coerces it to a plain number. stop_loss_logic is the legacy free-text stop.
    """

    stop_loss: StopLoss | None = Field(None, alias="stopLoss")
    position_sizing: PositionSizing | None = Field(None, alias="positionSizing")
    risk_reward_ratio: float | str | None = Field(None, alias="riskRewardRatio")
    stop_loss_logic: str | None = Field(None, alias="stopLossLogic")

    @field_validator("stop_loss", mode="before")
    @classmethod
    def coerce_stop_loss(cls, v: Any) -> Any:
        v = blank_to_none(v)
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            return {"placement": str(v)}
        return v if isinstance(v, (dict, StopLoss)) else None

    @field_validator("position_sizing", mode="before")
    @classmethod
    def coerce_position_sizing(cls, v: Any) -> Any:
        v = blank_to_none(v)
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            return {"value": str(v)}
        return v if isinstance(v, (dict, PositionSizing)) else None

    @field_validator("risk_reward_ratio", mode="before")
    @classmethod
    def coerce_ratio(cls, v: Any) -> Any:
        # Unified responses use {"minimum": "1:2", "target": "1:5", ...}
        if isinstance(v, dict):
            v = blank_to_none(v.get("minimum")) or blank_to_none(v.get("target"))
        if isinstance(v, bool):
            return None
        return blank_to_none(v)

    @field_validator("stop_loss_logic", mode="before")
    @classmethod
    def coerce_logic(cls, v: Any) -> str | None:
        v = blank_to_none(v)
        return None if v is None else str(v).strip()


class ExtractionConfidence(WireModel):
    """Self-reported clarity scores from the extraction stage (0-100 each)."""

    overall: float = Field(0, ge=0, le=100)
    entry_clarity: float = Field(0, ge=0, le=100, alias="entryClarity")
    exit_clarity: float = Field(0, ge=0, le=100, alias="exitClarity")
    risk_clarity: float = Field(0, ge=0, le=100, alias="riskClarity")

    @field_validator("overall", "entry_clarity", "exit_clarity", "risk_clarity", mode="before")
    @classmethod
    def clamp(cls, v: Any) -> float:
        number = coerce_optional_float(v)
        if number is None:
            return 0.0
        return max(0.0, min(100.0, number))

    @property
    def average_clarity(self) -> float:
        return (self.entry_clarity + self.exit_clarity + self.risk_clarity) / 3


# =============================================================================
# CONTEXT
# =============================================================================


class TimeframeContext(WireModel):
    """Timeframes the strategy is read on."""

    primary: str | None = Field(None)
    higher_tf: str | None = Field(None, alias="higherTF")
    lower_tf: str | None = Field(None, alias="lowerTF")

    @field_validator("primary", "higher_tf", "lower_tf", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        v = blank_to_none(v)
        return None if v is None else str(v).strip()


class StrategyMetadata(WireModel):
    """Alternate metadata block some extraction responses use."""

    methodology: str | None = Field(None)
    timeframes: list[str] = Field(default_factory=list)
    instruments: list[str] = Field(default_factory=list)
    session_preference: str | None = Field(None, alias="sessionPreference")

    @field_validator("timeframes", "instruments", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> list[str]:
        return coerce_str_list(v)

    @field_validator("methodology", "session_preference", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return blank_to_none(v)


# =============================================================================
# AGGREGATE ROOT
# =============================================================================


class ExtractedStrategy(WireModel):
    """A structured trading strategy extracted from a transcript."""

    name: str | None = Field(None, alias="strategyName")
    description: str | None = Field(None)
    methodology: str | None = Field(None, description="Detected methodology label")
    metadata: StrategyMetadata | None = Field(None)

    concepts_used: list[str] = Field(default_factory=list, alias="conceptsUsed")
    indicators_used: list[str] = Field(default_factory=list, alias="indicatorsUsed")
    patterns_used: list[str] = Field(default_factory=list, alias="patternsUsed")

    entry_rules: list[EntryRule] = Field(default_factory=list, alias="entryRules")
    exit_rules: list[ExitRule] = Field(default_factory=list, alias="exitRules")
    risk_management: RiskManagement = Field(default_factory=RiskManagement, alias="riskManagement")

    timeframe_context: TimeframeContext = Field(default_factory=TimeframeContext, alias="timeframeContext")
    suitable_pairs: list[str] = Field(default_factory=list, alias="suitablePairs")
    difficulty_level: DifficultyLevel | None = Field(None, alias="difficultyLevel")
    risk_level: RiskLevel | None = Field(None, alias="riskLevel")

    additional_filters: list[str] = Field(default_factory=list, alias="additionalFilters")
    notes: list[str] = Field(default_factory=list)
    extraction_confidence: ExtractionConfidence | None = Field(None, alias="extractionConfidence")

    @field_validator(
        "concepts_used", "indicators_used", "patterns_used",
        "suitable_pairs", "additional_filters", "notes",
        mode="before",
    )
    @classmethod
    def coerce_lists(cls, v: Any) -> list[str]:
        return coerce_str_list(v)

    @field_validator("entry_rules", "exit_rules", mode="before")
    @classmethod
    def coerce_rules(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, (dict, EntryRule, ExitRule))]

    @field_validator("risk_management", "timeframe_context", mode="before")
    @classmethod
    def coerce_blocks(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("metadata", "extraction_confidence", mode="before")
    @classmethod
    def coerce_optional_blocks(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else None

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def coerce_difficulty(cls, v: Any) -> str | None:
        return coerce_label(v, DifficultyLevel)

    @field_validator("risk_level", mode="before")
    @classmethod
    def coerce_risk(cls, v: Any) -> str | None:
        return coerce_label(v, RiskLevel)

    @field_validator("name", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        v = blank_to_none(v)
        return None if v is None else str(v).strip()

    @field_validator("methodology", mode="before")
    @classmethod
    def coerce_methodology(cls, v: Any) -> str | None:
        return coerce_label(v, Methodology)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class ImportedStrategy(ExtractedStrategy):
    """An extracted strategy enriched with the run's scores and provenance."""

    methodology_confidence: int = Field(0, ge=0, le=100, alias="methodologyConfidence")
    confidence: int = Field(0, ge=0, le=100, description="Final calculated confidence")
    source_url: str = Field("", alias="sourceUrl")
    source_title: str = Field("", alias="sourceTitle")
    transcript_length: int = Field(0, ge=0, alias="transcriptLength")
