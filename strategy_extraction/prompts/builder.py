"""Prompt construction for every completion stage.

Each builder is a pure function of its inputs: the same transcript and
signals always render the same prompt text. Templates live in
prompts/templates/*.j2 and share the taxonomy and vocabularies defined here.
"""

from __future__ import annotations

from pathlib import Path

import jinja2

from strategy_extraction.schemas.strategy import (
    EntryRuleType,
    ExitRuleType,
    Methodology,
)

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Sentinels the transcription prompts ask for on refusal
CANNOT_ACCESS_SENTINEL = "CANNOT_ACCESS_VIDEO"
GROUNDING_UNAVAILABLE_SENTINEL = "GROUNDING_UNAVAILABLE"

# Classifier input is truncated to keep the call cheap
DEFAULT_MAX_TRANSCRIPT_CHARS = 10000

# Lexical triggers per label, rendered into the classification prompts
METHODOLOGY_TAXONOMY = [
    {
        "name": Methodology.INDICATOR_BASED.value,
        "triggers": ["RSI", "MACD", "Stochastic", "moving average crossover", "Bollinger Bands",
                     "ATR", "ADX", "overbought", "oversold", "divergence", "signal line"],
        "characteristics": "quantitative signals, oscillator-based entries",
    },
    {
        "name": Methodology.PRICE_ACTION.value,
        "triggers": ["pin bar", "engulfing", "doji", "support/resistance", "trendline",
                     "head and shoulders", "double top", "breakout", "rejection wick"],
        "characteristics": "pure price interpretation, candlestick and chart patterns",
    },
    {
        "name": Methodology.SMC.value,
        "triggers": ["order block", "FVG", "fair value gap", "BOS", "break of structure",
                     "ChoCH", "change of character", "liquidity sweep", "imbalance",
                     "displacement", "premium/discount"],
        "characteristics": "institutional footprint, liquidity-focused, structure shifts",
    },
    {
        "name": Methodology.ICT.value,
        "triggers": ["killzone", "optimal trade entry", "OTE", "PD array", "IPDA",
                     "silver bullet", "Judas swing", "London open", "New York session"],
        "characteristics": "time-based entries, algorithmic price delivery",
    },
    {
        "name": Methodology.WYCKOFF.value,
        "triggers": ["accumulation", "distribution", "spring", "upthrust", "markup",
                     "composite operator", "buying climax", "selling climax"],
        "characteristics": "volume analysis, phase identification, cause and effect",
    },
    {
        "name": Methodology.ELLIOTT_WAVE.value,
        "triggers": ["wave count", "impulse wave", "corrective wave", "wave 3", "wave 5",
                     "A-B-C correction", "fibonacci extension"],
        "characteristics": "fractal wave patterns, impulse/corrective structures",
    },
    {
        "name": Methodology.HYBRID.value,
        "triggers": ["explicit combination of 2+ methodologies with equal weight",
                     "SMC with RSI confirmation", "ICT killzones + EMA filter"],
        "characteristics": "multiple frameworks working in tandem",
    },
]

# Controlled vocabulary for conceptsUsed
CONCEPT_VOCABULARY = [
    "order_block", "fvg", "bos", "choch", "liquidity_sweep", "imbalance",
    "displacement", "mitigation_block", "breaker_block", "killzone", "ote",
    "pd_array", "ipda", "accumulation", "distribution", "spring", "wave_count",
]

# Methodologies whose rules are expressed in concepts rather than indicators
CONCEPT_DRIVEN_METHODOLOGIES = frozenset({Methodology.SMC.value, Methodology.ICT.value})

_environment: jinja2.Environment | None = None


def _get_environment() -> jinja2.Environment:
    """Return the shared Jinja2 environment."""
    global _environment
    if _environment is None:
        _environment = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=False,
        )
    return _environment


def _render(template_name: str, **context) -> str:
    context.setdefault("taxonomy", METHODOLOGY_TAXONOMY)
    context.setdefault("concept_vocabulary", CONCEPT_VOCABULARY)
    context.setdefault("entry_types", [t.value for t in EntryRuleType])
    context.setdefault("exit_types", [t.value for t in ExitRuleType])
    return _get_environment().get_template(template_name).render(**context)


def build_methodology_prompt(
    transcript: str, max_chars: int = DEFAULT_MAX_TRANSCRIPT_CHARS
) -> str:
    """Prompt for single-label methodology classification."""
    return _render("methodology.j2", transcript=transcript[:max_chars])


def build_extraction_prompt(transcript: str, methodology: str, confidence: int) -> str:
    """Prompt for rule extraction, conditioned on the detected methodology."""
    methodology = str(methodology)
    return _render(
        "extraction.j2",
        transcript=transcript,
        methodology=methodology,
        confidence=confidence,
        concept_driven=methodology in CONCEPT_DRIVEN_METHODOLOGIES,
    )


def build_unified_prompt(url: str, video_id: str) -> str:
    """Prompt for single-pass access + classification + extraction."""
    return _render(
        "unified.j2", url=url, video_id=video_id, sentinel=CANNOT_ACCESS_SENTINEL
    )


def build_transcription_prompt(url: str) -> str:
    """Prompt asking the model to transcribe a video directly."""
    return _render("transcription.j2", url=url, sentinel=CANNOT_ACCESS_SENTINEL)


def build_grounding_prompt(url: str, video_id: str) -> str:
    """Alternate transcription framing for a higher-capability model."""
    return _render(
        "grounding.j2", url=url, video_id=video_id, sentinel=GROUNDING_UNAVAILABLE_SENTINEL
    )
