"""Pytest configuration and fixtures."""

import copy
import json
import tempfile
from pathlib import Path

import pytest

from strategy_extraction.acquisition.youtube import CaptionResult
from strategy_extraction.core.config import APIConfig, Config
from strategy_extraction.core.errors import UpstreamUnavailable
from strategy_extraction.pipeline.orchestrator import StrategyImportPipeline

SAMPLE_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
SAMPLE_VIDEO_ID = "dQw4w9WgXcQ"
SAMPLE_TITLE = "London Killzone Order Block Strategy"

_SENTENCE = (
    "Wait for the break of structure then enter on the order block "
    "with a fair value gap."
)

# 17 words x 36 = 612 words: inside the medium-transcript bonus band
SAMPLE_TRANSCRIPT = " ".join([_SENTENCE] * 36)


class FakeCompletionClient:
    """Completion client scripted with canned answers.

    Each call to complete() consumes the next scripted item. An item that is
    an exception instance is raised instead of returned.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def complete(self, prompt, model, temperature=0.2, system=None, timeout=None):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "temperature": temperature,
            "timeout": timeout,
        })
        if not self.responses:
            raise AssertionError(f"Unexpected completion call #{len(self.calls)}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeCaptionFetcher:
    """Caption fetcher returning a fixed result or raising a fixed error."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def fetch(self, video_id, video_title=None):
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise UpstreamUnavailable("Captions unavailable: TranscriptsDisabled")
        return self.result


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    """Default configuration with a dummy API key."""
    return Config(api=APIConfig(api_key="test-key"))


@pytest.fixture
def sample_transcript():
    return SAMPLE_TRANSCRIPT


@pytest.fixture
def sample_strategy():
    """Actionable SMC strategy as the extractor returns it (camelCase)."""
    return {
        "strategyName": "London Killzone Order Block",
        "description": "Trade the first order block after a break of structure.",
        "methodology": "smc",
        "conceptsUsed": ["bos", "order_block", "fvg"],
        "indicatorsUsed": [],
        "patternsUsed": [],
        "entryRules": [
            {
                "type": "structure",
                "concept": "bos",
                "condition": "Price closes above the previous swing high on the 15m chart",
                "sourceQuote": "wait for the break of structure",
            },
            {
                "type": "smc",
                "concept": "order_block",
                "condition": "Price retraces into the last bearish candle before the break",
                "sourceQuote": "enter on the order block",
            },
            {
                "type": "smc",
                "concept": "fvg",
                "condition": "A fair value gap is left inside the displacement leg",
                "sourceQuote": "with a fair value gap",
            },
        ],
        "exitRules": [
            {
                "type": "take_profit",
                "description": "Target the next swing high liquidity",
                "sourceQuote": "take profit at the next high",
            },
            {
                "type": "stop_loss",
                "description": "Below the order block low",
                "sourceQuote": "stop goes under the block",
            },
        ],
        "riskManagement": {
            "stopLoss": {"type": "structure", "placement": "Below the order block low"},
            "positionSizing": {"method": "fixed_percentage", "value": "1%"},
            "riskRewardRatio": "1:3",
        },
        "timeframeContext": {"primary": "15m", "higherTF": "4h", "lowerTF": None},
        "suitablePairs": ["EURUSD", "GBPUSD"],
        "difficultyLevel": "intermediate",
        "riskLevel": "medium",
        "additionalFilters": [],
        "notes": [],
    }


@pytest.fixture
def methodology_response():
    """Build a classifier answer."""

    def _build(methodology="smc", confidence=90):
        return json.dumps({
            "methodology": methodology,
            "confidence": confidence,
            "evidence": ["wait for the break of structure", "enter on the order block"],
            "reasoning": "Order blocks and structure breaks drive every entry.",
        })

    return _build


@pytest.fixture
def strategy_response(sample_strategy):
    """Build an extractor answer, optionally fenced in markdown."""

    def _build(overrides=None, fenced=False):
        data = copy.deepcopy(sample_strategy)
        data.update(overrides or {})
        text = json.dumps(data)
        return f"```json\n{text}\n```" if fenced else text

    return _build


@pytest.fixture
def unified_response(sample_strategy):
    """Build a unified single-pass answer."""

    def _build(confidence=92, word_count=1200, quality=None, **overrides):
        data = {
            "canAccessVideo": True,
            "transcriptPreview": SAMPLE_TRANSCRIPT[:500],
            "transcriptWordCount": word_count,
            "methodology": {
                "methodology": "smc",
                "confidence": confidence,
                "evidence": ["break of structure", "order block"],
                "reasoning": "SMC terminology throughout.",
            },
            "strategy": copy.deepcopy(sample_strategy),
            "validation": {
                "extractionQuality": quality or {
                    "overall": 85, "entryClarity": 90, "exitClarity": 80, "riskClarity": 70,
                },
                "informationGaps": [],
                "ambiguities": [],
            },
        }
        data.update(overrides)
        return json.dumps(data)

    return _build


@pytest.fixture
def cannot_access_response():
    return json.dumps({
        "canAccessVideo": False,
        "error": "CANNOT_ACCESS_VIDEO",
        "errorDetails": "The video content could not be retrieved from the provided link at this time.",
    })


@pytest.fixture
def caption_result():
    return CaptionResult(
        transcript=SAMPLE_TRANSCRIPT,
        video_title=SAMPLE_TITLE,
        is_auto_generated=True,
        language="en",
    )


@pytest.fixture
def make_pipeline(config):
    """Build a pipeline around a scripted client and a fake caption fetcher."""

    def _build(responses=None, captions=None, caption_error=None, pipeline_config=None):
        client = FakeCompletionClient(responses)
        fetcher = FakeCaptionFetcher(result=captions, error=caption_error)
        pipeline = StrategyImportPipeline.from_config(
            pipeline_config or config,
            client=client,
            caption_fetcher=fetcher,
            title_lookup=lambda video_id: SAMPLE_TITLE,
        )
        return pipeline, client, fetcher

    return _build


@pytest.fixture
def fake_client():
    """Factory for scripted completion clients."""
    return FakeCompletionClient


@pytest.fixture
def fake_captions():
    """Factory for fake caption fetchers."""
    return FakeCaptionFetcher
