"""Pipeline orchestration and debug recording."""

from strategy_extraction.pipeline.debug import DebugRecorder
from strategy_extraction.pipeline.orchestrator import StrategyImportPipeline

__all__ = [
    "DebugRecorder",
    "StrategyImportPipeline",
]
