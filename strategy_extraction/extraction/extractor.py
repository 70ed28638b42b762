"""Strategy extraction conditioned on the detected methodology."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from strategy_extraction.core.config import Config, StageSettings
from strategy_extraction.core.errors import ParseFailure
from strategy_extraction.llm.client import extract_json_object
from strategy_extraction.prompts.builder import build_extraction_prompt
from strategy_extraction.schemas.strategy import ExtractedStrategy

logger = logging.getLogger(__name__)


class StrategyExtractor:
    """Turns a transcript into an ExtractedStrategy with one completion call."""

    def __init__(self, client, stage: Optional[StageSettings] = None):
        self.client = client
        self.stage = stage or StageSettings()

    @classmethod
    def from_config(cls, client, config: Config) -> "StrategyExtractor":
        return cls(client, stage=config.stages.extraction)

    def extract(self, transcript: str, methodology: str, confidence: int) -> ExtractedStrategy:
        """
        Extract a strategy.

        Raises:
            ParseFailure: The answer was not a strategy object.
            UpstreamError: Propagated from the client.
        """
        prompt = build_extraction_prompt(transcript, methodology, confidence)
        content = self.client.complete(
            prompt,
            model=self.stage.model,
            temperature=self.stage.temperature,
            timeout=self.stage.timeout,
        )
        data = _unwrap(extract_json_object(content))

        try:
            strategy = ExtractedStrategy.model_validate(data)
        except ValidationError as e:
            raise ParseFailure(
                f"Strategy response failed validation: {e.error_count()} error(s)",
                raw_response=(content or "")[:500],
            ) from e

        # Validation keys off the classified label, not the model's restatement
        strategy = strategy.model_copy(update={"methodology": str(methodology)})

        logger.info(
            "Extracted '%s': %d entry rules, %d exit rules",
            strategy.name or "unnamed", len(strategy.entry_rules), len(strategy.exit_rules),
        )
        return strategy


def _unwrap(data: Dict[str, Any]) -> Dict[str, Any]:
    # Some answers nest the object under "strategy"
    inner = data.get("strategy")
    if isinstance(inner, dict) and "entryRules" not in data:
        return inner
    return data
