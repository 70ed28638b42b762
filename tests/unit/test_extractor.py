"""Tests for strategy extraction."""

import json

import pytest

from strategy_extraction.core.errors import ParseFailure
from strategy_extraction.extraction import StrategyExtractor


class TestStrategyExtractor:
    """Tests for StrategyExtractor.extract."""

    def test_parses_strategy(self, fake_client, strategy_response, sample_transcript):
        """Test a JSON answer becomes an ExtractedStrategy."""
        client = fake_client([strategy_response()])

        strategy = StrategyExtractor(client).extract(sample_transcript, "smc", 90)

        assert strategy.name == "London Killzone Order Block"
        assert len(strategy.entry_rules) == 3
        assert strategy.entry_rules[0].type == "structure"
        assert strategy.exit_rules[1].is_stop_loss
        assert strategy.risk_management.risk_reward_ratio == "1:3"

    def test_prompt_carries_methodology(self, fake_client, strategy_response, sample_transcript):
        """Test the prompt is conditioned on the detected methodology."""
        client = fake_client([strategy_response()])

        StrategyExtractor(client).extract(sample_transcript, "wyckoff", 77)

        prompt = client.calls[0]["prompt"]
        assert "wyckoff" in prompt
        assert "77" in prompt

    def test_fenced_answer(self, fake_client, strategy_response, sample_transcript):
        """Test fenced answers are accepted."""
        client = fake_client([strategy_response(fenced=True)])

        strategy = StrategyExtractor(client).extract(sample_transcript, "smc", 90)

        assert strategy.name == "London Killzone Order Block"

    def test_nested_strategy_unwrapped(self, fake_client, sample_strategy, sample_transcript):
        """Test answers nesting the object under 'strategy' are unwrapped."""
        client = fake_client([json.dumps({"strategy": sample_strategy})])

        strategy = StrategyExtractor(client).extract(sample_transcript, "smc", 90)

        assert len(strategy.entry_rules) == 3

    def test_defaults_methodology(self, fake_client, strategy_response, sample_transcript):
        """Test the detected methodology fills a missing label."""
        client = fake_client([strategy_response({"methodology": None})])

        strategy = StrategyExtractor(client).extract(sample_transcript, "ict", 90)

        assert strategy.methodology == "ict"

    def test_detected_methodology_wins(self, fake_client, strategy_response, sample_transcript):
        """Test a restated label is replaced by the classified methodology."""
        client = fake_client([strategy_response({"methodology": "Smart Money Concepts"})])

        strategy = StrategyExtractor(client).extract(sample_transcript, "smc", 90)

        assert strategy.methodology == "smc"

    def test_placeholders_dropped(self, fake_client, strategy_response, sample_transcript):
        """Test placeholder values are treated as absent."""
        client = fake_client([strategy_response({
            "riskManagement": {"stopLoss": "not_specified", "riskRewardRatio": "N/A"},
            "difficultyLevel": "expert",
        })])

        strategy = StrategyExtractor(client).extract(sample_transcript, "smc", 90)

        assert strategy.risk_management.stop_loss is None
        assert strategy.risk_management.risk_reward_ratio is None
        assert strategy.difficulty_level is None

    def test_not_json(self, fake_client, sample_transcript):
        """Test prose answers raise ParseFailure."""
        with pytest.raises(ParseFailure):
            StrategyExtractor(fake_client(["No strategy here."])).extract(sample_transcript, "smc", 90)
