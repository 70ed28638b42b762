"""Integration tests for CLI commands."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from strategy_extraction.cli import main
from strategy_extraction.core.config import API_KEY_ENV_VAR, CONFIG_ENV_VAR

runner = CliRunner()

REPO_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def transcript_file(temp_dir, sample_transcript):
    path = temp_dir / "transcript.txt"
    path.write_text(sample_transcript)
    return path


@pytest.fixture
def no_config(temp_dir):
    """Path to a config file that does not exist, so defaults are used."""
    return temp_dir / "missing.yaml"


def _run_module(*args, env_overrides=None):
    env = {k: v for k, v in os.environ.items() if k not in (API_KEY_ENV_VAR, CONFIG_ENV_VAR)}
    env.update(env_overrides or {})
    return subprocess.run(
        [sys.executable, "-m", "strategy_extraction.cli.main", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        env=env,
    )


class TestCLIExtract:
    """Tests for the extract command."""

    def test_requires_input(self, no_config):
        """Test extract without --url or --transcript-file exits 2."""
        result = runner.invoke(main.app, ["extract", "--config", str(no_config)])

        assert result.exit_code == main.EXIT_INPUT_ERROR
        assert "--url or --transcript-file" in result.output

    def test_missing_transcript_file(self, temp_dir, no_config):
        """Test an unreadable transcript file exits 2."""
        result = runner.invoke(main.app, [
            "extract", "--transcript-file", str(temp_dir / "nope.txt"), "--config", str(no_config),
        ])

        assert result.exit_code == main.EXIT_INPUT_ERROR

    def test_success_writes_output(
        self, monkeypatch, make_pipeline, methodology_response, strategy_response,
        transcript_file, temp_dir, no_config,
    ):
        """Test a successful import writes the envelope and exits 0."""
        pipeline, _, _ = make_pipeline([methodology_response(), strategy_response()])
        monkeypatch.setattr(main, "build_pipeline", lambda config: pipeline)
        output = temp_dir / "out" / "result.json"

        result = runner.invoke(main.app, [
            "extract", "-t", str(transcript_file), "-o", str(output), "--config", str(no_config),
        ])

        assert result.exit_code == main.EXIT_ACCEPTED
        body = json.loads(output.read_text())
        assert body["status"] == "success"
        assert body["strategy"]["confidence"] == 86
        assert "success: Strategy extracted successfully" in result.output

    def test_blocked_exits_1(
        self, monkeypatch, make_pipeline, methodology_response, transcript_file, no_config,
    ):
        """Test a blocked import exits 1."""
        pipeline, _, _ = make_pipeline([methodology_response(confidence=20)])
        monkeypatch.setattr(main, "build_pipeline", lambda config: pipeline)

        result = runner.invoke(main.app, [
            "extract", "--transcript-file", str(transcript_file), "--config", str(no_config),
        ])

        assert result.exit_code == main.EXIT_REJECTED
        assert '"status": "blocked"' in result.output

    def test_bad_url_exits_2(self, monkeypatch, make_pipeline, no_config):
        """Test a URL without a video id exits 2."""
        pipeline, _, _ = make_pipeline()
        monkeypatch.setattr(main, "build_pipeline", lambda config: pipeline)

        result = runner.invoke(main.app, [
            "extract", "--url", "https://example.com/video", "--config", str(no_config),
        ])

        assert result.exit_code == main.EXIT_INPUT_ERROR

    def test_missing_api_key(self, monkeypatch, transcript_file, no_config):
        """Test extract refuses to run without an API key."""
        monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)

        result = runner.invoke(main.app, [
            "extract", "--transcript-file", str(transcript_file), "--config", str(no_config),
        ])

        assert result.exit_code == 1
        assert API_KEY_ENV_VAR in result.output


class TestCLIClassify:
    """Tests for the classify command."""

    def test_prints_classification(
        self, monkeypatch, fake_client, methodology_response, transcript_file, no_config,
    ):
        """Test classify prints the result and the gate verdict."""
        client = fake_client([methodology_response("wyckoff", 82)])
        monkeypatch.setattr(main, "build_client", lambda config: client)

        result = runner.invoke(main.app, [
            "classify", "--transcript-file", str(transcript_file), "--config", str(no_config),
        ])

        assert result.exit_code == 0
        assert '"methodology": "wyckoff"' in result.output
        assert "Passes the 60% gate" in result.output

    def test_parse_failure(self, monkeypatch, fake_client, transcript_file, no_config):
        """Test an unparseable answer exits 1."""
        monkeypatch.setattr(main, "build_client", lambda config: fake_client(["not json"]))

        result = runner.invoke(main.app, [
            "classify", "--transcript-file", str(transcript_file), "--config", str(no_config),
        ])

        assert result.exit_code == 1


class TestCLICheckConfig:
    """Tests for the check-config command."""

    def test_missing_api_key(self, no_config):
        """Test check-config reports a missing API key."""
        result = _run_module("check-config", "--config", str(no_config))

        assert result.returncode == 1
        assert "API key" in result.stdout

    def test_ok_with_env_key(self, no_config):
        """Test check-config passes when the key comes from the environment."""
        result = _run_module(
            "check-config", "--config", str(no_config),
            env_overrides={API_KEY_ENV_VAR: "sk-test"},
        )

        assert result.returncode == 0
        assert "Configuration OK" in result.stdout

    def test_invalid_yaml(self, temp_dir):
        """Test a broken config file exits 1."""
        path = temp_dir / "strategy-extraction.yaml"
        path.write_text("status: [unclosed\n")

        result = _run_module("check-config", "--config", str(path))

        assert result.returncode == 1
        assert "Invalid YAML" in result.stderr

    def test_inconsistent_thresholds(self, temp_dir):
        """Test logically inconsistent thresholds are listed."""
        path = temp_dir / "strategy-extraction.yaml"
        path.write_text("status:\n  success_threshold: 50\n  review_threshold: 70\n")

        result = _run_module(
            "check-config", "--config", str(path), env_overrides={API_KEY_ENV_VAR: "sk-test"},
        )

        assert result.returncode == 1
        assert "review_threshold" in result.stdout
