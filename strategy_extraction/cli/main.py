"""Command line interface for the extraction pipeline.

Usage:
    strategy-extraction serve --port 8000
    strategy-extraction extract --url https://youtu.be/VIDEO_ID --output result.json
    strategy-extraction extract --transcript-file transcript.txt
    strategy-extraction classify --transcript-file transcript.txt
    strategy-extraction check-config --config strategy-extraction.yaml
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from strategy_extraction.core.config import (
    Config,
    ConfigurationError,
    load_config,
    validate_config,
)
from strategy_extraction.core.errors import PipelineError
from strategy_extraction.core.logging import level_name, setup_logging
from strategy_extraction.extraction.classifier import MethodologyClassifier
from strategy_extraction.llm.client import CompletionClient
from strategy_extraction.pipeline.orchestrator import StrategyImportPipeline
from strategy_extraction.schemas.pipeline import ImportStatus

app = typer.Typer(
    name="strategy-extraction",
    help="Extract structured trading strategies from YouTube videos and transcripts.",
    no_args_is_help=True,
)

# Exit codes for `extract`
EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_INPUT_ERROR = 2

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to strategy-extraction.yaml"),
]


def _load(config_path: Path | None) -> Config:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None


def build_pipeline(config: Config) -> StrategyImportPipeline:
    return StrategyImportPipeline.from_config(config)


def build_client(config: Config):
    return CompletionClient.from_config(config)


def _read_transcript(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.secho(f"Error: cannot read {path}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_INPUT_ERROR) from None


@app.command("serve")
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port")] = None,
    config_path: ConfigOption = None,
):
    """Run the HTTP API under uvicorn."""
    import uvicorn

    from strategy_extraction.api.app import create_app

    config = _load(config_path)
    try:
        application = create_app(config)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    uvicorn.run(
        application,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=level_name(config).lower(),
    )


@app.command("extract")
def extract(
    url: Annotated[str | None, typer.Option("--url", "-u", help="YouTube video URL")] = None,
    transcript_file: Annotated[
        Path | None,
        typer.Option("--transcript-file", "-t", help="Plain-text transcript to use instead of the video"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON result here instead of stdout"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Run the full pipeline once.

    Exits 0 for success/warning, 1 for blocked/failed and 2 for input errors.

    Examples:
        strategy-extraction extract --url https://www.youtube.com/watch?v=VIDEO_ID
        strategy-extraction extract --transcript-file talk.txt -o strategy.json
    """
    if not url and not transcript_file:
        typer.secho("Error: pass --url or --transcript-file", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_INPUT_ERROR)

    transcript = _read_transcript(transcript_file) if transcript_file else None

    config = _load(config_path)
    setup_logging(config)
    try:
        pipeline = build_pipeline(config)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    result = pipeline.run(url=url, transcript=transcript)
    body = json.dumps(result.to_response(), indent=2)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(body)
        typer.secho(f"Wrote: {output}", fg=typer.colors.GREEN, err=True)
    else:
        typer.echo(body)

    color = {
        ImportStatus.SUCCESS.value: typer.colors.GREEN,
        ImportStatus.WARNING.value: typer.colors.YELLOW,
    }.get(result.status, typer.colors.RED)
    typer.secho(f"{result.status}: {result.reason}", fg=color, err=True)

    if result.http_status == 400:
        raise typer.Exit(EXIT_INPUT_ERROR)
    if result.status in (ImportStatus.SUCCESS.value, ImportStatus.WARNING.value):
        raise typer.Exit(EXIT_ACCEPTED)
    raise typer.Exit(EXIT_REJECTED)


@app.command("classify")
def classify(
    transcript_file: Annotated[
        Path,
        typer.Option("--transcript-file", "-t", help="Plain-text transcript"),
    ],
    config_path: ConfigOption = None,
):
    """Run only the methodology classifier and print its result."""
    transcript = _read_transcript(transcript_file)
    config = _load(config_path)
    setup_logging(config)

    try:
        classifier = MethodologyClassifier.from_config(build_client(config), config)
        result = classifier.classify(transcript)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    except PipelineError as e:
        typer.secho(f"Error: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    typer.echo(json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2))
    if classifier.passes_gate(result):
        typer.secho(f"Passes the {classifier.confidence_gate}% gate", fg=typer.colors.GREEN, err=True)
    else:
        typer.secho(
            f"Below the {classifier.confidence_gate}% gate; extraction would be blocked",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command("check-config")
def check_config(config_path: ConfigOption = None):
    """Load and validate configuration, listing any issues."""
    config = _load(config_path)
    errors = validate_config(config)

    if not errors:
        typer.secho("Configuration OK", fg=typer.colors.GREEN)
        return

    typer.secho(f"{len(errors)} configuration issue(s):", fg=typer.colors.YELLOW)
    for error in errors:
        typer.echo(f"  - {error}")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
