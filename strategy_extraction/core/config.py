"""Configuration System.

This module provides the configuration system for the extraction pipeline:
- Pydantic models for all configuration sections
- YAML file loading with default fallbacks
- Partial config merging
- Validation with clear error messages
- Environment variable support for the completion-service API key

Configuration is loaded from strategy-extraction.yaml files. If no file exists,
defaults are used. Partial configurations are merged with defaults.

The scoring and status constants are tuning values carried over unchanged from
the production pipeline. Their rationale is not documented, so they are exposed
here as named settings instead of being hard-coded in the scorers.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# CONSTANTS
# =============================================================================

# Default configuration file name
CONFIG_FILE_NAME = "strategy-extraction.yaml"

# Environment variable holding the completion-service key
API_KEY_ENV_VAR = "AI_GATEWAY_API_KEY"

# Environment variable pointing at a config file
CONFIG_ENV_VAR = "STRATEGY_EXTRACTION_CONFIG"

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"

FAST_MODEL = "google/gemini-2.5-flash"
CAPABLE_MODEL = "google/gemini-2.5-pro"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


# =============================================================================
# ENUMS
# =============================================================================


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================


class APIConfig(BaseModel):
    """Completion-service connection settings.

    The API key can be given here or via the AI_GATEWAY_API_KEY environment
    variable. The environment variable is only consulted when the file leaves
    the key unset.
    """

    gateway_url: str = Field(
        DEFAULT_GATEWAY_URL, description="Chat-completions endpoint URL"
    )
    api_key: str | None = Field(
        None, description=f"Completion-service API key (or ${API_KEY_ENV_VAR})"
    )
    request_timeout: float = Field(
        120.0, gt=0, description="Default HTTP timeout in seconds"
    )

    @model_validator(mode="after")
    def resolve_env_vars(self) -> "APIConfig":
        """Resolve the API key from the environment if not set."""
        if self.api_key is None:
            self.api_key = os.environ.get(API_KEY_ENV_VAR)
        return self


class StageSettings(BaseModel):
    """Model selection for one completion call."""

    model: str = Field(FAST_MODEL, description="Model identifier sent to the gateway")
    temperature: float = Field(0.2, ge=0, le=2.0, description="Sampling temperature")
    timeout: float = Field(
        90.0, gt=0, description="Per-stage timeout in seconds; a timeout fails the stage"
    )


class StagesConfig(BaseModel):
    """Per-stage completion settings."""

    unified: StageSettings = Field(
        default_factory=lambda: StageSettings(model=CAPABLE_MODEL, temperature=0.2, timeout=180.0)
    )
    transcription: StageSettings = Field(
        default_factory=lambda: StageSettings(model=FAST_MODEL, temperature=0.1)
    )
    grounding: StageSettings = Field(
        default_factory=lambda: StageSettings(model=CAPABLE_MODEL, temperature=0.1, timeout=120.0)
    )
    classification: StageSettings = Field(
        default_factory=lambda: StageSettings(model=FAST_MODEL, temperature=0.1, timeout=60.0)
    )
    extraction: StageSettings = Field(
        default_factory=lambda: StageSettings(model=FAST_MODEL, temperature=0.2)
    )


class AcquisitionConfig(BaseModel):
    """Transcript acquisition settings.

    The length floors are the "obviously not a real transcript" heuristics
    shared by every AI-backed acquisition stage.
    """

    min_response_chars: int = Field(
        100, ge=0, description="Responses shorter than this are rejected"
    )
    min_transcript_words: int = Field(
        50, ge=0, description="Transcripts with fewer words are rejected"
    )
    caption_languages: list[str] = Field(
        default_factory=lambda: ["en"],
        description="Caption languages to request, in preference order",
    )
    enable_unified: bool = Field(True, description="Try unified single-pass extraction")
    enable_direct_transcription: bool = Field(True, description="Try direct transcription")
    enable_grounded_transcription: bool = Field(True, description="Try grounded transcription")
    enable_captions: bool = Field(True, description="Try the public caption API")
    metadata_timeout: float = Field(
        10.0, gt=0, description="Timeout for the oEmbed title lookup"
    )

    @field_validator("caption_languages")
    @classmethod
    def validate_languages(cls, v: list[str]) -> list[str]:
        """Require at least one caption language."""
        if not v:
            raise ValueError("caption_languages must list at least one language code")
        return v


class ClassificationConfig(BaseModel):
    """Methodology classification settings."""

    confidence_gate: int = Field(
        60, ge=0, le=100, description="Runs below this confidence are blocked before extraction"
    )
    max_transcript_chars: int = Field(
        10000, gt=0, description="Transcript characters sent to the classifier"
    )


class ScoringConfig(BaseModel):
    """Actionability and confidence weights."""

    mandatory_entry_rules: int = Field(
        2, ge=0, description="Leading entry rules defaulted to mandatory"
    )
    clear_condition_min_length: int = Field(
        10, ge=0, description="Condition length above which an entry rule is clear"
    )
    min_clear_entry_rules: int = Field(
        2, ge=0, description="Clear entry rules needed to avoid the low-confluence warning"
    )
    missing_element_penalty: int = Field(20, ge=0, description="Points per missing element")
    warning_penalty: int = Field(5, ge=0, description="Points per warning")
    computed_score_weight: float = Field(
        0.6, ge=0, le=1.0, description="Weight of the rule-based score when blending"
    )
    self_reported_weight: float = Field(
        0.4, ge=0, le=1.0, description="Weight of the extractor's clarity average when blending"
    )
    max_missing_elements: int = Field(
        1, ge=0, description="Missing elements tolerated by an actionable strategy"
    )
    methodology_weight: float = Field(0.4, ge=0, le=1.0)
    actionability_weight: float = Field(0.4, ge=0, le=1.0)
    extraction_overall_weight: float = Field(
        0.3, ge=0, le=1.0, description="Share of the final score taken by extraction confidence"
    )
    long_transcript_words: int = Field(1000, ge=0)
    long_transcript_bonus: int = Field(15, ge=0)
    medium_transcript_words: int = Field(500, ge=0)
    medium_transcript_bonus: int = Field(10, ge=0)
    auto_caption_penalty: int = Field(10, ge=0)


class StatusConfig(BaseModel):
    """Import status thresholds."""

    success_threshold: int = Field(80, ge=0, le=100)
    review_threshold: int = Field(60, ge=0, le=100)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    log_dir: str | None = Field(
        None, description="Directory for daily-rotated log files; console only if unset"
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field("127.0.0.1")
    port: int = Field(8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class Config(BaseModel):
    """Complete configuration."""

    version: str = Field("1.0", description="Configuration version")
    api: APIConfig = Field(default_factory=APIConfig)
    stages: StagesConfig = Field(default_factory=StagesConfig)
    acquisition: AcquisitionConfig = Field(default_factory=AcquisitionConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    class Config:
        """Pydantic configuration."""

        use_enum_values = True

    def require_api_key(self) -> str:
        """Return the API key or fail.

        Raises:
            ConfigurationError: If no key is configured.
        """
        if not self.api.api_key:
            raise ConfigurationError(
                f"No completion-service API key configured. "
                f"Set {API_KEY_ENV_VAR} or api.api_key in {CONFIG_FILE_NAME}."
            )
        return self.api.api_key


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================


def get_default_config() -> Config:
    """Return the default configuration."""
    return Config()


# =============================================================================
# CONFIG LOADING
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Values from override take precedence. Nested dicts are merged recursively.
    Lists are replaced entirely (not merged).
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from a YAML file.

    If no path is provided, uses $STRATEGY_EXTRACTION_CONFIG or looks for
    strategy-extraction.yaml in the current directory. If the file doesn't
    exist, returns default configuration.

    Args:
        path: Path to configuration file.

    Returns:
        Loaded and validated Config.

    Raises:
        ConfigurationError: If YAML is invalid or configuration values are invalid.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else Path.cwd() / CONFIG_FILE_NAME
    else:
        config_path = Path(path)

    if not config_path.exists():
        return get_default_config()

    try:
        with open(config_path) as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading {config_path}: {e}") from e

    if user_config is None:
        return get_default_config()

    if not isinstance(user_config, dict):
        raise ConfigurationError(f"Top level of {config_path} must be a mapping")

    # The resolved env key must not be baked into the merged defaults,
    # otherwise an explicit null in the file could never fall back to it.
    default_dict = get_default_config().model_dump()
    default_dict["api"]["api_key"] = None

    merged = _deep_merge(default_dict, user_config)

    try:
        return Config(**merged)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


# =============================================================================
# CONFIG VALIDATION
# =============================================================================


def validate_config(config: Config) -> list[str]:
    """Validate a configuration and return any errors.

    Checks logical consistency beyond what the field constraints cover.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages. Empty list if valid.
    """
    errors: list[str] = []

    if config.status.review_threshold > config.status.success_threshold:
        errors.append(
            f"status.review_threshold={config.status.review_threshold} is above "
            f"status.success_threshold={config.status.success_threshold}. "
            "No strategy could ever be flagged for review."
        )

    scoring = config.scoring
    if abs(scoring.computed_score_weight + scoring.self_reported_weight - 1.0) > 1e-9:
        errors.append(
            "scoring.computed_score_weight + scoring.self_reported_weight should sum to 1.0, "
            f"got {scoring.computed_score_weight + scoring.self_reported_weight:.2f}."
        )

    if scoring.methodology_weight + scoring.actionability_weight > 1.0:
        errors.append(
            "scoring.methodology_weight + scoring.actionability_weight exceeds 1.0; "
            "final confidence will saturate."
        )

    if scoring.medium_transcript_words > scoring.long_transcript_words:
        errors.append(
            "scoring.medium_transcript_words is above scoring.long_transcript_words."
        )

    if config.classification.confidence_gate < 30:
        errors.append(
            f"classification.confidence_gate={config.classification.confidence_gate} is low. "
            "Extraction will run on strategies whose category is a guess."
        )

    acquisition = config.acquisition
    if not any([
        acquisition.enable_unified,
        acquisition.enable_direct_transcription,
        acquisition.enable_grounded_transcription,
        acquisition.enable_captions,
    ]):
        errors.append(
            "All acquisition stages are disabled. URL imports will always fail."
        )

    if not config.api.api_key:
        errors.append(
            f"No API key configured. Set {API_KEY_ENV_VAR} or api.api_key."
        )

    return errors
