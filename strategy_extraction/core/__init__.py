"""Core Module.

This package provides the shared plumbing for the extraction service:

- Configuration loading and validation (strategy-extraction.yaml)
- Logging configuration with optional daily rotation
- The pipeline error taxonomy

Example usage:
    from strategy_extraction.core import load_config, setup_logging

    config = load_config()
    errors = validate_config(config)
    logger = setup_logging(config)
"""

from strategy_extraction.core.config import (
    # Configuration models
    Config,
    APIConfig,
    StageSettings,
    StagesConfig,
    AcquisitionConfig,
    ClassificationConfig,
    ScoringConfig,
    StatusConfig,
    LoggingConfig,
    ServerConfig,
    # Loading functions
    load_config,
    get_default_config,
    validate_config,
    # Exceptions
    ConfigurationError,
)

from strategy_extraction.core.errors import (
    PipelineError,
    InputError,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamBillingExhausted,
    UpstreamUnavailable,
    ParseFailure,
    ContentRejected,
    LowConfidenceMethodology,
    http_status_for_message,
)

from strategy_extraction.core.logging import (
    setup_logging,
    get_logger,
    LogManager,
)

__all__ = [
    "Config",
    "APIConfig",
    "StageSettings",
    "StagesConfig",
    "AcquisitionConfig",
    "ClassificationConfig",
    "ScoringConfig",
    "StatusConfig",
    "LoggingConfig",
    "ServerConfig",
    "load_config",
    "get_default_config",
    "validate_config",
    "ConfigurationError",
    "PipelineError",
    "InputError",
    "UpstreamError",
    "UpstreamRateLimited",
    "UpstreamBillingExhausted",
    "UpstreamUnavailable",
    "ParseFailure",
    "ContentRejected",
    "LowConfidenceMethodology",
    "http_status_for_message",
    "setup_logging",
    "get_logger",
    "LogManager",
]
