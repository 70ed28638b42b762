"""Logging System.

This module provides logging configuration for the extraction service.

Features:
- Console output for every process
- Optional daily rotating log files with TimedRotatingFileHandler
- Configurable log levels via Config
- Log cleanup for old files

Log files are written to the configured log directory with the format:
    strategy-extraction-YYYY-MM-DD.log

Example usage:
    from strategy_extraction.core.logging import setup_logging, get_logger

    logger = setup_logging(config)
    logger.info("Starting extraction service")

    component_logger = get_logger("strategy_extraction.acquisition")
    component_logger.debug("Trying caption fetch")
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from strategy_extraction.core.config import Config, get_default_config


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_LOGGER_NAME = "strategy_extraction"

LOG_FILE_PREFIX = "strategy-extraction"

LOG_FILE_EXTENSION = ".log"

# Days of rotated logs to keep
DEFAULT_BACKUP_COUNT = 30


# =============================================================================
# MODULE-LEVEL FUNCTIONS
# =============================================================================


def setup_logging(
    config: Optional[Config] = None,
    name: str = DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Set up logging for the service.

    Args:
        config: Optional Config, defaults are used if not provided.
        name: Logger name (default: strategy_extraction).

    Returns:
        Configured logger instance.
    """
    return LogManager(config).setup(name)


def level_name(config: Config) -> str:
    """Return the configured level as a plain name such as "INFO"."""
    level = config.logging.level
    return getattr(level, "value", level)


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance.

    The logger may not be configured yet if setup_logging has not been called.
    """
    return logging.getLogger(name)


# =============================================================================
# LOG MANAGER CLASS
# =============================================================================


class LogManager:
    """Manages logging handlers for the service.

    Attributes:
        config: Service configuration.
        logs_path: Directory for rotated log files, or None for console only.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else get_default_config()
        log_dir = self.config.logging.log_dir
        self.logs_path: Optional[Path] = Path(log_dir).expanduser() if log_dir else None
        self._logger: Optional[logging.Logger] = None

    def setup(self, name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
        """Set up logging with console and (optionally) file handlers.

        Args:
            name: Logger name.

        Returns:
            Configured logger instance.
        """
        logger = logging.getLogger(name)

        log_level = getattr(logging, level_name(self.config), logging.INFO)
        logger.setLevel(log_level)

        # Only add handlers if none exist (avoid duplicates)
        if not logger.handlers:
            formatter = logging.Formatter(self.config.logging.format)

            if self.logs_path is not None:
                self.logs_path.mkdir(parents=True, exist_ok=True)
                file_handler = TimedRotatingFileHandler(
                    filename=self.get_log_file_path(),
                    when="midnight",
                    interval=1,
                    backupCount=DEFAULT_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                file_handler.suffix = "%Y-%m-%d"
                logger.addHandler(file_handler)

            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        self._logger = logger
        return logger

    def get_log_file_path(self) -> Path:
        """Get today's log file path.

        Raises:
            ValueError: If no log directory is configured.
        """
        if self.logs_path is None:
            raise ValueError("No log directory configured (logging.log_dir)")
        today = datetime.now().strftime("%Y-%m-%d")
        return self.logs_path / f"{LOG_FILE_PREFIX}-{today}{LOG_FILE_EXTENSION}"

    def list_log_files(self) -> list[Path]:
        """List all log files, oldest first."""
        if self.logs_path is None or not self.logs_path.exists():
            return []

        log_files = list(self.logs_path.glob(f"{LOG_FILE_PREFIX}-*{LOG_FILE_EXTENSION}"))
        log_files.extend(self.logs_path.glob(f"{LOG_FILE_PREFIX}-*{LOG_FILE_EXTENSION}.*"))
        return sorted(log_files)

    def cleanup_old_logs(self, keep_days: int = DEFAULT_BACKUP_COUNT) -> list[Path]:
        """Remove log files older than keep_days.

        Returns:
            List of paths to deleted files.
        """
        cutoff_date = datetime.now() - timedelta(days=keep_days)
        deleted_files = []

        for log_file in self.list_log_files():
            file_date = self._extract_date_from_filename(log_file)
            if file_date and file_date < cutoff_date:
                try:
                    log_file.unlink()
                    deleted_files.append(log_file)
                except OSError:
                    # Skip files that can't be deleted
                    pass

        return deleted_files

    @staticmethod
    def _extract_date_from_filename(log_file: Path) -> Optional[datetime]:
        """Extract the first YYYY-MM-DD date from a log filename."""
        matches = re.findall(r"(\d{4}-\d{2}-\d{2})", log_file.name)
        if matches:
            try:
                return datetime.strptime(matches[0], "%Y-%m-%d")
            except ValueError:
                return None
        return None
