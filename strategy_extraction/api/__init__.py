"""HTTP interface."""

from strategy_extraction.api.app import create_app

__all__ = ["create_app"]
