"""
Completion-service module for the extraction pipeline.

Provides the HTTP adapter for the AI gateway and the JSON-from-prose parser.
"""

from strategy_extraction.llm.client import (
    CompletionClient,
    CompletionResponse,
    extract_json_object,
)

__all__ = ["CompletionClient", "CompletionResponse", "extract_json_object"]
