"""Prompt builders for the completion stages."""

from strategy_extraction.prompts.builder import (
    CANNOT_ACCESS_SENTINEL,
    GROUNDING_UNAVAILABLE_SENTINEL,
    CONCEPT_VOCABULARY,
    METHODOLOGY_TAXONOMY,
    build_methodology_prompt,
    build_extraction_prompt,
    build_unified_prompt,
    build_transcription_prompt,
    build_grounding_prompt,
)

__all__ = [
    "CANNOT_ACCESS_SENTINEL",
    "GROUNDING_UNAVAILABLE_SENTINEL",
    "CONCEPT_VOCABULARY",
    "METHODOLOGY_TAXONOMY",
    "build_methodology_prompt",
    "build_extraction_prompt",
    "build_unified_prompt",
    "build_transcription_prompt",
    "build_grounding_prompt",
]
