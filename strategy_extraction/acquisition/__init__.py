"""Transcript acquisition: fallback chain, refusal detection and YouTube helpers."""

from strategy_extraction.acquisition.acquirer import (
    ACQUISITION_FAILED_REASON,
    AcquisitionFailure,
    AcquisitionOutcome,
    TranscriptAcquirer,
    TranscriptOnly,
    UnifiedSuccess,
)
from strategy_extraction.acquisition.refusal import (
    REFUSAL_PHRASES,
    TranscriptAssessment,
    TranscriptVerdict,
    assess_transcript,
    count_words,
)
from strategy_extraction.acquisition.unified import (
    UnifiedExtraction,
    parse_unified_response,
    run_unified_extraction,
)
from strategy_extraction.acquisition.youtube import (
    CaptionFetcher,
    CaptionResult,
    extract_video_id,
    fetch_video_title,
)

__all__ = [
    "ACQUISITION_FAILED_REASON",
    "AcquisitionFailure",
    "AcquisitionOutcome",
    "TranscriptAcquirer",
    "TranscriptOnly",
    "UnifiedSuccess",
    "REFUSAL_PHRASES",
    "TranscriptAssessment",
    "TranscriptVerdict",
    "assess_transcript",
    "count_words",
    "UnifiedExtraction",
    "parse_unified_response",
    "run_unified_extraction",
    "CaptionFetcher",
    "CaptionResult",
    "extract_video_id",
    "fetch_video_title",
]
