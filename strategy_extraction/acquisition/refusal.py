"""Detection of model refusals and non-transcripts.

Models asked to transcribe a video often answer with a confident-sounding
refusal, or with a generic essay, instead of the requested sentinel token.
Every AI-backed acquisition stage runs its output through `assess_transcript`
so the phrase list and length floors live in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from strategy_extraction.prompts.builder import (
    CANNOT_ACCESS_SENTINEL,
    GROUNDING_UNAVAILABLE_SENTINEL,
)

# Default floors for anything presented as a transcript
MIN_RESPONSE_CHARS = 100
MIN_TRANSCRIPT_WORDS = 50

SENTINELS = (CANNOT_ACCESS_SENTINEL, GROUNDING_UNAVAILABLE_SENTINEL)

# Known refusal phrasings. Matched case-sensitively as substrings.
REFUSAL_PHRASES = (
    "I cannot access",
    "I'm unable to access",
    "I am unable to access",
    "I don't have the ability to access",
    "I cannot watch",
    "I'm not able to watch",
    "I cannot view",
    "cannot directly access",
    "don't have access to",
    "I don't have access",
    "cannot access",
    "unable to access",
    "unable to transcribe",
    "cannot transcribe",
)


class TranscriptVerdict(str, Enum):
    """How a candidate transcript was judged."""

    VALID = "valid"
    EXPLICIT_REFUSAL = "explicit_refusal"
    IMPLICIT_REFUSAL = "implicit_refusal"
    TOO_SHORT = "too_short"


@dataclass
class TranscriptAssessment:
    """Verdict plus the evidence behind it."""

    verdict: TranscriptVerdict
    word_count: int
    matched: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.verdict == TranscriptVerdict.VALID

    def describe(self) -> str:
        if self.verdict == TranscriptVerdict.EXPLICIT_REFUSAL:
            return f"Model returned refusal sentinel {self.matched}"
        if self.verdict == TranscriptVerdict.IMPLICIT_REFUSAL:
            return f"Model response reads as a refusal ('{self.matched}')"
        if self.verdict == TranscriptVerdict.TOO_SHORT:
            return f"Response too short to be a transcript ({self.word_count} words)"
        return f"Transcript accepted ({self.word_count} words)"


def count_words(text: str) -> int:
    """Whitespace word count."""
    return len(text.split()) if text else 0


def find_refusal_phrase(text: str, phrases: Iterable[str] = REFUSAL_PHRASES) -> Optional[str]:
    """Return the first known refusal phrase contained in text."""
    for phrase in phrases:
        if phrase in text:
            return phrase
    return None


def assess_transcript(
    text: str,
    min_chars: int = MIN_RESPONSE_CHARS,
    min_words: int = MIN_TRANSCRIPT_WORDS,
    sentinels: Iterable[str] = SENTINELS,
    phrases: Iterable[str] = REFUSAL_PHRASES,
) -> TranscriptAssessment:
    """
    Judge whether model output is a usable transcript.

    Checks run in order: sentinel token, refusal phrase, length floors.
    """
    text = text or ""
    words = count_words(text)

    for sentinel in sentinels:
        if sentinel in text:
            return TranscriptAssessment(TranscriptVerdict.EXPLICIT_REFUSAL, words, sentinel)

    phrase = find_refusal_phrase(text, phrases)
    if phrase is not None:
        return TranscriptAssessment(TranscriptVerdict.IMPLICIT_REFUSAL, words, phrase)

    if len(text.strip()) < min_chars or words < min_words:
        return TranscriptAssessment(TranscriptVerdict.TOO_SHORT, words)

    return TranscriptAssessment(TranscriptVerdict.VALID, words)
