"""Tests for refusal and non-transcript detection."""

from strategy_extraction.acquisition.refusal import (
    TranscriptVerdict,
    assess_transcript,
    count_words,
    find_refusal_phrase,
)

LONG_TEXT = " ".join(["price sweeps the lows and then displaces upward"] * 10)


class TestAssessTranscript:
    """Tests for assess_transcript."""

    def test_valid(self):
        """Test a long, clean transcript is accepted."""
        assessment = assess_transcript(LONG_TEXT)

        assert assessment.verdict == TranscriptVerdict.VALID
        assert assessment.is_valid
        assert assessment.word_count == 80

    def test_sentinel_is_explicit_refusal(self):
        """Test the requested sentinel token is an explicit refusal."""
        assessment = assess_transcript("CANNOT_ACCESS_VIDEO")

        assert assessment.verdict == TranscriptVerdict.EXPLICIT_REFUSAL
        assert assessment.matched == "CANNOT_ACCESS_VIDEO"

    def test_grounding_sentinel(self):
        """Test the grounding sentinel is an explicit refusal."""
        assert assess_transcript("GROUNDING_UNAVAILABLE").verdict == TranscriptVerdict.EXPLICIT_REFUSAL

    def test_sentinel_checked_before_length(self):
        """Test a long answer containing the sentinel is still a refusal."""
        assessment = assess_transcript(LONG_TEXT + " CANNOT_ACCESS_VIDEO")

        assert assessment.verdict == TranscriptVerdict.EXPLICIT_REFUSAL

    def test_phrase_is_implicit_refusal(self):
        """Test a known refusal phrasing is caught even in a long answer."""
        text = "I'm unable to access external websites or videos. " + LONG_TEXT

        assessment = assess_transcript(text)

        assert assessment.verdict == TranscriptVerdict.IMPLICIT_REFUSAL
        assert assessment.matched == "I'm unable to access"

    def test_phrase_match_is_case_sensitive(self):
        """Test phrases match case-sensitively."""
        text = "I CANNOT WATCH the market all day. " + LONG_TEXT

        assert assess_transcript(text).is_valid

    def test_too_short_by_chars(self):
        """Test answers under the character floor are rejected."""
        assert assess_transcript("Buy low, sell high.").verdict == TranscriptVerdict.TOO_SHORT

    def test_too_short_by_words(self):
        """Test answers under the word floor are rejected."""
        text = " ".join(["supercalifragilistic"] * 20)

        assessment = assess_transcript(text)

        assert len(text) > 100
        assert assessment.verdict == TranscriptVerdict.TOO_SHORT

    def test_custom_floors(self):
        """Test floors are configurable."""
        assert assess_transcript("one two three", min_chars=5, min_words=3).is_valid

    def test_describe(self):
        """Test every verdict has a description."""
        assert "sentinel" in assess_transcript("CANNOT_ACCESS_VIDEO").describe()
        assert "words" in assess_transcript("short").describe()


class TestHelpers:
    """Tests for helper functions."""

    def test_count_words(self):
        assert count_words("one  two\nthree") == 3
        assert count_words("") == 0

    def test_find_refusal_phrase(self):
        assert find_refusal_phrase("Sorry, I cannot watch videos") == "I cannot watch"
        assert find_refusal_phrase("Enter on the retest") is None
