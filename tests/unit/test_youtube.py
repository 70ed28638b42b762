"""Tests for YouTube helpers."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from youtube_transcript_api import TranscriptsDisabled

from strategy_extraction.acquisition import youtube
from strategy_extraction.acquisition.youtube import (
    CaptionFetcher,
    extract_video_id,
    fetch_video_title,
)
from strategy_extraction.core.errors import InputError, UpstreamUnavailable

VIDEO_ID = "dQw4w9WgXcQ"


class TestExtractVideoId:
    """Tests for extract_video_id."""

    @pytest.mark.parametrize("url", [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://youtube.com/watch?feature=share&v={VIDEO_ID}&t=42",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}?si=abc",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube.com/shorts/{VIDEO_ID}",
        f"https://www.youtube.com/live/{VIDEO_ID}",
        f"https://m.youtube.com/watch?v={VIDEO_ID}",
        VIDEO_ID,
    ])
    def test_supported_shapes(self, url):
        """Test every supported URL shape yields the id."""
        assert extract_video_id(url) == VIDEO_ID

    @pytest.mark.parametrize("url", [
        "https://vimeo.com/123456",
        "https://www.youtube.com/watch?v=short",
        "",
        "not a url",
    ])
    def test_rejects_unrecognised(self, url):
        """Test URLs without an 11-character id raise InputError."""
        with pytest.raises(InputError):
            extract_video_id(url)


class TestFetchVideoTitle:
    """Tests for the oEmbed title lookup."""

    def test_title(self, monkeypatch):
        """Test the title is read from oEmbed."""
        response = MagicMock(ok=True)
        response.json.return_value = {"title": "Order Blocks Explained"}
        get = MagicMock(return_value=response)
        monkeypatch.setattr(youtube.requests, "get", get)

        assert fetch_video_title(VIDEO_ID) == "Order Blocks Explained"
        assert get.call_args.kwargs["params"]["url"].endswith(VIDEO_ID)

    def test_http_error(self, monkeypatch):
        """Test a non-2xx answer yields None."""
        monkeypatch.setattr(youtube.requests, "get", MagicMock(return_value=MagicMock(ok=False, status_code=404)))

        assert fetch_video_title(VIDEO_ID) is None

    def test_network_error(self, monkeypatch):
        """Test network failures are swallowed into None."""
        monkeypatch.setattr(youtube.requests, "get", MagicMock(side_effect=requests.ConnectionError("down")))

        assert fetch_video_title(VIDEO_ID) is None


def _fetched(texts, is_generated=False):
    return SimpleNamespace(
        snippets=[SimpleNamespace(text=t, start=i * 2.0, duration=2.0) for i, t in enumerate(texts)],
        is_generated=is_generated,
        language_code="en",
    )


class TestCaptionFetcher:
    """Tests for CaptionFetcher."""

    def test_joins_snippets(self):
        """Test snippets are joined into one transcript."""
        api = MagicMock()
        api.fetch.return_value = _fetched(["wait for the\nsweep", "", "then enter"], is_generated=True)
        fetcher = CaptionFetcher(languages=["en", "de"], api=api)

        result = fetcher.fetch(VIDEO_ID, video_title="Title")

        assert result.transcript == "wait for the sweep then enter"
        assert result.is_auto_generated is True
        assert result.video_title == "Title"
        api.fetch.assert_called_once_with(VIDEO_ID, languages=["en", "de"])

    def test_looks_up_title_when_missing(self, monkeypatch):
        """Test the title is fetched when not supplied."""
        api = MagicMock()
        api.fetch.return_value = _fetched(["text"])
        monkeypatch.setattr(youtube, "fetch_video_title", lambda video_id, timeout: "Looked Up")

        result = CaptionFetcher(api=api).fetch(VIDEO_ID)

        assert result.video_title == "Looked Up"
        assert result.is_auto_generated is False

    def test_disabled_captions(self):
        """Test missing captions raise UpstreamUnavailable."""
        api = MagicMock()
        api.fetch.side_effect = TranscriptsDisabled(VIDEO_ID)

        with pytest.raises(UpstreamUnavailable, match="TranscriptsDisabled"):
            CaptionFetcher(api=api).fetch(VIDEO_ID, video_title="t")

    def test_network_error(self):
        """Test transport errors raise UpstreamUnavailable."""
        api = MagicMock()
        api.fetch.side_effect = requests.ConnectionError("reset")

        with pytest.raises(UpstreamUnavailable):
            CaptionFetcher(api=api).fetch(VIDEO_ID, video_title="t")

    def test_empty_track(self):
        """Test a track with no text raises UpstreamUnavailable."""
        api = MagicMock()
        api.fetch.return_value = _fetched(["", "  "])

        with pytest.raises(UpstreamUnavailable, match="empty"):
            CaptionFetcher(api=api).fetch(VIDEO_ID, video_title="t")
