"""
YouTube helpers: video-id parsing, title lookup and caption retrieval.

Captions come from youtube-transcript-api (no API key required). The title
comes from the public oEmbed endpoint. Neither path involves the completion
service.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import requests
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from strategy_extraction.core.errors import InputError, UpstreamUnavailable

logger = logging.getLogger(__name__)

OEMBED_URL = "https://www.youtube.com/oembed"

DEFAULT_VIDEO_TITLE = "Trading Strategy Video"

_VIDEO_ID_PATTERN = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/|live/|v/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{11})"
)
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(url: str) -> str:
    """
    Pull the 11-character video id out of a YouTube URL.

    Raises:
        InputError: If the URL has no recognisable video id.
    """
    candidate = (url or "").strip()
    match = _VIDEO_ID_PATTERN.search(candidate)
    if match:
        return match.group(1)
    if _BARE_ID_PATTERN.match(candidate):
        return candidate
    raise InputError(f"Not a recognisable YouTube video URL: {url!r}")


def canonical_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def fetch_video_title(video_id: str, timeout: float = 10.0) -> Optional[str]:
    """Best-effort title lookup via oEmbed. Returns None on any failure."""
    try:
        response = requests.get(
            OEMBED_URL,
            params={"url": canonical_url(video_id), "format": "json"},
            timeout=timeout,
        )
        if not response.ok:
            logger.info("oEmbed lookup for %s returned %s", video_id, response.status_code)
            return None
        title = response.json().get("title")
        return title or None
    except (requests.RequestException, ValueError) as e:
        logger.info("Could not fetch video info for %s: %s", video_id, e)
        return None


@dataclass
class CaptionResult:
    """Captions fetched for a video."""
    transcript: str
    video_title: Optional[str]
    is_auto_generated: bool
    language: Optional[str] = None


class CaptionFetcher:
    """
    Fetches publicly available captions for a video.

    The platform's own flag decides is_auto_generated; machine captions lower
    the final confidence downstream.
    """

    def __init__(
        self,
        languages: Sequence[str] = ("en",),
        metadata_timeout: float = 10.0,
        api: Optional[YouTubeTranscriptApi] = None,
    ):
        self.languages = list(languages)
        self.metadata_timeout = metadata_timeout
        self._api = api or YouTubeTranscriptApi()

    def fetch(self, video_id: str, video_title: Optional[str] = None) -> CaptionResult:
        """
        Fetch and join the caption track for a video.

        Raises:
            UpstreamUnavailable: If no captions can be retrieved.
        """
        try:
            fetched = self._api.fetch(video_id, languages=self.languages)
        except CouldNotRetrieveTranscript as e:
            raise UpstreamUnavailable(f"Captions unavailable: {type(e).__name__}") from e
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Caption request failed: {e}") from e

        text = " ".join(
            snippet.text.replace("\n", " ").strip()
            for snippet in fetched.snippets
            if snippet.text and snippet.text.strip()
        )
        if not text:
            raise UpstreamUnavailable("Caption track is empty")

        if video_title is None:
            video_title = fetch_video_title(video_id, timeout=self.metadata_timeout)

        logger.info(
            "Fetched %s captions for %s (%d chars, auto-generated=%s)",
            fetched.language_code, video_id, len(text), fetched.is_generated,
        )
        return CaptionResult(
            transcript=text,
            video_title=video_title,
            is_auto_generated=bool(fetched.is_generated),
            language=fetched.language_code,
        )
