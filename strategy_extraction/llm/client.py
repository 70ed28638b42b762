"""
Completion-service client for the extraction pipeline.

The pipeline treats the AI service as a black box `complete(prompt) -> text`.
This module provides:
- A thin HTTP adapter for an OpenAI-style chat-completions gateway
  ({model, messages, temperature} -> {choices: [{message: {content}}]})
- Structured errors for rate limiting, exhausted credits and outages
- `extract_json_object`, the shared JSON-from-prose parser

There is deliberately no retry: a 429 or 402 is surfaced immediately.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from strategy_extraction.core.config import Config
from strategy_extraction.core.errors import (
    ParseFailure,
    UpstreamBillingExhausted,
    UpstreamRateLimited,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\n?|\n?```")


@dataclass
class CompletionResponse:
    """Response from one completion call."""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    latency_ms: int = 0


class CompletionClient:
    """
    HTTP adapter for the chat-completions gateway.

    Anything with a compatible `complete()` method can stand in for this class,
    which is how tests script model behaviour.
    """

    def __init__(
        self,
        api_key: str,
        gateway_url: str,
        default_timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Bearer token for the gateway.
            gateway_url: Full chat-completions URL.
            default_timeout: Timeout used when a call does not pass one.
            session: Optional requests session. Without one every call opens its
                own connection, so concurrent requests share no state.
        """
        self.api_key = api_key
        self.gateway_url = gateway_url
        self.default_timeout = default_timeout
        self._session = session

    @classmethod
    def from_config(cls, config: Config) -> "CompletionClient":
        """Build a client from configuration, failing fast without a key."""
        return cls(
            api_key=config.require_api_key(),
            gateway_url=config.api.gateway_url,
            default_timeout=config.api.request_timeout,
        )

    def complete(
        self,
        prompt: str,
        model: str,
        temperature: float = 0.2,
        system: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Send one prompt and return the text of the first choice.

        Raises:
            UpstreamRateLimited: HTTP 429.
            UpstreamBillingExhausted: HTTP 402.
            UpstreamUnavailable: Any other failure, including timeouts.
        """
        return self.generate(prompt, model, temperature, system, timeout).content

    def generate(
        self,
        prompt: str,
        model: str,
        temperature: float = 0.2,
        system: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CompletionResponse:
        """Like complete() but returns the full CompletionResponse."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        post = self._session.post if self._session is not None else requests.post
        started = time.monotonic()
        try:
            response = post(
                self.gateway_url,
                json=payload,
                headers=headers,
                timeout=timeout or self.default_timeout,
            )
        except requests.Timeout as e:
            raise UpstreamUnavailable(f"Completion request timed out: {e}") from e
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Completion request failed: {e}") from e

        latency_ms = int((time.monotonic() - started) * 1000)

        if response.status_code == 429:
            raise UpstreamRateLimited(
                "Rate limit exceeded. Please try again later.", status_code=429
            )
        if response.status_code == 402:
            raise UpstreamBillingExhausted(
                "AI credits exhausted. Please add funds.", status_code=402
            )
        if not response.ok:
            logger.error(
                "Completion API error %s: %s", response.status_code, response.text[:500]
            )
            raise UpstreamUnavailable(
                f"AI request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailable("Completion API returned a non-JSON body") from e

        content = _first_choice_content(body)
        logger.info(
            "Completion from %s: %d chars in %d ms", model, len(content), latency_ms
        )

        return CompletionResponse(
            content=content,
            model=body.get("model", model),
            usage=body.get("usage"),
            latency_ms=latency_ms,
        )


def _first_choice_content(body: Dict[str, Any]) -> str:
    """Return choices[0].message.content, or an empty string if absent."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    # Content-part lists and other shapes carry no usable text
    return content if isinstance(content, str) else ""


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of model output.

    Handles raw JSON, JSON wrapped in markdown code fences, and JSON embedded
    in prose (outermost `{...}` span).

    Raises:
        ParseFailure: If no JSON object can be recovered.
    """
    if not text or not text.strip():
        raise ParseFailure("Empty model response", raw_response=text)

    cleaned = _FENCE_PATTERN.sub("", text).strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ParseFailure("No JSON object found in model response", raw_response=text[:500])

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Failed to parse model response: {e}", raw_response=text[:500]) from e

    if not isinstance(parsed, dict):
        raise ParseFailure("Model response JSON is not an object", raw_response=text[:500])

    return parsed
