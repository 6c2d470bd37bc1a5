"""
Text-generation capability behind the AI insight endpoint.

The endpoint forwards a prompt and returns the generated text unchanged.
InsightGenerator is the seam; GeminiInsightGenerator is the concrete client
for the Generative Language REST API (``models/{model}:generateContent``).

CHANGELOG:
- 2026-10-19: Malformed response parts raise InsightUnavailable
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from powerwatch.exceptions import InsightUnavailable

logger = logging.getLogger(__name__)


class InsightGenerator(Protocol):
    """Turns a prompt into generated text."""

    async def generate(self, prompt: str) -> str: ...


class GeminiInsightGenerator:
    """Generative Language API client.

    Args:
        api_key: API key sent as the ``key`` query parameter.
        model: Model name, e.g. ``gemini-pro``.
        base_url: API root, without trailing slash.
        timeout_s: Upper bound on a single call.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self._timeout_s = timeout_s

    async def generate(self, prompt: str) -> str:
        """Return the model's text answer to *prompt*.

        Raises:
            InsightUnavailable: On network error, non-200 status, or a
                response without any text candidate.
        """
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, verify=True) as client:
                response = await client.post(
                    self._url, json=body, params={"key": self._api_key}
                )
        except httpx.HTTPError as exc:
            logger.warning("Insight request failed (network error): %s", exc)
            raise InsightUnavailable("Text generation service unreachable") from exc

        if response.status_code != 200:
            logger.warning("Insight request failed (HTTP %d)", response.status_code)
            raise InsightUnavailable(
                f"Text generation service returned HTTP {response.status_code}"
            )

        try:
            candidates = response.json().get("candidates") or []
            parts = candidates[0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (ValueError, AttributeError, LookupError, TypeError) as exc:
            raise InsightUnavailable(
                "Text generation response had no usable text candidate"
            ) from exc
