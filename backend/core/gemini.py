"""
core/gemini.py
──────────────
Minimal async client for the Google Gemini ``generateContent`` REST API.

This is the ONLY module that talks to the hosted LLM.  News translation
(:mod:`data_engine.translator`) and market commentary
(:mod:`analytics.commentary`) both go through :class:`GeminiClient`.

Usage
-----
    client = GeminiClient(api_key, model="gemini-2.0-flash")
    text = await client.generate("Summarise today's market in one line.")
"""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Substrings Gemini uses when the key is wrong or lacks access.
_INVALID_KEY_MARKERS = (
    "API key not valid",
    "API key is invalid",
    "permission_denied",
    "PERMISSION_DENIED",
)


class GeminiError(Exception):
    """A Gemini request failed or returned an unusable payload."""


class MissingApiKeyError(GeminiError):
    """No API key was configured or supplied."""


class InvalidApiKeyError(GeminiError):
    """Gemini rejected the API key."""


class GeminiClient:
    """
    Thin ``httpx`` wrapper around ``models/{model}:generateContent``.

    Args:
        api_key:   Gemini API key.
        model:     Model name, e.g. ``"gemini-2.0-flash"``.
        timeout:   Request timeout in seconds.
        transport: Optional ``httpx`` transport; tests pass a
                   ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{GEMINI_BASE_URL}/models/{self.model}:generateContent"

    async def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """
        Send a single-turn prompt and return the first candidate's text.

        Args:
            prompt:            User prompt.
            temperature:       Optional sampling temperature.
            max_output_tokens: Optional output cap.

        Returns:
            Generated text.

        Raises:
            MissingApiKeyError: No key configured.
            InvalidApiKeyError: Gemini rejected the key.
            GeminiError:        Transport failure, non-200 reply, or a
                                payload without candidate text.
        """
        if not self.api_key:
            raise MissingApiKeyError("Gemini API key is missing")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        generation_config: Dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_output_tokens is not None:
            generation_config["maxOutputTokens"] = max_output_tokens
        if generation_config:
            payload["generationConfig"] = generation_config

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self.url, params={"key": self.api_key}, json=payload
                )
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise GeminiError(f"Gemini request failed: {exc}") from exc

        if resp.status_code != 200:
            detail = resp.text
            if any(marker in detail for marker in _INVALID_KEY_MARKERS):
                raise InvalidApiKeyError("Gemini rejected the API key")
            logger.error("Gemini returned %d: %s", resp.status_code, detail[:200])
            raise GeminiError(f"LLM error ({resp.status_code}): {detail}")

        try:
            text = resp.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise GeminiError("Gemini response contained no text") from exc

        logger.debug("Gemini %s returned %d chars", self.model, len(text))
        return text
