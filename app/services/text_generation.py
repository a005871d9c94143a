"""
Gemini text generation client.

Sends one prompt to the Generative Language API over httpx and returns the
first candidate's text. Every transport problem surfaces as TextGenerationError;
interpreting the text is the caller's job (see parse_json_payload).
"""
import json
import logging
import re
from typing import Optional, Protocol

import httpx

from app.core.config import settings
from app.services.exceptions import TextGenerationError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
    ) -> str:
        ...


def parse_json_payload(text: str) -> dict:
    """Strip Markdown fences and decode a JSON object. Raises ValueError otherwise."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


class GeminiTextGenerator:
    def __init__(
        self,
        api_key: str = settings.GEMINI_API_KEY,
        model: str = settings.GEMINI_MODEL,
        base_url: str = settings.GEMINI_BASE_URL,
        timeout: float = settings.TEXT_GENERATION_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
    ) -> str:
        if not self.api_key:
            raise TextGenerationError("Gemini API key not configured")

        body: dict = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as exc:
            raise TextGenerationError(f"Gemini request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("Gemini API error: %d %s", resp.status_code, resp.text[:500])
            raise TextGenerationError(f"Gemini API error: {resp.status_code}")

        try:
            data = resp.json()
            candidates = data.get("candidates") or []
            if not candidates:
                raise TextGenerationError("No response from Gemini")
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(p.get("text", "") for p in parts)
        except (ValueError, AttributeError, TypeError) as exc:
            logger.error("Gemini returned a malformed body: %s", resp.text[:500])
            raise TextGenerationError(f"Malformed Gemini response: {exc}") from exc
