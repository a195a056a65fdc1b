"""Async client for the Gemini generateContent REST API."""
import logging
from typing import Any, Dict, Optional

import httpx

from lexilearn.config import settings
from lexilearn.exceptions import GenerationError


logger = logging.getLogger(__name__)


class GeminiClient:
    """Send a prompt, get the first candidate's text back."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or settings.gemini.api_key
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not configured")
        self.model = model or settings.gemini.model
        root = (base_url or settings.gemini.base_url).rstrip("/")
        self.url = f"{root}/{self.model}:generateContent"
        self._client = httpx.AsyncClient(timeout=timeout or settings.gemini.timeout, transport=transport)

    async def generate(self, prompt: str, *, json_output: bool = True) -> str:
        """Return the model's reply to ``prompt``.

        Raises GenerationError on transport errors, HTTP errors, or a reply
        without text.
        """
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if json_output:
            payload["generationConfig"] = {"responseMimeType": "application/json"}

        try:
            response = await self._client.post(
                self.url,
                params={"key": self.api_key},
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini returned HTTP {e.response.status_code}")
            raise GenerationError(f"Language model request failed with status {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Gemini request failed: {e}")
            raise GenerationError(f"Language model request failed: {e}") from e

        try:
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected Gemini response: {response.text[:200]}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
