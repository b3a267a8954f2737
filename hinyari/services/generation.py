"""
Async client for the Gemini generateContent REST endpoint.
"""
from typing import Optional

import httpx

from hinyari.exceptions import GenerationError
from hinyari.utils.logger import get_logger


class GeminiClient:
    """
    Generates text with a Gemini model.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30,
        logger=None
    ):
        """
        Initialize Gemini client.

        Args:
            client: Shared HTTP client
            api_key: Google AI API key
            model: Model name
            base_url: API base URL
            timeout: Request timeout in seconds (generation is slower than the upstream fetches)
            logger: Logger instance
        """
        self.client = client
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or get_logger("hinyari.generation")

    async def generate(self, prompt: str) -> Optional[str]:
        """
        Generate text for a prompt.

        Args:
            prompt: Prompt text

        Returns:
            Generated text, or None if the model returned no text

        Raises:
            GenerationError: If the request fails
        """
        endpoint = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            response = await self.client.post(
                endpoint,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise GenerationError(f"Generation request failed: {e}") from e

        if response.status_code != 200:
            raise GenerationError(f"Generation API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Generation response is not valid JSON") from e

        text = self._extract_text(data)
        if not text:
            self.logger.warning(f"Model {self.model} returned no text")
            return None
        return text

    @staticmethod
    def _extract_text(data) -> str:
        """
        Join the text parts of the first candidate.

        Raises:
            GenerationError: If the response does not have the generateContent shape
        """
        if not isinstance(data, dict):
            raise GenerationError("Generation response has an unexpected shape")

        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise GenerationError("Generation response has an unexpected shape")
        if not candidates:
            return ""

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise GenerationError("Generation response has an unexpected shape")
        # Blocked candidates carry a finishReason and no content
        content = candidate.get("content") or {}
        parts = (content.get("parts") or []) if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GenerationError("Generation response has an unexpected shape")

        texts = [
            part["text"] for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        return "".join(texts).strip()
