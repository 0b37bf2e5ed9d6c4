"""
OpenAI chat-completions client - remote fallback when local mode is off
"""

import logging
from typing import Optional

import httpx

from monkeyai.common.errors import ConfigurationError, RequestFailure

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.openai.com/v1"


class OpenAIClient:
    """Minimal OpenAI chat client authenticated with a bearer API key"""

    def __init__(self, api_key: Optional[str], endpoint: str = DEFAULT_ENDPOINT, timeout: float = 60.0):
        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    async def chat(self, model: str, system: str, user: str, max_tokens: int = 150) -> str:
        """
        Run one chat completion

        Raises:
            ConfigurationError: No API key configured
            RequestFailure: Transport error or unexpected response
        """
        if not self.api_key:
            raise ConfigurationError("Please set your API key in settings (MonkeyAI: API Key)")

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.endpoint}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise RequestFailure(f"API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise RequestFailure("Failed to parse API response") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            logger.debug(f"Unexpected API response (HTTP {response.status_code}): {data}")
            raise RequestFailure("Invalid API response")

        try:
            return choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise RequestFailure("Invalid API response") from e
