"""
Ollama generation client - POST /api/generate
"""

import logging

import httpx

from monkeyai.common.errors import RequestFailure
from monkeyai.providers.ollama_supervisor import DEFAULT_PORT

logger = logging.getLogger(__name__)


class OllamaClient:
    """Non-streaming client for the local Ollama generate endpoint"""

    def __init__(self, host: str = "localhost", port: int = DEFAULT_PORT, timeout: float = 120.0):
        self.endpoint = f"http://{host}:{port}"
        self.timeout = timeout

    async def generate(
        self,
        model: str,
        prompt: str,
        temperature: float = 0.7,
        top_p: float = 0.9,
        num_predict: int = 300,
    ) -> str:
        """
        Generate a completion

        Returns:
            str: The `response` field, stripped

        Raises:
            RequestFailure: Transport error, unparsable body or missing field
        """
        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "top_p": top_p,
                "num_predict": num_predict,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.endpoint}/api/generate", json=payload)
        except httpx.HTTPError as e:
            raise RequestFailure(f"Ollama request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise RequestFailure("Failed to parse Ollama response") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not text:
            logger.debug(f"Unexpected Ollama response (HTTP {response.status_code}): {data}")
            raise RequestFailure("Invalid Ollama response")

        return text.strip()
