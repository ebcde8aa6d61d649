# ============================================================================
# src/medivision/extraction/ollama_client.py
# ============================================================================
"""
Ollama Vision Client

Sends label/document photos to a local vision model served by Ollama.
Images never leave the machine.

Setup:
    1. Install Ollama: https://ollama.ai
    2. Pull a vision model: ollama pull qwen2.5vl:7b
    3. Start server: ollama serve
"""

import asyncio
import base64
from typing import Any, Dict, Optional, Sequence

import aiohttp

from ..config import extraction_settings
from .base import ExtractionClient, ImagePayload
from .prompts import EXTRACTION_PROMPT, build_translation_prompt


class OllamaVisionClient(ExtractionClient):
    """
    Config options:
        ollama_host: Ollama server URL
        vision_model: Model name
        temperature: Sampling temperature
        max_tokens: Max tokens to generate (default: 4096)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        self.host = self.config.get('ollama_host', extraction_settings.OLLAMA_HOST).rstrip('/')
        self._model_name = self.config.get('vision_model', extraction_settings.VISION_MODEL)
        self.temperature = self.config.get('temperature', extraction_settings.EXTRACTION_TEMPERATURE)
        self.max_tokens = self.config.get('max_tokens', 4096)

        # HTTP session (created lazily, tied to event loop)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

        self.logger.info(f"Initialized Ollama vision client: {self.host} / {self._model_name}")

    @property
    def model_name(self) -> str:
        return self._model_name

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for the current event loop."""
        current_loop = asyncio.get_running_loop()

        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is not current_loop
        )

        if needs_new_session:
            if self._session is not None and not self._session.closed:
                await self._session.close()

            # Overall deadline is imposed by the pipeline (asyncio.wait_for)
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=600)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = current_loop

        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def health_check(self) -> Dict[str, Any]:
        """Check the server is up and the model is pulled."""
        try:
            session = await self._get_session()
            async with session.get(f"{self.host}/api/tags") as response:
                if response.status != 200:
                    return {
                        "healthy": False,
                        "model": self._model_name,
                        "details": f"Ollama server returned status {response.status}",
                    }
                data = await response.json()

            models = [m.get('name', '') for m in data.get('models', [])]
            if not any(self._model_name in m for m in models):
                return {
                    "healthy": False,
                    "model": self._model_name,
                    "details": f"Model not found. Run: ollama pull {self._model_name}",
                }
            return {"healthy": True, "model": self._model_name, "details": "Ollama server running and model available"}

        except aiohttp.ClientConnectorError:
            return {
                "healthy": False,
                "model": self._model_name,
                "details": f"Cannot connect to Ollama at {self.host}. Try: ollama serve",
            }
        except aiohttp.ClientError as e:
            return {"healthy": False, "model": self._model_name, "details": f"Health check failed: {e}"}

    async def extract(self, images: Sequence[ImagePayload]) -> str:
        encoded = [base64.b64encode(image.data).decode("ascii") for image in images]
        self.logger.info(f"Sending {len(encoded)} image(s) to {self._model_name}")
        return await self._generate(EXTRACTION_PROMPT, images=encoded)

    async def translate(self, payload: Dict[str, Any], language: str) -> str:
        self.logger.info(f"Requesting translation to {language}")
        return await self._generate(build_translation_prompt(payload, language))

    async def _generate(self, prompt: str, images: Optional[list] = None) -> str:
        request = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {
                "num_predict": self.max_tokens,
                "temperature": self.temperature,
            },
        }
        if images:
            request["images"] = images

        try:
            session = await self._get_session()
            async with session.post(f"{self.host}/api/generate", json=request) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise RuntimeError(f"Ollama error ({response.status}): {error_text}")
                data = await response.json()

        except aiohttp.ClientConnectorError:
            raise ConnectionError(
                f"Cannot connect to Ollama at {self.host}. "
                "Make sure Ollama is running: ollama serve"
            )

        text = data.get('response', '')
        self.logger.debug(
            f"Ollama returned {data.get('eval_count', 0)} tokens "
            f"in {data.get('total_duration', 0) / 1e9:.2f}s"
        )
        return text.strip()
