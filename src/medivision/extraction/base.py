# ============================================================================
# src/medivision/extraction/base.py
# ============================================================================
"""
Extraction Collaborator Interface

The vision/translation backend is a black box to the core:
- extract(images) -> raw response text (AnalysisResult-shaped JSON)
- translate(payload, language) -> raw response text

It may time out, fail, or return malformed JSON; parsing and validation
live in extraction.parsing / extraction.translation, never here.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif", "image/heic")


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = "image/jpeg"


class ExtractionClient(ABC):
    """
    Base class for extraction backends.

    Implementations must be safe to call again after a failure; the
    pipeline retries with the same images.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def extract(self, images: Sequence[ImagePayload]) -> str:
        """Read medications from images; returns the raw model response."""
        pass

    @abstractmethod
    async def translate(self, payload: Dict[str, Any], language: str) -> str:
        """Translate medications, warnings and labels; returns the raw model response."""
        pass

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "model": self.model_name, "details": "no health check"}

    async def close(self) -> None:
        pass
