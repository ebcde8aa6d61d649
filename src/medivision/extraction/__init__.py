# src/medivision/extraction/__init__.py

from .base import ExtractionClient, ImagePayload, ALLOWED_MIME_TYPES
from .ollama_client import OllamaVisionClient
from .parsing import MedicationPayload, load_json_object, parse_extraction
from .translation import (
    TranslatedContent,
    build_translation_payload,
    parse_translation,
)

__all__ = [
    "ExtractionClient",
    "ImagePayload",
    "ALLOWED_MIME_TYPES",
    "OllamaVisionClient",
    "MedicationPayload",
    "load_json_object",
    "parse_extraction",
    "TranslatedContent",
    "build_translation_payload",
    "parse_translation",
]
