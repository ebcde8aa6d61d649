# ============================================================================
# src/medivision/config/extraction_config.py
# ============================================================================
"""
Extraction / Translation Collaborator Settings
- Vision model endpoint
- Caller-imposed timeouts
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ExtractionSettings(BaseSettings):
    OLLAMA_HOST: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )
    VISION_MODEL: str = Field(
        default="qwen2.5vl:7b",
        description="Vision-capable model used to read labels and discharge documents"
    )
    EXTRACTION_TIMEOUT: float = Field(
        default=180.0,
        gt=0,
        description="Seconds before an extraction call is abandoned and reported as a failure"
    )
    TRANSLATION_TIMEOUT: float = Field(
        default=120.0,
        gt=0,
        description="Seconds before a translation call is abandoned (falls back to original language)"
    )
    EXTRACTION_TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0, le=2.0,
        description="Sampling temperature - kept low for factual extraction"
    )
    MAX_IMAGES_PER_REQUEST: int = Field(
        default=10,
        ge=1,
        description="Upper bound on images sent in a single analysis run"
    )


extraction_settings = ExtractionSettings()
