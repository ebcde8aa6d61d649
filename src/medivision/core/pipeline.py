# ============================================================================
# src/medivision/core/pipeline.py
# ============================================================================
"""
Reconciliation Pipeline

images -> extraction collaborator -> boundary parsing -> Reconciler
       -> InteractionAnalyzer -> ReviewSession (DRAFT)

- One analysis in flight at a time; a second call is rejected until the
  first resolves (success or failure)
- Caller-imposed timeouts on both collaborator calls
- No partial commit: any extraction problem raises ExtractionFailure and
  nothing is returned; the caller can retry with the same images
- Translation never blocks review; any failure yields None
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional, Sequence

from ..config import extraction_settings
from ..extraction.base import ExtractionClient, ImagePayload
from ..extraction.parsing import parse_extraction
from ..extraction.translation import TranslatedContent, build_translation_payload, parse_translation
from ..reconciliation.reconciler import Reconciler
from ..utils.exceptions import ExtractionFailure, InvalidStateTransition, TranslationMismatch, ValidationError
from ..utils.logging import LogContext
from ..utils.metrics import increment, time_operation
from ..validators.interaction_analyzer import InteractionAnalyzer
from .context.analysis import AnalysisResult
from .history_store import HistoryStore, InMemoryHistoryStore
from .workflow import ReviewSession

logger = logging.getLogger(__name__)


class ReconciliationPipeline:
    """
    Config options:
        extraction_timeout: seconds (default from settings)
        translation_timeout: seconds (default from settings)
        max_images: images accepted per analysis
    """

    def __init__(
        self,
        client: ExtractionClient,
        history_store: Optional[HistoryStore] = None,
        reconciler: Optional[Reconciler] = None,
        analyzer: Optional[InteractionAnalyzer] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.client = client
        self.history_store = history_store if history_store is not None else InMemoryHistoryStore()
        self.reconciler = reconciler or Reconciler()
        self.analyzer = analyzer or InteractionAnalyzer()

        self.config = config or {}
        self.extraction_timeout = self.config.get('extraction_timeout', extraction_settings.EXTRACTION_TIMEOUT)
        self.translation_timeout = self.config.get('translation_timeout', extraction_settings.TRANSLATION_TIMEOUT)
        self.max_images = self.config.get('max_images', extraction_settings.MAX_IMAGES_PER_REQUEST)

        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def analyze(self, images: Sequence[ImagePayload]) -> ReviewSession:
        """
        Run one analysis.

        Raises:
            InvalidStateTransition: another analysis is still running
            ValidationError: no images / too many images
            ExtractionFailure: collaborator failed, timed out or returned garbage
        """
        if self._in_flight:
            raise InvalidStateTransition(
                "An analysis is already in progress",
                current="ANALYZING",
                attempted="analyze",
            )

        images = list(images or [])
        if not images:
            raise ValidationError("At least one image is required", field_name="images")
        if len(images) > self.max_images:
            raise ValidationError(
                f"At most {self.max_images} images per analysis (got {len(images)})",
                field_name="images",
            )

        self._in_flight = True
        session_id = uuid.uuid4().hex
        try:
            with LogContext(logger, session_id=session_id):
                logger.info(f"Analyzing {len(images)} image(s)")

                text = await self._extract(images)
                candidates = parse_extraction(text)

                result = self.reconciler.reconcile(candidates)
                result.warnings = self.analyzer.analyze(result.medications)

                logger.info(
                    f"Analysis complete: {len(result.medications)} medications, "
                    f"{len(result.warnings)} warnings"
                )
                return ReviewSession(result, history_store=self.history_store, session_id=session_id)

        except ExtractionFailure as e:
            increment("extraction.failures")
            logger.error(f"Analysis failed: {e}")
            raise
        finally:
            self._in_flight = False

    async def _extract(self, images: Sequence[ImagePayload]) -> str:
        try:
            with time_operation("extraction.duration"):
                return await asyncio.wait_for(
                    self.client.extract(images),
                    timeout=self.extraction_timeout,
                )
        except asyncio.TimeoutError as e:
            raise ExtractionFailure(
                f"Extraction timed out after {self.extraction_timeout}s"
            ) from e
        except ExtractionFailure:
            raise
        except Exception as e:
            raise ExtractionFailure(f"Extraction service error: {e}") from e

    async def translate(self, result: AnalysisResult, language: str) -> Optional[TranslatedContent]:
        """Translated content, or None to keep the original language."""
        if not language or not language.strip():
            raise ValidationError("Target language is required", field_name="language")
        language = language.strip()

        payload = build_translation_payload(result)
        try:
            text = await asyncio.wait_for(
                self.client.translate(payload, language),
                timeout=self.translation_timeout,
            )
            return parse_translation(text, result, language)

        except TranslationMismatch as e:
            increment("translation.mismatches")
            logger.warning(f"Discarding {language} translation: {e}")
            return None
        except Exception as e:
            increment("translation.failures")
            logger.warning(f"Translation to {language} failed, keeping original: {e}")
            return None

    async def health(self) -> Dict[str, Any]:
        return await self.client.health_check()

    async def close(self) -> None:
        await self.client.close()
