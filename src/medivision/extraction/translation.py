# ============================================================================
# src/medivision/extraction/translation.py
# ============================================================================
"""
Translation Verification

The translation collaborator returns medications, warnings and report
labels in another language. Its output is only accepted when the
medication id set is exactly the source's; otherwise TranslationMismatch
is raised and the caller keeps the original language.

Only human-readable text is taken from the translation. Ids, source,
category, schedule and warning references always come from the source.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from ..core.context.analysis import AnalysisResult, MedicationWarning
from ..core.context.medication import Medication
from ..report.report_builder import ReportLabels
from ..utils.exceptions import TranslationMismatch
from .parsing import load_json_object

logger = logging.getLogger(__name__)


class TranslatedMedicationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    instructions: Optional[str] = None
    reasoning: Optional[str] = None


class TranslatedWarningPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str


@dataclass
class TranslatedContent:
    language: str
    medications: List[Medication] = field(default_factory=list)
    warnings: List[MedicationWarning] = field(default_factory=list)
    labels: ReportLabels = field(default_factory=ReportLabels)

    def apply(self, source: AnalysisResult) -> AnalysisResult:
        """Translated copy of ``source`` with the schedule untouched."""
        result = source.copy()
        result.medications = [m for m in self.medications]
        result.warnings = [w for w in self.warnings]
        return result.copy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "medications": [m.to_dict() for m in self.medications],
            "warnings": [w.to_dict() for w in self.warnings],
            "labels": self.labels.to_dict(),
        }


def build_translation_payload(result: AnalysisResult, labels: Optional[ReportLabels] = None) -> Dict[str, Any]:
    labels = labels or ReportLabels()
    return {
        "medications": [
            {
                "id": m.id,
                "name": m.name,
                "dosage": m.dosage,
                "frequency": m.frequency,
                "instructions": m.instructions,
                "reasoning": m.reasoning or "",
            }
            for m in result.medications
        ],
        "warnings": [w.to_dict() for w in result.warnings],
        "labels": labels.to_dict(),
    }


def _text(value: Optional[str], fallback: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def parse_translation(text: Optional[str], source: AnalysisResult, language: str) -> TranslatedContent:
    """
    Validate a translation response against its source.

    Raises:
        ExtractionFailure: response is not a JSON object
        TranslationMismatch: medication ids added, dropped or duplicated
    """
    data = load_json_object(text)

    translated: Dict[str, TranslatedMedicationPayload] = {}
    duplicates: List[str] = []
    for index, record in enumerate(data.get("medications") or []):
        try:
            payload = TranslatedMedicationPayload.model_validate(record)
        except SchemaError:
            logger.warning(f"Translated medication #{index} has no usable id")
            continue
        if payload.id in translated:
            duplicates.append(payload.id)
        translated[payload.id] = payload

    source_ids = set(source.medication_ids)
    missing = source_ids - set(translated)
    unexpected = (set(translated) - source_ids) | set(duplicates)
    if missing or unexpected:
        raise TranslationMismatch(missing_ids=missing, unexpected_ids=unexpected)

    medications = []
    for original in source.medications:
        payload = translated[original.id]
        medications.append(Medication(
            id=original.id,
            name=_text(payload.name, original.name),
            dosage=_text(payload.dosage, original.dosage),
            frequency=_text(payload.frequency, original.frequency),
            instructions=_text(payload.instructions, original.instructions),
            source=original.source,
            category=original.category,
            reasoning=_text(payload.reasoning, original.reasoning),
            merged_from=list(original.merged_from),
        ))

    warnings = _translate_warnings(data.get("warnings"), source.warnings)
    labels = ReportLabels().merged(data.get("labels") if isinstance(data.get("labels"), dict) else None)

    logger.info(f"Accepted {language} translation of {len(medications)} medications")
    return TranslatedContent(language=language, medications=medications, warnings=warnings, labels=labels)


def _translate_warnings(records: Any, originals: List[MedicationWarning]) -> List[MedicationWarning]:
    """Pair translated descriptions with source warnings by position."""
    if not isinstance(records, list) or len(records) != len(originals):
        if originals:
            logger.warning("Translated warnings do not line up with source; keeping originals")
        return [MedicationWarning(w.description, list(w.related_medication_ids)) for w in originals]

    warnings = []
    for record, original in zip(records, originals):
        try:
            description = TranslatedWarningPayload.model_validate(record).description
        except SchemaError:
            description = ""
        warnings.append(MedicationWarning(
            description=_text(description, original.description),
            related_medication_ids=list(original.related_medication_ids),
        ))
    return warnings
