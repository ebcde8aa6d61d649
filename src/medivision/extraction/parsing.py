# ============================================================================
# src/medivision/extraction/parsing.py
# ============================================================================
"""
Boundary Parsing

Turns raw collaborator text into validated MedicationCandidates before
anything reaches the reconciliation engine.

1. json.loads
2. json_repair for near-JSON (trailing commas, single quotes, fences)
3. brace-matched object extraction from surrounding prose
4. pydantic validation per medication record; bad records are dropped

A payload that is not a JSON object (or has no medications array) is an
ExtractionFailure. The collaborator's own schedule and warnings are not
used; both are recomputed by the core.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from json_repair import repair_json
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as SchemaError

from ..core.context.medication import MedicationCandidate
from ..utils.exceptions import ExtractionFailure, ValidationError
from ..utils.metrics import increment

logger = logging.getLogger(__name__)


class MedicationPayload(BaseModel):
    """One medication record as the collaborator returns it."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str
    dosage: str = ""
    frequency: str = ""
    instructions: str = ""
    source: str
    category: Optional[str] = None      # ignored; recomputed by the classifier
    reasoning: Optional[str] = None

    @field_validator("dosage", "frequency", "instructions", mode="before")
    @classmethod
    def _to_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("id", "reasoning", mode="before")
    @classmethod
    def _to_optional_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def to_candidate(self) -> MedicationCandidate:
        return MedicationCandidate(
            name=self.name,
            source=self.source,
            dosage=self.dosage,
            frequency=self.frequency,
            instructions=self.instructions,
            id=self.id,
            reasoning=self.reasoning,
        )


def _extract_object(text: str) -> Optional[str]:
    """First balanced {...} block in text."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(text[start:], start=start):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return text[start:]


def load_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse collaborator output into a dict.

    Raises:
        ExtractionFailure: empty response, unparseable text, or a JSON
            value that is not an object
    """
    if not text or not text.strip():
        raise ExtractionFailure("Collaborator returned an empty response")

    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError:
        data = None
        block = _extract_object(text)
        for attempt in (text, block):
            if not attempt:
                continue
            repaired = repair_json(attempt, return_objects=True)
            if isinstance(repaired, dict) and repaired:
                logger.debug("json_repair fixed collaborator response")
                data = repaired
                break

    if not isinstance(data, dict):
        raise ExtractionFailure("Collaborator response is not a JSON object")
    return data


def parse_extraction(text: Optional[str]) -> List[MedicationCandidate]:
    """
    Validate an extraction response into candidates.

    Non-conforming medication records are dropped individually; missing
    ids are left empty and assigned by the reconciler.
    """
    data = load_json_object(text)

    records = data.get("medications")
    if records is None:
        raise ExtractionFailure("Collaborator response has no 'medications' array")
    if not isinstance(records, list):
        raise ExtractionFailure("'medications' is not an array")

    if data.get("schedule") or data.get("warnings"):
        logger.info("Ignoring collaborator schedule/warnings; both are recomputed")

    candidates: List[MedicationCandidate] = []
    for index, record in enumerate(records):
        try:
            candidates.append(MedicationPayload.model_validate(record).to_candidate())
        except (SchemaError, ValidationError) as e:
            increment("reconciliation.candidates_dropped")
            logger.warning(f"Dropping extracted record #{index}: {str(e).splitlines()[0]}")

    logger.info(f"Parsed {len(candidates)} of {len(records)} extracted medication records")
    return candidates
