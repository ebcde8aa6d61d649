# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import asyncio
import itertools
import json

import pytest

from medivision.config import logging_settings
from medivision.core.context.analysis import AnalysisResult, DailySchedule, MedicationWarning
from medivision.core.context.enums import MedicationCategory, SourceType
from medivision.core.context.medication import Medication, MedicationCandidate
from medivision.extraction.base import ExtractionClient, ImagePayload
from medivision.utils.metrics import get_metrics


@pytest.fixture(autouse=True)
def isolate_side_effects(monkeypatch):
    """Fresh metrics per test; no audit file written outside tmp dirs."""
    get_metrics().reset()
    monkeypatch.setattr(logging_settings, "ENABLE_AUDIT_TRAIL", False)
    yield
    get_metrics().reset()


@pytest.fixture
def id_factory():
    """Deterministic medication ids: med-1, med-2, ..."""
    counter = itertools.count(1)
    return lambda: f"med-{next(counter)}"


@pytest.fixture
def scenario_a_candidates():
    """Same statin from a home bottle (brand) and the discharge list (generic)"""
    return [
        MedicationCandidate(name="Lipitor", dosage="20mg", frequency="once daily", source=SourceType.HOME),
        MedicationCandidate(name="Atorvastatin", dosage="20mg", frequency="once daily", source=SourceType.HOSPITAL),
    ]


@pytest.fixture
def sample_result():
    """Reviewed-looking result with three medications and one warning"""
    return AnalysisResult(
        medications=[
            Medication(id="m1", name="Metformin", dosage="500mg", frequency="twice daily",
                       instructions="Take with food", source=SourceType.HOSPITAL),
            Medication(id="m2", name="Warfarin", dosage="5mg", frequency="once daily",
                       source=SourceType.HOSPITAL),
            Medication(id="m3", name="Ibuprofen", dosage="200mg", frequency="as needed",
                       source=SourceType.HOME, category=MedicationCategory.OTC),
        ],
        schedule=DailySchedule(morning=["m1", "m2", "m3"], evening=["m1"]),
        warnings=[
            MedicationWarning("Warfarin + Ibuprofen: increased bleeding risk (anticoagulant with NSAID)", ["m2", "m3"]),
        ],
    )


@pytest.fixture
def extraction_response():
    """Collaborator JSON for a discharge list plus two home bottles"""
    return json.dumps({
        "medications": [
            {"id": "1", "name": "Atorvastatin", "dosage": "20mg", "frequency": "once daily",
             "instructions": "", "source": "HOSPITAL", "category": "Rx",
             "reasoning": "Discharge list: atorvastatin 20mg daily"},
            {"id": "2", "name": "Lipitor", "dosage": "10mg", "frequency": "once daily",
             "instructions": "", "source": "HOME", "category": "Rx",
             "reasoning": "Label says take one tablet daily"},
            {"id": "3", "name": "Advil", "dosage": "200mg", "frequency": "BID",
             "instructions": "Take with food", "source": "HOME", "category": "OTC",
             "reasoning": "Label says BID"},
            {"id": "4", "name": "Warfarin", "dosage": "5mg", "frequency": "at bedtime",
             "instructions": "", "source": "HOSPITAL", "category": "Rx",
             "reasoning": "Discharge list: warfarin 5mg qHS"},
        ],
        "schedule": {"morning": ["1"], "noon": [], "evening": [], "bedtime": []},
        "warnings": [{"description": "model-supplied warning", "relatedMedicationIds": ["99"]}],
    })


class FakeExtractionClient(ExtractionClient):
    """In-memory collaborator; responses and failures are set per test."""

    def __init__(self, extract_response="", translate_response="", delay=0.0, error=None):
        super().__init__()
        self.extract_response = extract_response
        self.translate_response = translate_response
        self.delay = delay
        self.error = error
        self.release = None
        self.extract_calls = 0
        self.translate_calls = []

    @property
    def model_name(self) -> str:
        return "fake-vision"

    async def extract(self, images):
        self.extract_calls += 1
        if self.release is not None:
            await self.release.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.extract_response

    async def translate(self, payload, language):
        self.translate_calls.append((payload, language))
        if self.error:
            raise self.error
        return self.translate_response


@pytest.fixture
def fake_client(extraction_response):
    return FakeExtractionClient(extract_response=extraction_response)


@pytest.fixture
def images():
    return [ImagePayload(data=b"\xff\xd8fake-jpeg", mime_type="image/jpeg")]


@pytest.fixture
def client_factory():
    """Build FakeExtractionClient instances with custom behaviour."""
    return FakeExtractionClient
