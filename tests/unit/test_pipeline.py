# ============================================================================
# FILE: tests/unit/test_pipeline.py
# ============================================================================
"""
Unit tests for the end-to-end reconciliation pipeline
"""

import asyncio
import json

import pytest

from medivision.core.context.enums import WorkflowStatus
from medivision.core.history_store import InMemoryHistoryStore
from medivision.core.pipeline import ReconciliationPipeline
from medivision.extraction.base import ImagePayload
from medivision.utils.exceptions import ExtractionFailure, InvalidStateTransition, ValidationError
from medivision.utils.metrics import get_metrics


@pytest.fixture
def pipeline(fake_client):
    return ReconciliationPipeline(fake_client, history_store=InMemoryHistoryStore())


class TestAnalyze:

    @pytest.mark.asyncio
    async def test_analyze_success(self, pipeline, images):
        """Test images become a reconciled DRAFT session"""
        session = await pipeline.analyze(images)
        result = session.result

        assert session.status == WorkflowStatus.DRAFT
        assert result.medication_ids == ["1", "3", "4"]
        assert result.medications[0].name == "Atorvastatin"
        assert result.medications[0].merged_from == ["Lipitor (HOME)"]
        assert "bottle says 10mg; discharge order 20mg used" in result.medications[0].reasoning
        assert result.schedule.to_dict() == {
            "morning": ["1", "3"], "noon": [], "evening": ["3"], "bedtime": ["4"],
        }
        assert pipeline.busy is False

    @pytest.mark.asyncio
    async def test_collaborator_schedule_and_warnings_ignored(self, pipeline, images):
        result = (await pipeline.analyze(images)).result

        assert [w.related_medication_ids for w in result.warnings] == [["1"], ["3", "4"]]
        assert result.warnings[1].description == (
            "Advil + Warfarin: increased bleeding risk (anticoagulant with NSAID)"
        )

    @pytest.mark.asyncio
    async def test_session_shares_history_store(self, pipeline, images):
        session = await pipeline.analyze(images)
        session.approve()
        assert pipeline.history_store.count() == 1

    @pytest.mark.asyncio
    async def test_timeout(self, client_factory, extraction_response, images):
        """Test a slow collaborator is abandoned and reported as retryable failure"""
        client = client_factory(extract_response=extraction_response, delay=0.5)
        pipeline = ReconciliationPipeline(client, config={"extraction_timeout": 0.01})

        with pytest.raises(ExtractionFailure, match="timed out"):
            await pipeline.analyze(images)

        assert get_metrics().get_counter("extraction.failures") == 1
        assert pipeline.busy is False

    @pytest.mark.asyncio
    async def test_service_error_then_retry(self, client_factory, extraction_response, images):
        client = client_factory(extract_response=extraction_response, error=ConnectionError("refused"))
        pipeline = ReconciliationPipeline(client)

        with pytest.raises(ExtractionFailure):
            await pipeline.analyze(images)

        client.error = None
        session = await pipeline.analyze(images)
        assert len(session.result.medications) == 3
        assert client.extract_calls == 2

    @pytest.mark.asyncio
    async def test_malformed_response(self, client_factory, images):
        pipeline = ReconciliationPipeline(client_factory(extract_response="I could not read the label."))

        with pytest.raises(ExtractionFailure):
            await pipeline.analyze(images)
        assert get_metrics().get_counter("extraction.failures") == 1

    @pytest.mark.asyncio
    async def test_no_medications_found(self, client_factory, images):
        """Test an empty extraction yields an empty draft rather than an error"""
        pipeline = ReconciliationPipeline(client_factory(extract_response='{"medications": []}'))
        session = await pipeline.analyze(images)

        assert session.result.medications == []
        assert session.result.warnings == []

    @pytest.mark.asyncio
    async def test_second_analysis_rejected_while_running(self, fake_client, images):
        fake_client.release = asyncio.Event()
        pipeline = ReconciliationPipeline(fake_client)

        first = asyncio.create_task(pipeline.analyze(images))
        while not pipeline.busy:
            await asyncio.sleep(0)

        with pytest.raises(InvalidStateTransition) as exc_info:
            await pipeline.analyze(images)
        assert exc_info.value.current == "ANALYZING"

        fake_client.release.set()
        session = await first
        assert session.status == WorkflowStatus.DRAFT
        assert fake_client.extract_calls == 1
        assert pipeline.busy is False

    @pytest.mark.asyncio
    async def test_image_count_validated(self, pipeline, images):
        with pytest.raises(ValidationError):
            await pipeline.analyze([])

        limited = ReconciliationPipeline(pipeline.client, config={"max_images": 1})
        with pytest.raises(ValidationError):
            await limited.analyze(images + [ImagePayload(data=b"png", mime_type="image/png")])


class TestTranslate:

    @pytest.mark.asyncio
    async def test_translate_success(self, client_factory, sample_result):
        response = json.dumps({
            "medications": [{"id": "m1", "name": "Metformina"}, {"id": "m2"}, {"id": "m3"}],
            "warnings": [],
            "labels": {"morning": "Mañana"},
        })
        client = client_factory(translate_response=response)
        content = await ReconciliationPipeline(client).translate(sample_result, " Spanish ")

        assert content.language == "Spanish"
        assert content.medications[0].name == "Metformina"
        assert content.labels.morning == "Mañana"
        assert client.translate_calls[0][1] == "Spanish"

    @pytest.mark.asyncio
    async def test_mismatch_falls_back(self, client_factory, sample_result):
        """Test dropped ids discard the translation instead of misaligning it"""
        client = client_factory(translate_response=json.dumps({"medications": [{"id": "m1"}]}))
        content = await ReconciliationPipeline(client).translate(sample_result, "French")

        assert content is None
        assert get_metrics().get_counter("translation.mismatches") == 1

    @pytest.mark.asyncio
    async def test_service_error_falls_back(self, client_factory, sample_result):
        client = client_factory(error=RuntimeError("Ollama API error 500"))
        content = await ReconciliationPipeline(client).translate(sample_result, "French")

        assert content is None
        assert get_metrics().get_counter("translation.failures") == 1

    @pytest.mark.asyncio
    async def test_language_required(self, fake_client, sample_result):
        with pytest.raises(ValidationError):
            await ReconciliationPipeline(fake_client).translate(sample_result, "  ")


@pytest.mark.asyncio
async def test_health(pipeline):
    health = await pipeline.health()
    assert health["healthy"] is True
    assert health["model"] == "fake-vision"
