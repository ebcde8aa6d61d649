# ============================================================================
# FILE: tests/unit/test_reconciler.py
# ============================================================================
"""
Unit tests for the reconciliation engine
"""

from medivision.core.context.enums import MedicationCategory, SourceType
from medivision.core.context.medication import MedicationCandidate
from medivision.reconciliation.reconciler import Reconciler
from medivision.utils.metrics import get_metrics


def test_scenario_a_brand_and_generic_merge(scenario_a_candidates, id_factory):
    """Test home Lipitor + discharge Atorvastatin become one HOSPITAL record"""
    result = Reconciler(id_factory=id_factory).reconcile(scenario_a_candidates)

    assert len(result.medications) == 1
    med = result.medications[0]
    assert med.name == "Atorvastatin"
    assert med.source == SourceType.HOSPITAL
    assert med.dosage == "20mg"
    assert med.category == MedicationCategory.RX
    assert med.merged_from == ["Lipitor (HOME)"]
    assert result.schedule.morning == [med.id]
    assert result.warnings == []
    assert get_metrics().get_counter("reconciliation.merges") == 1


def test_hospital_dosage_wins(id_factory):
    """Test conflicting bottle dosage is overruled and recorded in reasoning"""
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Lipitor", dosage="10mg", frequency="once daily", source="HOME"),
        MedicationCandidate(name="Atorvastatin", dosage="20mg", frequency="once daily", source="HOSPITAL"),
    ])

    med = result.medications[0]
    assert med.dosage == "20mg"
    assert "bottle says 10mg; discharge order 20mg used" in med.reasoning


def test_hospital_frequency_wins(id_factory):
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Metformin", dosage="500mg", frequency="once daily", source="HOME"),
        MedicationCandidate(name="Metformin", dosage="500mg", frequency="twice daily", source="HOSPITAL"),
    ])

    med = result.medications[0]
    assert med.frequency == "twice daily"
    assert "bottle says once daily; discharge order twice daily used" in med.reasoning
    assert result.schedule.evening == [med.id]


def test_same_source_conflict_keeps_first(id_factory):
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Advil", dosage="200mg", source="HOME"),
        MedicationCandidate(name="Ibuprofen", dosage="400mg", source="HOME"),
    ])

    med = result.medications[0]
    assert med.name == "Advil"
    assert med.dosage == "200mg"
    assert "Ibuprofen (HOME) lists dosage 400mg; Advil (HOME) value 200mg used" in med.reasoning
    assert med.category == MedicationCategory.OTC


def test_missing_dosage_filled_from_other_source(id_factory):
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Warfarin", dosage="", frequency="at bedtime", source="HOSPITAL"),
        MedicationCandidate(name="Coumadin", dosage="5mg", frequency="at bedtime", source="HOME"),
    ])

    assert result.medications[0].dosage == "5mg"
    assert "dosage taken from Coumadin (HOME)" in result.medications[0].reasoning


def test_scenario_b_bid(id_factory):
    """Test BID lands in morning and evening only"""
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Metoprolol", dosage="25mg", frequency="BID", source="HOSPITAL"),
    ])

    med_id = result.medications[0].id
    assert med_id in result.schedule.morning
    assert med_id in result.schedule.evening
    assert med_id not in result.schedule.noon
    assert med_id not in result.schedule.bedtime


def test_unparseable_frequency_flagged(id_factory):
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Ibuprofen", frequency="as needed for pain", source="HOME",
                            reasoning="Label says as needed"),
    ])

    med = result.medications[0]
    assert result.schedule.morning == [med.id]
    assert med.reasoning.startswith("Label says as needed")
    assert "could not be interpreted" in med.reasoning
    assert get_metrics().get_counter("reconciliation.frequency_fallbacks") == 1


def test_empty_candidates():
    """Test no candidates yields an empty result, not an error"""
    result = Reconciler().reconcile([])

    assert result.medications == []
    assert result.warnings == []
    assert result.schedule.references() == []


def test_invalid_candidate_dropped(id_factory):
    """Test one bad record does not block the rest"""
    result = Reconciler(id_factory=id_factory).reconcile([
        {"name": "", "source": "HOME"},
        {"name": "Aspirin", "source": "PHARMACY"},
        "not a record",
        {"name": "Aspirin", "dosage": "81mg", "frequency": "daily", "source": "HOME"},
    ])

    assert [m.name for m in result.medications] == ["Aspirin"]
    assert get_metrics().get_counter("reconciliation.candidates_dropped") == 3


def test_candidate_ids_preserved_and_deduplicated(id_factory):
    """Test collaborator ids are kept when unique and replaced on collision"""
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(id="a", name="Lisinopril", source="HOSPITAL"),
        MedicationCandidate(id="a", name="Amlodipine", source="HOSPITAL"),
        MedicationCandidate(id="c", name="Furosemide", source="HOSPITAL"),
    ])

    assert result.medication_ids == ["a", "med-1", "c"]


def test_ids_unique_for_many_candidates():
    names = ["Aspirin", "Lipitor", "Atorvastatin", "Advil", "Motrin", "Metformin",
             "Zorbatrex", "Vitamin D", "Tylenol PM", "Acetaminophen"]
    candidates = [MedicationCandidate(id="1", name=n, source="HOME") for n in names]
    result = Reconciler().reconcile(candidates)

    ids = result.medication_ids
    assert len(ids) == len(set(ids))
    assert set(result.schedule.references()) <= set(ids)


def test_unlisted_names_fuzzy_grouped(id_factory):
    """Test an OCR typo of an unlisted drug still merges"""
    result = Reconciler(id_factory=id_factory).reconcile([
        MedicationCandidate(name="Zorbatrex", dosage="5mg", source="HOSPITAL"),
        MedicationCandidate(name="Zorbatrx", dosage="5mg", source="HOME"),
    ])

    assert len(result.medications) == 1
    assert result.medications[0].merged_from == ["Zorbatrx (HOME)"]


def test_fuzzy_grouping_disabled(id_factory):
    reconciler = Reconciler(config={"fuzzy_name_matching": False}, id_factory=id_factory)
    result = reconciler.reconcile([
        MedicationCandidate(name="Zorbatrex", source="HOSPITAL"),
        MedicationCandidate(name="Zorbatrx", source="HOME"),
    ])

    assert len(result.medications) == 2


def test_category_from_classifier_only(id_factory):
    """Test collaborator-supplied category is ignored"""
    result = Reconciler(id_factory=id_factory).reconcile([
        {"name": "Warfarin", "source": "HOSPITAL", "category": "OTC"},
    ])
    assert result.medications[0].category == MedicationCategory.RX


def test_duration_recorded(scenario_a_candidates):
    Reconciler().reconcile(scenario_a_candidates)
    assert get_metrics().get_timer_stats("reconciliation.duration")["count"] == 1
