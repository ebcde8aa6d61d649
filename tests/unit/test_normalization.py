# ============================================================================
# FILE: tests/unit/test_normalization.py
# ============================================================================
"""
Unit tests for name normalisation, OTC classification and frequency rules
"""

import pytest

from medivision.constants.medication_db import fuzzy_lookup, levenshtein_distance
from medivision.core.context.enums import MedicationCategory, TimeSlot
from medivision.reconciliation.classifier import classify
from medivision.reconciliation.frequency import derive_slots, normalize_frequency
from medivision.reconciliation.normalizer import normalize_name, resolve_name


class TestNormalizeName:

    @pytest.mark.parametrize("raw,expected", [
        ("  LIPITOR   20 mg ", "lipitor"),
        ("Amlodipine 2.5mg Tablet", "amlodipine tablet"),
        ("St. John's Wort", "st john s wort"),
        ("Omega-3 Fish Oil", "omega 3 fish oil"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_name(raw) == expected


class TestResolveName:

    def test_brand_and_generic_share_key(self):
        """Test brand aliases resolve to the active ingredient"""
        assert resolve_name("Lipitor").key == resolve_name("atorvastatin 20mg").key == "atorvastatin"
        assert resolve_name("Advil").key == resolve_name("IBUPROFEN").key

    def test_form_and_salt_words(self):
        resolved = resolve_name("Metoprolol Succinate ER 50mg")
        assert resolved.known
        assert resolved.ingredients == ("metoprolol",)

    def test_combination_product(self):
        resolved = resolve_name("Tylenol PM")
        assert resolved.key == "acetaminophen + diphenhydramine"

    def test_typo_tolerance(self):
        """Test a one-letter OCR slip still resolves"""
        assert resolve_name("Atorvastatn").key == "atorvastatin"
        assert resolve_name("Atorvastatn", fuzzy=False).known is False

    def test_short_names_never_fuzzy(self):
        # "asa" alias is 3 chars; "asx" must not be pulled onto it
        assert resolve_name("asx").known is False

    def test_unknown_name_keeps_normalized_key(self):
        resolved = resolve_name("Zorbatrex 5 mg")
        assert resolved.known is False
        assert resolved.key == "zorbatrex"
        assert resolved.ingredients == ()

    def test_fuzzy_lookup_deterministic(self):
        assert fuzzy_lookup("lisinoprill", 1) == "lisinopril"
        assert levenshtein_distance("kitten", "sitting") == 3


class TestClassifier:

    @pytest.mark.parametrize("name,expected", [
        ("Ibuprofen", MedicationCategory.OTC),
        ("Tylenol PM", MedicationCategory.OTC),
        ("Percocet", MedicationCategory.RX),
        ("Warfarin", MedicationCategory.RX),
        ("Vitamin D3 1000 IU", MedicationCategory.OTC),
        ("Turmeric Curcumin Complex", MedicationCategory.OTC),
        ("Zorbatrex", MedicationCategory.RX),
    ])
    def test_classify(self, name, expected):
        assert classify(name) == expected

    def test_deterministic(self):
        assert all(classify("Lipitor") == MedicationCategory.RX for _ in range(5))


class TestFrequency:

    @pytest.mark.parametrize("text,slots", [
        ("once daily", ["morning"]),
        ("QD", ["morning"]),
        ("Daily", ["morning"]),
        ("twice daily", ["morning", "evening"]),
        ("BID", ["morning", "evening"]),
        ("b.i.d.", ["morning", "evening"]),
        ("three times daily", ["morning", "noon", "evening"]),
        ("TID", ["morning", "noon", "evening"]),
        ("four times daily", ["morning", "noon", "evening", "bedtime"]),
        ("QID", ["morning", "noon", "evening", "bedtime"]),
        ("at bedtime", ["bedtime"]),
        ("HS", ["bedtime"]),
        ("1 tablet before sleep", ["bedtime"]),
        ("with meals", ["morning", "noon", "evening"]),
        ("once daily at bedtime", ["bedtime"]),
        ("twice  daily", ["morning", "evening"]),
        ("twice-daily", ["morning", "evening"]),
        ("Twice\ndaily", ["morning", "evening"]),
        ("twice/day", ["morning", "evening"]),
        ("three-times daily", ["morning", "noon", "evening"]),
        ("at\nbedtime", ["bedtime"]),
        ("every morning and evening", ["morning", "evening"]),
        ("AM & PM", ["morning", "evening"]),
    ])
    def test_rule_table(self, text, slots):
        assignment = derive_slots(text)
        assert [s.value for s in assignment.slots] == slots
        assert assignment.is_fallback is False

    @pytest.mark.parametrize("text", ["as needed", "", None, "see package insert"])
    def test_fallback(self, text):
        """Test unparseable frequency defaults to morning with a note"""
        assignment = derive_slots(text)
        assert assignment.slots == (TimeSlot.MORNING,)
        assert assignment.is_fallback
        assert "could not be interpreted" in assignment.note

    def test_normalize_frequency(self):
        assert normalize_frequency("  Twice -\n Daily ") == "twice daily"

    def test_hours_not_mistaken_for_hs(self):
        assert derive_slots("every 12 hours").rule == "twice_daily"
