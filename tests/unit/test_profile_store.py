# ============================================================================
# FILE: tests/unit/test_profile_store.py
# ============================================================================
"""
Unit tests for the persisted patient profile and legacy migration
"""

import sqlite3

import pytest

from medivision.core.context.enums import WorkflowStatus
from medivision.core.profile_store import PatientProfile, ProfileStore, migrate_profile
from medivision.utils.exceptions import PersistenceError


@pytest.fixture
def profile_store(tmp_path):
    return ProfileStore(tmp_path / "profiles.db")


def test_missing_profile_is_fresh_draft(profile_store):
    profile = profile_store.load()
    assert profile.id == "patient-001"
    assert profile.status == WorkflowStatus.DRAFT
    assert profile.medications == []
    assert profile.last_updated is None


def test_save_and_load(profile_store, sample_result):
    saved = profile_store.save(PatientProfile.from_result(
        sample_result, name="Jordan", status=WorkflowStatus.UNDER_REVIEW,
    ))
    loaded = profile_store.load()

    assert saved.last_updated is not None
    assert loaded.name == "Jordan"
    assert loaded.status == WorkflowStatus.UNDER_REVIEW
    assert loaded.schema_version == 1
    assert loaded.result.to_dict() == sample_result.to_dict()


def test_save_replaces_whole_record(profile_store, sample_result):
    profile_store.save(PatientProfile.from_result(sample_result))
    profile_store.save(PatientProfile(name="Empty"))

    loaded = profile_store.load()
    assert loaded.name == "Empty"
    assert loaded.medications == []


def test_profile_is_snapshot(sample_result):
    """Test later edits to the working result do not leak into the profile"""
    profile = PatientProfile.from_result(sample_result)
    sample_result.medications[0].dosage = "changed"
    assert profile.medications[0].dosage == "500mg"


def test_legacy_profile_migrated(profile_store):
    """Test a version-less row with the old schedule shape is upgraded on read"""
    profile_store.save_raw({
        "id": "patient-001",
        "status": "PENDING_REVIEW",
        "medications": [
            {"id": "m1", "name": "Aspirin", "dosage": "81mg", "source": "HOME", "category": "OTC"},
            {"name": "no id", "source": "HOME"},
        ],
        "schedule": [
            {"timeOfDay": "Morning", "medications": ["m1"]},
            {"timeOfDay": "Night", "medications": ["m1", "m1"], "notes": "with water"},
            {"timeOfDay": "Brunch", "medications": ["m1"]},
        ],
    })

    profile = profile_store.load()
    assert profile.status == WorkflowStatus.UNDER_REVIEW
    assert [m.id for m in profile.medications] == ["m1"]
    assert profile.schedule.morning == ["m1"]
    assert profile.schedule.bedtime == ["m1"]
    assert profile.schedule.noon == []
    assert profile.notes == ["with water"]
    assert profile.schema_version == 1


@pytest.mark.parametrize("legacy,expected", [
    ("NEEDS_CHANGES", "DRAFT"),
    ("APPROVED", "APPROVED"),
    ("SOMETHING_ELSE", "DRAFT"),
])
def test_legacy_statuses(legacy, expected):
    assert migrate_profile({"status": legacy})["status"] == expected


def test_future_version_rejected(profile_store):
    profile_store.save_raw({"id": "patient-001", "schemaVersion": 99, "status": "DRAFT"})
    with pytest.raises(PersistenceError):
        profile_store.load()


def test_corrupt_row(profile_store):
    conn = sqlite3.connect(str(profile_store.db_path))
    conn.execute(
        "INSERT INTO profiles VALUES (?, ?, ?, ?, ?)",
        ("patient-001", 1, "DRAFT", "2024-01-01T00:00:00+00:00", "{not json"),
    )
    conn.commit()
    conn.close()

    with pytest.raises(PersistenceError):
        profile_store.load()


def test_reset(profile_store, sample_result):
    profile_store.save(PatientProfile.from_result(sample_result))
    profile_store.reset()
    assert profile_store.load().medications == []


@pytest.mark.parametrize("stored", [
    {"id": "patient-001", "schemaVersion": 1, "status": "BOGUS"},
    {"id": "patient-001", "schemaVersion": 1, "status": "DRAFT", "lastUpdated": "yesterday"},
    {"id": "patient-001", "schemaVersion": 1, "status": "DRAFT", "medications": [{"id": "m1"}]},
])
def test_malformed_profile(profile_store, stored):
    """Test a row that parses as JSON but not as a profile is a persistence error"""
    profile_store.save_raw(stored)
    with pytest.raises(PersistenceError):
        profile_store.load()
