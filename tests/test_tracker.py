from __future__ import annotations

from datetime import timedelta

import pytest

from jobtrack.core.db import MemoryStore, StorageError
from jobtrack.core.schema import ImportValidationError, Settings
from jobtrack.core.tracker import APPLICATIONS_KEY, SETTINGS_KEY, ApplicationTracker
from jobtrack.core.utils import now_utc, parse_timestamp, today_iso

pytestmark = pytest.mark.unit

IMPORTED = {
    "id": "1",
    "company": "Acme",
    "position": "Eng",
    "status": "applied",
    "dateApplied": "2024-01-01",
    "url": "",
    "skills": [],
    "notes": "",
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-01T00:00:00Z",
}


@pytest.fixture
def tracker() -> ApplicationTracker:
    t = ApplicationTracker(MemoryStore())
    t.load()
    return t


def test_first_load_initializes_store():
    store = MemoryStore()
    ApplicationTracker(store, default_settings=Settings(autoCapture=True)).load()
    data = store.get([APPLICATIONS_KEY, SETTINGS_KEY])
    assert data[APPLICATIONS_KEY] == []
    assert data[SETTINGS_KEY] == {"autoCapture": True, "notifications": True}


def test_create_fills_defaults(tracker):
    r = tracker.create({"company": " Acme ", "position": "Engineer"})
    assert r.company == "Acme"
    assert r.status == "applied"
    assert r.dateApplied == today_iso()
    assert r.createdAt == r.updatedAt
    assert r.createdAt.endswith("Z")
    assert tracker.records()[0].id == r.id


def test_create_prepends(tracker):
    a = tracker.create({"company": "A", "position": "X"})
    b = tracker.create({"company": "B", "position": "Y"})
    assert [r.id for r in tracker.records()] == [b.id, a.id]
    assert a.id != b.id


def test_create_rejects_unknown_status(tracker):
    with pytest.raises(ValueError):
        tracker.create({"company": "A", "position": "X", "status": "ghosted"})
    assert tracker.records() == []


def test_lifecycle_update_then_cycle(tracker):
    r = tracker.create({"company": "Acme", "position": "Engineer"})
    r2 = tracker.update(r.id, {"status": "interview"})
    r3 = tracker.cycle_status(r.id)
    assert r3.status == "offer"
    assert r3.createdAt == r.createdAt
    t1, t2, t3 = (parse_timestamp(x.updatedAt) for x in (r, r2, r3))
    assert t1 < t2 < t3


def test_cycle_order(tracker):
    r = tracker.create({"company": "Acme", "position": "Engineer"})
    seen = [tracker.cycle_status(r.id).status for _ in range(5)]
    assert seen == ["pending", "interview", "offer", "rejected", "applied"]


def test_update_ignores_unknown_fields(tracker):
    r = tracker.create({"company": "Acme", "position": "Engineer"})
    updated = tracker.update(
        r.id, {"notes": "called back", "id": "hijack", "createdAt": "x", "skills": "Python, SQL"}
    )
    assert updated.id == r.id
    assert updated.createdAt == r.createdAt
    assert updated.notes == "called back"
    assert updated.skills == ["Python", "SQL"]


def test_unknown_id_is_a_no_op(tracker):
    tracker.create({"company": "Acme", "position": "Engineer"})
    before = tracker.records()
    assert tracker.update("nope", {"notes": "x"}) is None
    assert tracker.cycle_status("nope") is None
    assert tracker.delete("nope") is False
    assert tracker.records() == before


def test_delete_and_clear(tracker):
    a = tracker.create({"company": "A", "position": "X"})
    tracker.create({"company": "B", "position": "Y"})
    assert tracker.delete(a.id) is True
    assert [r.company for r in tracker.records()] == ["B"]
    tracker.clear_all()
    assert tracker.records() == []
    assert tracker.store.get([APPLICATIONS_KEY])[APPLICATIONS_KEY] == []


def test_import_replaces_collection(tracker):
    tracker.create({"company": "Old", "position": "Gone"})
    payload = {
        "applications": [dict(IMPORTED)],
        "settings": {"autoCapture": False, "notifications": True},
        "exportedAt": "2024-02-01T00:00:00Z",
        "version": "1.0.0",
    }
    assert tracker.import_data(payload) == 1
    records = tracker.records()
    assert len(records) == 1
    assert records[0].to_dict() == IMPORTED


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"applications": "nope"},
        {"applications": [{"company": "No id"}]},
        {"applications": [dict(IMPORTED, status="ghosted")]},
        {"applications": [dict(IMPORTED), dict(IMPORTED)]},
        {"applications": [], "settings": {"autoCapture": "yes"}},
        [],
    ],
)
def test_invalid_import_is_rejected_without_changes(tracker, payload):
    r = tracker.create({"company": "Keep", "position": "Me"})
    with pytest.raises(ImportValidationError):
        tracker.import_data(payload)
    assert [x.id for x in tracker.records()] == [r.id]


def test_export_then_import_elsewhere(tracker):
    tracker.create({"company": "Acme", "position": "Engineer", "skills": ["Go"]})
    tracker.save_settings(autoCapture=True)
    exported = tracker.export_data()
    assert exported["version"] == "1.0.0"

    other = ApplicationTracker(MemoryStore())
    other.load()
    other.import_data(exported)
    assert [r.to_dict() for r in other.records()] == exported["applications"]
    assert other.settings.autoCapture is True


def test_storage_failure_leaves_state_unchanged(flaky_store):
    tracker = ApplicationTracker(flaky_store)
    tracker.load()
    r = tracker.create({"company": "Acme", "position": "Engineer"})
    stored_before = flaky_store.get([APPLICATIONS_KEY])
    flaky_store.fail = True

    with pytest.raises(StorageError):
        tracker.update(r.id, {"status": "interview"})
    with pytest.raises(StorageError):
        tracker.create({"company": "B", "position": "Y"})
    with pytest.raises(StorageError):
        tracker.delete(r.id)

    assert [x.to_dict() for x in tracker.records()] == [r.to_dict()]
    assert flaky_store.get([APPLICATIONS_KEY]) == stored_before


def test_search_and_stats(tracker):
    tracker.create({"company": "Acme", "position": "Backend Engineer"})
    tracker.create({"company": "Globex", "position": "Analyst", "status": "interview"})
    tracker.create({"company": "Initech", "position": "Engineer", "status": "offer"})
    assert [r.company for r in tracker.search("engineer")] == ["Initech", "Acme"]
    assert [r.company for r in tracker.search("", "interview")] == ["Globex"]
    assert tracker.stats() == {"total": 3, "applied": 1, "interview": 1, "offer": 1}
    assert tracker.badge_count() == 2


def test_stale_records(tracker):
    tracker.create({"company": "Old", "position": "X", "dateApplied": "2020-01-01"})
    tracker.create({"company": "New", "position": "Y"})
    tracker.create(
        {"company": "Done", "position": "Z", "dateApplied": "2020-01-01", "status": "offer"}
    )
    assert [r.company for r in tracker.stale_records(days=7)] == ["Old"]


def test_save_settings_rejects_unknown_keys(tracker):
    with pytest.raises(ValueError):
        tracker.save_settings(darkMode=True)
    assert tracker.save_settings(notifications=False).notifications is False


def test_stale_boundary_is_inclusive_at_days(tracker):
    today = now_utc().date()
    week_ago = str(today - timedelta(days=7))
    six_days_ago = str(today - timedelta(days=6))
    tracker.create({"company": "A", "position": "X", "dateApplied": week_ago})
    tracker.create({"company": "B", "position": "Y", "dateApplied": six_days_ago})
    assert [r.company for r in tracker.stale_records(days=7)] == ["A"]


@pytest.mark.parametrize("raw", ["2024-13-45", "soon", "5", "2024"])
def test_non_dates_are_rejected_on_create(tracker, raw):
    with pytest.raises(ValueError):
        tracker.create({"company": "A", "position": "X", "dateApplied": raw})
    assert tracker.records() == []


def test_non_dates_are_rejected_on_update(tracker):
    r = tracker.create({"company": "A", "position": "X", "dateApplied": "2024-01-31"})
    with pytest.raises(ValueError):
        tracker.update(r.id, {"dateApplied": "soon"})
    assert tracker.get(r.id).dateApplied == "2024-01-31"


def test_dates_are_normalized_to_iso_day(tracker):
    r = tracker.create({"company": "A", "position": "X", "dateApplied": "Jan 5, 2024"})
    assert r.dateApplied == "2024-01-05"
    assert tracker.update(r.id, {"dateApplied": ""}).dateApplied == "2024-01-05"
