from __future__ import annotations

import copy
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from .db import KeyValueStore
from .logging import log_event
from .schema import (
    ACTIVE_STATUSES,
    DEFAULT_STATUS,
    EXPORT_VERSION,
    STATUSES,
    ApplicationRecord,
    ImportValidationError,
    Settings,
    clean_fields,
    next_status,
    validate_import_payload,
)
from .utils import make_record_id, next_timestamp, now_utc, now_utc_iso, parse_date, today_iso

APPLICATIONS_KEY = "applications"
SETTINGS_KEY = "settings"


class ApplicationTracker:
    """Sole owner of the application collection.

    Every mutation builds the new collection, writes it to the store and only
    then swaps it in, so a failed write leaves memory equal to what is stored.
    """

    def __init__(
        self, store: KeyValueStore, *, default_settings: Optional[Settings] = None
    ) -> None:
        self.store = store
        self._records: List[ApplicationRecord] = []
        self._settings = default_settings or Settings()
        self._default_settings = copy.copy(self._settings)

    # --- hydration ---
    def load(self) -> None:
        data = self.store.get([APPLICATIONS_KEY, SETTINGS_KEY])
        if APPLICATIONS_KEY not in data and SETTINGS_KEY not in data:
            # first run
            self.store.set(
                {APPLICATIONS_KEY: [], SETTINGS_KEY: self._default_settings.to_dict()}
            )
            log_event("store_initialized")
            data = {APPLICATIONS_KEY: [], SETTINGS_KEY: self._default_settings.to_dict()}
        raw = data.get(APPLICATIONS_KEY) or []
        self._records = [ApplicationRecord.from_dict(a) for a in raw if isinstance(a, dict)]
        raw_settings = data.get(SETTINGS_KEY) or self._default_settings.to_dict()
        self._settings = Settings.from_dict(raw_settings)

    # --- reads ---
    @property
    def settings(self) -> Settings:
        return copy.copy(self._settings)

    def records(self) -> List[ApplicationRecord]:
        return [copy.deepcopy(r) for r in self._records]

    def get(self, record_id: str) -> Optional[ApplicationRecord]:
        idx = self._index(record_id)
        return copy.deepcopy(self._records[idx]) if idx >= 0 else None

    def search(self, term: str = "", status: str = "all") -> List[ApplicationRecord]:
        needle = (term or "").lower()
        out = []
        for r in self._records:
            if needle and needle not in r.company.lower() and needle not in r.position.lower():
                continue
            if status != "all" and r.status != status:
                continue
            out.append(copy.deepcopy(r))
        return out

    def stats(self) -> Dict[str, int]:
        return {
            "total": len(self._records),
            "applied": sum(1 for r in self._records if r.status == "applied"),
            "interview": sum(1 for r in self._records if r.status == "interview"),
            "offer": sum(1 for r in self._records if r.status == "offer"),
        }

    def badge_count(self) -> int:
        return sum(1 for r in self._records if r.status in ACTIVE_STATUSES)

    def stale_records(self, days: int = 7) -> List[ApplicationRecord]:
        """Pending/applied records whose dateApplied is older than ``days``."""
        cutoff = now_utc() - timedelta(days=days)
        out = []
        for r in self._records:
            if r.status not in ("pending", "applied"):
                continue
            applied = parse_date(r.dateApplied)
            if applied is None:
                continue
            # dateApplied counts as midnight UTC of that day
            if datetime.combine(applied, time.min, tzinfo=timezone.utc) < cutoff:
                out.append(copy.deepcopy(r))
        return out

    # --- mutations ---
    def create(self, fields: Dict[str, Any]) -> ApplicationRecord:
        data = clean_fields(fields)
        now = now_utc_iso()
        record = ApplicationRecord(
            id=make_record_id(r.id for r in self._records),
            company=data.get("company", ""),
            position=data.get("position", ""),
            status=data.get("status") or DEFAULT_STATUS,
            dateApplied=data.get("dateApplied") or today_iso(),
            url=data.get("url", ""),
            skills=data.get("skills", []),
            notes=data.get("notes", ""),
            createdAt=now,
            updatedAt=now,
        )
        self._commit([record] + self._records)
        log_event(
            "application_created", id=record.id, company=record.company, position=record.position
        )
        return copy.deepcopy(record)

    def update(self, record_id: str, fields: Dict[str, Any]) -> Optional[ApplicationRecord]:
        idx = self._index(record_id)
        if idx < 0:
            log_event("application_not_found", op="update", id=record_id)
            return None
        data = clean_fields(fields)
        current = self._records[idx]
        updated = copy.deepcopy(current)
        for key, val in data.items():
            setattr(updated, key, val)
        updated.updatedAt = next_timestamp(current.updatedAt)
        records = list(self._records)
        records[idx] = updated
        self._commit(records)
        log_event("application_updated", id=record_id, fields=sorted(data))
        return copy.deepcopy(updated)

    def delete(self, record_id: str) -> bool:
        idx = self._index(record_id)
        if idx < 0:
            log_event("application_not_found", op="delete", id=record_id)
            return False
        records = self._records[:idx] + self._records[idx + 1 :]
        self._commit(records)
        log_event("application_deleted", id=record_id)
        return True

    def clear_all(self) -> None:
        self._commit([])
        log_event("applications_cleared")

    def cycle_status(self, record_id: str) -> Optional[ApplicationRecord]:
        idx = self._index(record_id)
        if idx < 0:
            log_event("application_not_found", op="cycle_status", id=record_id)
            return None
        current = self._records[idx]
        return self.update(record_id, {"status": next_status(current.status)})

    def save_settings(self, **changes: Any) -> Settings:
        merged = self._settings.to_dict()
        for key, val in changes.items():
            if key not in merged:
                raise ValueError(f"Unknown setting {key!r}")
            merged[key] = bool(val)
        settings = Settings.from_dict(merged)
        self.store.set({SETTINGS_KEY: settings.to_dict()})
        self._settings = settings
        log_event("settings_saved", **settings.to_dict())
        return copy.copy(settings)

    # --- import / export ---
    def export_data(self) -> Dict[str, Any]:
        return {
            "applications": [r.to_dict() for r in self._records],
            "settings": self._settings.to_dict(),
            "exportedAt": now_utc_iso(),
            "version": EXPORT_VERSION,
        }

    def import_data(self, data: Any) -> int:
        """Replace the collection (and settings, when given). All or nothing."""
        validate_import_payload(data)
        try:
            records = [ApplicationRecord.from_dict(a) for a in data["applications"]]
        except (KeyError, TypeError) as ex:
            raise ImportValidationError(f"Invalid import file: {ex}") from ex
        settings = self._settings
        items: Dict[str, Any] = {APPLICATIONS_KEY: [r.to_dict() for r in records]}
        if isinstance(data.get("settings"), dict):
            settings = Settings.from_dict(data["settings"])
            items[SETTINGS_KEY] = settings.to_dict()
        self.store.set(items)
        self._records = records
        self._settings = settings
        log_event("applications_imported", count=len(records))
        return len(records)

    # --- internals ---
    def _index(self, record_id: str) -> int:
        for i, r in enumerate(self._records):
            if r.id == record_id:
                return i
        return -1

    def _commit(self, records: List[ApplicationRecord]) -> None:
        for r in records:
            if r.status not in STATUSES:
                raise ValueError(f"Record {r.id} has invalid status {r.status!r}")
        self.store.set({APPLICATIONS_KEY: [r.to_dict() for r in records]})
        self._records = records
