from __future__ import annotations

from typing import Any, Dict, Optional

from ..adapters.jobs.registry import scrape_page
from ..core.context import AppContext
from ..core.db import KeyValueStore, StorageError
from ..core.dedup import is_duplicate
from ..core.logging import log_error, log_event
from ..core.schema import ApplicationRecord, JobDraft, draft_to_fields
from ..core.utils import now_utc_iso

TRACK_BUTTON = 0
TRACK_BUTTON_LABEL = "Track This Job"

# correlation lifecycle: pending -> tracked | discarded
PENDING = "pending"
TRACKED = "tracked"
DISCARDED = "discarded"
_TRANSITIONS = {PENDING: (TRACKED, DISCARDED)}

_FALLBACK_PREFIX = "session:"


def _transition(current: str, new: str) -> str:
    if new not in _TRANSITIONS.get(current, ()):
        raise ValueError(f"Illegal correlation transition {current} -> {new}")
    return new


class CaptureAgent:
    """Page -> draft -> dedup -> notification -> tracked record."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx

    # --- extraction ---
    def capture(self, html: str, page_url: str) -> JobDraft:
        cap_cfg = self.ctx.cfg["capture"]
        return scrape_page(
            html,
            page_url,
            extractor=self.ctx.skills,
            description_max_chars=int(cap_cfg["description_max_chars"]),
            main_chars=int(cap_cfg["generic_main_chars"]),
        )

    def is_tracked(self, draft: JobDraft) -> bool:
        return is_duplicate(draft, self.ctx.tracker.records())

    def capture_for_review(self, html: str, page_url: str) -> Optional[Dict[str, Any]]:
        """Scrape a page into form fields; None when the job is already tracked."""
        draft = self.capture(html, page_url)
        if self.is_tracked(draft):
            log_event("capture_duplicate", url=page_url)
            return None
        fields = draft_to_fields(draft)
        fields["url"] = fields["url"] or page_url
        return fields

    def add_manual(self, fields: Dict[str, Any]) -> Optional[ApplicationRecord]:
        draft = JobDraft(
            company=str(fields.get("company") or "").strip(),
            position=str(fields.get("position") or "").strip(),
            url=str(fields.get("url") or ""),
        )
        if self.is_tracked(draft):
            log_event("manual_add_duplicate", company=draft.company, position=draft.position)
            return None
        return self.ctx.tracker.create(fields)

    # --- auto capture + notification protocol ---
    def check_auto_capture(self, html: str, page_url: str) -> Optional[str]:
        if not self.ctx.settings.autoCapture:
            return None
        draft = self.capture(html, page_url)
        if not (draft.company and draft.position):
            return None
        if self.is_tracked(draft):
            return None
        return self.handle_job_detected(draft)

    def handle_job_detected(self, draft: JobDraft) -> Optional[str]:
        """Phase 1: show the notification and remember which draft it is about."""
        if self.is_tracked(draft):
            return None
        if not self.ctx.settings.notifications:
            return None
        notification_id = self.ctx.notifier.notify(
            "New Job Detected!",
            f"{draft.position} at {draft.company}",
            [TRACK_BUTTON_LABEL],
        )
        store, key = self._correlation_slot(notification_id)
        store.set(
            {key: {"state": PENDING, "jobData": draft.to_dict(), "createdAt": now_utc_iso()}}
        )
        log_event("job_detected", notification_id=notification_id, url=draft.url)
        return notification_id

    def on_button_clicked(
        self, notification_id: str, button_index: int
    ) -> Optional[ApplicationRecord]:
        """Phase 2: the track button turns the remembered draft into a record."""
        try:
            if button_index != TRACK_BUTTON:
                self._finish(notification_id, DISCARDED)
                return None
            correlation = self._load_correlation(notification_id)
            if not correlation:
                log_event("correlation_missing", notification_id=notification_id)
                return None
            draft = JobDraft.from_dict(correlation.get("jobData") or {})
            try:
                record = self.ctx.tracker.create(draft_to_fields(draft))
            except (StorageError, ValueError) as ex:
                # correlation stays pending so the click can be retried
                log_error(
                    "track_from_notification_failed",
                    notification_id=notification_id,
                    error=repr(ex),
                )
                raise
            self.ctx.notifier.notify(
                "Job Tracked!", f"{record.position} at {record.company} has been added."
            )
            self._finish(notification_id, TRACKED)
            return record
        finally:
            self.ctx.notifier.clear(notification_id)

    def on_clicked(self, notification_id: str) -> None:
        self._finish(notification_id, DISCARDED)
        self.ctx.notifier.clear(notification_id)

    # --- reminders ---
    def remind_stale(self) -> Optional[str]:
        if not self.ctx.settings.notifications:
            return None
        days = int(self.ctx.cfg["reminders"]["stale_after_days"])
        stale = self.ctx.tracker.stale_records(days=days)
        if not stale:
            return None
        period = "a week" if days == 7 else f"{days} day(s)"
        return self.ctx.notifier.notify(
            "Application Reminder",
            f"You have {len(stale)} application(s) pending for over {period}. "
            "Consider following up!",
        )

    # --- internals ---
    def _correlation_slot(self, notification_id: str) -> tuple[KeyValueStore, str]:
        key = f"notification_{notification_id}"
        if self.ctx.session_store is not None:
            return self.ctx.session_store, key
        return self.ctx.store, _FALLBACK_PREFIX + key

    def _load_correlation(self, notification_id: str) -> Dict[str, Any]:
        store, key = self._correlation_slot(notification_id)
        correlation = store.get([key]).get(key) or {}
        if correlation and correlation.get("state", PENDING) != PENDING:
            return {}
        return correlation

    def _finish(self, notification_id: str, state: str) -> None:
        store, key = self._correlation_slot(notification_id)
        correlation = store.get([key]).get(key)
        if not correlation:
            return
        _transition(correlation.get("state", PENDING), state)
        store.remove([key])
        log_event("correlation_closed", notification_id=notification_id, state=state)
