from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .db import KeyValueStore, MemoryStore, SqliteStore
from .logging import log_event
from .notify import ConsoleNotifier, Notifier
from .schema import ACTIVE_STATUSES, Settings
from .skills import SkillExtractor
from .tracker import APPLICATIONS_KEY, ApplicationTracker


@dataclass
class AppContext:
    """Everything a trigger needs: config, stores, notifier and the tracker.

    Built once on start (``open``), torn down with ``close``.
    """

    cfg: Dict[str, Any]
    store: KeyValueStore
    notifier: Notifier
    session_store: Optional[KeyValueStore] = None
    tracker: ApplicationTracker = field(init=False)
    skills: SkillExtractor = field(init=False)
    badge_text: str = ""

    def __post_init__(self) -> None:
        self.tracker = ApplicationTracker(
            self.store, default_settings=Settings.from_dict(self.cfg.get("settings"))
        )
        self.skills = SkillExtractor(max_results=int(self.cfg["skills"]["max_results"]))
        self.store.add_listener(self._on_store_changed)

    @classmethod
    def open(
        cls,
        cfg: Dict[str, Any],
        *,
        notifier: Optional[Notifier] = None,
        session_store: Optional[KeyValueStore] = None,
    ) -> "AppContext":
        store = SqliteStore(cfg["runtime"]["state_db_path"])
        ctx = cls(
            cfg=cfg,
            store=store,
            notifier=notifier or ConsoleNotifier(),
            session_store=session_store,
        )
        ctx.hydrate()
        return ctx

    @classmethod
    def in_memory(cls, cfg: Dict[str, Any], *, notifier: Notifier) -> "AppContext":
        ctx = cls(
            cfg=cfg,
            store=SqliteStore(":memory:"),
            notifier=notifier,
            session_store=MemoryStore(),
        )
        ctx.hydrate()
        return ctx

    @property
    def settings(self) -> Settings:
        return self.tracker.settings

    def hydrate(self) -> None:
        self.tracker.load()
        self.refresh_badge()
        log_event("context_hydrated", records=len(self.tracker.records()))

    def refresh_badge(self) -> str:
        count = self.tracker.badge_count()
        self.badge_text = str(count) if count > 0 else ""
        return self.badge_text

    def close(self) -> None:
        close = getattr(self.store, "close", None)
        if callable(close):
            close()

    def _on_store_changed(self, changes: Dict[str, Dict[str, Any]], area_name: str) -> None:
        if area_name == "local" and APPLICATIONS_KEY in changes:
            # tracker swaps its list only after the write returns, so count from the new value
            new = changes[APPLICATIONS_KEY].get("newValue") or []
            count = sum(1 for a in new if a.get("status") in ACTIVE_STATUSES)
            self.badge_text = str(count) if count > 0 else ""
