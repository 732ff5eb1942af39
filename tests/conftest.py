from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from jobtrack.core.config import default_config
from jobtrack.core.context import AppContext
from jobtrack.core.db import MemoryStore, StorageError


class RecordingNotifier:
    def __init__(self) -> None:
        self.shown: List[Dict[str, Any]] = []
        self.cleared: List[str] = []

    def notify(self, title: str, message: str, buttons: Optional[List[str]] = None) -> str:
        notification_id = f"n{len(self.shown) + 1}"
        self.shown.append(
            {"id": notification_id, "title": title, "message": message, "buttons": buttons or []}
        )
        return notification_id

    def clear(self, notification_id: str) -> None:
        self.cleared.append(notification_id)

    @property
    def titles(self) -> List[str]:
        return [n["title"] for n in self.shown]


class FlakyStore(MemoryStore):
    """Memory store whose writes can be made to fail."""

    area_name = "local"

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def set(self, items: Dict[str, Any]) -> None:
        if self.fail:
            raise StorageError("disk full")
        super().set(items)


@pytest.fixture
def cfg() -> Dict[str, Any]:
    return default_config(":memory:")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def ctx(cfg, notifier):
    c = AppContext.in_memory(cfg, notifier=notifier)
    yield c
    c.close()


@pytest.fixture
def flaky_store() -> FlakyStore:
    return FlakyStore()


LINKEDIN_TITLE_ONLY = """
<html><head><title>Senior Engineer - Acme Corp | LinkedIn</title></head>
<body><div class="unrelated">nothing here</div></body></html>
"""

LINKEDIN_TOPCARD = """
<html><head><title>Platform Engineer | Initrode | LinkedIn</title></head>
<body>
  <div class="job-details-jobs-unified-top-card__company-name"><a href="/company/initrode">Initrode</a></div>
  <div class="job-details-jobs-unified-top-card__job-title"><h1>Platform Engineer</h1></div>
  <span class="job-details-jobs-unified-top-card__bullet">Remote</span>
  <div class="jobs-description-content__text">
    We run Kubernetes and Terraform on AWS.
    Services are written in Python.
  </div>
</body></html>
"""


@pytest.fixture
def linkedin_title_only() -> str:
    return LINKEDIN_TITLE_ONLY


@pytest.fixture
def linkedin_topcard() -> str:
    return LINKEDIN_TOPCARD
