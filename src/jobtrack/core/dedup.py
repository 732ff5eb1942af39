from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from .schema import ApplicationRecord, JobDraft

RecordLike = Union[ApplicationRecord, Mapping[str, Any]]


def _field(record: RecordLike, name: str) -> str:
    if isinstance(record, Mapping):
        return str(record.get(name) or "")
    return str(getattr(record, name, "") or "")


def is_duplicate(draft: JobDraft, existing: Iterable[RecordLike]) -> bool:
    """True when a record shares the draft's (non-empty) URL, or its exact company and position.

    Empty URLs never match each other; pages without a URL are common.
    """
    for record in existing:
        if draft.url and _field(record, "url") == draft.url:
            return True
        if (
            _field(record, "company") == draft.company
            and _field(record, "position") == draft.position
        ):
            return True
    return False
