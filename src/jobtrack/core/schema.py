from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from jsonschema import ValidationError
from jsonschema import validate as js_validate

from .utils import normalize_whitespace, parse_date

STATUSES = ("pending", "applied", "interview", "offer", "rejected")
STATUS_CYCLE = ("applied", "pending", "interview", "offer", "rejected")
ACTIVE_STATUSES = ("applied", "interview")
DEFAULT_STATUS = "applied"

EXPORT_VERSION = "1.0.0"

# fields a caller may set through create/update; id and createdAt are never in here
MUTABLE_FIELDS = ("company", "position", "status", "dateApplied", "url", "skills", "notes")

IMPORT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["applications"],
    "properties": {
        "applications": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "company": {"type": "string"},
                    "position": {"type": "string"},
                    "status": {"enum": list(STATUSES)},
                    "dateApplied": {"type": "string"},
                    "url": {"type": "string"},
                    "skills": {"type": "array", "items": {"type": "string"}},
                    "notes": {"type": "string"},
                    "createdAt": {"type": "string"},
                    "updatedAt": {"type": "string"},
                },
            },
        },
        "settings": {
            "type": "object",
            "properties": {
                "autoCapture": {"type": "boolean"},
                "notifications": {"type": "boolean"},
            },
        },
        "exportedAt": {"type": "string"},
        "version": {"type": "string"},
    },
}


class ImportValidationError(ValueError):
    pass


@dataclass
class JobDraft:
    company: str = ""
    position: str = ""
    location: str = ""
    salary: str = ""
    skills: List[str] = field(default_factory=list)
    description: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobDraft":
        return cls(
            company=str(data.get("company") or ""),
            position=str(data.get("position") or ""),
            location=str(data.get("location") or ""),
            salary=str(data.get("salary") or ""),
            skills=[str(s) for s in (data.get("skills") or [])],
            description=str(data.get("description") or ""),
            url=str(data.get("url") or ""),
        )


@dataclass
class ApplicationRecord:
    id: str
    company: str
    position: str
    status: str
    dateApplied: str
    url: str
    skills: List[str]
    notes: str
    createdAt: str
    updatedAt: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["skills"] = list(self.skills)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationRecord":
        created = str(data.get("createdAt") or "")
        return cls(
            id=str(data["id"]),
            company=str(data.get("company") or ""),
            position=str(data.get("position") or ""),
            status=str(data.get("status") or DEFAULT_STATUS),
            dateApplied=str(data.get("dateApplied") or ""),
            url=str(data.get("url") or ""),
            skills=[str(s) for s in (data.get("skills") or [])],
            notes=str(data.get("notes") or ""),
            createdAt=created,
            updatedAt=str(data.get("updatedAt") or created),
        )


@dataclass
class Settings:
    autoCapture: bool = False
    notifications: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "Settings":
        data = data or {}
        return cls(
            autoCapture=bool(data.get("autoCapture", False)),
            notifications=bool(data.get("notifications", True)),
        )


def validate_status(status: str) -> str:
    if status not in STATUSES:
        raise ValueError(f"Unknown status {status!r}; expected one of {', '.join(STATUSES)}")
    return status


def next_status(status: str) -> str:
    try:
        idx = STATUS_CYCLE.index(status)
    except ValueError:
        # unknown values restart the cycle
        idx = -1
    return STATUS_CYCLE[(idx + 1) % len(STATUS_CYCLE)]


def normalize_date_applied(raw: str) -> str:
    """ISO day for ``raw``; "" for blank input, ValueError for anything else that is not a date."""
    if not normalize_whitespace(raw):
        return ""
    d = parse_date(raw)
    if d is None:
        raise ValueError(f"Invalid dateApplied {raw!r}; expected a date such as 2024-01-31")
    return d.isoformat()


def draft_to_fields(draft: JobDraft) -> Dict[str, Any]:
    """The part of a draft that becomes a record; location/salary/description stay behind."""
    return {
        "company": draft.company,
        "position": draft.position,
        "url": draft.url,
        "skills": list(draft.skills),
    }


def clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keep known mutable fields only and coerce their types."""
    out: Dict[str, Any] = {}
    for key in MUTABLE_FIELDS:
        if key not in fields or fields[key] is None:
            continue
        val = fields[key]
        if key == "skills":
            if isinstance(val, str):
                val = [s for s in (normalize_whitespace(p) for p in val.split(",")) if s]
            out[key] = list(dict.fromkeys(str(s) for s in val))
        elif key == "status":
            out[key] = validate_status(str(val))
        elif key == "dateApplied":
            day = normalize_date_applied(str(val))
            if day:
                out[key] = day
        elif key in ("company", "position"):
            out[key] = str(val).strip()
        else:
            out[key] = str(val)
    return out


def validate_import_payload(data: Any) -> None:
    try:
        js_validate(instance=data, schema=IMPORT_SCHEMA)
    except ValidationError as ex:
        raise ImportValidationError(f"Invalid import file: {ex.message}") from ex
    ids = [a["id"] for a in data["applications"]]
    if len(ids) != len(set(ids)):
        raise ImportValidationError("Invalid import file: duplicate application ids")
