from __future__ import annotations

import secrets
import string
import time
from datetime import date, datetime, timedelta, timezone
from typing import Iterable
from urllib.parse import urlparse

from dateutil import parser as date_parser

_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """ISO timestamp in UTC with microseconds and a trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def now_utc_iso() -> str:
    return format_timestamp(now_utc())


def parse_timestamp(raw: str) -> datetime | None:
    if not raw:
        return None
    try:
        dt = date_parser.isoparse(raw)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def next_timestamp(previous: str = "") -> str:
    """Current time, forced strictly past ``previous`` when the clock has not moved."""
    now = now_utc()
    prev = parse_timestamp(previous)
    if prev is not None and now <= prev:
        now = prev + timedelta(microseconds=1)
    return format_timestamp(now)


def today_iso() -> str:
    return now_utc().date().isoformat()


_PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(raw: str) -> date | None:
    """Day-precision date, or None when year, month or day is missing or invalid."""
    raw = normalize_whitespace(raw)
    if not raw:
        return None
    try:
        # parsed twice with different defaults: any component taken from a default differs
        first, second = (date_parser.parse(raw, default=d).date() for d in _PARSE_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    return first if first == second else None


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ID_ALPHABET[r])
    return "".join(reversed(out))


def make_record_id(taken: Iterable[str] = ()) -> str:
    """Time-ordered opaque id; retries on the (unlikely) collision with ``taken``."""
    existing = set(taken)
    while True:
        stamp = _base36(int(time.time() * 1000))
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        rid = stamp + suffix
        if rid not in existing:
            return rid


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def url_host(url: str) -> str:
    if not url:
        return ""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
