from __future__ import annotations

import re
from typing import Optional

RE_MULTI_SPACE = re.compile(r"\s+")

DESCRIPTION_MAX_CHARS = 500


def normalize_text(text: Optional[str]) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    if not text:
        return ""
    return RE_MULTI_SPACE.sub(" ", str(text)).strip()


def truncate_text(text: Optional[str], max_chars: int = DESCRIPTION_MAX_CHARS) -> str:
    """First ``max_chars`` characters of the normalized text."""
    if max_chars <= 0:
        return ""
    return normalize_text(text)[:max_chars]


def head_text(text: Optional[str], max_chars: int) -> str:
    # raw slice, normalization happens later in the draft
    if not text or max_chars <= 0:
        return ""
    return str(text)[:max_chars]
