from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from ...core.extract import Locator, PageDocument, element_text, first_match, jsonld_text
from ...core.schema import JobDraft
from ...core.skills import DEFAULT_MAX_SKILLS, SkillExtractor, default_extractor, merge_skill_tags
from ...core.text_cleaner import DESCRIPTION_MAX_CHARS, head_text, normalize_text, truncate_text

# a fallback step inspects the document once the DOM locators came up empty
Step = Callable[[PageDocument, "SiteProfile"], str]

TITLE_SPLIT_RE = re.compile(r"\s*\|\s*|\s+[-–—]\s+")
TITLE_AT_RE = re.compile(r"\bat\s+(.+?)\s*(?:\||\s[-–—]\s)", re.IGNORECASE)
URL_COMPANY_RE = re.compile(r"company-([^/?#]+)", re.IGNORECASE)


@dataclass(frozen=True)
class SiteProfile:
    """Per-site locator lists and fallback chains, most specific first."""

    site_id: str
    host_tokens: Tuple[str, ...] = ()
    company: Tuple[Locator, ...] = ()
    position: Tuple[Locator, ...] = ()
    location: Tuple[Locator, ...] = ()
    salary: Tuple[Locator, ...] = ()
    description: Tuple[Locator, ...] = ()
    skill_tags: Tuple[str, ...] = ()
    company_fallbacks: Tuple[Step, ...] = ()
    position_fallbacks: Tuple[Step, ...] = ()
    description_fallbacks: Tuple[Step, ...] = ()
    jsonld_strict: bool = True
    main_chars: int = 2000


def title_segments(title: str) -> List[str]:
    return [s.strip() for s in TITLE_SPLIT_RE.split(title or "") if s and s.strip()]


def _names_site(segment: str, profile: SiteProfile) -> bool:
    low = segment.lower()
    return any(t.lower() in low for t in profile.host_tokens if t)


# --- fallback steps ---


def jsonld_company(doc: PageDocument, profile: SiteProfile) -> str:
    job = doc.jsonld_jobposting(strict=profile.jsonld_strict)
    return jsonld_text(job, "hiringOrganization", "name")


def jsonld_position(doc: PageDocument, profile: SiteProfile) -> str:
    job = doc.jsonld_jobposting(strict=profile.jsonld_strict)
    return jsonld_text(job, "title") or jsonld_text(job, "name")


def title_at_company(doc: PageDocument, profile: SiteProfile) -> str:
    """Titles like "Engineer at Acme | Site"."""
    m = TITLE_AT_RE.search(doc.title)
    if not m:
        return ""
    company = m.group(1).strip()
    return "" if _names_site(company, profile) else company


def title_company(doc: PageDocument, profile: SiteProfile) -> str:
    """Titles like "Position - Company | Site": the segment after the position."""
    parts = title_segments(doc.title)
    if len(parts) < 2:
        return ""
    candidate = parts[1]
    return "" if _names_site(candidate, profile) else candidate


def title_position(doc: PageDocument, profile: SiteProfile) -> str:
    parts = title_segments(doc.title)
    return parts[0] if parts else ""


def company_profile_link(doc: PageDocument, profile: SiteProfile) -> str:
    a = doc.select_one('a[href*="/company/"]')
    if a is None:
        return ""
    return element_text(a) or str(a.get("aria-label") or "").strip()


def company_from_url(doc: PageDocument, profile: SiteProfile) -> str:
    m = URL_COMPANY_RE.search(doc.url or "")
    return m.group(1).replace("-", " ").strip() if m else ""


def main_content(doc: PageDocument, profile: SiteProfile) -> str:
    return head_text(doc.main_text(profile.main_chars), profile.main_chars)


# --- evaluator ---


def _run_steps(steps: Sequence[Step], doc: PageDocument, profile: SiteProfile) -> str:
    for step in steps:
        value = (step(doc, profile) or "").strip()
        if value:
            return value
    return ""


def _resolve(
    locators: Sequence[Locator], steps: Sequence[Step], doc: PageDocument, profile: SiteProfile
) -> str:
    return first_match(locators, doc) or _run_steps(steps, doc, profile)


def skill_tag_texts(doc: PageDocument, selectors: Sequence[str]) -> List[str]:
    tags: List[str] = []
    for sel in selectors:
        for node in doc.select(sel):
            t = normalize_text(element_text(node))
            if t:
                tags.append(t)
    return tags


def run_cascade(
    profile: SiteProfile,
    doc: PageDocument,
    *,
    extractor: Optional[SkillExtractor] = None,
    description_max_chars: int = DESCRIPTION_MAX_CHARS,
    main_chars: Optional[int] = None,
) -> JobDraft:
    """Resolve every field independently; a miss leaves that field empty."""
    if main_chars:
        profile = replace(profile, main_chars=main_chars)
    extractor = extractor or default_extractor()
    cap = extractor.max_results or DEFAULT_MAX_SKILLS

    company = _resolve(profile.company, profile.company_fallbacks, doc, profile)
    position = _resolve(profile.position, profile.position_fallbacks, doc, profile)
    location = first_match(profile.location, doc)
    salary = first_match(profile.salary, doc)
    description = _resolve(profile.description, profile.description_fallbacks, doc, profile)

    # skills see the whole description, the draft keeps the truncated one
    skills = extractor.extract(normalize_text(description), max_results=cap)
    if profile.skill_tags:
        skills = merge_skill_tags(skills, skill_tag_texts(doc, profile.skill_tags), cap)

    return JobDraft(
        company=normalize_text(company),
        position=normalize_text(position),
        location=normalize_text(location),
        salary=normalize_text(salary),
        skills=skills,
        description=truncate_text(description, description_max_chars),
        url=doc.url,
    )
