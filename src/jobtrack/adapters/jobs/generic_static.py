from __future__ import annotations

from ...core.extract import PageDocument
from ...core.schema import JobDraft
from .base import (
    SiteProfile,
    jsonld_company,
    jsonld_position,
    main_content,
    run_cascade,
    title_position,
)

# Any other site: class-name heuristics, then JSON-LD, then the page itself.
PROFILE = SiteProfile(
    site_id="generic",
    company=(
        '[class*="company"]',
        '[class*="employer"]',
        '[class*="organization"]',
    ),
    position=(
        "h1",
        '[class*="title"]',
    ),
    description=(
        '[class*="description"]',
        '[class*="details"]',
    ),
    company_fallbacks=(jsonld_company,),
    position_fallbacks=(jsonld_position, title_position),
    description_fallbacks=(main_content,),
    main_chars=2000,
)


def scrape(doc: PageDocument, **kwargs) -> JobDraft:
    return run_cascade(PROFILE, doc, **kwargs)
