from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any, List, Tuple

from ...core.extract import PageDocument
from ...core.logging import log_event
from ...core.schema import JobDraft
from ...core.utils import url_host

GENERIC_SITE = "generic"

# checked in order: host substrings are not mutually exclusive
_SITES: Tuple[Tuple[str, str], ...] = (
    ("linkedin.com", "linkedin"),
    ("naukri.com", "naukri"),
    ("indeed.com", "indeed"),
    ("glassdoor.com", "glassdoor"),
)

_ADAPTER_MODULES = {
    "linkedin": "linkedin",
    "naukri": "naukri",
    "indeed": "indeed",
    "glassdoor": "glassdoor",
    GENERIC_SITE: "generic_static",
}


def dispatch(page_url: str) -> str:
    host = url_host(page_url)
    for token, site_id in _SITES:
        if token in host:
            return site_id
    return GENERIC_SITE


def list_sites() -> List[str]:
    return [site_id for _, site_id in _SITES] + [GENERIC_SITE]


def load_adapter(site_id: str) -> ModuleType:
    name = _ADAPTER_MODULES.get(site_id, _ADAPTER_MODULES[GENERIC_SITE])
    return import_module(f"jobtrack.adapters.jobs.{name}")


def scrape_page(html: str, page_url: str, **kwargs: Any) -> JobDraft:
    """Route a page to its scraper and return the draft; never raises for missing fields."""
    doc = PageDocument(html=html, url=page_url)
    site_id = dispatch(page_url)
    draft = load_adapter(site_id).scrape(doc, **kwargs)
    log_event(
        "page_scraped",
        site=site_id,
        url=page_url,
        has_company=bool(draft.company),
        has_position=bool(draft.position),
        skills=len(draft.skills),
    )
    return draft
