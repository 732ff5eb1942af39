from __future__ import annotations

from ...core.extract import PageDocument
from ...core.schema import JobDraft
from .base import (
    SiteProfile,
    company_from_url,
    jsonld_company,
    jsonld_position,
    run_cascade,
    title_company,
    title_position,
)

# Naukri.com; the styles_* class names carry build hashes and rotate often
PROFILE = SiteProfile(
    site_id="naukri",
    host_tokens=("naukri",),
    company=(
        "a.comp-name",
        ".comp-name",
        "a[data-company-name]",
        "[data-company-name]",
        ".jd-header-comp-name a",
        ".jd-header-comp-name",
        ".company-info .name",
        ".company-info a",
        ".companyName a",
        ".companyName",
        '.naukri-jd-header a[href*="company"]',
        'a[href*="/company-jobs"]',
        ".cname a",
        ".cname",
        ".styles_jd-header-comp-name__MvqAI a",
        ".styles_jd-header-comp-name__MvqAI",
        '[class*="comp-name"] a',
        '[class*="comp-name"]',
        '[class*="companyName"]',
    ),
    position=(
        "h1.jd-header-title",
        ".jd-header-title",
        'h1[class*="title"]',
        ".styles_jd-header-title__rZwM1",
        ".title",
        ".job-title",
        "h1",
        "[data-title]",
    ),
    location=(
        ".location a",
        ".location",
        ".loc a",
        ".loc",
        '[class*="location"]',
        ".jd-location span",
        ".jd-location",
    ),
    salary=(
        ".salary",
        ".sal",
        '[class*="salary"]',
        ".jd-salary span",
    ),
    description=(
        ".job-desc",
        ".jd-desc",
        ".styles_JDC__dang-inner-html__h0K4t",
        '[class*="job-desc"]',
        '[class*="description"]',
        ".dang-inner-html",
    ),
    skill_tags=(
        ".chip-wrap a",
        ".key-skill a",
        '[class*="skill"] a',
        ".chipWrap a",
    ),
    company_fallbacks=(jsonld_company, title_company, company_from_url),
    position_fallbacks=(jsonld_position, title_position),
    # Naukri's first ld+json block is the posting even when @type is missing
    jsonld_strict=False,
)


def scrape(doc: PageDocument, **kwargs) -> JobDraft:
    return run_cascade(PROFILE, doc, **kwargs)
