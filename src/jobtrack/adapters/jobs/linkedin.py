from __future__ import annotations

from ...core.extract import PageDocument
from ...core.schema import JobDraft
from .base import (
    SiteProfile,
    company_profile_link,
    jsonld_company,
    jsonld_position,
    run_cascade,
    title_at_company,
    title_company,
    title_position,
)

# LinkedIn ships a logged-in layout (jobs-unified-top-card) and a public one (topcard)
PROFILE = SiteProfile(
    site_id="linkedin",
    host_tokens=("linkedin",),
    company=(
        ".job-details-jobs-unified-top-card__company-name a",
        ".job-details-jobs-unified-top-card__company-name",
        ".jobs-unified-top-card__company-name a",
        ".jobs-unified-top-card__company-name",
        ".job-details-jobs-unified-top-card__primary-description-container a",
        ".job-details-jobs-unified-top-card__primary-description a",
        'a[data-tracking-control-name="public_jobs_topcard-org-name"]',
        ".topcard__org-name-link",
        '.top-card-layout__card a[data-tracking-control-name*="company"]',
        "span.job-details-jobs-unified-top-card__company-name",
        '[data-test-id="job-details-company-name"]',
    ),
    position=(
        ".job-details-jobs-unified-top-card__job-title h1",
        ".job-details-jobs-unified-top-card__job-title",
        "h1.job-details-jobs-unified-top-card__job-title",
        ".jobs-unified-top-card__job-title h1",
        ".jobs-unified-top-card__job-title",
        ".top-card-layout__title",
        ".topcard__title",
        "h1.t-24",
        "h1.t-18",
        'h1[class*="title"]',
        "h1",
    ),
    location=(
        ".job-details-jobs-unified-top-card__primary-description-container .tvm__text",
        ".job-details-jobs-unified-top-card__bullet",
        ".jobs-unified-top-card__bullet",
        ".topcard__flavor--bullet",
        ".top-card-layout__second-subline span",
        '[class*="location"]',
    ),
    description=(
        ".jobs-description-content__text",
        ".jobs-description__content",
        ".jobs-box__html-content",
        "#job-details",
        ".description__text",
        ".show-more-less-html__markup",
        '[class*="description"]',
    ),
    company_fallbacks=(jsonld_company, title_at_company, title_company, company_profile_link),
    position_fallbacks=(jsonld_position, title_position),
)


def scrape(doc: PageDocument, **kwargs) -> JobDraft:
    return run_cascade(PROFILE, doc, **kwargs)
