from __future__ import annotations

from ...core.extract import PageDocument
from ...core.schema import JobDraft
from .base import (
    SiteProfile,
    jsonld_company,
    jsonld_position,
    run_cascade,
    title_company,
    title_position,
)

PROFILE = SiteProfile(
    site_id="indeed",
    host_tokens=("indeed",),
    company=(
        '[data-testid="inlineHeader-companyName"] a',
        '[data-testid="inlineHeader-companyName"]',
        ".jobsearch-InlineCompanyRating-companyHeader a",
        ".jobsearch-InlineCompanyRating-companyHeader",
        ".icl-u-lg-mr--sm a",
        ".icl-u-lg-mr--sm",
        "[data-company-name]",
        ".companyName a",
        ".companyName",
    ),
    position=(
        '[data-testid="jobsearch-JobInfoHeader-title"]',
        ".jobsearch-JobInfoHeader-title",
        "h1.jobsearch-JobInfoHeader-title",
        ".jobTitle",
        "h1",
    ),
    location=(
        '[data-testid="inlineHeader-companyLocation"]',
        '[data-testid="job-location"]',
        ".jobsearch-JobInfoHeader-subtitle > div:last-child",
        ".companyLocation",
    ),
    salary=(
        '[data-testid="attribute_snippet_testid"]',
        ".jobsearch-JobMetadataHeader-item",
        "#salaryInfoAndJobType",
        ".salary-snippet",
    ),
    description=(
        "#jobDescriptionText",
        ".jobsearch-jobDescriptionText",
        '[data-testid="jobDescriptionText"]',
    ),
    company_fallbacks=(jsonld_company, title_company),
    position_fallbacks=(jsonld_position, title_position),
)


def scrape(doc: PageDocument, **kwargs) -> JobDraft:
    return run_cascade(PROFILE, doc, **kwargs)
