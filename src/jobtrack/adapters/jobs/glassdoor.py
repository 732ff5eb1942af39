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
    site_id="glassdoor",
    host_tokens=("glassdoor",),
    company=(
        '[data-test="employerName"]',
        ".employer-name",
        ".e1tk4kwz4",
        'div[data-test="employer-name"]',
        ".EmployerProfile_employerName__0R1C4",
    ),
    position=(
        '[data-test="jobTitle"]',
        ".job-title",
        'h1[data-test="job-title"]',
        ".JobDetails_jobTitle__Rq2LN",
        "h1",
    ),
    location=(
        '[data-test="location"]',
        ".location",
        '[data-test="emp-location"]',
        ".JobDetails_location__mSg5h",
    ),
    salary=(
        '[data-test="detailSalary"]',
        ".salary-estimate",
        ".css-1xe2xww",
        ".SalaryEstimate_salaryEstimate__Pnjs5",
    ),
    description=(
        ".jobDescriptionContent",
        '[data-test="jobDescriptionContent"]',
        ".desc",
        ".JobDetails_jobDescription__uW_fK",
    ),
    company_fallbacks=(jsonld_company, title_company),
    position_fallbacks=(jsonld_position, title_position),
)


def scrape(doc: PageDocument, **kwargs) -> JobDraft:
    return run_cascade(PROFILE, doc, **kwargs)
