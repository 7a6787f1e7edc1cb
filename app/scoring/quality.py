"""Listing quality score used for display ranking.

Scoring breakdown:
    Link quality:    0-30 (direct ATS 30, employer site 20, job board 0)
    Salary data:     0-20 (explicit 20, estimated 10)
    Description:     0-10
    Location:        0-10 (city + state 10, state only 5)
    Employer-posted: 0-30

The score is a pure function of its inputs, so it can be recomputed for
stored jobs at any time.
"""

from typing import Optional
from urllib.parse import urlsplit

from app.domain.models import CandidateJob

MAX_SCORE = 100

# Apply links that open the employer's own application form
DIRECT_ATS_DOMAINS = (
    "boards.greenhouse.io",
    "job-boards.greenhouse.io",
    "jobs.lever.co",
    "jobs.ashbyhq.com",
    "myworkdayjobs.com",
    "myworkdaysite.com",
    "careers.icims.com",
    "bamboohr.com",
    "breezy.hr",
    "workable.com",
    "recruitee.com",
    "jazz.co",
    "jobvite.com",
    "smartrecruiters.com",
    "paylocity.com",
    "paycomonline.net",
    "ultipro.com",
    "clearcompany.com",
    "applytojob.com",
    "pinpointhq.com",
    "usajobs.gov",
    "governmentjobs.com",
    "healthcaresource.com",
    "dayforce.com",
)

# Aggregators that redirect before the employer's form
JOB_BOARD_DOMAINS = (
    "indeed.com",
    "ziprecruiter.com",
    "linkedin.com",
    "glassdoor.com",
    "monster.com",
    "simplyhired.com",
    "snagajob.com",
    "talent.com",
    "lensa.com",
    "ladders.com",
    "bebee.com",
    "doccafe.com",
    "practicematch.com",
    "doximity.com",
    "jobrapido.com",
    "whatjobs.com",
    "jooble.org",
    "adzuna.com",
    "jobtarget.com",
    "getwork.com",
    "jobilize.com",
)


def _hostname(url: Optional[str]) -> str:
    if not url:
        return ""
    try:
        return (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        return ""


def _matches_domain(hostname: str, domains) -> bool:
    return any(hostname == domain or hostname.endswith("." + domain) for domain in domains)


def link_points(apply_link: Optional[str]) -> int:
    hostname = _hostname(apply_link)
    if not hostname or _matches_domain(hostname, JOB_BOARD_DOMAINS):
        return 0
    if _matches_domain(hostname, DIRECT_ATS_DOMAINS):
        return 30
    return 20


def compute_quality_score(
    apply_link: Optional[str],
    normalized_min_salary: Optional[int] = None,
    normalized_max_salary: Optional[int] = None,
    salary_is_estimated: bool = False,
    description_summary: Optional[str] = None,
    description: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    is_employer_posted: bool = False,
) -> int:
    """Compute a 0-100 quality score for a listing.

    Args:
        apply_link: Apply URL
        normalized_min_salary: Annualized minimum, if known
        normalized_max_salary: Annualized maximum, if known
        salary_is_estimated: Whether the salary was inferred or predicted
        description_summary: Short summary
        description: Full description
        city: Parsed city
        state: Parsed state
        is_employer_posted: Posted directly by the employer rather than aggregated

    Returns:
        Integer score clamped to [0, 100]
    """
    score = link_points(apply_link)

    if normalized_min_salary is not None or normalized_max_salary is not None:
        score += 10 if salary_is_estimated else 20

    if description_summary and len(description_summary) > 20:
        score += 10
    elif description and len(description) > 200:
        score += 5

    if city and state:
        score += 10
    elif state:
        score += 5

    if is_employer_posted:
        score += 30

    return max(0, min(score, MAX_SCORE))


def score_candidate(candidate: CandidateJob, is_employer_posted: bool = False) -> int:
    """Score a normalized candidate."""
    return compute_quality_score(
        apply_link=candidate.apply_url,
        normalized_min_salary=candidate.normalized_min_salary,
        normalized_max_salary=candidate.normalized_max_salary,
        salary_is_estimated=candidate.salary_is_estimated,
        description_summary=candidate.description_summary,
        description=candidate.description,
        city=candidate.city,
        state=candidate.state,
        is_employer_posted=is_employer_posted,
    )
