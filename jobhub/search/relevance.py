"""Relevance ranking and result-set summary for job search.

Per-token weights: title 6, company 4, description 2.5, location 3, tag 5.
Boosts: recency (3 -> 0 over 21 days), salary band, remote +1.
"""

import logging
import math
import re
import unicodedata
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timezone

from jobhub.core.schemas import JobRecord, JobSearchSummary, LabelCount, SalaryRange

logger = logging.getLogger(__name__)

SYNONYM_MAP: dict[str, tuple[str, ...]] = {
    "pm": ("product manager", "chef de produit", "product lead"),
    "dev": ("developpeur", "developer", "software engineer", "ingénieur"),
    "tech": ("engineering", "backend", "frontend", "fullstack"),
    "marketing": ("growth", "brand", "crm", "acquisition"),
    "ops": ("operations", "chief of staff", "bizops"),
    "remote": ("full remote", "télétravail"),
    "data": ("analytics", "data engineer", "data scientist"),
}

TITLE_WEIGHT = 6.0
COMPANY_WEIGHT = 4.0
DESCRIPTION_WEIGHT = 2.5
LOCATION_WEIGHT = 3.0
TAG_WEIGHT = 5.0
REMOTE_BOOST = 1.0

RECENCY_WINDOW_DAYS = 21
MAX_RECENCY_BOOST = 3.0

# (minimum salary midpoint, boost), checked top-down.
_SALARY_BANDS: tuple[tuple[float, float], ...] = (
    (100_000, 2.5),
    (80_000, 2.0),
    (60_000, 1.5),
    (45_000, 1.0),
)
_LOW_SALARY_BOOST = 0.5

TOP_LOCATIONS = 5
TOP_TAGS = 6

_TOKEN_SPLIT = re.compile(r"[\s,/]+")


def normalize(value: str) -> str:
    """Strip diacritics, lowercase, trim."""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()


def build_query_tokens(query: str | None) -> list[str]:
    """Split a free-text query into normalized tokens plus synonyms.

    Returns [] for an empty query, meaning no ranking is requested.
    """
    if not query:
        return []
    tokens: dict[str, None] = {}
    for raw in _TOKEN_SPLIT.split(query):
        token = normalize(raw)
        if not token:
            continue
        tokens[token] = None
        for synonym in SYNONYM_MAP.get(token, ()):
            tokens[normalize(synonym)] = None
    return list(tokens)


def recency_boost(created_at: str, now: datetime | None = None) -> float:
    """Linear boost from 3 (now or future) down to 0 at 21+ days old."""
    now = now or datetime.now(timezone.utc)
    try:
        created = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return MAX_RECENCY_BOOST
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)

    diff_days = (now - created).total_seconds() / 86_400
    if diff_days <= 0:
        return MAX_RECENCY_BOOST
    if diff_days >= RECENCY_WINDOW_DAYS:
        return 0.0
    return (RECENCY_WINDOW_DAYS - diff_days) / RECENCY_WINDOW_DAYS * MAX_RECENCY_BOOST


def salary_boost(job: JobRecord) -> float:
    midpoint = (job.salary_min + job.salary_max) / 2
    if not math.isfinite(midpoint) or midpoint <= 0:
        return 0.0
    for floor, boost in _SALARY_BANDS:
        if midpoint >= floor:
            return boost
    return _LOW_SALARY_BOOST


def score_job(job: JobRecord, tokens: Iterable[str], now: datetime | None = None) -> float:
    """Token hits plus recency, salary and remote boosts."""
    title = normalize(job.title)
    company = normalize(job.company)
    description = normalize(job.description)
    location = normalize(job.location)
    tags = [normalize(tag) for tag in job.tags]

    score = 0.0
    for token in tokens:
        if token in title:
            score += TITLE_WEIGHT
        if token in company:
            score += COMPANY_WEIGHT
        if token in description:
            score += DESCRIPTION_WEIGHT
        if token in location:
            score += LOCATION_WEIGHT
        if any(token in tag for tag in tags):
            score += TAG_WEIGHT

    score += recency_boost(job.created_at, now)
    score += salary_boost(job)
    if job.remote:
        score += REMOTE_BOOST
    return score


def score_by_relevance(
    jobs: list[JobRecord],
    tokens: list[str],
    now: datetime | None = None,
) -> list[JobRecord]:
    """Order jobs by descending score; equal scores keep their input order.

    With no tokens the input order is returned untouched.
    """
    if not tokens:
        return jobs
    now = now or datetime.now(timezone.utc)
    scored = [(score_job(job, tokens, now), index, job) for index, job in enumerate(jobs)]
    scored.sort(key=lambda entry: (-entry[0], entry[1]))
    return [job for _, _, job in scored]


def _top_counts(values: Iterable[str], limit: int) -> list[LabelCount]:
    # Ties keep first-seen order.
    counts = Counter(values)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [LabelCount(label=label, count=count) for label, count in ranked[:limit]]


def build_job_search_summary(jobs: list[JobRecord]) -> JobSearchSummary:
    """Facets over a result set: count, remote share, salary range, top locations/tags."""
    if not jobs:
        return JobSearchSummary()

    return JobSearchSummary(
        count=len(jobs),
        remote_share=sum(1 for job in jobs if job.remote) / len(jobs),
        salary_range=SalaryRange(
            min=min(job.salary_min for job in jobs),
            max=max(0.0, max(job.salary_max for job in jobs)),
        ),
        top_locations=_top_counts((job.location for job in jobs if job.location), TOP_LOCATIONS),
        top_tags=_top_counts(
            (tag.strip() for job in jobs for tag in job.tags if tag.strip()),
            TOP_TAGS,
        ),
    )
