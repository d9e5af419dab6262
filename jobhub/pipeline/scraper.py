"""Scraper: drives a provider across pages, converts jobs to rows, upserts.

Data flow for one provider:
  1. Configuration gate (unconfigured -> empty result, no I/O)
  2. Paginated fetch until a stop condition
  3. ProviderJob -> JobRow (defaults, salary clamp, tag cleanup, URL resolution)
  4. Chunked upsert keyed on (source, external_id)
"""

import logging
import math
import sqlite3

import httpx

from jobhub.core.config import ScraperConfig
from jobhub.core.db import upsert_jobs, utc_now_iso
from jobhub.core.schemas import JobRow, ProviderContext, ProviderJob, ProviderSettings, ScrapeResult
from jobhub.providers.base import JobProvider
from jobhub.utils import chunked, uniq_preserve_order

logger = logging.getLogger(__name__)

SEARCH_FALLBACK_URL = "https://www.google.com/search"


def sanitize_tags(tags: list[str] | None, max_tags: int = 8) -> list[str]:
    """Trim, drop blanks, dedupe (case-sensitive) and cap."""
    if not tags:
        return []
    cleaned = [tag.strip() for tag in tags if isinstance(tag, str)]
    return uniq_preserve_order(tag for tag in cleaned if tag)[:max_tags]


def normalize_number(value: float | None) -> float:
    """Finite non-negative numbers pass through; anything else becomes 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def is_http_url(value: str | None) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not value:
        return False
    try:
        url = httpx.URL(value.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def resolve_external_url(provider: JobProvider, job: ProviderJob) -> str:
    """Return a clickable absolute URL for a job.

    Order: explicit external_url, then external_id when it is itself a URL,
    then a web search for title, company, provider label and external id.
    """
    if job.external_url and is_http_url(job.external_url):
        return job.external_url.strip()
    if is_http_url(job.external_id):
        return job.external_id.strip()
    terms = " ".join(
        part.strip()
        for part in (job.title, job.company, provider.label, job.external_id)
        if part and part.strip()
    )
    return str(httpx.URL(SEARCH_FALLBACK_URL, params={"q": terms}))


def to_job_row(
    provider: JobProvider,
    job: ProviderJob,
    config: ScraperConfig | None = None,
    *,
    fetched_at: str | None = None,
) -> JobRow | None:
    """Convert a ProviderJob to a storage row, or None when id/title are blank."""
    config = config or ScraperConfig()
    if not job.external_id or not job.title:
        return None

    salary_min = normalize_number(job.salary_min)
    salary_max = max(salary_min, normalize_number(job.salary_max))

    return JobRow(
        title=job.title,
        company=job.company or provider.label,
        location=job.location or config.default_location,
        category=job.category or provider.default_category,
        description=job.description or "",
        remote=bool(job.remote),
        salary_min=salary_min,
        salary_max=salary_max,
        tags=sanitize_tags(job.tags, config.max_tags),
        source=provider.id,
        external_id=job.external_id,
        external_url=resolve_external_url(provider, job),
        fetched_at=job.published_at or fetched_at or utc_now_iso(),
    )


async def collect_jobs(
    provider: JobProvider,
    settings: ProviderSettings | None,
    config: ScraperConfig | None = None,
) -> list[ProviderJob]:
    """Fetch every page a provider will give, within the configured bounds.

    Unpaginated providers get a single call. Paginated providers are walked
    page by page until a batch is empty, a batch comes back short, the job
    cap is reached, or max_pages pages have been requested.
    """
    config = config or ScraperConfig()
    limit = provider.max_batch_size or config.default_batch_size

    if provider.pagination is None:
        jobs = await provider.fetch_jobs(ProviderContext(limit=limit), settings)
        logger.info("%s: fetched %d jobs", provider.id, len(jobs))
        return jobs[: config.max_jobs_per_run]

    start_page = provider.pagination.start_page if provider.pagination.start_page is not None else 1
    max_pages = provider.pagination.max_pages or config.default_max_pages

    collected: list[ProviderJob] = []
    for page in range(start_page, start_page + max_pages):
        batch = await provider.fetch_jobs(ProviderContext(limit=limit, page=page), settings)
        logger.info("%s: page %d returned %d jobs", provider.id, page, len(batch))
        if not batch:
            logger.debug("%s: stopping, empty page %d", provider.id, page)
            break
        collected.extend(batch)
        if len(collected) >= config.max_jobs_per_run:
            logger.debug("%s: stopping, reached %d jobs", provider.id, config.max_jobs_per_run)
            break
        if len(batch) < limit:
            logger.debug("%s: stopping, short page %d (%d < %d)", provider.id, page, len(batch), limit)
            break
    else:
        logger.debug("%s: stopping, max pages (%d) reached", provider.id, max_pages)

    return collected[: config.max_jobs_per_run]


async def scrape_provider(
    provider: JobProvider,
    settings: ProviderSettings | None,
    conn: sqlite3.Connection,
    config: ScraperConfig | None = None,
) -> ScrapeResult:
    """Fetch, convert and persist one provider's jobs.

    Store errors propagate to the caller.
    """
    config = config or ScraperConfig()
    if not provider.is_configured(settings):
        logger.debug("%s: not configured, skipping", provider.id)
        return ScrapeResult(provider_id=provider.id)

    jobs = await collect_jobs(provider, settings, config)
    stamp = utc_now_iso()
    rows = [row for row in (to_job_row(provider, job, config, fetched_at=stamp) for job in jobs) if row]
    if len(rows) < len(jobs):
        logger.debug("%s: dropped %d jobs without id or title", provider.id, len(jobs) - len(rows))

    persisted = 0
    for chunk in chunked(rows, config.upsert_chunk_size):
        count = upsert_jobs(conn, chunk)
        logger.debug("%s: upserted chunk of %d (%d affected)", provider.id, len(chunk), count)
        persisted += count

    return ScrapeResult(provider_id=provider.id, fetched=len(jobs), persisted=persisted)
