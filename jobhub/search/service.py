"""Job search service: filtered store query, relevance ranking, summary.

search_jobs is the caller contract; SearchSession keeps at most one search
in flight and treats a superseded search as a silent no-op.
"""

import asyncio
import json
import logging
import sqlite3
from collections.abc import Awaitable, Callable
from typing import Any

from jobhub.core.config import SearchConfig
from jobhub.core.db import count_jobs, select_jobs, utc_now_iso
from jobhub.core.schemas import JobFilters, JobRecord, JobSearchResult, JobSearchSummary
from jobhub.search.relevance import build_job_search_summary, build_query_tokens, score_by_relevance

logger = logging.getLogger(__name__)

SearchFn = Callable[..., Awaitable[JobSearchResult]]


def row_to_record(row: sqlite3.Row | dict[str, Any]) -> JobRecord:
    """Map a jobs table row to a JobRecord."""
    data = dict(row)
    tags = data.get("tags")
    if isinstance(tags, str):
        tags = json.loads(tags) if tags else []
    return JobRecord(
        id=str(data["id"]),
        title=data.get("title") or "",
        company=data.get("company") or "",
        location=data.get("location") or "",
        category=data.get("category") or "",
        description=data.get("description") or "",
        remote=bool(data.get("remote")),
        salary_min=float(data.get("salary_min") or 0),
        salary_max=float(data.get("salary_max") or 0),
        tags=[tag for tag in tags or [] if isinstance(tag, str)],
        created_at=data.get("created_at") or utc_now_iso(),
        source=data.get("source") or None,
        external_id=data.get("external_id") or None,
        external_url=data.get("external_url") or None,
        fetched_at=data.get("fetched_at") or None,
    )


def resolve_limit(filters: JobFilters, config: SearchConfig) -> int:
    limit = filters.limit or config.default_limit
    return min(limit, config.max_limit)


async def search_jobs(
    conn: sqlite3.Connection,
    filters: JobFilters | None = None,
    *,
    config: SearchConfig | None = None,
) -> JobSearchResult:
    """Return ranked jobs for filters, the facets of that page, and the total match count.

    Store errors propagate unchanged.
    """
    filters = filters or JobFilters()
    config = config or SearchConfig()
    limit = resolve_limit(filters, config)

    rows = select_jobs(conn, filters, limit, filters.offset)
    total = count_jobs(conn, filters)
    jobs = [row_to_record(row) for row in rows]

    ranked = score_by_relevance(jobs, build_query_tokens(filters.query))
    logger.debug("Search matched %d jobs (%d in window)", total, len(ranked))
    return JobSearchResult(
        jobs=ranked,
        summary=build_job_search_summary(ranked),
        total_count=total,
    )


class SearchSession:
    """Tracks the latest search for one caller.

    Starting a search cancels the one still in flight. A cancelled search
    changes nothing; a failed one clears jobs and records the message.

    Usage::

        session = SearchSession(conn, settings.search)
        await session.search(JobFilters(query="pm"))
        session.jobs, session.summary, session.error
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        config: SearchConfig | None = None,
        *,
        search_fn: SearchFn = search_jobs,
    ) -> None:
        self._conn = conn
        self._config = config or SearchConfig()
        self._search_fn = search_fn
        self._task: asyncio.Task[JobSearchResult] | None = None
        self.jobs: list[JobRecord] = []
        self.summary = JobSearchSummary()
        self.total_count = 0
        self.error: str | None = None
        self.is_loading = False

    async def search(self, filters: JobFilters) -> JobSearchResult | None:
        """Run a search, superseding any in-flight one.

        Returns None when the search was cancelled or failed.
        """
        self.cancel()
        self.is_loading = True
        task = asyncio.ensure_future(self._search_fn(self._conn, filters, config=self._config))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("Search cancelled")
            if self._task is task:
                self.is_loading = False
            return None
        except Exception as e:
            if self._task is task:
                self.jobs = []
                self.error = str(e) or type(e).__name__
                self.is_loading = False
            logger.warning("Search failed: %s", e)
            return None

        if self._task is task:
            self.jobs = result.jobs
            self.summary = result.summary
            self.total_count = result.total_count
            self.error = None
            self.is_loading = False
        return result

    def cancel(self) -> None:
        """Cancel the in-flight search, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
