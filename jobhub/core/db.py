"""SQLite database layer for jobs, provider run telemetry, and provider config."""

import json
import sqlite3
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jobhub.core.schemas import JobFilters, JobRow, ProviderRunRow

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    title           TEXT    NOT NULL,
    company         TEXT    NOT NULL DEFAULT '',
    location        TEXT    NOT NULL DEFAULT '',
    category        TEXT    NOT NULL DEFAULT '',
    description     TEXT    NOT NULL DEFAULT '',
    remote          INTEGER NOT NULL DEFAULT 0,
    salary_min      REAL    NOT NULL DEFAULT 0,
    salary_max      REAL    NOT NULL DEFAULT 0,
    tags            TEXT    NOT NULL DEFAULT '[]',
    source          TEXT,
    external_id     TEXT,
    external_url    TEXT,
    fetched_at      TEXT,
    created_at      TEXT    NOT NULL,
    UNIQUE(source, external_id)
);
"""

_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS job_provider_runs (
    provider         TEXT PRIMARY KEY,
    last_run_at      TEXT,
    last_success_at  TEXT,
    status           TEXT NOT NULL DEFAULT 'idle',
    error            TEXT
);
"""

_CONFIG_TABLE = """
CREATE TABLE IF NOT EXISTS job_provider_config (
    provider    TEXT PRIMARY KEY,
    endpoint    TEXT,
    auth_token  TEXT,
    headers     TEXT
);
"""

_RUN_COLUMNS = ("last_run_at", "last_success_at", "status", "error")
_CONFIG_COLUMNS = ("endpoint", "auth_token", "headers")
_TEXT_SEARCH_COLUMNS = ("title", "company", "location", "description")


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.create_function("fold", 1, _fold, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_JOBS_TABLE)
    conn.execute(_RUNS_TABLE)
    conn.execute(_CONFIG_TABLE)
    conn.execute("CREATE INDEX IF NOT EXISTS jobs_created_at ON jobs (created_at)")
    conn.commit()
    return conn


def _fold(value: Any) -> Any:
    """Unicode case folding for text filters; SQLite's LIKE only folds ASCII."""
    return value.casefold() if isinstance(value, str) else value


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def upsert_jobs(
    conn: sqlite3.Connection,
    rows: Sequence[JobRow],
    created_at: str | None = None,
) -> int:
    """Insert or update jobs keyed on (source, external_id).

    created_at is only written on first insert. Returns the number of rows
    inserted or updated.
    """
    if not rows:
        return 0
    stamp = created_at or utc_now_iso()
    cursor = conn.executemany(
        """
        INSERT INTO jobs
            (title, company, location, category, description, remote,
             salary_min, salary_max, tags, source, external_id, external_url,
             fetched_at, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(source, external_id) DO UPDATE SET
            title = excluded.title,
            company = excluded.company,
            location = excluded.location,
            category = excluded.category,
            description = excluded.description,
            remote = excluded.remote,
            salary_min = excluded.salary_min,
            salary_max = excluded.salary_max,
            tags = excluded.tags,
            external_url = excluded.external_url,
            fetched_at = excluded.fetched_at
        """,
        [
            (
                r.title,
                r.company,
                r.location,
                r.category,
                r.description,
                int(r.remote),
                r.salary_min,
                r.salary_max,
                json.dumps(r.tags, ensure_ascii=False),
                r.source,
                r.external_id,
                r.external_url,
                r.fetched_at,
                stamp,
            )
            for r in rows
        ],
    )
    conn.commit()
    return max(cursor.rowcount, 0)


def count_jobs_by_source(conn: sqlite3.Connection, sources: Sequence[str]) -> dict[str, int]:
    """Return {source: stored job count} for each requested source (0 if none)."""
    counts = dict.fromkeys(sources, 0)
    if not sources:
        return counts
    placeholders = ", ".join("?" for _ in sources)
    for row in conn.execute(
        f"SELECT source, COUNT(*) AS n FROM jobs WHERE source IN ({placeholders}) GROUP BY source",
        tuple(sources),
    ):
        counts[row["source"]] = row["n"]
    return counts


def select_jobs(
    conn: sqlite3.Connection,
    filters: JobFilters,
    limit: int,
    offset: int = 0,
) -> list[sqlite3.Row]:
    """Return jobs matching filters, newest first, windowed by limit/offset."""
    where, params = _filter_clause(filters)
    return conn.execute(
        f"SELECT * FROM jobs{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
        (*params, limit, offset),
    ).fetchall()


def count_jobs(conn: sqlite3.Connection, filters: JobFilters) -> int:
    """Count all jobs matching filters, ignoring the result window."""
    where, params = _filter_clause(filters)
    row = conn.execute(f"SELECT COUNT(*) FROM jobs{where}", params).fetchone()
    return int(row[0])


def _filter_clause(filters: JobFilters) -> tuple[str, tuple[Any, ...]]:
    clauses: list[str] = []
    params: list[Any] = []

    if filters.category:
        clauses.append("category = ?")
        params.append(filters.category)
    if filters.provider:
        clauses.append("source = ?")
        params.append(filters.provider)
    if filters.location:
        clauses.append("fold(location) LIKE fold(?) ESCAPE '\\'")
        params.append(_like_pattern(filters.location))
    if filters.remote_only:
        clauses.append("remote = 1")
    if filters.min_salary is not None:
        clauses.append("salary_max >= ?")
        params.append(filters.min_salary)
    if filters.max_salary is not None:
        clauses.append("salary_min <= ?")
        params.append(filters.max_salary)
    # Tag membership is exact and case-sensitive; every requested tag must be present.
    for tag in filters.tags:
        clauses.append("EXISTS (SELECT 1 FROM json_each(jobs.tags) WHERE json_each.value = ?)")
        params.append(tag)
    if filters.query and filters.query.strip():
        pattern = _like_pattern(filters.query.strip())
        clauses.append(
            "(" + " OR ".join(f"fold({col}) LIKE fold(?) ESCAPE '\\'" for col in _TEXT_SEARCH_COLUMNS) + ")"
        )
        params.extend([pattern] * len(_TEXT_SEARCH_COLUMNS))

    if not clauses:
        return "", ()
    return " WHERE " + " AND ".join(clauses), tuple(params)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# Provider run telemetry
# ---------------------------------------------------------------------------


def fetch_run_rows(conn: sqlite3.Connection) -> dict[str, ProviderRunRow]:
    """Return every run telemetry row keyed by provider id."""
    rows = conn.execute("SELECT * FROM job_provider_runs").fetchall()
    return {row["provider"]: ProviderRunRow(**dict(row)) for row in rows}


def upsert_run_row(conn: sqlite3.Connection, provider: str, **patch: Any) -> None:
    """Create or partially update the run row for a provider.

    Only the columns present in patch are written on update.
    """
    unknown = set(patch) - set(_RUN_COLUMNS)
    if unknown:
        msg = f"Unknown run columns: {sorted(unknown)}"
        raise ValueError(msg)
    _upsert_partial(conn, "job_provider_runs", provider, patch)


# ---------------------------------------------------------------------------
# Provider config
# ---------------------------------------------------------------------------


def fetch_provider_config(conn: sqlite3.Connection) -> dict[str, dict[str, Any]]:
    """Return stored provider config rows keyed by provider id."""
    result: dict[str, dict[str, Any]] = {}
    for row in conn.execute("SELECT * FROM job_provider_config"):
        data = dict(row)
        data["headers"] = json.loads(data["headers"]) if data["headers"] else None
        result[row["provider"]] = data
    return result


def upsert_provider_config(conn: sqlite3.Connection, provider: str, **patch: Any) -> None:
    """Create or partially update the stored config for a provider."""
    unknown = set(patch) - set(_CONFIG_COLUMNS)
    if unknown:
        msg = f"Unknown config columns: {sorted(unknown)}"
        raise ValueError(msg)
    if "headers" in patch and patch["headers"] is not None:
        patch["headers"] = json.dumps(patch["headers"])
    _upsert_partial(conn, "job_provider_config", provider, patch)


def _upsert_partial(
    conn: sqlite3.Connection,
    table: str,
    provider: str,
    patch: dict[str, Any],
) -> None:
    columns = list(patch)
    if not columns:
        conn.execute(f"INSERT OR IGNORE INTO {table} (provider) VALUES (?)", (provider,))
        conn.commit()
        return
    placeholders = ", ".join("?" for _ in range(len(columns) + 1))
    updates = ", ".join(f"{col} = excluded.{col}" for col in columns)
    conn.execute(
        f"""
        INSERT INTO {table} (provider, {", ".join(columns)})
        VALUES ({placeholders})
        ON CONFLICT(provider) DO UPDATE SET {updates}
        """,
        (provider, *(patch[col] for col in columns)),
    )
    conn.commit()
