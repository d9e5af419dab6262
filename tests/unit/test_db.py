"""Tests for the database layer: jobs upsert and filters, run telemetry, provider config."""

import sqlite3

import pytest

from jobhub.core.db import (
    count_jobs,
    count_jobs_by_source,
    fetch_provider_config,
    fetch_run_rows,
    init_db,
    select_jobs,
    upsert_jobs,
    upsert_provider_config,
    upsert_run_row,
)
from jobhub.core.schemas import JobFilters, JobRow


def _row(external_id: str = "1", source: str = "arbeitnow", **kw: object) -> JobRow:
    defaults: dict[str, object] = {
        "title": "Python Engineer",
        "company": "Acme",
        "location": "Paris",
        "category": "engineering",
        "description": "Build things",
        "remote": False,
        "salary_min": 40_000.0,
        "salary_max": 60_000.0,
        "tags": ["python"],
        "source": source,
        "external_id": external_id,
        "external_url": f"https://example.com/{external_id}",
        "fetched_at": "2025-01-01T00:00:00+00:00",
    }
    defaults.update(kw)
    return JobRow(**defaults)  # type: ignore[arg-type]


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    return init_db(tmp_path / "test.db")


class TestInitDb:
    def test_creates_tables(self, db) -> None:  # type: ignore[no-untyped-def]
        tables = {
            row[0]
            for row in db.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }
        assert {"jobs", "job_provider_runs", "job_provider_config"} <= tables

    def test_idempotent(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        p = tmp_path / "double.db"
        init_db(p).close()
        init_db(p).close()

    def test_creates_parent_dir(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "nested" / "dir" / "jobs.db")
        assert (tmp_path / "nested" / "dir" / "jobs.db").exists()
        conn.close()


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestUpsertJobs:
    def test_insert(self, db) -> None:  # type: ignore[no-untyped-def]
        assert upsert_jobs(db, [_row("1"), _row("2")]) == 2
        assert db.execute("SELECT COUNT(*) FROM jobs").fetchone()[0] == 2

    def test_empty(self, db) -> None:  # type: ignore[no-untyped-def]
        assert upsert_jobs(db, []) == 0

    def test_conflict_updates_in_place(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_jobs(db, [_row("1", title="Old")], created_at="2025-01-01T00:00:00+00:00")
        upsert_jobs(db, [_row("1", title="New")], created_at="2025-02-01T00:00:00+00:00")
        rows = db.execute("SELECT title, created_at FROM jobs").fetchall()
        assert len(rows) == 1
        assert rows[0]["title"] == "New"
        assert rows[0]["created_at"] == "2025-01-01T00:00:00+00:00"

    def test_same_external_id_different_source(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_jobs(db, [_row("1", source="arbeitnow"), _row("1", source="jobicy")])
        assert db.execute("SELECT COUNT(*) FROM jobs").fetchone()[0] == 2

    def test_tags_stored_as_json(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_jobs(db, [_row("1", tags=["python", "télétravail"])])
        assert db.execute("SELECT tags FROM jobs").fetchone()[0] == '["python", "télétravail"]'


class TestCountJobsBySource:
    def test_counts_with_zero_fill(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_jobs(db, [_row("1"), _row("2"), _row("3", source="jobicy")])
        counts = count_jobs_by_source(db, ["arbeitnow", "jobicy", "remoteok"])
        assert counts == {"arbeitnow": 2, "jobicy": 1, "remoteok": 0}

    def test_no_sources(self, db) -> None:  # type: ignore[no-untyped-def]
        assert count_jobs_by_source(db, []) == {}


class TestSelectJobs:
    def _seed(self, db: sqlite3.Connection) -> None:
        upsert_jobs(db, [_row("1", title="Backend dev", tags=["python", "django"])], created_at="2025-01-01T00:00:00+00:00")
        upsert_jobs(
            db,
            [_row("2", title="Frontend dev", location="Lyon", remote=True, tags=["react"], salary_min=0.0, salary_max=30_000.0)],
            created_at="2025-01-02T00:00:00+00:00",
        )
        upsert_jobs(
            db,
            [_row("3", title="Data 100% remote", category="data", source="jobicy", salary_min=90_000.0, salary_max=120_000.0)],
            created_at="2025-01-03T00:00:00+00:00",
        )

    def _ids(self, rows: list[sqlite3.Row]) -> list[str]:
        return [row["external_id"] for row in rows]

    def test_newest_first(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(), limit=10)) == ["3", "2", "1"]

    def test_limit_offset(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(), limit=1, offset=1)) == ["2"]
        assert count_jobs(db, JobFilters()) == 3

    def test_category_and_provider(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(category="data"), limit=10)) == ["3"]
        assert self._ids(select_jobs(db, JobFilters(provider="arbeitnow"), limit=10)) == ["2", "1"]

    def test_location_case_insensitive_substring(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(location="ly"), limit=10)) == ["2"]

    def test_accented_capitals_fold(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_jobs(db, [_row("idf", location="Île-de-France"), _row("evry", location="Évry", title="Ingénieur ÉTUDES")])
        assert self._ids(select_jobs(db, JobFilters(location="île"), limit=10)) == ["idf"]
        assert self._ids(select_jobs(db, JobFilters(location="évry"), limit=10)) == ["evry"]
        assert self._ids(select_jobs(db, JobFilters(query="études"), limit=10)) == ["evry"]
        assert count_jobs(db, JobFilters(location="ÎLE")) == 1

    def test_remote_only(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(remote_only=True), limit=10)) == ["2"]

    def test_salary_range(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(min_salary=50_000), limit=10)) == ["3", "1"]
        assert self._ids(select_jobs(db, JobFilters(max_salary=50_000), limit=10)) == ["2", "1"]

    def test_tags_all_required_exact(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(tags=["python", "django"]), limit=10)) == ["1"]
        assert self._ids(select_jobs(db, JobFilters(tags=["Python"]), limit=10)) == []
        assert self._ids(select_jobs(db, JobFilters(tags=["pyth"]), limit=10)) == []

    def test_query_across_text_columns(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(query="FRONTEND"), limit=10)) == ["2"]
        assert self._ids(select_jobs(db, JobFilters(query="acme"), limit=10)) == ["3", "2", "1"]

    def test_query_wildcards_escaped(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert self._ids(select_jobs(db, JobFilters(query="100%"), limit=10)) == ["3"]
        assert self._ids(select_jobs(db, JobFilters(query="_"), limit=10)) == []

    def test_count_ignores_window(self, db) -> None:  # type: ignore[no-untyped-def]
        self._seed(db)
        assert count_jobs(db, JobFilters(provider="arbeitnow", limit=1)) == 2


# ---------------------------------------------------------------------------
# Provider run telemetry
# ---------------------------------------------------------------------------


class TestRunRows:
    def test_empty(self, db) -> None:  # type: ignore[no-untyped-def]
        assert fetch_run_rows(db) == {}

    def test_partial_update_keeps_other_columns(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_run_row(db, "apec", status="running", last_run_at="2025-01-01T00:00:00+00:00", error=None)
        upsert_run_row(db, "apec", status="failed", error="boom")
        row = fetch_run_rows(db)["apec"]
        assert row.status == "failed"
        assert row.error == "boom"
        assert row.last_run_at == "2025-01-01T00:00:00+00:00"
        assert row.last_success_at is None

    def test_unknown_column_rejected(self, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="Unknown run columns"):
            upsert_run_row(db, "apec", nope=1)


# ---------------------------------------------------------------------------
# Provider config
# ---------------------------------------------------------------------------


class TestProviderConfig:
    def test_roundtrip_headers(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_provider_config(db, "apec", endpoint="https://apec.test", headers={"X-Key": "1"})
        stored = fetch_provider_config(db)["apec"]
        assert stored["endpoint"] == "https://apec.test"
        assert stored["auth_token"] is None
        assert stored["headers"] == {"X-Key": "1"}

    def test_partial_update(self, db) -> None:  # type: ignore[no-untyped-def]
        upsert_provider_config(db, "apec", endpoint="https://apec.test")
        upsert_provider_config(db, "apec", auth_token="secret")
        stored = fetch_provider_config(db)["apec"]
        assert stored["endpoint"] == "https://apec.test"
        assert stored["auth_token"] == "secret"

    def test_unknown_column_rejected(self, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValueError, match="Unknown config columns"):
            upsert_provider_config(db, "apec", token="x")
