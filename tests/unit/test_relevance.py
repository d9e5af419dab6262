"""Tests for query tokens, relevance scoring and the search summary."""

from datetime import datetime, timedelta, timezone

import pytest

from jobhub.core.schemas import JobRecord
from jobhub.search.relevance import (
    build_job_search_summary,
    build_query_tokens,
    normalize,
    recency_boost,
    salary_boost,
    score_by_relevance,
    score_job,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _job(
    job_id: str = "1",
    *,
    title: str = "Python Engineer",
    company: str = "Acme",
    location: str = "Paris",
    description: str = "",
    remote: bool = False,
    salary_min: float = 0,
    salary_max: float = 0,
    tags: list[str] | None = None,
    created_at: datetime = NOW,
) -> JobRecord:
    return JobRecord(
        id=job_id,
        title=title,
        company=company,
        location=location,
        description=description,
        remote=remote,
        salary_min=salary_min,
        salary_max=salary_max,
        tags=tags or [],
        created_at=created_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestNormalize:
    def test_strips_diacritics_and_case(self) -> None:
        assert normalize("  Télétravail Ingénieur ") == "teletravail ingenieur"


class TestBuildQueryTokens:
    def test_synonyms_expanded(self) -> None:
        tokens = build_query_tokens("PM remote, data")
        for expected in ("pm", "product manager", "remote", "full remote", "data"):
            assert expected in tokens

    def test_synonyms_normalized(self) -> None:
        assert "teletravail" in build_query_tokens("remote")
        assert "ingenieur" in build_query_tokens("dev")

    def test_empty(self) -> None:
        assert build_query_tokens("") == []
        assert build_query_tokens(None) == []
        assert build_query_tokens(" , / ") == []

    def test_deduplicated_in_order(self) -> None:
        assert build_query_tokens("python/Python, go") == ["python", "go"]


# ---------------------------------------------------------------------------
# Boosts
# ---------------------------------------------------------------------------


class TestRecencyBoost:
    def test_now_and_future(self) -> None:
        assert recency_boost(NOW.isoformat(), NOW) == 3.0
        assert recency_boost((NOW + timedelta(days=1)).isoformat(), NOW) == 3.0

    def test_linear(self) -> None:
        created = (NOW - timedelta(days=10.5)).isoformat()
        assert recency_boost(created, NOW) == pytest.approx(1.5)

    def test_window_end(self) -> None:
        assert recency_boost((NOW - timedelta(days=21)).isoformat(), NOW) == 0.0
        assert recency_boost((NOW - timedelta(days=60)).isoformat(), NOW) == 0.0


class TestSalaryBoost:
    @pytest.mark.parametrize(
        ("salary_min", "salary_max", "expected"),
        [
            (100_000, 100_000, 2.5),
            (80_000, 80_000, 2.0),
            (50_000, 70_000, 1.5),
            (45_000, 45_000, 1.0),
            (10_000, 20_000, 0.5),
            (0, 0, 0.0),
        ],
    )
    def test_bands(self, salary_min: float, salary_max: float, expected: float) -> None:
        assert salary_boost(_job(salary_min=salary_min, salary_max=salary_max)) == expected


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestScoreJob:
    def test_field_weights(self) -> None:
        old = NOW - timedelta(days=30)
        assert score_job(_job(title="python", company="x", location="y", created_at=old), ["python"], NOW) == 6.0
        assert score_job(_job(title="x", company="python", location="y", created_at=old), ["python"], NOW) == 4.0
        assert score_job(_job(title="x", company="y", description="python", location="z", created_at=old), ["python"], NOW) == 2.5
        assert score_job(_job(title="x", company="y", location="python", created_at=old), ["python"], NOW) == 3.0
        assert score_job(_job(title="x", company="y", location="z", tags=["Python3"], created_at=old), ["python"], NOW) == 5.0

    def test_remote_boost(self) -> None:
        old = NOW - timedelta(days=30)
        assert score_job(_job(title="x", company="y", location="z", remote=True, created_at=old), ["nomatch"], NOW) == 1.0


class TestScoreByRelevance:
    def test_no_tokens_unchanged(self) -> None:
        jobs = [_job("1", title="zzz"), _job("2", title="python")]
        assert score_by_relevance(jobs, []) is jobs

    def test_ties_keep_input_order(self) -> None:
        jobs = [_job(str(i)) for i in range(5)]
        ranked = score_by_relevance(jobs, ["python"], NOW)
        assert [j.id for j in ranked] == ["0", "1", "2", "3", "4"]

    def test_title_match_ranks_first(self) -> None:
        jobs = [_job("1", title="Accountant"), _job("2", title="Python Engineer")]
        assert [j.id for j in score_by_relevance(jobs, ["python"], NOW)] == ["2", "1"]

    def test_high_salary_outranks_low(self) -> None:
        jobs = [
            _job("low", salary_min=20_000, salary_max=30_000),
            _job("high", salary_min=100_000, salary_max=120_000),
        ]
        assert [j.id for j in score_by_relevance(jobs, ["python"], NOW)] == ["high", "low"]

    def test_recent_outranks_old(self) -> None:
        jobs = [_job("old", created_at=NOW - timedelta(days=30)), _job("new", created_at=NOW)]
        assert [j.id for j in score_by_relevance(jobs, ["python"], NOW)] == ["new", "old"]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class TestBuildJobSearchSummary:
    def test_empty(self) -> None:
        summary = build_job_search_summary([])
        assert summary.model_dump() == {
            "count": 0,
            "remote_share": 0.0,
            "salary_range": {"min": 0.0, "max": 0.0},
            "top_locations": [],
            "top_tags": [],
        }

    def test_aggregates(self) -> None:
        jobs = [
            _job("1", location="Paris", remote=True, salary_min=40_000, salary_max=50_000, tags=["python", " "]),
            _job("2", location="Lyon", salary_min=30_000, salary_max=90_000, tags=["python", "go"]),
            _job("3", location="Lyon", remote=True, salary_min=60_000, salary_max=70_000, tags=["", "go "]),
            _job("4", location="", tags=["rust"]),
        ]
        summary = build_job_search_summary(jobs)
        assert summary.count == 4
        assert summary.remote_share == 0.5
        assert summary.salary_range.min == 0.0
        assert summary.salary_range.max == 90_000.0
        assert [(lc.label, lc.count) for lc in summary.top_locations] == [("Lyon", 2), ("Paris", 1)]
        assert [(lc.label, lc.count) for lc in summary.top_tags] == [("python", 2), ("go", 2), ("rust", 1)]

    def test_caps_and_first_seen_ties(self) -> None:
        jobs = [_job(str(i), location=f"City {i}", tags=[f"t{i}"]) for i in range(8)]
        summary = build_job_search_summary(jobs)
        assert [lc.label for lc in summary.top_locations] == [f"City {i}" for i in range(5)]
        assert [lc.label for lc in summary.top_tags] == [f"t{i}" for i in range(6)]
