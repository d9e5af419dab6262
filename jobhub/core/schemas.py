"""Core data models for the job aggregator."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

RunStatus = Literal["idle", "running", "success", "failed"]
SummaryStatus = Literal["success", "error", "skipped", "disabled"]


class ProviderJob(BaseModel):
    """A job as produced by a provider mapping, before persistence.

    Optional fields stay None when the upstream record has no value for
    them; the scraper fills in defaults when converting to a JobRow.
    """

    external_id: str
    title: str
    company: str | None = None
    location: str | None = None
    category: str | None = None
    description: str | None = None
    remote: bool | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    tags: list[str] = Field(default_factory=list)
    published_at: str | None = None
    external_url: str | None = None
    language: str | None = None


class ProviderContext(BaseModel):
    """Per-request hints handed to a provider's fetch_jobs."""

    since: datetime | None = None
    limit: int | None = None
    page: int | None = None


class ProviderPagination(BaseModel):
    """Page-mode pagination descriptor."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["page"] = "page"
    start_page: int | None = None
    max_pages: int | None = None


class ProviderSettings(BaseModel):
    """Runtime settings for a provider: endpoint override, token, extra headers."""

    endpoint: str | None = None
    auth_token: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, object] = Field(default_factory=dict)


class JobRow(BaseModel):
    """A row ready for the jobs table, keyed on (source, external_id)."""

    title: str
    company: str
    location: str
    category: str
    description: str
    remote: bool
    salary_min: float
    salary_max: float
    tags: list[str]
    source: str
    external_id: str
    external_url: str
    fetched_at: str


class JobRecord(BaseModel):
    """A persisted job as served to search callers."""

    id: str
    title: str
    company: str = ""
    location: str = ""
    category: str = ""
    description: str = ""
    remote: bool = False
    salary_min: float = 0.0
    salary_max: float = 0.0
    tags: list[str] = Field(default_factory=list)
    created_at: str
    source: str | None = None
    external_id: str | None = None
    external_url: str | None = None
    fetched_at: str | None = None


class ProviderRunRow(BaseModel):
    """Run telemetry for one provider."""

    provider: str
    last_run_at: str | None = None
    last_success_at: str | None = None
    status: RunStatus = "idle"
    error: str | None = None


class ScrapeResult(BaseModel):
    """Outcome of one scrape: raw fetched count vs. rows persisted."""

    provider_id: str
    fetched: int = 0
    persisted: int = 0


class SchedulerSummaryItem(BaseModel):
    """Per-provider line of a scheduler summary."""

    provider_id: str
    status: SummaryStatus
    fetched: int | None = None
    persisted: int | None = None
    message: str | None = None


class SchedulerSummary(BaseModel):
    """Result of one scheduler invocation; every known provider appears in items."""

    triggered_at: str
    due_providers: list[str] = Field(default_factory=list)
    items: list[SchedulerSummaryItem] = Field(default_factory=list)


class ProviderStatus(BaseModel):
    """Operator-facing status line for one provider."""

    provider_id: str
    label: str
    status: RunStatus = "idle"
    last_run_at: str | None = None
    last_success_at: str | None = None
    error: str | None = None
    job_count: int = 0
    endpoint: str | None = None
    has_auth_token: bool = False


class JobFilters(BaseModel):
    """Filters accepted by search_jobs."""

    category: str | None = None
    provider: str | None = None
    query: str | None = None
    location: str | None = None
    remote_only: bool = False
    min_salary: float | None = None
    max_salary: float | None = None
    tags: list[str] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class LabelCount(BaseModel):
    label: str
    count: int


class SalaryRange(BaseModel):
    min: float = 0.0
    max: float = 0.0


class JobSearchSummary(BaseModel):
    """Aggregate facets over a result set. Recomputed per query."""

    count: int = 0
    remote_share: float = Field(default=0.0, ge=0.0, le=1.0)
    salary_range: SalaryRange = Field(default_factory=SalaryRange)
    top_locations: list[LabelCount] = Field(default_factory=list)
    top_tags: list[LabelCount] = Field(default_factory=list)


class JobSearchResult(BaseModel):
    jobs: list[JobRecord] = Field(default_factory=list)
    summary: JobSearchSummary = Field(default_factory=JobSearchSummary)
    total_count: int = 0
