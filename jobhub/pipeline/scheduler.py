"""Job scheduler: decides which providers are due and runs them with telemetry.

Run state per provider: idle -> running -> success | failed.
Providers always run one after another within a single invocation.
"""

import logging
import sqlite3
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta, timezone

from jobhub.core.config import Settings
from jobhub.core.db import count_jobs_by_source, fetch_run_rows, upsert_run_row
from jobhub.core.errors import ProviderNotConfiguredError, UnknownProviderError
from jobhub.core.schemas import (
    ProviderRunRow,
    ProviderSettings,
    ProviderStatus,
    SchedulerSummary,
    SchedulerSummaryItem,
)
from jobhub.pipeline.scraper import scrape_provider
from jobhub.providers import build_providers
from jobhub.providers.base import JobProvider
from jobhub.providers.settings_store import ProviderSettingsStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(days=3)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def determine_due_providers(
    providers: Sequence[JobProvider],
    runs: Mapping[str, ProviderRunRow],
    job_counts: Mapping[str, int],
    settings_map: Mapping[str, ProviderSettings],
    now: datetime,
    refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
) -> list[JobProvider]:
    """Return the configured providers that need a refresh, in input order.

    A configured provider is due when it has no stored jobs, has never
    succeeded, or its last success is at least refresh_interval old.
    """
    due: list[JobProvider] = []
    for provider in providers:
        if not provider.is_configured(settings_map.get(provider.id)):
            continue
        if job_counts.get(provider.id, 0) <= 0:
            due.append(provider)
            continue
        run = runs.get(provider.id)
        last_success = _parse_timestamp(run.last_success_at if run else None)
        if last_success is None or now - last_success >= refresh_interval:
            due.append(provider)
    return due


class JobScheduler:
    """Runs providers through the scraper and records run telemetry.

    Usage::

        scheduler = JobScheduler(conn, settings)
        summary = await scheduler.sync_due_providers()
        summary = await scheduler.run_provider("arbeitnow")
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        settings: Settings | None = None,
        *,
        providers: Sequence[JobProvider] | None = None,
        settings_store: ProviderSettingsStore | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._conn = conn
        self._settings = settings or Settings()
        if providers is None:
            providers = build_providers(timeout_s=self._settings.http.timeout_s)
        enabled = self._settings.enabled_providers
        if enabled is not None:
            providers = [p for p in providers if p.id in enabled]
        self._providers = list(providers)
        self._store = settings_store or ProviderSettingsStore(conn, self._settings.providers)
        self._now = now

    @property
    def providers(self) -> list[JobProvider]:
        return list(self._providers)

    def _timestamp(self) -> str:
        return self._now().isoformat()

    def _settings_map(self) -> dict[str, ProviderSettings]:
        return self._store.fetch_settings_map(p.id for p in self._providers)

    def _get(self, provider_id: str) -> JobProvider:
        for provider in self._providers:
            if provider.id == provider_id:
                return provider
        raise UnknownProviderError(provider_id)

    async def run_provider_once(
        self,
        provider: JobProvider,
        settings: ProviderSettings | None,
    ) -> SchedulerSummaryItem:
        """Scrape one provider, writing running/success/failed telemetry.

        Failures are recorded and returned as an "error" item, never raised.
        """
        upsert_run_row(self._conn, provider.id, status="running", last_run_at=self._timestamp(), error=None)
        logger.info("Running provider '%s'", provider.id)
        try:
            result = await scrape_provider(provider, settings, self._conn, self._settings.scraper)
        except Exception as e:
            message = str(e) or type(e).__name__
            upsert_run_row(self._conn, provider.id, status="failed", error=message)
            logger.warning("Provider '%s' failed: %s", provider.id, message)
            return SchedulerSummaryItem(provider_id=provider.id, status="error", message=message)

        upsert_run_row(self._conn, provider.id, status="success", last_success_at=self._timestamp(), error=None)
        logger.info(
            "Provider '%s' done: %d fetched, %d persisted",
            provider.id, result.fetched, result.persisted,
        )
        return SchedulerSummaryItem(
            provider_id=provider.id,
            status="success",
            fetched=result.fetched,
            persisted=result.persisted,
        )

    async def sync_due_providers(self) -> SchedulerSummary:
        """Run only the due providers; every known provider appears in the summary."""
        now = self._now()
        settings_map = self._settings_map()
        runs = fetch_run_rows(self._conn)
        counts = count_jobs_by_source(self._conn, [p.id for p in self._providers])

        due = determine_due_providers(
            self._providers,
            runs,
            counts,
            settings_map,
            now,
            self._settings.scheduler.refresh_interval,
        )
        logger.info("%d of %d providers due", len(due), len(self._providers))

        results: dict[str, SchedulerSummaryItem] = {}
        for provider in due:
            results[provider.id] = await self.run_provider_once(provider, settings_map.get(provider.id))

        items = [
            results.get(p.id) or _idle_item(p, settings_map.get(p.id))
            for p in self._providers
        ]
        return SchedulerSummary(
            triggered_at=now.isoformat(),
            due_providers=[p.id for p in due],
            items=items,
        )

    async def run_provider(self, provider_id: str) -> SchedulerSummary:
        """Force one provider to run regardless of due-ness.

        Raises:
            UnknownProviderError: provider_id is not registered.
            ProviderNotConfiguredError: the provider has no endpoint.
        """
        provider = self._get(provider_id)
        settings = self._store.fetch_settings(provider_id)
        if not provider.is_configured(settings):
            raise ProviderNotConfiguredError(provider_id)

        now = self._now()
        item = await self.run_provider_once(provider, settings)
        return SchedulerSummary(triggered_at=now.isoformat(), due_providers=[provider_id], items=[item])

    async def run_all_providers(self) -> SchedulerSummary:
        """Force every configured provider to run; unconfigured ones are disabled."""
        now = self._now()
        settings_map = self._settings_map()
        attempted: list[str] = []
        items: list[SchedulerSummaryItem] = []
        for provider in self._providers:
            settings = settings_map.get(provider.id)
            if not provider.is_configured(settings):
                items.append(SchedulerSummaryItem(provider_id=provider.id, status="disabled"))
                continue
            attempted.append(provider.id)
            items.append(await self.run_provider_once(provider, settings))
        return SchedulerSummary(triggered_at=now.isoformat(), due_providers=attempted, items=items)

    def provider_status(self) -> list[ProviderStatus]:
        """Operator view of run telemetry, job counts and settings per provider."""
        runs = fetch_run_rows(self._conn)
        counts = count_jobs_by_source(self._conn, [p.id for p in self._providers])
        settings_map = self._settings_map()

        statuses: list[ProviderStatus] = []
        for provider in self._providers:
            run = runs.get(provider.id)
            settings = settings_map.get(provider.id)
            endpoint = provider.resolve_endpoint(settings)
            statuses.append(
                ProviderStatus(
                    provider_id=provider.id,
                    label=provider.label,
                    status=run.status if run else "idle",
                    last_run_at=run.last_run_at if run else None,
                    last_success_at=run.last_success_at if run else None,
                    error=run.error if run else None,
                    job_count=counts.get(provider.id, 0),
                    endpoint=endpoint,
                    has_auth_token=bool(settings and settings.auth_token),
                )
            )
        return statuses


def _idle_item(provider: JobProvider, settings: ProviderSettings | None) -> SchedulerSummaryItem:
    status = "skipped" if provider.is_configured(settings) else "disabled"
    return SchedulerSummaryItem(provider_id=provider.id, status=status)
