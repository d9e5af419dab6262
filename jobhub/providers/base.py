"""Abstract base class for job providers."""

from abc import ABC, abstractmethod

from jobhub.core.schemas import ProviderContext, ProviderJob, ProviderPagination, ProviderSettings


class JobProvider(ABC):
    """Base class that every job provider must implement.

    fetch_jobs only fetches and maps; persisting is the scraper's job.
    """

    def __init__(
        self,
        provider_id: str,
        label: str,
        default_category: str,
        language: str,
        *,
        max_batch_size: int | None = None,
        pagination: ProviderPagination | None = None,
    ) -> None:
        self.id = provider_id
        self.label = label
        self.default_category = default_category
        self.language = language
        self.max_batch_size = max_batch_size
        self.pagination = pagination

    def resolve_endpoint(self, settings: ProviderSettings | None = None) -> str | None:
        """Endpoint from settings, if any. Subclasses may add a static default."""
        if settings is not None and settings.endpoint:
            return settings.endpoint
        return None

    @abstractmethod
    def is_configured(self, settings: ProviderSettings | None = None) -> bool:
        """Return True if an endpoint can be resolved for these settings."""

    @abstractmethod
    async def fetch_jobs(
        self,
        context: ProviderContext,
        settings: ProviderSettings | None = None,
    ) -> list[ProviderJob]:
        """Fetch one batch of jobs. Unconfigured providers return []."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"
