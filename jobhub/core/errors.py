"""Error types raised by providers, the scheduler and the settings store."""


class JobHubError(Exception):
    """Base error for the job aggregator."""


class ProviderError(JobHubError):
    """A provider failed to produce jobs."""

    def __init__(self, provider_id: str, message: str) -> None:
        super().__init__(message)
        self.provider_id = provider_id


class ProviderFetchError(ProviderError):
    """Upstream answered with a non-2xx status, bad JSON, or the transport failed."""

    def __init__(
        self,
        provider_id: str,
        message: str,
        *,
        status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(provider_id, message)
        self.status = status
        self.body = body


class ProviderTimeoutError(ProviderError):
    """The request was aborted because the fetch timeout elapsed."""


class UnknownProviderError(JobHubError, LookupError):
    """No provider is registered under the given id."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Unknown provider '{provider_id}'")
        self.provider_id = provider_id


class ProviderNotConfiguredError(JobHubError):
    """A provider was explicitly requested but has no endpoint."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider '{provider_id}' is not configured")
        self.provider_id = provider_id
