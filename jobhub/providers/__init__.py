"""Job provider registry.

Usage:
    from jobhub.providers import get_provider, available_providers

    provider = get_provider("arbeitnow")
    jobs = await provider.fetch_jobs(ProviderContext(limit=50, page=1))
"""

from __future__ import annotations

import httpx

from jobhub.core.errors import UnknownProviderError
from jobhub.providers.base import JobProvider
from jobhub.providers.catalog import JOB_PROVIDER_IDS, JSON_DEFINITIONS, WEBHOOK_ENTRIES
from jobhub.providers.factory import DEFAULT_TIMEOUT_S, create_json_provider, create_webhook_provider

__all__ = [
    "JOB_PROVIDERS",
    "JOB_PROVIDER_IDS",
    "JobProvider",
    "available_providers",
    "build_providers",
    "get_provider",
]


def build_providers(
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[JobProvider]:
    """Instantiate every catalog provider, ordered as JOB_PROVIDER_IDS."""
    by_id: dict[str, JobProvider] = {}
    for definition in JSON_DEFINITIONS:
        by_id[definition.id] = create_json_provider(definition, timeout_s=timeout_s, transport=transport)
    for provider_id, label, category, language in WEBHOOK_ENTRIES:
        by_id[provider_id] = create_webhook_provider(
            provider_id, label, category, language, timeout_s=timeout_s, transport=transport
        )
    return [by_id[provider_id] for provider_id in JOB_PROVIDER_IDS]


JOB_PROVIDERS: list[JobProvider] = build_providers()
_REGISTRY: dict[str, JobProvider] = {provider.id: provider for provider in JOB_PROVIDERS}


def get_provider(provider_id: str) -> JobProvider:
    """Return the registered provider for provider_id.

    Raises:
        UnknownProviderError: If the id is not in the catalog.
    """
    try:
        return _REGISTRY[provider_id]
    except KeyError:
        raise UnknownProviderError(provider_id) from None


def available_providers() -> list[str]:
    """Return sorted list of registered provider ids."""
    return sorted(_REGISTRY)
