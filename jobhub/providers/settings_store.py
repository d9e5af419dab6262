"""Provider settings store: environment defaults, YAML overrides, database rows.

Precedence (lowest to highest): environment -> Settings.providers -> job_provider_config.
"""

import logging
import os
import sqlite3
from collections.abc import Iterable, Mapping
from typing import Any

from jobhub.core.db import fetch_provider_config, upsert_provider_config
from jobhub.core.errors import UnknownProviderError
from jobhub.core.schemas import ProviderSettings
from jobhub.providers.catalog import JOB_PROVIDER_IDS

logger = logging.getLogger(__name__)

# provider id -> (endpoint env var, token env var)
PROVIDER_ENV_KEYS: dict[str, tuple[str, str]] = {
    "france-travail": ("FRANCE_TRAVAIL_API_URL", "FRANCE_TRAVAIL_API_TOKEN"),
    "apec": ("APEC_API_URL", "APEC_API_TOKEN"),
    "meteojob": ("METEOJOB_API_URL", "METEOJOB_API_KEY"),
    "hellowork": ("HELLOWORK_API_URL", "HELLOWORK_API_KEY"),
    "welcometothejungle": ("WTTJ_API_URL", "WTTJ_API_TOKEN"),
    "jobteaser": ("JOBTEASER_API_URL", "JOBTEASER_API_TOKEN"),
    "chooseyourboss": ("CHOOSEYOURBOSS_API_URL", "CHOOSEYOURBOSS_API_KEY"),
    "monster-fr": ("MONSTER_FR_API_URL", "MONSTER_FR_API_KEY"),
    "indeed-fr": ("INDEED_FR_API_URL", "INDEED_FR_API_TOKEN"),
    "talent-io": ("TALENT_IO_API_URL", "TALENT_IO_API_TOKEN"),
}

_PATCH_KEYS = ("endpoint", "auth_token", "headers")


def optional_env(key: str) -> str | None:
    """Return the trimmed environment value, or None when unset or blank."""
    value = os.environ.get(key, "").strip()
    return value or None


def read_env_defaults(provider_id: str) -> ProviderSettings:
    keys = PROVIDER_ENV_KEYS.get(provider_id)
    if keys is None:
        return ProviderSettings()
    endpoint_key, token_key = keys
    return ProviderSettings(endpoint=optional_env(endpoint_key), auth_token=optional_env(token_key))


def merge_settings(defaults: ProviderSettings, overrides: ProviderSettings | None) -> ProviderSettings:
    """Overlay overrides on defaults; dict fields merge key by key."""
    if overrides is None:
        return defaults
    return ProviderSettings(
        endpoint=overrides.endpoint if overrides.endpoint is not None else defaults.endpoint,
        auth_token=overrides.auth_token if overrides.auth_token is not None else defaults.auth_token,
        headers={**defaults.headers, **overrides.headers},
        metadata={**defaults.metadata, **overrides.metadata},
    )


def _row_to_settings(row: Mapping[str, Any] | None) -> ProviderSettings | None:
    if row is None:
        return None
    return ProviderSettings(
        endpoint=row.get("endpoint"),
        auth_token=row.get("auth_token"),
        headers=row.get("headers") or {},
    )


class ProviderSettingsStore:
    """Resolves effective ProviderSettings and persists operator overrides.

    Usage::

        store = ProviderSettingsStore(conn, settings.providers)
        settings_map = store.fetch_settings_map(["arbeitnow", "apec"])
        store.upsert_settings("apec", {"endpoint": "https://..."})
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        static_overrides: Mapping[str, ProviderSettings] | None = None,
    ) -> None:
        self._conn = conn
        self._static = dict(static_overrides or {})

    def _resolve(self, provider_id: str, row: Mapping[str, Any] | None) -> ProviderSettings:
        layered = merge_settings(read_env_defaults(provider_id), self._static.get(provider_id))
        return merge_settings(layered, _row_to_settings(row))

    def fetch_settings(self, provider_id: str) -> ProviderSettings:
        rows = fetch_provider_config(self._conn)
        return self._resolve(provider_id, rows.get(provider_id))

    def fetch_settings_map(self, provider_ids: Iterable[str]) -> dict[str, ProviderSettings]:
        """Effective settings for each requested id, with or without a stored row."""
        rows = fetch_provider_config(self._conn)
        return {pid: self._resolve(pid, rows.get(pid)) for pid in provider_ids}

    def upsert_settings(self, provider_id: str, patch: Mapping[str, Any]) -> ProviderSettings:
        """Persist endpoint/auth_token/headers for a provider.

        Blank strings are stored as NULL; keys missing from patch keep their
        stored value. Returns the effective settings after the write.
        """
        if provider_id not in JOB_PROVIDER_IDS:
            raise UnknownProviderError(provider_id)
        unknown = set(patch) - set(_PATCH_KEYS)
        if unknown:
            msg = f"Unsupported settings keys: {sorted(unknown)}"
            raise ValueError(msg)

        values: dict[str, Any] = {}
        for key, value in patch.items():
            if isinstance(value, str):
                value = value.strip() or None
            values[key] = value

        upsert_provider_config(self._conn, provider_id, **values)
        logger.info("Updated settings for '%s' (%s)", provider_id, ", ".join(sorted(values)) or "no fields")
        return self.fetch_settings(provider_id)
