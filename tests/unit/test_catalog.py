"""Tests for the provider catalog, registry and representative mappings."""

import pytest

from jobhub.core.errors import UnknownProviderError
from jobhub.core.schemas import ProviderContext, ProviderSettings
from jobhub.providers import JOB_PROVIDERS, available_providers, build_providers, get_provider
from jobhub.providers.base import JobProvider
from jobhub.providers.catalog import JOB_PROVIDER_IDS, JSON_DEFINITIONS, WEBHOOK_ENTRIES
from jobhub.providers.factory import JsonProvider, WebhookProvider

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestProviderRegistry:
    def test_catalog_sizes(self) -> None:
        assert len(JSON_DEFINITIONS) == 20
        assert len(WEBHOOK_ENTRIES) == 50
        assert len(JOB_PROVIDER_IDS) == 70

    def test_ids_unique_and_covered(self) -> None:
        assert len(set(JOB_PROVIDER_IDS)) == len(JOB_PROVIDER_IDS)
        defined = {d.id for d in JSON_DEFINITIONS} | {entry[0] for entry in WEBHOOK_ENTRIES}
        assert defined == set(JOB_PROVIDER_IDS)

    def test_registry_order(self) -> None:
        assert [p.id for p in JOB_PROVIDERS] == list(JOB_PROVIDER_IDS)

    def test_get_provider(self) -> None:
        provider = get_provider("arbeitnow")
        assert isinstance(provider, JobProvider)
        assert isinstance(provider, JsonProvider)
        assert provider.label == "Arbeitnow"

    def test_webhook_provider_kind(self) -> None:
        assert isinstance(get_provider(WEBHOOK_ENTRIES[0][0]), WebhookProvider)

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(UnknownProviderError, match="Unknown provider 'nope'"):
            get_provider("nope")

    def test_unknown_provider_is_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            get_provider("nope")

    def test_available_providers_sorted(self) -> None:
        assert available_providers() == sorted(JOB_PROVIDER_IDS)

    def test_build_providers_timeout(self) -> None:
        providers = build_providers(timeout_s=3.0)
        assert all(p.timeout_s == 3.0 for p in providers)  # type: ignore[attr-defined]


class TestConfiguration:
    def test_french_boards_need_settings(self) -> None:
        provider = get_provider("france-travail")
        assert provider.is_configured() is False
        assert provider.is_configured(ProviderSettings(endpoint="https://ft.test")) is True

    def test_public_boards_have_default_endpoint(self) -> None:
        for provider_id in ("arbeitnow", "jobicy", "remoteok", "hackernews-jobs"):
            assert get_provider(provider_id).is_configured() is True

    def test_paginated_providers(self) -> None:
        arbeitnow = get_provider("arbeitnow")
        assert arbeitnow.pagination is not None
        assert arbeitnow.pagination.start_page == 1
        hn = get_provider("hackernews-jobs")
        assert hn.pagination is not None
        assert hn.pagination.start_page == 0

    def test_paginated_definitions_declare_page_size(self) -> None:
        paginated = [d for d in JSON_DEFINITIONS if d.pagination is not None]
        assert paginated
        for definition in paginated:
            assert definition.max_batch_size is not None, definition.id
        assert get_provider("thehub").max_batch_size == 15


# ---------------------------------------------------------------------------
# Representative mappings
# ---------------------------------------------------------------------------


def _definition(provider_id: str):  # type: ignore[no-untyped-def]
    return next(d for d in JSON_DEFINITIONS if d.id == provider_id)


class TestMappings:
    def test_france_travail(self) -> None:
        record = {
            "id": "123ABC",
            "intitule": "Développeur Python (H/F)",
            "entreprise": {"nom": "Acme"},
            "lieuTravail": {"libelle": "75 - Paris"},
            "competences": ["Python", "SQL"],
            "salaire": {"min": 45000},
            "dateActualisation": "2025-01-06T10:00:00Z",
            "origineOffre": {"urlOrigine": "https://candidat.francetravail.fr/offres/123ABC"},
        }
        job = _definition("france-travail").map_item(record)
        assert job is not None
        assert job.external_id == "123ABC"
        assert job.company == "Acme"
        assert job.location == "75 - Paris"
        assert job.tags == ["Python", "SQL"]
        assert job.salary_min == 45000.0
        assert job.external_url == "https://candidat.francetravail.fr/offres/123ABC"

    def test_remoteok_epoch_seconds_and_defaults(self) -> None:
        record = {"id": 42, "position": "Backend Engineer", "company": "Remote Co", "epoch": 1_736_157_600}
        job = _definition("remoteok").map_item(record)
        assert job is not None
        assert job.external_id == "42"
        assert job.published_at == "2025-01-06T10:00:00+00:00"
        assert job.remote is True
        assert job.location == "Remote"

    def test_headhunter_remote_schedule(self) -> None:
        record = {"id": "9", "name": "Python dev", "schedule": {"id": "remote"}}
        job = _definition("headhunter").map_item(record)
        assert job is not None
        assert job.remote is True

    def test_arbeitnow_query(self) -> None:
        definition = _definition("arbeitnow")
        assert definition.build_query is not None
        assert definition.build_query(ProviderContext(limit=100, page=2)) == {"page": 2}
