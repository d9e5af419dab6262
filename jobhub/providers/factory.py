"""Provider factory: builds JobProvider instances from declarative definitions.

Two flavours:
  - JsonProvider    — one upstream JSON API, mapped field by field.
  - WebhookProvider — a partner endpoint that already speaks our job shape.
"""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from jobhub.core.errors import ProviderFetchError, ProviderTimeoutError
from jobhub.core.schemas import ProviderContext, ProviderJob, ProviderPagination, ProviderSettings
from jobhub.providers.base import JobProvider
from jobhub.providers.fields import FieldMap, build_provider_job, string_from

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 12.0
WEBHOOK_BATCH_SIZE = 500
_ERROR_BODY_LIMIT = 500

QueryValue = str | int | float | None
QueryBuilder = Callable[[ProviderContext], Mapping[str, QueryValue]]
HeaderBuilder = Callable[[ProviderSettings | None], Mapping[str, str | None] | None]
BodyBuilder = Callable[[ProviderContext], dict[str, Any]]
ItemMapper = Callable[[dict[str, Any]], ProviderJob | None]


@dataclass(frozen=True)
class JsonProviderDefinition:
    """Declarative description of one upstream JSON source."""

    id: str
    label: str
    language: str
    default_category: str
    map_item: ItemMapper
    endpoint: str | None = None
    method: Literal["GET", "POST"] = "GET"
    query: Mapping[str, QueryValue] = field(default_factory=dict)
    build_query: QueryBuilder | None = None
    headers: HeaderBuilder | None = None
    body: dict[str, Any] | BodyBuilder | None = None
    items_path: tuple[str, ...] = ()
    max_batch_size: int | None = None
    pagination: ProviderPagination | None = None


def merge_headers(*layers: Mapping[str, str | None] | None) -> dict[str, str]:
    """Merge header layers left to right; later layers win, non-string values drop."""
    merged: dict[str, str] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if isinstance(value, str):
                merged[key] = value
    return merged


def bearer_header(settings: ProviderSettings | None) -> dict[str, str] | None:
    if settings is not None and settings.auth_token:
        return {"Authorization": f"Bearer {settings.auth_token}"}
    return None


def build_url(endpoint: str, params: Mapping[str, QueryValue]) -> httpx.URL:
    """Attach params to endpoint, keeping any query already on it. None values are skipped."""
    clean = {key: str(value) for key, value in params.items() if value is not None}
    url = httpx.URL(endpoint)
    return url.copy_merge_params(clean) if clean else url


def resolve_items(payload: Any, path: tuple[str, ...] = ()) -> list[dict[str, Any]]:
    """Walk path into payload and return the list found there, else [].

    A payload that is already a list is returned as-is; non-object entries
    are dropped.
    """
    value = payload
    if not isinstance(payload, list):
        for key in path:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


async def fetch_json(
    provider_id: str,
    method: str,
    url: httpx.URL | str,
    *,
    headers: Mapping[str, str] | None = None,
    json_body: dict[str, Any] | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """Issue one request and decode the JSON body.

    Raises:
        ProviderTimeoutError: the request did not complete within timeout_s.
        ProviderFetchError: non-2xx status, transport failure or invalid JSON.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.request(method, url, headers=headers, json=json_body)
    except httpx.TimeoutException as e:
        msg = f"Request to {url} timed out after {timeout_s:g}s"
        raise ProviderTimeoutError(provider_id, msg) from e
    except httpx.HTTPError as e:
        msg = f"Request to {url} failed: {e}"
        raise ProviderFetchError(provider_id, msg) from e

    if not response.is_success:
        body = response.text[:_ERROR_BODY_LIMIT]
        msg = f"Request to {url} failed ({response.status_code}): {body or response.reason_phrase}"
        raise ProviderFetchError(provider_id, msg, status=response.status_code, body=body)

    try:
        return response.json()
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON from {url}: {e}"
        raise ProviderFetchError(provider_id, msg, status=response.status_code) from e


class JsonProvider(JobProvider):
    """Provider backed by a JsonProviderDefinition."""

    def __init__(
        self,
        definition: JsonProviderDefinition,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            definition.id,
            definition.label,
            definition.default_category,
            definition.language,
            max_batch_size=definition.max_batch_size,
            pagination=definition.pagination,
        )
        self.definition = definition
        self.timeout_s = timeout_s
        self.transport = transport

    def resolve_endpoint(self, settings: ProviderSettings | None = None) -> str | None:
        return super().resolve_endpoint(settings) or self.definition.endpoint

    def is_configured(self, settings: ProviderSettings | None = None) -> bool:
        return bool(self.resolve_endpoint(settings))

    async def fetch_jobs(
        self,
        context: ProviderContext,
        settings: ProviderSettings | None = None,
    ) -> list[ProviderJob]:
        endpoint = self.resolve_endpoint(settings)
        if not endpoint:
            return []

        defn = self.definition
        params: dict[str, QueryValue] = dict(defn.query)
        if defn.build_query is not None:
            params.update(defn.build_query(context))
        url = build_url(endpoint, params)

        headers = merge_headers(
            defn.headers(settings) if defn.headers else None,
            bearer_header(settings),
            settings.headers if settings else None,
        )
        body = defn.body(context) if callable(defn.body) else defn.body
        json_body = body if body and defn.method != "GET" else None

        payload = await fetch_json(
            self.id,
            defn.method,
            url,
            headers=headers,
            json_body=json_body,
            timeout_s=self.timeout_s,
            transport=self.transport,
        )
        items = resolve_items(payload, defn.items_path)
        jobs = [job for job in (defn.map_item(item) for item in items) if job is not None]
        if len(jobs) < len(items):
            logger.debug("%s: dropped %d unmappable items", self.id, len(items) - len(jobs))
        return [_with_language(job, self.language) for job in jobs]


# Webhook partners post records that already follow our field names.
WEBHOOK_FIELDS = FieldMap(
    external_id=("externalId", "external_id"),
    title=("title",),
    company=("company",),
    location=("location",),
    description=("description",),
    category=("category",),
    tags=("tags",),
    remote=("remote",),
    salary_min=("salaryMin", "salary_min"),
    salary_max=("salaryMax", "salary_max"),
    published_at=("publishedAt", "published_at"),
    external_url=("externalUrl", "external_url", "url"),
)


class WebhookProvider(JobProvider):
    """Provider configured only through settings; no static endpoint."""

    def __init__(
        self,
        provider_id: str,
        label: str,
        default_category: str,
        language: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            provider_id,
            label,
            default_category,
            language,
            max_batch_size=WEBHOOK_BATCH_SIZE,
        )
        self.timeout_s = timeout_s
        self.transport = transport

    def is_configured(self, settings: ProviderSettings | None = None) -> bool:
        return bool(settings and settings.endpoint)

    async def fetch_jobs(
        self,
        context: ProviderContext,
        settings: ProviderSettings | None = None,
    ) -> list[ProviderJob]:
        if settings is None or not settings.endpoint:
            return []

        url = build_url(
            settings.endpoint,
            {
                "limit": context.limit or None,
                "page": context.page or None,
                "since": context.since.isoformat() if context.since else None,
            },
        )
        headers = merge_headers(settings.headers, bearer_header(settings))
        payload = await fetch_json(
            self.id,
            "GET",
            url,
            headers=headers,
            timeout_s=self.timeout_s,
            transport=self.transport,
        )
        if not isinstance(payload, list):
            logger.warning("%s: webhook payload is not a JSON array", self.id)
            return []
        return [job for job in (self.sanitize(entry) for entry in payload) if job is not None]

    def sanitize(self, record: Any) -> ProviderJob | None:
        if not isinstance(record, dict):
            return None
        job = build_provider_job(record, WEBHOOK_FIELDS)
        if job is None:
            return None
        return job.model_copy(
            update={
                "company": job.company or self.label,
                "category": job.category or self.default_category,
                "language": string_from(record.get("language")) or self.language,
            }
        )


def _with_language(job: ProviderJob, language: str) -> ProviderJob:
    if job.language:
        return job
    return job.model_copy(update={"language": language})


def create_json_provider(definition: JsonProviderDefinition, **kwargs: Any) -> JsonProvider:
    return JsonProvider(definition, **kwargs)


def create_webhook_provider(
    provider_id: str,
    label: str,
    default_category: str,
    language: str,
    **kwargs: Any,
) -> WebhookProvider:
    return WebhookProvider(provider_id, label, default_category, language, **kwargs)
