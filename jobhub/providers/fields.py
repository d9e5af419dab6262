"""Field coercion helpers for mapping heterogeneous upstream JSON into ProviderJob.

Pure functions, zero I/O. Every helper tolerates arbitrary input and
returns None (or an empty list) rather than raising.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from jobhub.core.schemas import ProviderJob
from jobhub.utils import uniq_preserve_order

logger = logging.getLogger(__name__)

TRUTHY_STRINGS = frozenset({"true", "1", "oui", "yes"})
EPOCH_SECONDS_THRESHOLD = 10_000_000_000
MAX_PROVIDER_TAGS = 8

_TAG_SEPARATORS = re.compile(r"[,;/]")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def string_from(value: Any) -> str | None:
    """Trimmed non-empty string, stringified finite number, else None."""
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if _is_number(value) and math.isfinite(value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return None


def number_from(value: Any) -> float | None:
    """Finite number or numeric-looking string, else None."""
    if _is_number(value):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        # float() also accepts digit separators ("1_000").
        if "_" in value:
            return None
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def boolean_from(value: Any) -> bool:
    """Loose boolean: true, "true"/"1"/"oui"/"yes" (any case) or numeric 1."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in TRUTHY_STRINGS
    return _is_number(value) and value == 1


def coerce_tags(value: Any) -> list[str]:
    """Tags from a list of scalars or a string separated by , ; or /."""
    if isinstance(value, list):
        return [tag for tag in (string_from(entry) for entry in value) if tag]
    if isinstance(value, str):
        return [part.strip() for part in _TAG_SEPARATORS.split(value) if part.strip()]
    return []


def published_at_from(value: Any) -> str | None:
    """ISO-8601 UTC timestamp from a datetime, date string or epoch milliseconds."""
    if isinstance(value, datetime):
        return _to_utc(value).isoformat()
    if isinstance(value, str):
        parsed = _parse_date_string(value)
        return parsed.isoformat() if parsed else None
    if _is_number(value):
        return _from_epoch_ms(float(value))
    return None


def epoch_ms_from(value: Any) -> float | None:
    """Epoch milliseconds from a number or numeric string.

    Values below EPOCH_SECONDS_THRESHOLD are taken to be seconds.
    """
    number = number_from(value)
    if number is None:
        return None
    if number < EPOCH_SECONDS_THRESHOLD:
        return number * 1000
    return number


def published_at_detecting_epoch(value: Any) -> str | None:
    """Like published_at_from, but numeric values may be epoch seconds."""
    epoch_ms = epoch_ms_from(value) if not isinstance(value, datetime) else None
    if epoch_ms is not None:
        return _from_epoch_ms(epoch_ms)
    return published_at_from(value)


def read_value(record: Any, key: str) -> Any:
    """Read a possibly dotted key ("entreprise.nom") by sequential descent."""
    current = record
    for segment in key.split("."):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            return None
    return current


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_date_string(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    try:
        return _to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    # RSS feeds carry RFC 2822 dates ("Mon, 06 Jan 2025 10:00:00 +0000").
    try:
        return _to_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def _from_epoch_ms(epoch_ms: float) -> str | None:
    if not math.isfinite(epoch_ms):
        return None
    try:
        return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Declarative field maps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldMap:
    """Candidate keys per ProviderJob field, tried in order; first defined value wins.

    Keys may be dotted paths into nested objects. The *_default fields are
    used when none of the candidate keys yields a value.
    """

    external_id: tuple[str, ...]
    title: tuple[str, ...]
    company: tuple[str, ...] = ()
    location: tuple[str, ...] = ()
    description: tuple[str, ...] = ()
    category: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    remote: tuple[str, ...] = ()
    salary_min: tuple[str, ...] = ()
    salary_max: tuple[str, ...] = ()
    published_at: tuple[str, ...] = ()
    external_url: tuple[str, ...] = ()
    epoch_seconds: bool = False
    remote_default: bool | None = None
    location_default: str | None = None


def pick_string(record: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = string_from(read_value(record, key))
        if value:
            return value
    return None


def pick_number(record: dict[str, Any], keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = number_from(read_value(record, key))
        if value is not None:
            return value
    return None


def pick_boolean(record: dict[str, Any], keys: tuple[str, ...]) -> bool | None:
    for key in keys:
        value = read_value(record, key)
        if value is not None:
            return boolean_from(value)
    return None


def pick_tags(record: dict[str, Any], keys: tuple[str, ...]) -> list[str]:
    tags: list[str] = []
    for key in keys:
        tags.extend(coerce_tags(read_value(record, key)))
    return tags


def pick_published_at(
    record: dict[str, Any],
    keys: tuple[str, ...],
    epoch_seconds: bool = False,
) -> str | None:
    convert = published_at_detecting_epoch if epoch_seconds else published_at_from
    for key in keys:
        value = convert(read_value(record, key))
        if value:
            return value
    return None


def build_provider_job(record: dict[str, Any], fields: FieldMap) -> ProviderJob | None:
    """Map one raw upstream record through a FieldMap.

    Returns None when the record has no external id or title.
    """
    external_id = pick_string(record, fields.external_id)
    title = pick_string(record, fields.title)
    if not external_id or not title:
        logger.debug("Dropping record without id/title: keys=%s", sorted(record)[:10])
        return None

    remote = pick_boolean(record, fields.remote)
    return ProviderJob(
        external_id=external_id,
        title=title,
        company=pick_string(record, fields.company),
        location=pick_string(record, fields.location) or fields.location_default,
        description=pick_string(record, fields.description) or "",
        category=pick_string(record, fields.category),
        tags=uniq_preserve_order(pick_tags(record, fields.tags))[:MAX_PROVIDER_TAGS],
        remote=remote if remote is not None else fields.remote_default,
        salary_min=pick_number(record, fields.salary_min),
        salary_max=pick_number(record, fields.salary_max),
        published_at=pick_published_at(record, fields.published_at, fields.epoch_seconds),
        external_url=pick_string(record, fields.external_url),
    )
