"""Event model, record normalization and typed payload views for lifelog-stats.

Raw records come from the event store or an export file with loosely shaped
columns. normalize() turns one into a canonical Event; normalize_batch() does
the same for a collection, dropping and counting the records that fail.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

logger = logging.getLogger(__name__)

KNOWN_KINDS: tuple[str, ...] = (
    "meal",
    "sleep",
    "exercise",
    "water",
    "mood",
    "medication",
    "intimacy",
    "bowel",
)

# Accepted input column names, canonical name first.
_OWNER_KEYS = ("owner_id", "user_id", "ownerId")
_KIND_KEYS = ("kind", "type")
_OCCURRED_KEYS = ("occurred_at", "recorded_at", "occurredAt")
_PAYLOAD_KEYS = ("payload", "data")

# Fractional seconds of any length; fromisoformat on 3.10 wants 3 or 6 digits.
_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


class NormalizationError(ValueError):
    """A raw record could not be turned into an Event."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field_name = field_name


class MissingFieldError(NormalizationError):
    """A required field is absent or empty."""


class InvalidTimestampError(NormalizationError):
    """The occurred_at value could not be parsed."""


@dataclass(frozen=True)
class Event:
    id: str
    owner_id: str
    kind: str
    occurred_at: datetime  # always UTC-aware
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedBatch:
    events: list[Event] = field(default_factory=list)
    dropped: int = 0
    errors: list[NormalizationError] = field(default_factory=list)


def _first(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_timestamp(value: Any) -> datetime:
    """Parse a timestamp into an aware UTC datetime.

    Accepts datetime, date, epoch seconds, ISO-8601 strings (with 'Z', an
    offset, or naive) and bare YYYY-MM-DD strings. Naive values are taken as UTC.
    Raises ValueError when the value is not understood.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        moment = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def normalize(raw: Mapping[str, Any]) -> Event:
    """Validate a raw record and shape it into an Event.

    Raises MissingFieldError if owner, kind or timestamp is absent, and
    InvalidTimestampError if the timestamp cannot be parsed. The payload is
    not validated.
    """
    owner_id = _first(raw, _OWNER_KEYS)
    if owner_id is None:
        raise MissingFieldError("owner_id", "Record has no owner_id")
    kind = _first(raw, _KIND_KEYS)
    if kind is None:
        raise MissingFieldError("kind", "Record has no kind")
    occurred_raw = _first(raw, _OCCURRED_KEYS)
    if occurred_raw is None:
        raise MissingFieldError("occurred_at", "Record has no occurred_at")

    try:
        occurred_at = parse_timestamp(occurred_raw)
    except (ValueError, OverflowError, OSError) as exc:
        raise InvalidTimestampError(
            "occurred_at", f"Unparsable occurred_at {occurred_raw!r}: {exc}"
        ) from exc

    payload = _first(raw, _PAYLOAD_KEYS)
    event_id = raw.get("id")
    return Event(
        id=str(event_id) if event_id not in (None, "") else uuid.uuid4().hex,
        owner_id=str(owner_id),
        kind=str(kind),
        occurred_at=occurred_at,
        payload=dict(payload) if isinstance(payload, Mapping) else {},
    )


def normalize_batch(raws: Iterable[Mapping[str, Any]]) -> NormalizedBatch:
    """Normalize many records. Failing records are excluded and counted."""
    batch = NormalizedBatch()
    for raw in raws:
        if not isinstance(raw, Mapping):
            batch.dropped += 1
            batch.errors.append(NormalizationError("record", f"Not a mapping: {raw!r}"))
            continue
        try:
            batch.events.append(normalize(raw))
        except NormalizationError as exc:
            logger.debug("Dropping record %r: %s", raw.get("id"), exc)
            batch.dropped += 1
            batch.errors.append(exc)
    if batch.dropped:
        logger.warning(
            "Dropped %d of %d records during normalization",
            batch.dropped, batch.dropped + len(batch.events),
        )
    return batch


# -- Typed payload views -------------------------------------------------------


def read_number(payload: Mapping[str, Any], key: str) -> float | int | None:
    """Read a numeric payload field; None if missing or not a number."""
    value = payload.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if value == value else None  # NaN
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if number == number else None
    return None


def read_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def read_bool(payload: Mapping[str, Any], key: str) -> bool | None:
    value = payload.get(key)
    return value if isinstance(value, bool) else None


@dataclass(frozen=True)
class MealPayload:
    meal_type: str | None
    calories: float | int | None
    rating: float | int | None


@dataclass(frozen=True)
class SleepPayload:
    bedtime: str | None  # HH:MM
    wake_time: str | None  # HH:MM
    quality: float | int | None
    interruptions: float | int | None


@dataclass(frozen=True)
class ExercisePayload:
    exercise_type: str | None
    duration: float | int | None  # minutes
    calories_burned: float | int | None
    distance: float | int | None


@dataclass(frozen=True)
class WaterPayload:
    amount: float | int | None  # ml


@dataclass(frozen=True)
class MoodPayload:
    mood_level: float | int | None
    energy_level: float | int | None
    stress_level: float | int | None


@dataclass(frozen=True)
class MedicationPayload:
    medication_name: str | None
    taken: bool | None


@dataclass(frozen=True)
class IntimacyPayload:
    type: str | None
    duration: float | int | None
    satisfaction: float | int | None


@dataclass(frozen=True)
class BowelPayload:
    bristol_scale: float | int | None
    duration: float | int | None


PayloadView = (
    MealPayload | SleepPayload | ExercisePayload | WaterPayload
    | MoodPayload | MedicationPayload | IntimacyPayload | BowelPayload
)


def payload_view(event: Event) -> PayloadView | None:
    """Return the typed payload for a built-in kind, or None for custom kinds."""
    p = event.payload
    if event.kind == "meal":
        return MealPayload(read_str(p, "meal_type"), read_number(p, "calories"), read_number(p, "rating"))
    if event.kind == "sleep":
        bedtime = read_str(p, "bedtime") or read_str(p, "sleep_time")
        return SleepPayload(
            bedtime, read_str(p, "wake_time"), read_number(p, "quality"), read_number(p, "interruptions")
        )
    if event.kind == "exercise":
        return ExercisePayload(
            read_str(p, "exercise_type"),
            read_number(p, "duration"),
            read_number(p, "calories_burned"),
            read_number(p, "distance"),
        )
    if event.kind == "water":
        return WaterPayload(read_number(p, "amount"))
    if event.kind == "mood":
        return MoodPayload(
            read_number(p, "mood_level"), read_number(p, "energy_level"), read_number(p, "stress_level")
        )
    if event.kind == "medication":
        return MedicationPayload(read_str(p, "medication_name"), read_bool(p, "taken"))
    if event.kind == "intimacy":
        return IntimacyPayload(read_str(p, "type"), read_number(p, "duration"), read_number(p, "satisfaction"))
    if event.kind == "bowel":
        return BowelPayload(read_number(p, "bristol_scale"), read_number(p, "duration"))
    return None
