"""JSON wire format of the remote event store.

Field names cross the boundary in camelCase. ``date`` and ``createdAt`` are
ISO-8601 date-time strings, ``startTime``/``endTime`` are ``HH:MM`` strings.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from .errors import DecodeError
from .models import DEFAULT_EVENT_TYPES, Event, EventDraft, format_hhmm, parse_hhmm


def _parse_datetime(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise DecodeError(f"Field {field!r} is not an ISO-8601 date-time: {value!r}") from None
    else:
        raise DecodeError(f"Field {field!r} is missing or not a string")
    # Offsets are folded into the process's local zone; naive values are already local.
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _parse_time(value: Any, field: str) -> str:
    try:
        return format_hhmm(parse_hhmm(value))
    except ValueError:
        raise DecodeError(f"Field {field!r} is not an HH:MM time: {value!r}") from None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def decode_event(payload: Any, event_types: Sequence[str] = DEFAULT_EVENT_TYPES) -> Event:
    if not isinstance(payload, dict):
        raise DecodeError("Event payload must be a JSON object")

    event_id = payload.get("id")
    if not isinstance(event_id, str) or not event_id:
        raise DecodeError("Event payload has no id")

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        raise DecodeError(f"Event {event_id} has no title")

    event_type = payload.get("type")
    if event_type not in event_types:
        raise DecodeError(f"Event {event_id} has unknown type {event_type!r}")

    cancelled = payload.get("cancelled", False)
    if cancelled is None:
        cancelled = False
    if not isinstance(cancelled, bool):
        raise DecodeError(f"Event {event_id} has a non-boolean cancelled flag")

    return Event(
        id=event_id,
        title=title,
        date=_parse_datetime(payload.get("date"), "date").date(),
        start_time=_parse_time(payload.get("startTime"), "startTime"),
        end_time=_parse_time(payload.get("endTime"), "endTime"),
        type=event_type,
        created_at=_parse_datetime(payload.get("createdAt"), "createdAt"),
        description=_optional_text(payload.get("description")),
        location=_optional_text(payload.get("location")),
        cancelled=cancelled,
    )


def decode_events(payload: Any, event_types: Sequence[str] = DEFAULT_EVENT_TYPES) -> list[Event]:
    if not isinstance(payload, list):
        raise DecodeError("Event list payload must be a JSON array")
    return [decode_event(item, event_types) for item in payload]


def _encode_date(value: date) -> str:
    return datetime(value.year, value.month, value.day).isoformat()


def encode_draft(draft: EventDraft) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "title": draft.title,
        "date": _encode_date(draft.date),
        "startTime": draft.start_time,
        "endTime": draft.end_time,
        "type": draft.type,
    }
    if draft.description:
        body["description"] = draft.description
    if draft.location:
        body["location"] = draft.location
    return body


def encode_event(e: Event) -> Dict[str, Any]:
    body = encode_draft(
        EventDraft(
            title=e.title,
            date=e.date,
            start_time=e.start_time,
            end_time=e.end_time,
            type=e.type,
            description=e.description,
            location=e.location,
        )
    )
    body["id"] = e.id
    body["cancelled"] = e.cancelled
    body["createdAt"] = e.created_at.isoformat()
    return body


def encode_events(events: Iterable[Event]) -> list[Dict[str, Any]]:
    return [encode_event(e) for e in events]
