from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.parse import quote

import requests

from .codec import decode_event, decode_events, encode_draft
from .errors import FlowcalError, NotFoundError, TransportError, ValidationError
from .models import DEFAULT_EVENT_TYPES, Event, EventDraft

logger = logging.getLogger(__name__)


class EventStore(Protocol):
    """Remote persistence of event records. Calls block until the server answers."""

    def list_events(self) -> List[Event]: ...

    def create_event(self, draft: EventDraft) -> Event: ...

    def update_event(self, event_id: str, fields: Dict[str, Any]) -> Event: ...

    def delete_event(self, event_id: str) -> None: ...


class HttpEventStore:
    """``EventStore`` over the ``/api/events`` JSON endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        event_types: Sequence[str] = DEFAULT_EVENT_TYPES,
        session: Optional[requests.Session] = None,
        user_agent: str = "flowcal/1.0",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.event_types = tuple(event_types)
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

    def _url(self, event_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/api/events"
        if event_id is not None:
            url += f"/{quote(event_id, safe='')}"
        return url

    def _request(self, method: str, url: str, action: str, body: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            resp = self._session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Failed to {action}") from exc
        if not resp.ok:
            raise _error_from_response(resp, action)
        return resp

    def _json(self, resp: requests.Response, action: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"Failed to {action}: response was not JSON") from exc

    def list_events(self) -> List[Event]:
        url = self._url()
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise TransportError("Failed to fetch events") from exc
        if not resp.ok:
            # The list endpoint carries no structured error body.
            raise TransportError("Failed to fetch events")
        events = decode_events(self._json(resp, "fetch events"), self.event_types)
        logger.debug("Fetched %d events from %s", len(events), url)
        return events

    def create_event(self, draft: EventDraft) -> Event:
        resp = self._request("POST", self._url(), "create event", encode_draft(draft))
        return decode_event(self._json(resp, "create event"), self.event_types)

    def update_event(self, event_id: str, fields: Dict[str, Any]) -> Event:
        resp = self._request("PATCH", self._url(event_id), "update event", fields)
        return decode_event(self._json(resp, "update event"), self.event_types)

    def delete_event(self, event_id: str) -> None:
        self._request("DELETE", self._url(event_id), "delete event")


def _error_from_response(resp: requests.Response, action: str) -> FlowcalError:
    message = _error_message(resp)
    if resp.status_code in (400, 422):
        return ValidationError(message or f"Failed to {action}")
    if resp.status_code == 404:
        return NotFoundError(message or "Event not found")
    logger.warning("%s %s returned HTTP %d", resp.request.method if resp.request else "", resp.url, resp.status_code)
    return TransportError(message or f"Failed to {action}")


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"].strip()
    return ""
