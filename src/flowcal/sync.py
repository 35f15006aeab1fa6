"""Owned, process-local copy of the event set.

``EventSync`` is the only writer of the cache. Every change is applied after
the remote store confirms it (confirm-then-apply), so readers only ever see
committed state. Remote calls suspend the calling coroutine; blocking store
implementations run on a worker thread via ``asyncio.to_thread``.
"""
from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .errors import ConcurrentMutationError, FlowcalError, SyncResult, TransportError
from .models import Event, EventDraft, event_sort_key
from .store import EventStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[Tuple[Event, ...]], None]


class EventSync:
    def __init__(self, store: EventStore, subscribers: Iterable[Subscriber] = ()) -> None:
        self._store = store
        self._events: Dict[str, Event] = {}
        self._pending: Set[str] = set()
        self._subscribers: List[Subscriber] = list(subscribers)
        self._refresh_seq = 0
        self._applied_seq = 0
        self._version = 0

    # -- reads -------------------------------------------------------------

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(sorted(self._events.values(), key=event_sort_key))

    @property
    def version(self) -> int:
        """Incremented once per published change."""
        return self._version

    def get(self, event_id: str) -> Optional[Event]:
        return self._events.get(event_id)

    def is_pending(self, event_id: str) -> bool:
        return event_id in self._pending

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        self._version += 1
        snapshot = self.events
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("Event subscriber %r failed", callback)

    # -- remote calls ------------------------------------------------------

    async def _call(self, method: Callable[..., Any], *args: Any) -> Any:
        """Run a store call. Errors outside the ``FlowcalError`` tree surface as ``TransportError``."""
        try:
            if inspect.iscoroutinefunction(method):
                return await method(*args)
            result = await asyncio.to_thread(method, *args)
            if inspect.isawaitable(result):
                return await result
            return result
        except FlowcalError:
            raise
        except Exception as exc:
            name = getattr(method, "__name__", "store call")
            logger.exception("Unexpected error from %s", name)
            raise TransportError(f"Event store failed: {exc}") from exc

    async def refresh(self) -> SyncResult[Tuple[Event, ...]]:
        """Replace the cache with the store's full event set.

        A response older than the last one applied is dropped; a newer fetch
        that failed does not block an older one that succeeds.
        """
        self._refresh_seq += 1
        seq = self._refresh_seq
        try:
            fetched = await self._call(self._store.list_events)
        except FlowcalError as exc:
            logger.warning("Refresh failed: %s", exc.message)
            return SyncResult.failure(exc)

        if seq < self._applied_seq:
            logger.debug("Dropping stale refresh #%d (applied #%d)", seq, self._applied_seq)
            return SyncResult.success(self.events)
        self._applied_seq = seq

        replacement: Dict[str, Event] = {}
        for e in fetched:
            if e.id in replacement:
                logger.warning("Store returned duplicate event id %s; keeping the last copy", e.id)
            replacement[e.id] = e
        self._events = replacement
        logger.info("Refreshed %d events", len(replacement))
        self._publish()
        return SyncResult.success(self.events)

    async def create(self, draft: EventDraft) -> SyncResult[Event]:
        try:
            created: Event = await self._call(self._store.create_event, draft)
        except FlowcalError as exc:
            logger.warning("Create %r failed: %s", draft.title, exc.message)
            return SyncResult.failure(exc)

        self._events[created.id] = created
        logger.info("Created event %s (%s on %s)", created.id, created.title, created.date.isoformat())
        self._publish()
        return SyncResult.success(created)

    async def cancel(self, event_id: str) -> SyncResult[Event]:
        return await self._mutate(event_id, "cancel", self._apply_cancel)

    async def delete(self, event_id: str) -> SyncResult[None]:
        return await self._mutate(event_id, "delete", self._apply_delete)

    async def _mutate(
        self,
        event_id: str,
        action: str,
        apply: Callable[[str], Awaitable[Any]],
    ) -> SyncResult[Any]:
        if event_id in self._pending:
            logger.info("Rejecting %s of %s: another change is in flight", action, event_id)
            return SyncResult.failure(ConcurrentMutationError(event_id))

        self._pending.add(event_id)
        try:
            value = await apply(event_id)
        except FlowcalError as exc:
            logger.warning("%s of %s failed: %s", action.capitalize(), event_id, exc.message)
            return SyncResult.failure(exc)
        finally:
            self._pending.discard(event_id)

        self._publish()
        return SyncResult.success(value)

    async def _apply_cancel(self, event_id: str) -> Event:
        updated: Event = await self._call(self._store.update_event, event_id, {"cancelled": True})
        if not updated.cancelled:
            cached = self._events.get(event_id, updated)
            logger.debug("Store echoed %s without the cancelled flag; applying it locally", event_id)
            updated = cached.with_cancelled()
        self._events[event_id] = updated
        logger.info("Cancelled event %s", event_id)
        return updated

    async def _apply_delete(self, event_id: str) -> None:
        await self._call(self._store.delete_event, event_id)
        self._events.pop(event_id, None)
        logger.info("Deleted event %s", event_id)

    # -- polling -----------------------------------------------------------

    async def run_periodic_refresh(
        self,
        interval_seconds: float,
        stop: Optional[asyncio.Event] = None,
    ) -> None:
        """Refresh on a fixed interval until ``stop`` is set. Failures are logged and retried next tick."""
        stop = stop or asyncio.Event()
        while not stop.is_set():
            result = await self.refresh()
            if not result.ok:
                logger.warning("Periodic refresh failed; retrying in %.0fs", interval_seconds)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
