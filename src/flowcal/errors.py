from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FlowcalError(Exception):
    """Base class for every failure surfaced by the event store and sync layer."""

    needs_refresh = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FlowcalError):
    """The remote store rejected the payload before persisting it."""


class NotFoundError(FlowcalError):
    """The targeted event no longer exists on the remote store."""

    needs_refresh = True


class TransportError(FlowcalError):
    """Network or server failure without a structured error body."""


class ConcurrentMutationError(FlowcalError):
    """Another mutation on the same event id is still in flight."""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event {event_id} is busy; another change is still pending")
        self.event_id = event_id


class DecodeError(FlowcalError):
    """The remote store answered with a payload that breaks the wire contract."""


@dataclass(frozen=True)
class SyncResult(Generic[T]):
    """Outcome of a sync operation. Callers must inspect ``ok`` before using ``value``."""

    ok: bool
    value: Optional[T] = None
    error: Optional[FlowcalError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "SyncResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: FlowcalError) -> "SyncResult[T]":
        return cls(ok=False, error=error)

    @property
    def needs_refresh(self) -> bool:
        return self.error is not None and self.error.needs_refresh

    @property
    def notice(self) -> Optional[str]:
        """Transient message to show the user, or None on success."""
        if self.error is None:
            return None
        if self.needs_refresh:
            return f"{self.error.message}. Refresh to see the latest events."
        return self.error.message

    def unwrap(self) -> Optional[T]:
        if self.error is not None:
            raise self.error
        return self.value
