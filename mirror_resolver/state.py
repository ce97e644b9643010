"""Explicit per-resource resolution state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import weakref

from mirror_resolver.resource import Resource


class ResolutionState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RETRY_SCHEDULED = "retry_scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SwapState(str, Enum):
    NONE = "none"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class ResourceRecord:
    """What the resolver knows about one resource."""

    state: ResolutionState = ResolutionState.IDLE
    swap: SwapState = SwapState.NONE
    original_address: str | None = None  # saved by a fast swap
    original_variants: str | None = None
    retry_passes: int = 0


class ResourceRegistry:
    """Records and the in-flight set, keyed weakly by resource identity.

    Everything here is mutated only from the event loop thread, and no
    read-modify-write sequence spans an ``await``.
    """

    def __init__(self) -> None:
        self._records: weakref.WeakKeyDictionary[Resource, ResourceRecord] = (
            weakref.WeakKeyDictionary()
        )
        self._in_flight: weakref.WeakSet[Resource] = weakref.WeakSet()

    def record(self, resource: Resource) -> ResourceRecord:
        rec = self._records.get(resource)
        if rec is None:
            rec = ResourceRecord()
            self._records[resource] = rec
        return rec

    def peek(self, resource: Resource) -> ResourceRecord | None:
        return self._records.get(resource)

    def state(self, resource: Resource) -> ResolutionState:
        rec = self._records.get(resource)
        return rec.state if rec else ResolutionState.IDLE

    def is_in_flight(self, resource: Resource) -> bool:
        return resource in self._in_flight

    def acquire(self, resource: Resource) -> bool:
        """Add to the in-flight set; False if it was already there."""
        if resource in self._in_flight:
            return False
        self._in_flight.add(resource)
        return True

    def release(self, resource: Resource) -> None:
        self._in_flight.discard(resource)

    def forget(self, resource: Resource) -> None:
        self._records.pop(resource, None)

    def in_flight_count(self) -> int:
        return len(self._in_flight)
