"""Deadline-bounded reachability probe for a single candidate address."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Protocol

from mirror_resolver.address import host_cluster_key
from mirror_resolver.outcome_cache import OutcomeCache
from utils.settings_store import deep_log


class ProbeOutcome(str, Enum):
    """Terminal result of one probe."""

    SUCCESS = "success"
    CACHED_FAILURE = "cached-failure"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport-error"
    DEGENERATE = "degenerate"

    @property
    def ok(self) -> bool:
        return self is ProbeOutcome.SUCCESS


class ProbeTransport(Protocol):
    """Fetches a candidate and classifies what came back.

    Implementations return SUCCESS, DEGENERATE, TRANSPORT_ERROR or TIMEOUT and
    must tolerate cancellation when the prober's deadline expires.
    """

    async def fetch(self, url: str) -> ProbeOutcome: ...


class Prober:
    """Runs one transport fetch against a deadline and records failed hosts."""

    def __init__(self, cache: OutcomeCache, transport: ProbeTransport) -> None:
        self._cache = cache
        self._transport = transport

    async def probe(self, url: str, timeout_secs: float) -> ProbeOutcome:
        """Probe ``url`` once.

        Args:
            url: Candidate address
            timeout_secs: Deadline for the whole fetch

        Returns:
            ProbeOutcome; every failure except CACHED_FAILURE marks the host failed
        """
        host = host_cluster_key(url)
        if self._cache.is_failed(host):
            return ProbeOutcome.CACHED_FAILURE

        try:
            # wait_for cancels the fetch when the deadline passes
            outcome = await asyncio.wait_for(self._transport.fetch(url), timeout_secs)
        except asyncio.TimeoutError:
            outcome = ProbeOutcome.TIMEOUT

        if outcome is ProbeOutcome.CACHED_FAILURE:
            # Transports never short-circuit; treat as a plain fetch failure.
            outcome = ProbeOutcome.TRANSPORT_ERROR
        if not outcome.ok:
            self._cache.mark_failed(host)
        deep_log(f"[DEEP][PROBER] {url} -> {outcome.value} (deadline={timeout_secs:.2f}s)")
        return outcome
