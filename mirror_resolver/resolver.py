"""Finds a working mirror for a broken image by probing ranked candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
import time

from mirror_resolver.address import (
    Address,
    group_key,
    host_cluster_key,
    parse_address,
    rewrite_variants,
)
from mirror_resolver.candidates import CandidateGenerator
from mirror_resolver.config import ResolverConfig
from mirror_resolver.outcome_cache import OutcomeCache
from mirror_resolver.prober import ProbeOutcome, Prober
from mirror_resolver.resource import Resource
from mirror_resolver.state import ResolutionState, ResourceRecord, ResourceRegistry, SwapState
from utils.async_utils import TaskTracker
from utils.event_bus import EventBus
from utils.log_utils import tprint
from utils.settings_store import deep_log

TOPIC_SUCCEEDED = "resolver.succeeded"
TOPIC_FAILED = "resolver.failed"
TOPIC_RETRY_SCHEDULED = "resolver.retry_scheduled"
TOPIC_RESTORED = "resolver.restored"


@dataclass
class ResolutionResult:
    """Summary of one resolution pass."""

    state: ResolutionState
    original_url: str
    resolved_url: str | None
    attempts: list[str]  # probed URLs, in order
    skipped: int  # candidates skipped because their host had already failed
    last_error: ProbeOutcome | None
    is_retry_pass: bool
    elapsed_ms: int
    aborted_early: bool = False


@dataclass
class ResolutionAttempt:
    """Per-call cursor over the candidate list."""

    candidates: list[str]
    cursor: int = 0
    last_error: ProbeOutcome | None = None
    consecutive_timeouts: int = 0
    attempts: list[str] = field(default_factory=list)
    skipped: int = 0
    aborted_early: bool = False

    @property
    def retry_eligible(self) -> bool:
        return self.last_error is ProbeOutcome.TIMEOUT


class Resolver:
    """Orchestrates candidate generation, sequential probing and a single retry."""

    def __init__(
        self,
        prober: Prober,
        cache: OutcomeCache,
        config: ResolverConfig | None = None,
        registry: ResourceRegistry | None = None,
        bus: EventBus | None = None,
        generator: CandidateGenerator | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            prober: Prober sharing ``cache``
            cache: Outcome cache for successes and failed hosts
            config: Tuning constants (defaults when None)
            registry: Per-resource records, shared with the fast-swap rewriter
            bus: Event bus notified when a pass settles
            generator: Candidate generator (built from ``config`` when None)
        """
        self._prober = prober
        self._cache = cache
        self._config = config or ResolverConfig()
        self._registry = registry or ResourceRegistry()
        self._bus = bus or EventBus()
        self._generator = generator or CandidateGenerator(self._config)
        self._tasks = TaskTracker()

    @property
    def registry(self) -> ResourceRegistry:
        return self._registry

    async def resolve(
        self, resource: Resource, is_retry_pass: bool = False
    ) -> ResolutionResult | None:
        """Search for a working address and apply it to ``resource``.

        Args:
            resource: Image handle whose current address is broken
            is_retry_pass: True only for the single delayed retry

        Returns:
            ResolutionResult for a completed pass, or None when the call was a
            no-op (already in flight, already fixed, retry pending, or the
            address is not a recognized mirror address)
        """
        record = self._registry.record(resource)
        if record.state is ResolutionState.SUCCEEDED:
            deep_log(f"[DEEP][RESOLVER] Skipping {resource!r}: already fixed")
            return None
        if record.state is ResolutionState.RETRY_SCHEDULED and not is_retry_pass:
            deep_log(f"[DEEP][RESOLVER] Skipping {resource!r}: retry already scheduled")
            return None
        if not self._registry.acquire(resource):
            deep_log(f"[DEEP][RESOLVER] Skipping {resource!r}: already in flight")
            return None

        record.state = ResolutionState.RESOLVING
        try:
            return await self._run_pass(resource, record, is_retry_pass)
        finally:
            self._registry.release(resource)
            if record.state is ResolutionState.RESOLVING:
                # Cancelled or crashed mid-pass
                record.state = ResolutionState.IDLE

    async def _run_pass(
        self, resource: Resource, record: ResourceRecord, is_retry_pass: bool
    ) -> ResolutionResult | None:
        start = time.monotonic()
        original = resource.get_address()
        address = parse_address(original, self._config.suffixes)
        if address is None:
            record.state = ResolutionState.IDLE
            return None
        if is_retry_pass:
            record.retry_passes += 1

        attempt = ResolutionAttempt(self._generator.generate(address, self._cache))
        deep_log(
            f"[DEEP][RESOLVER] Resolving {original} with {len(attempt.candidates)} candidates"
            f"{' (retry pass)' if is_retry_pass else ''}"
        )

        while attempt.cursor < len(attempt.candidates):
            position = attempt.cursor
            url = attempt.candidates[position]
            attempt.cursor += 1

            if self._cache.is_failed(host_cluster_key(url)):
                attempt.skipped += 1
                continue

            outcome = await self._prober.probe(url, self._config.probe_timeout_secs(position))
            if outcome is ProbeOutcome.CACHED_FAILURE:
                attempt.skipped += 1
                continue
            attempt.attempts.append(url)

            if outcome.ok:
                return self._apply(resource, record, address, url, attempt, start, is_retry_pass)

            attempt.last_error = outcome
            if outcome is ProbeOutcome.TIMEOUT:
                attempt.consecutive_timeouts += 1
                if attempt.consecutive_timeouts >= self._config.max_consecutive_timeouts:
                    attempt.aborted_early = True
                    deep_log(
                        f"[DEEP][RESOLVER] {attempt.consecutive_timeouts} timeouts in a row; "
                        f"abandoning {original}"
                    )
                    break
            else:
                attempt.consecutive_timeouts = 0

        return self._settle_failure(resource, record, original, attempt, start, is_retry_pass)

    def _apply(
        self,
        resource: Resource,
        record: ResourceRecord,
        address: Address,
        url: str,
        attempt: ResolutionAttempt,
        start: float,
        is_retry_pass: bool,
    ) -> ResolutionResult:
        original = resource.get_address()
        working = parse_address(url, self._config.suffixes)
        if working is not None:
            self._cache.record_success(group_key(address, self._config.group_path_segments), working)
            variants = rewrite_variants(resource.get_variants(), working, self._config.suffixes)
        else:
            variants = None
        resource.set_address(url, variants)
        record.state = ResolutionState.SUCCEEDED
        if record.swap is SwapState.APPLIED:
            # The optimistic swap was superseded by a probed address.
            record.swap = SwapState.FAILED

        result = self._result(record, original, url, attempt, start, is_retry_pass)
        tprint(f"[RESOLVER] Fixed {original} -> {url} after {len(attempt.attempts)} probe(s)")
        self._bus.publish(TOPIC_SUCCEEDED, {"resource": resource, "result": result})
        return result

    def _settle_failure(
        self,
        resource: Resource,
        record: ResourceRecord,
        original: str,
        attempt: ResolutionAttempt,
        start: float,
        is_retry_pass: bool,
    ) -> ResolutionResult:
        if not is_retry_pass and attempt.retry_eligible:
            record.state = ResolutionState.RETRY_SCHEDULED
            delay = self._config.retry_delay_ms / 1000.0
            self._tasks.run_later(
                delay, lambda: self._retry(resource), name=f"retry:{original}"
            )
            result = self._result(record, original, None, attempt, start, is_retry_pass)
            deep_log(f"[DEEP][RESOLVER] Timed out on {original}; retrying in {delay:.1f}s")
            self._bus.publish(TOPIC_RETRY_SCHEDULED, {"resource": resource, "result": result})
            return result

        record.state = ResolutionState.FAILED
        result = self._result(record, original, None, attempt, start, is_retry_pass)
        last = attempt.last_error.value if attempt.last_error else "none"
        tprint(
            f"[RESOLVER][WARN] No working mirror for {original} "
            f"({len(attempt.attempts)} probed, {attempt.skipped} skipped, last error: {last})"
        )
        self._bus.publish(TOPIC_FAILED, {"resource": resource, "result": result})
        return result

    def _result(
        self,
        record: ResourceRecord,
        original: str,
        resolved: str | None,
        attempt: ResolutionAttempt,
        start: float,
        is_retry_pass: bool,
    ) -> ResolutionResult:
        return ResolutionResult(
            state=record.state,
            original_url=original,
            resolved_url=resolved,
            attempts=list(attempt.attempts),
            skipped=attempt.skipped,
            last_error=attempt.last_error,
            is_retry_pass=is_retry_pass,
            elapsed_ms=int((time.monotonic() - start) * 1000),
            aborted_early=attempt.aborted_early,
        )

    async def _retry(self, resource: Resource) -> ResolutionResult | None:
        record = self._registry.peek(resource)
        if record is None or record.state is not ResolutionState.RETRY_SCHEDULED:
            return None
        if not resource.is_broken():
            # Healed while we waited; leave it alone.
            record.state = ResolutionState.IDLE
            deep_log(f"[DEEP][RESOLVER] {resource!r} recovered before retry")
            return None
        return await self.resolve(resource, is_retry_pass=True)

    async def verify_fast_swap(self, resource: Resource) -> ResolutionResult | None:
        """Undo a fast swap that did not load and fall back to a full search.

        Args:
            resource: Image that may have been rewritten by the fast-swap path

        Returns:
            Result of the fallback resolve, or None when nothing needed doing
        """
        record = self._registry.peek(resource)
        if record is None or record.swap is not SwapState.APPLIED:
            return None
        if record.state is ResolutionState.SUCCEEDED:
            return None
        if self._registry.is_in_flight(resource) or not resource.is_broken():
            return None

        if record.original_address:
            resource.set_address(record.original_address, record.original_variants)
        record.swap = SwapState.FAILED
        tprint(f"[RESOLVER] Fast swap failed; restored {record.original_address}")
        self._bus.publish(TOPIC_RESTORED, {"resource": resource})
        return await self.resolve(resource)

    def reset(self, resource: Resource) -> bool:
        """Forget state after the address was changed by someone else."""
        if self._registry.is_in_flight(resource):
            return False
        self._registry.forget(resource)
        return True

    def pending_retries(self) -> int:
        return self._tasks.pending()

    async def wait_pending(self) -> None:
        """Wait for scheduled retries (and the passes they start) to finish."""
        await self._tasks.join()

    async def close(self) -> None:
        await self._tasks.cancel_all()
