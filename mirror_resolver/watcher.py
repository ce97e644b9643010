"""Event-driven glue that feeds newly seen or failing images to the engine."""

from __future__ import annotations

from mirror_resolver.engine import MirrorEngine
from mirror_resolver.resolver import ResolutionResult
from mirror_resolver.resource import Resource
from mirror_resolver.state import ResolutionState, SwapState
from utils.async_utils import TaskTracker
from utils.settings_store import deep_log


class ImageWatcher:
    """Schedules fast swaps, delayed checks and debounced repairs.

    The host page integration calls ``watch`` for every image it discovers,
    ``on_error`` when an image fails to load and ``on_address_changed`` when
    something other than the engine rewrote an image address.
    """

    def __init__(self, engine: MirrorEngine) -> None:
        self._engine = engine
        self._config = engine.config
        self._tasks = TaskTracker()

    def watch(self, resource: Resource) -> bool:
        """Start tracking ``resource``; returns True if a fast swap was applied."""
        swapped = self._engine.rewriter.try_fast_swap(resource)
        if swapped:
            self._tasks.run_later(
                self._config.verify_delay_ms / 1000.0,
                lambda: self.check(resource),
                name="verify-swap",
            )
        self._tasks.run_later(
            self._config.check_delay_ms / 1000.0,
            lambda: self.check(resource),
            name="check",
        )
        return swapped

    async def check(self, resource: Resource) -> ResolutionResult | None:
        """Verify a fast swap, or resolve the image if it is still broken."""
        registry = self._engine.registry
        record = registry.peek(resource)
        if not resource.is_broken():
            return None
        if record is not None and record.swap is SwapState.APPLIED:
            return await self._engine.resolver.verify_fast_swap(resource)
        if registry.state(resource) is ResolutionState.SUCCEEDED:
            return None
        return await self._engine.resolver.resolve(resource)

    def on_error(self, resource: Resource) -> None:
        self._tasks.run_later(
            self._config.error_debounce_ms / 1000.0,
            lambda: self._resolve_unless_fixed(resource),
            name="on-error",
        )

    def on_address_changed(self, resource: Resource) -> None:
        """Re-track an image whose address was changed by the page itself."""
        if self._engine.registry.state(resource) is ResolutionState.SUCCEEDED:
            return
        if not self._engine.resolver.reset(resource):
            deep_log(f"[DEEP][WATCHER] {resource!r} changed while in flight; ignoring")
            return
        self._tasks.run_later(
            self._config.change_delay_ms / 1000.0,
            lambda: self._rewatch(resource),
            name="address-changed",
        )

    async def _resolve_unless_fixed(self, resource: Resource) -> ResolutionResult | None:
        if self._engine.registry.state(resource) is ResolutionState.SUCCEEDED:
            return None
        return await self._engine.resolver.resolve(resource)

    async def _rewatch(self, resource: Resource) -> ResolutionResult | None:
        self.watch(resource)
        return await self.check(resource)

    async def wait_idle(self) -> None:
        """Wait until no scheduled check or retry remains."""
        resolver = self._engine.resolver
        while self._tasks.pending() or resolver.pending_retries():
            await self._tasks.join()
            await resolver.wait_pending()

    async def close(self) -> None:
        await self._tasks.cancel_all()
        await self._engine.close()
