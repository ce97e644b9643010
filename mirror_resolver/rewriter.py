"""Optimistic prefix swap applied before any probing."""

from __future__ import annotations

from mirror_resolver.address import group_key, parse_address, rewrite_variants
from mirror_resolver.config import ResolverConfig
from mirror_resolver.outcome_cache import OutcomeCache
from mirror_resolver.resource import Resource
from mirror_resolver.state import ResolutionState, ResourceRegistry, SwapState
from utils.event_bus import EventBus
from utils.settings_store import deep_log

TOPIC_SWAPPED = "rewriter.swapped"


class PreemptiveRewriter:
    """Rewrites addresses on the unreliable prefix family without probing.

    The swap uses the group's cached mirror when there is one, otherwise the
    primary reliable prefix at the same index. The original address is kept in
    the resource record so Resolver.verify_fast_swap can restore it.
    """

    def __init__(
        self,
        cache: OutcomeCache,
        registry: ResourceRegistry,
        config: ResolverConfig | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._cache = cache
        self._registry = registry
        self._config = config or ResolverConfig()
        self._bus = bus or EventBus()

    def guess(self, url: str) -> str | None:
        """Return the address a fast swap would write, or None if not applicable."""
        address = parse_address(url, self._config.suffixes)
        if address is None or address.prefix not in self._config.unreliable_prefixes:
            return None
        cached = self._cache.get_success(group_key(address, self._config.group_path_segments))
        if cached is not None:
            return cached.with_path(address.path).render()
        return address.with_host(prefix=self._config.primary_reliable_prefix).render()

    def try_fast_swap(self, resource: Resource) -> bool:
        """Apply the swap to ``resource``; True when an address was written."""
        record = self._registry.record(resource)
        if record.swap is not SwapState.NONE or record.state is ResolutionState.SUCCEEDED:
            return False
        if self._registry.is_in_flight(resource):
            return False

        original = resource.get_address()
        new_url = self.guess(original)
        if new_url is None:
            return False

        original_variants = resource.get_variants()
        working = parse_address(new_url, self._config.suffixes)
        variants = rewrite_variants(original_variants, working, self._config.suffixes) if working else None

        record.original_address = original
        record.original_variants = original_variants
        record.swap = SwapState.APPLIED
        resource.set_address(new_url, variants)

        deep_log(f"[DEEP][REWRITER] {original} -> {new_url}")
        self._bus.publish(TOPIC_SWAPPED, {"resource": resource, "from": original, "to": new_url})
        return True
