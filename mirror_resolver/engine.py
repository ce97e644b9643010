"""Wires the cache, prober, resolver and rewriter around one transport."""

from __future__ import annotations

from dataclasses import dataclass

from mirror_resolver.config import ResolverConfig
from mirror_resolver.outcome_cache import OutcomeCache
from mirror_resolver.prober import ProbeTransport, Prober
from mirror_resolver.resolver import Resolver
from mirror_resolver.rewriter import PreemptiveRewriter
from mirror_resolver.state import ResourceRegistry
from utils.event_bus import EventBus
from utils.settings_store import get_settings


@dataclass
class MirrorEngine:
    """One set of shared stores and the two entry points built on them."""

    config: ResolverConfig
    cache: OutcomeCache
    registry: ResourceRegistry
    bus: EventBus
    prober: Prober
    resolver: Resolver
    rewriter: PreemptiveRewriter

    @classmethod
    def create(
        cls,
        transport: ProbeTransport,
        config: ResolverConfig | None = None,
        bus: EventBus | None = None,
    ) -> MirrorEngine:
        """Build an engine with fresh stores.

        Args:
            transport: Fetcher used by the prober
            config: Tuning (read from the settings file when None)
            bus: Event bus to publish on (a new one when None)

        Returns:
            MirrorEngine whose components share one cache and registry
        """
        config = config or ResolverConfig.from_settings(get_settings())
        cache = OutcomeCache()
        registry = ResourceRegistry()
        bus = bus or EventBus()
        prober = Prober(cache, transport)
        resolver = Resolver(prober, cache, config, registry=registry, bus=bus)
        rewriter = PreemptiveRewriter(cache, registry, config, bus=bus)
        return cls(config, cache, registry, bus, prober, resolver, rewriter)

    async def close(self) -> None:
        await self.resolver.close()
