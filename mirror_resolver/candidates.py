"""Priority-ordered alternate addresses for a broken image."""

from __future__ import annotations

from dataclasses import dataclass

from mirror_resolver.address import Address, group_key
from mirror_resolver.config import ResolverConfig
from mirror_resolver.constants import (
    PRIORITY_ALTERNATE_PREFIX,
    PRIORITY_CACHED,
    PRIORITY_MIRROR_ROOT,
    PRIORITY_NEAR_INDEX,
    PRIORITY_RELIABLE_PREFIX,
    PRIORITY_WIDE_INDEX,
)
from mirror_resolver.outcome_cache import OutcomeCache


@dataclass(frozen=True)
class Candidate:
    """An alternate address tagged with its priority class."""

    url: str
    priority: int


class CandidateGenerator:
    """Builds the bounded, deterministic search space for one address."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._config = config or ResolverConfig()

    def generate(self, address: Address, cache: OutcomeCache) -> list[str]:
        """Return up to ``max_attempts`` unique candidate URLs, best first.

        Args:
            address: Parsed broken address
            cache: Outcome cache consulted for the group's known mirror

        Returns:
            Rendered URLs sorted by priority class, first-seen order within a class
        """
        ranked = sorted(self.weighted(address, cache), key=lambda c: c.priority)
        seen: set[str] = set()
        urls: list[str] = []
        for candidate in ranked:
            if candidate.url in seen:
                continue
            seen.add(candidate.url)
            urls.append(candidate.url)
            if len(urls) >= self._config.max_attempts:
                break
        return urls

    def weighted(self, address: Address, cache: OutcomeCache) -> list[Candidate]:
        """Return every candidate with its priority, unsorted and undeduplicated."""
        cfg = self._config
        candidates: list[Candidate] = []
        unreliable = address.prefix in cfg.unreliable_prefixes

        def add(priority: int, **host: object) -> None:
            candidates.append(Candidate(address.with_host(**host).render(), priority))

        cached = cache.get_success(group_key(address, cfg.group_path_segments))
        if cached is not None:
            add(
                PRIORITY_CACHED,
                prefix=cached.prefix,
                index=cached.index,
                domain_root=cached.domain_root,
                domain_suffix=cached.domain_suffix,
            )

        if unreliable:
            for prefix in cfg.reliable_prefixes:
                add(PRIORITY_RELIABLE_PREFIX, prefix=prefix)

        for prefix in cfg.fallback_prefixes:
            if prefix != address.prefix and prefix not in cfg.unreliable_prefixes:
                add(PRIORITY_ALTERNATE_PREFIX, prefix=prefix)

        for index in range(0, min(cfg.near_index_limit, cfg.max_server_index) + 1):
            if index != address.index:
                add(PRIORITY_NEAR_INDEX, index=index)

        for root, suffix in cfg.fallback_roots:
            if root == address.domain_root:
                continue
            add(PRIORITY_MIRROR_ROOT, domain_root=root, domain_suffix=suffix)
            if unreliable:
                add(
                    PRIORITY_MIRROR_ROOT,
                    prefix=cfg.primary_reliable_prefix,
                    domain_root=root,
                    domain_suffix=suffix,
                )

        for index in range(cfg.near_index_limit + 1, cfg.max_server_index + 1):
            if index != address.index:
                add(PRIORITY_WIDE_INDEX, index=index)

        return candidates
