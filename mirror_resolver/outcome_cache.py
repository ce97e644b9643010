"""Process-lifetime memory of working mirrors and unreachable hosts."""

from __future__ import annotations

from mirror_resolver.address import Address, ResourceGroupKey


class OutcomeCache:
    """Success map keyed by resource group plus a set of failed host clusters.

    Entries are never evicted and never persisted. A success entry is a hint:
    the resolver still probes it before trusting it. A failed host stays
    failed for the lifetime of the cache.
    """

    def __init__(self) -> None:
        self._successes: dict[ResourceGroupKey, Address] = {}
        self._failed_hosts: set[str] = set()

    def get_success(self, group: ResourceGroupKey) -> Address | None:
        """Return the last working address recorded for a group.

        Args:
            group: Resource group key of the broken address

        Returns:
            Address if the group has resolved before, None otherwise
        """
        return self._successes.get(group)

    def record_success(self, group: ResourceGroupKey, address: Address) -> None:
        """Remember ``address`` as the working mirror for ``group`` (last write wins)."""
        self._successes[group] = address

    def is_failed(self, host_cluster: str) -> bool:
        return host_cluster in self._failed_hosts

    def mark_failed(self, host_cluster: str) -> None:
        self._failed_hosts.add(host_cluster)

    def failed_hosts(self) -> frozenset[str]:
        return frozenset(self._failed_hosts)

    def clear(self) -> None:
        """Invalidate both stores."""
        self._successes.clear()
        self._failed_hosts.clear()

    def size(self) -> tuple[int, int]:
        """Return (success entries, failed hosts)."""
        return len(self._successes), len(self._failed_hosts)
