"""Tests for OutcomeCache (success hints and failed host clusters)."""

from mirror_resolver.address import ResourceGroupKey, parse_address
from mirror_resolver.outcome_cache import OutcomeCache


class TestOutcomeCache:
    """Test suite for OutcomeCache."""

    def test_success_miss_returns_none(self):
        """Test that an unknown group has no cached mirror."""
        cache = OutcomeCache()
        assert cache.get_success(ResourceGroupKey("mbdny", "a/b/c")) is None

    def test_success_hit_returns_address(self):
        """Test that a recorded mirror is returned for its group."""
        cache = OutcomeCache()
        group = ResourceGroupKey("mbdny", "a/b/c")
        working = parse_address("https://n03.mbdny.org/a/b/c/1.jpg")

        cache.record_success(group, working)

        assert cache.get_success(group) == working

    def test_success_last_write_wins(self):
        """Test that a newer success replaces the older one."""
        cache = OutcomeCache()
        group = ResourceGroupKey("mbdny", "a/b/c")
        cache.record_success(group, parse_address("https://n03.mbdny.org/a/b/c/1.jpg"))
        cache.record_success(group, parse_address("https://x05.bato.to/a/b/c/2.jpg"))

        assert cache.get_success(group).host == "x05.bato.to"

    def test_failed_membership(self):
        """Test that failed host clusters are remembered."""
        cache = OutcomeCache()
        assert not cache.is_failed("https://k03.mbdny.org")

        cache.mark_failed("https://k03.mbdny.org")
        cache.mark_failed("https://k03.mbdny.org")  # idempotent

        assert cache.is_failed("https://k03.mbdny.org")
        assert not cache.is_failed("https://n03.mbdny.org")
        assert cache.failed_hosts() == frozenset({"https://k03.mbdny.org"})

    def test_stores_are_independent(self):
        """Test that failures do not evict successes and vice versa."""
        cache = OutcomeCache()
        group = ResourceGroupKey("mbdny", "a")
        working = parse_address("https://n03.mbdny.org/a/1.jpg")
        cache.record_success(group, working)
        cache.mark_failed("https://n03.mbdny.org")

        assert cache.get_success(group) == working
        assert cache.size() == (1, 1)

    def test_clear(self):
        """Test that clear() empties both stores."""
        cache = OutcomeCache()
        cache.record_success(ResourceGroupKey("mbdny", "a"), parse_address("https://n03.mbdny.org/a/1.jpg"))
        cache.mark_failed("https://k03.mbdny.org")

        cache.clear()

        assert cache.size() == (0, 0)

    def test_instances_are_isolated(self):
        """Test that two caches never share state."""
        first, second = OutcomeCache(), OutcomeCache()
        first.mark_failed("https://k03.mbdny.org")
        assert not second.is_failed("https://k03.mbdny.org")
