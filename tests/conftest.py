"""Shared fixtures: fast config, fake probe transport, isolated settings."""

from __future__ import annotations

import asyncio

import pytest

from mirror_resolver.address import host_cluster_key
from mirror_resolver.config import ResolverConfig
from mirror_resolver.engine import MirrorEngine
from mirror_resolver.prober import ProbeOutcome
from utils.event_bus import EventBus
from utils.settings_store import load_settings_file


class FakeTransport:
    """Answers probes from a table keyed by URL or host cluster.

    TIMEOUT entries hang until the prober's deadline cancels them.
    """

    def __init__(self, outcomes=None, default=ProbeOutcome.TRANSPORT_ERROR, delay=0.0):
        self.outcomes = dict(outcomes or {})
        self.default = default
        self.delay = delay
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def fetch(self, url: str) -> ProbeOutcome:
        self.calls.append(url)
        outcome = self.outcomes.get(url, self.outcomes.get(host_cluster_key(url), self.default))
        try:
            if outcome is ProbeOutcome.TIMEOUT:
                await asyncio.sleep(3600)
            elif self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(url)
            raise
        return outcome

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


def make_config(**overrides) -> ResolverConfig:
    values = dict(
        probe_timeout_ms=10,
        late_probe_extra_ms=0,
        retry_delay_ms=0,
        check_delay_ms=0,
        verify_delay_ms=0,
        error_debounce_ms=0,
        change_delay_ms=0,
    )
    values.update(overrides)
    return ResolverConfig(**values)


def make_engine(transport, **overrides) -> MirrorEngine:
    return MirrorEngine.create(transport, make_config(**overrides), bus=EventBus())


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Keep every test off the real settings file."""
    load_settings_file(tmp_path / "no_settings.json")
    yield
    load_settings_file(tmp_path / "no_settings.json")


@pytest.fixture
def fast_config() -> ResolverConfig:
    return make_config()
