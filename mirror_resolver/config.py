"""Injected tuning for the resolver engine."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from mirror_resolver import constants as C


class ConfigError(ValueError):
    """Raised when resolver settings are out of range or malformed."""


def _letters(values: Any, key: str) -> tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    try:
        items = tuple(str(v).strip().lower() for v in values)
    except TypeError as exc:
        raise ConfigError(f"{key} must be a list of strings") from exc
    for item in items:
        if not item.isalpha():
            raise ConfigError(f"{key} entries must be letters, got {item!r}")
    return items


def _roots(values: Any) -> tuple[tuple[str, str], ...]:
    roots: list[tuple[str, str]] = []
    for value in values:
        parts = str(value).strip().lower().split(".")
        if len(parts) != 2 or not all(parts):
            raise ConfigError(f"fallback_roots entries must look like 'root.suffix', got {value!r}")
        roots.append((parts[0], parts[1]))
    return tuple(roots)


@dataclass(frozen=True)
class ResolverConfig:
    """Constants that tune candidate generation, probing and retry."""

    max_attempts: int = C.MAX_ATTEMPTS
    max_server_index: int = C.MAX_SERVER_INDEX
    near_index_limit: int = C.NEAR_INDEX_LIMIT
    group_path_segments: int = C.GROUP_PATH_SEGMENTS
    probe_timeout_ms: int = C.PROBE_TIMEOUT_MS
    late_probe_extra_ms: int = C.LATE_PROBE_EXTRA_MS
    late_probe_after: int = C.LATE_PROBE_AFTER
    retry_delay_ms: int = C.RETRY_DELAY_MS
    max_consecutive_timeouts: int = C.MAX_CONSECUTIVE_TIMEOUTS
    check_delay_ms: int = C.CHECK_DELAY_MS
    verify_delay_ms: int = C.VERIFY_DELAY_MS
    error_debounce_ms: int = C.ERROR_DEBOUNCE_MS
    change_delay_ms: int = C.CHANGE_DELAY_MS
    min_content_bytes: int = C.MIN_CONTENT_BYTES
    suffixes: tuple[str, ...] = C.ADDRESS_SUFFIXES
    unreliable_prefixes: tuple[str, ...] = C.UNRELIABLE_PREFIXES
    reliable_prefixes: tuple[str, ...] = C.RELIABLE_PREFIXES
    fallback_prefixes: tuple[str, ...] = C.FALLBACK_PREFIXES
    fallback_roots: tuple[tuple[str, str], ...] = field(
        default_factory=lambda: _roots(C.FALLBACK_ROOTS)
    )

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type == "int" and (not isinstance(value, int) or value < 0):
                raise ConfigError(f"{f.name} must be a non-negative integer, got {value!r}")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be at least 1")
        if self.group_path_segments < 1:
            raise ConfigError("group_path_segments must be at least 1")
        if self.max_consecutive_timeouts < 1:
            raise ConfigError("max_consecutive_timeouts must be at least 1")
        if self.max_server_index > 999:
            raise ConfigError("max_server_index cannot exceed three digits")
        if not self.reliable_prefixes:
            raise ConfigError("reliable_prefixes cannot be empty")
        if not self.suffixes:
            raise ConfigError("suffixes cannot be empty")

    @property
    def primary_reliable_prefix(self) -> str:
        return self.reliable_prefixes[0]

    def probe_timeout_secs(self, position: int) -> float:
        """Deadline for the candidate at ``position``; later probes get extra slack."""
        extra = self.late_probe_extra_ms if position > self.late_probe_after else 0
        return (self.probe_timeout_ms + extra) / 1000.0

    @classmethod
    def from_settings(cls, settings: dict[str, Any] | None = None) -> "ResolverConfig":
        """Build a config from a settings dict, ignoring unknown keys.

        Args:
            settings: Parsed settings (e.g. from utils.settings_store.get_settings())

        Returns:
            ResolverConfig with defaults for any missing key

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        settings = settings or {}
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in settings:
                continue
            raw = settings[f.name]
            if f.name == "fallback_roots":
                kwargs[f.name] = _roots(raw)
            elif f.name.endswith(("prefixes", "suffixes")):
                kwargs[f.name] = _letters(raw, f.name)
            else:
                try:
                    kwargs[f.name] = int(raw)
                except (TypeError, ValueError) as exc:
                    raise ConfigError(f"{f.name} must be an integer, got {raw!r}") from exc
        return cls(**kwargs)
