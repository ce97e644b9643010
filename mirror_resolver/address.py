"""Parsing and rendering of numbered mirror-host image addresses."""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
import re
from typing import NamedTuple
from urllib.parse import urlsplit

from mirror_resolver.constants import ADDRESS_SUFFIXES, GROUP_PATH_SEGMENTS


class ResourceGroupKey(NamedTuple):
    """Sibling resources expected to share a working mirror."""

    domain_root: str
    path_prefix: str


@lru_cache(maxsize=16)
def _address_re(suffixes: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(s) for s in suffixes)
    return re.compile(
        rf"^https?://([a-z]+)(\d{{2,3}})\.([a-z0-9\-]+)\.({alternatives})(/.*)$",
        re.IGNORECASE | re.DOTALL,
    )


@lru_cache(maxsize=16)
def _host_re(suffixes: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(s) for s in suffixes)
    return re.compile(
        rf"https?://[a-z]+\d{{2,3}}\.[a-z0-9\-]+\.(?:{alternatives})(?=/|\s|,|$)",
        re.IGNORECASE,
    )


@dataclass(frozen=True)
class Address:
    """Structured form of ``scheme://<prefix><index>.<root>.<suffix><path>``."""

    prefix: str
    index: int
    domain_root: str
    domain_suffix: str
    path: str

    @property
    def host(self) -> str:
        return f"{self.prefix}{self.index:02d}.{self.domain_root}.{self.domain_suffix}"

    @property
    def base(self) -> str:
        return f"https://{self.host}"

    def render(self) -> str:
        """Return the canonical https form of the address."""
        return f"{self.base}{self.path}"

    def __str__(self) -> str:
        return self.render()

    def with_host(
        self,
        prefix: str | None = None,
        index: int | None = None,
        domain_root: str | None = None,
        domain_suffix: str | None = None,
    ) -> Address:
        """Return a copy pointed at another host, keeping the path."""
        return replace(
            self,
            prefix=self.prefix if prefix is None else prefix,
            index=self.index if index is None else index,
            domain_root=self.domain_root if domain_root is None else domain_root,
            domain_suffix=self.domain_suffix if domain_suffix is None else domain_suffix,
        )

    def with_path(self, path: str) -> Address:
        return replace(self, path=path)


def parse_address(
    address: str | None, suffixes: tuple[str, ...] = ADDRESS_SUFFIXES
) -> Address | None:
    """Parse an image address into its structured fields.

    Args:
        address: Absolute URL such as ``https://k03.mbdny.org/a/b/1.jpg``
        suffixes: Accepted top-level suffixes

    Returns:
        Address, or None when the string does not match the pattern
    """
    if not address:
        return None
    match = _address_re(tuple(suffixes)).match(address.strip())
    if not match:
        return None
    prefix, digits, root, suffix, path = match.groups()
    return Address(
        prefix=prefix.lower(),
        index=int(digits, 10),
        domain_root=root.lower(),
        domain_suffix=suffix.lower(),
        path=path,
    )


def group_key(address: Address, segments: int = GROUP_PATH_SEGMENTS) -> ResourceGroupKey:
    """Key shared by resources under the same leading path segments."""
    parts = [part for part in address.path.split("?", 1)[0].split("/") if part]
    return ResourceGroupKey(address.domain_root, "/".join(parts[:segments]))


def host_cluster_key(url: str) -> str:
    """Return ``scheme://host`` for failure memoization."""
    parts = urlsplit(url.strip())
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def rewrite_variants(
    variants: str | None,
    working: Address,
    suffixes: tuple[str, ...] = ADDRESS_SUFFIXES,
) -> str | None:
    """Point every recognized host in a ``srcset``-style list at ``working``.

    Args:
        variants: Comma-separated ``url descriptor`` list, may be empty
        working: Address whose host should serve all variants
        suffixes: Accepted top-level suffixes

    Returns:
        Rewritten list, or None if there was nothing to rewrite
    """
    if not variants:
        return None
    pattern = _host_re(tuple(suffixes))
    if not pattern.search(variants):
        return None
    return pattern.sub(working.base, variants)
