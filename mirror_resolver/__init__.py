"""Find working mirrors for images whose primary host is unreachable."""

from mirror_resolver.address import Address, ResourceGroupKey, group_key, parse_address
from mirror_resolver.config import ConfigError, ResolverConfig
from mirror_resolver.engine import MirrorEngine
from mirror_resolver.outcome_cache import OutcomeCache
from mirror_resolver.prober import ProbeOutcome, Prober
from mirror_resolver.resolver import ResolutionResult, Resolver
from mirror_resolver.resource import ImageResource, Resource
from mirror_resolver.rewriter import PreemptiveRewriter
from mirror_resolver.state import ResolutionState

__all__ = [
    "Address",
    "ConfigError",
    "ImageResource",
    "MirrorEngine",
    "OutcomeCache",
    "PreemptiveRewriter",
    "ProbeOutcome",
    "Prober",
    "ResolutionResult",
    "ResolutionState",
    "Resolver",
    "Resource",
    "ResolverConfig",
    "ResourceGroupKey",
    "group_key",
    "parse_address",
]
