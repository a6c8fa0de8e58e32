"""Immutable lookup tables used by the reconciliation engine.

Everything here is plain data so tests (or callers) can substitute their own
taxonomy by building a new ``ReconciliationConfig``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Major US exchanges first, then major non-US exchanges
EXCHANGE_PREFERENCE: tuple[str, ...] = (
    "NASDAQ",
    "NYSE",
    "NYSE ARCA",
    "NYSE AMERICAN",
    "LSE",
    "TSE",
    "HKEX",
)

SOCIAL_DOMAINS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "x": ("x.com", "twitter.com"),
    "facebook": ("facebook.com",),
    "instagram": ("instagram.com",),
    "youtube": ("youtube.com", "youtu.be"),
    "linkedin": ("linkedin.com",),
    "tiktok": ("tiktok.com",),
    "github": ("github.com",),
    "medium": ("medium.com",),
    "reddit": ("reddit.com",),
    "threads": ("threads.net",),
    "bluesky": ("bsky.app",),
    "mastodon": ("mastodon.social", "fosstodon.org", "hachyderm.io"),
    "pinterest": ("pinterest.com",),
})

# Wikidata Q515 (city) and Q486972 (human settlement)
SETTLEMENT_TYPE_IDS: frozenset[str] = frozenset({"Q515", "Q486972"})

DEFAULT_HIERARCHY_DEPTH = 2


@dataclass(frozen=True)
class ReconciliationConfig:
    """Tables and limits the engine is parameterized with.

    Attributes:
        exchange_preference: Ranked exchange names, most preferred first.
        social_domains: Platform key -> root domains of that platform.
        settlement_type_ids: Type markers that classify a place as a city.
        hierarchy_depth: How many "located-in" hops the headquarters
            resolver follows.
    """

    exchange_preference: tuple[str, ...] = EXCHANGE_PREFERENCE
    social_domains: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: SOCIAL_DOMAINS)
    settlement_type_ids: frozenset[str] = SETTLEMENT_TYPE_IDS
    hierarchy_depth: int = DEFAULT_HIERARCHY_DEPTH

    def __post_init__(self) -> None:
        if self.hierarchy_depth < 0:
            raise ValueError("hierarchy_depth cannot be negative")


DEFAULT_CONFIG = ReconciliationConfig()
