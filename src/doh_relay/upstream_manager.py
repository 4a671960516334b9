"""Upstream DoH resolver pool and random selection."""
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import Settings


@dataclass(frozen=True)
class UpstreamEndpoint:
    """A DoH resolver the worker relay can forward to."""
    name: str
    url: str


DEFAULT_UPSTREAMS = (
    UpstreamEndpoint(name="Cloudflare", url="https://cloudflare-dns.com/dns-query"),
    UpstreamEndpoint(name="Google", url="https://dns.google/dns-query"),
    UpstreamEndpoint(name="AdGuard", url="https://dns.adguard-dns.com/dns-query"),
)


def resolve_configured_pool(settings: Settings) -> List[UpstreamEndpoint]:
    """
    Build the upstream pool from configuration.

    The comma-separated list wins over the single value, which wins over the
    built-in defaults. Sources are never merged.

    Args:
        settings: Process settings holding the raw UPSTREAMS / UPSTREAM values

    Returns:
        Non-empty list of UpstreamEndpoint
    """
    items = [url.strip() for url in (settings.upstreams or "").split(',') if url.strip()]
    if items:
        return [UpstreamEndpoint(name=f"env-{idx}", url=url) for idx, url in enumerate(items, start=1)]

    single = (settings.upstream or "").strip()
    if single:
        return [UpstreamEndpoint(name="env-single", url=single)]

    return list(DEFAULT_UPSTREAMS)


class UpstreamSelector:
    """Picks one upstream per call, uniformly at random."""

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the selector.

        Args:
            rng: Random source exposing randrange(); defaults to a fresh random.Random
        """
        self.rng = rng or random.Random()

    def pick(self, pool: Sequence[UpstreamEndpoint]) -> UpstreamEndpoint:
        """
        Select one endpoint from the pool.

        Each call is independent; no state is kept between picks.
        """
        if not isinstance(pool, (list, tuple)) or not pool:
            return DEFAULT_UPSTREAMS[0]
        return pool[self.rng.randrange(len(pool))]
