"""Throttled outbound HTTP shared by the setlist.fm and MusicBrainz adapters."""

from where2play.providers.http.rate_limited_fetcher import (
    FetchResult,
    ProviderPolicy,
    RateLimitedFetcher,
    default_policies,
    parse_retry_after,
)

__all__ = [
    "FetchResult",
    "ProviderPolicy",
    "RateLimitedFetcher",
    "default_policies",
    "parse_retry_after",
]
