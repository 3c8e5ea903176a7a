"""Shows-provider implementations."""

from where2play.providers.setlist.setlistfm_provider import SetlistFmProvider, looks_like_mbid

__all__ = ["SetlistFmProvider", "looks_like_mbid"]
