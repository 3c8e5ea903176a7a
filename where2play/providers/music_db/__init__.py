"""Artist-metadata provider implementations.

    MusicBrainzProvider -- MusicBrainz ws/2 JSON API (no key; 1 req/sec).
      Supplies country, 0-5 community rating and genre tags for the
      event records and the genre searches behind recommendations.
"""

from where2play.providers.music_db.musicbrainz_provider import MusicBrainzProvider

__all__ = ["MusicBrainzProvider"]
