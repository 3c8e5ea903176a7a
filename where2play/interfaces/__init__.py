"""Public interface definitions for all external service providers.

Every upstream API is reached through one of these abstract base classes;
concrete adapters live in ``where2play/providers/`` and are wired together
in ``where2play/main.py``.

    Interface                  ->  Concrete implementation
    -----------------------------------------------------------
    ICacheProvider             ->  MemoryCacheProvider
    IShowsProvider             ->  SetlistFmProvider
    IArtistMetadataProvider    ->  MusicBrainzProvider
"""

from where2play.interfaces.cache_provider import ICacheProvider
from where2play.interfaces.music_db_provider import IArtistMetadataProvider
from where2play.interfaces.shows_provider import IShowsProvider

__all__ = [
    "IArtistMetadataProvider",
    "ICacheProvider",
    "IShowsProvider",
]
