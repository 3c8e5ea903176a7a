"""Where2Play: concert search and touring-city recommendations.

Aggregates setlist.fm show listings with MusicBrainz artist metadata behind
a rate-limited, cache-layered fetch layer and serves the result over FastAPI.
"""

__version__ = "0.1.0"
