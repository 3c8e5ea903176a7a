"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from (highest priority first):
#
#   1. Environment variables, e.g. SETLISTFM_API_KEY=abc123
#   2. A .env file in the working directory
#   3. The defaults declared below
#
# Field ``setlistfm_api_key`` maps to env var ``SETLISTFM_API_KEY``.
#
# An empty API key means "not configured": the setlist.fm provider raises
# ConfigurationError when a call path needs it, and /health reports it.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Where2Play application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Upstream APIs ===
    setlistfm_api_key: str = ""
    setlistfm_base_url: str = "https://api.setlist.fm/rest/1.0/"
    musicbrainz_base_url: str = "https://musicbrainz.org/ws/2/"
    eventparking_base_url: str = (
        "https://eventparking-g2h3grd0e4cdgvag.eastus2-01.azurewebsites.net/api/"
    )
    # Both music APIs ask clients to identify the application and a contact.
    api_user_agent: str = "Where2Play/1.0 (where2play@example.com)"

    # === Rate limiting ===
    setlistfm_min_interval_ms: int = 700    # ~1.4 req/s
    musicbrainz_min_interval_ms: int = 1100  # MusicBrainz asks for <= 1 req/s
    http_max_attempts: int = 3
    http_timeout: float = 30.0
    fanout_concurrency: int = 2

    # === Cache TTLs (seconds) ===
    cache_max_size: int = 10_000
    city_cache_ttl: int = 15 * 60
    artist_metadata_cache_ttl: int = 24 * 60 * 60
    artist_link_cache_ttl: int = 24 * 60 * 60
    not_found_cache_ttl: int = 12 * 60 * 60
    genre_cache_ttl: int = 6 * 60 * 60
    shows_cache_ttl: int = 60 * 60
    recommendation_cache_ttl: int = 30 * 60

    # === Background recommendation refresh ===
    recommendation_refresh_enabled: bool = False
    recommendation_refresh_genres: str = ""   # comma-separated, e.g. "rock,country"
    recommendation_refresh_regions: str = ""  # comma-separated region codes, e.g. "MW,SE"
    recommendation_refresh_interval_minutes: int = 30

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_providers(self) -> list[str]:
        """Return the upstream providers that can be called with the current settings."""
        providers = ["musicbrainz", "eventparking"]
        if self.setlistfm_api_key:
            providers.insert(0, "setlistfm")
        return providers

    @staticmethod
    def split_csv(raw: str) -> list[str]:
        """Split a comma-separated setting into trimmed, non-empty items."""
        return [item.strip() for item in raw.split(",") if item.strip()]
