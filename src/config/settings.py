"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from TWO sources (in priority order):
#
#   1. **Environment variables** -- e.g., ADE_API_BASE_URL=http://localhost:9000
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field name `listing_page_delay` maps to env var `LISTING_PAGE_DELAY`.
# Defaults below describe the live ADE 2025 program listing.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """adeSync application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Upstream listing API ===
    ade_api_base_url: str = "https://www.amsterdam-dance-event.nl/api"
    ade_site_base_url: str = "https://www.amsterdam-dance-event.nl"
    listing_types: str = "8262,8263"  # Comma-separated program type filter
    listing_from_date: str = "2025-10-22"
    listing_to_date: str = "2025-10-26"

    # === Rate limiting (seconds) ===
    # No adaptive backoff -- these are fixed pauses between sequential requests.
    listing_page_delay: float = 0.5
    event_page_delay: float = 1.0
    request_timeout: float = 15.0

    # === Storage ===
    db_path: str = "data/ade_sync.db"

    # === Matching ===
    link_threshold: float = 0.6  # Links are persisted only ABOVE this score
    high_confidence_threshold: float = 0.9
    lineup_batch_limit: int = 100  # Max events parsed per full-sync lineup phase

    # === Session progress ===
    progress_retention_seconds: int = 300
    progress_sweep_interval: float = 60.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_listing_types(self) -> list[str]:
        """Return the configured program type ids as a list."""
        return [t.strip() for t in self.listing_types.split(",") if t.strip()]
