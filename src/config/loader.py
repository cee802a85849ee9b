"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# _deep_merge does recursive dict merging:
#   base = {"listing": {"page_delay": 0.5}}
#   overrides = {"listing": {"types": ["8262"]}}
#   result = {"listing": {"page_delay": 0.5, "types": ["8262"]}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Optional pre-built Settings; a fresh instance is read from
                  the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "listing": {
            "api_base_url": settings.ade_api_base_url,
            "site_base_url": settings.ade_site_base_url,
            "types": settings.get_listing_types(),
            "from_date": settings.listing_from_date,
            "to_date": settings.listing_to_date,
            "page_delay": settings.listing_page_delay,
        },
        "lineup": {
            "event_page_delay": settings.event_page_delay,
            "request_timeout": settings.request_timeout,
            "batch_limit": settings.lineup_batch_limit,
        },
        "matching": {
            "link_threshold": settings.link_threshold,
            "high_confidence_threshold": settings.high_confidence_threshold,
        },
        "storage": {
            "db_path": settings.db_path,
        },
        "progress": {
            "retention_seconds": settings.progress_retention_seconds,
            "sweep_interval": settings.progress_sweep_interval,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
