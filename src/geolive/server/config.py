from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config.

    - Loaded from environment variables (`GEOLIVE_*`)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)

    Defaults reproduce the fixed behaviour: port 3000, OpenStreetMap tiles.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="GEOLIVE_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000

    # Map shell
    tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    tile_attribution: str = "© OpenStreetMap contributors"
    default_center: tuple[float, float] = (20.0, 0.0)
    default_zoom: int = 2
    located_zoom: int = 13

    # Browser geolocation options (watchPosition)
    geo_high_accuracy: bool = True
    geo_timeout_ms: int = 5000
    geo_maximum_age_ms: int = 0

    # Debugging
    debug_log_msgs: bool = False
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
