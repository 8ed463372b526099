"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # FPL API
    fpl_api_base_url: str = "https://fantasy.premierleague.com/api"
    request_timeout: float = 30.0
    max_concurrent_requests: int = 10
    user_agent: str = "FplManagerStats/1.0 (Fantasy Premier League Stats)"

    # Reference league: 314 is the overall league, so its leader is world No. 1
    reference_league_id: int = 314
    include_league_leader: bool = True

    # Player photos are linked, never fetched
    player_image_base_url: str = (
        "https://resources.premierleague.com/premierleague/photos/players/110x140"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    # Analysis windows and list sizes
    fixture_window: int = 5
    watchlist_fixture_window: int = 3
    trend_limit: int = 10
    captaincy_limit: int = 5
    suggestion_rank_key: str = "form"  # "form" or "form_difficulty"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
