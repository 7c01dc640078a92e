"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Payana client.

    Args loaded from .env file and PAYANA_-prefixed environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PAYANA_",
        case_sensitive=False,
    )

    # Remote service
    backend_url: str = "http://localhost:8000"
    request_timeout_seconds: float = 10.0
    api_key_header: str = "X-API-Key"

    # Geosearch
    geo_debounce_seconds: float = 0.25
    geo_result_limit: int = 6
    geo_min_query_length: int = 2

    # Snapshot polling
    refresh_interval_seconds: float = 5.0

    # Driver proximity
    nearby_radius_km: float = 5.0

    # Local fare fallback
    fare_base: float = 2.0
    fare_per_km: float = 1.2
    fare_per_min: float = 0.2

    # Presentation surface
    notification_ttl_seconds: float = 3.0
    cors_allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def get_settings() -> Settings:
    """Return a Settings instance.

    Returns:
        Application settings loaded from env.
    """
    return Settings()
