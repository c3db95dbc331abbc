from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables and .env file.

    Cache tuning knobs keep the names the storefront has always used
    (``CACHE_DEBUG``, ``CACHE_SIZE_LIMIT`` in megabytes,
    ``POPULAR_RESOURCE_MULTIPLIER``). Per-route base durations are read
    here and handed to the cache at route registration time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Response cache
    cache_debug: bool = False
    cache_size_limit: int = 100
    popular_resource_multiplier: float = 2.0
    popularity_threshold: int = 10
    popular_ttl_cap: int = 3600
    count_hits_toward_popularity: bool = True

    # Per-route base durations (seconds)
    products_cache_duration: int = 300
    cache_duration: int = 60
    orders_cache_duration: int = 60

    # Remote hosting: transport, bind address, auth
    mcp_transport: str = "stdio"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8000
    mcp_auth_token: str | None = None

    # Paths & logging. Default is <project_root>/data so it works
    # regardless of the process working directory.
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def db_path(self) -> Path:
        return self.data_dir / "storefront.db"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cache_size_limit_bytes(self) -> int:
        return self.cache_size_limit * 1024 * 1024


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
