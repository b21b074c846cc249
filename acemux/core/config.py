"""
Core configuration for the AceMux service.

Loads all required environment variables and provides typed access to them.
Uses Pydantic BaseSettings to support .env loading and environment overrides.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Note: Values can be provided in a .env file or process env vars.
    """

    # Server
    API_HOST: str = Field(default="0.0.0.0", description="Host interface for the uvicorn server")
    API_PORT: int = Field(default=3000, description="Port for the uvicorn server")

    # CORS
    CORS_ORIGINS: List[AnyHttpUrl] | List[str] = Field(
        default=["*"],
        description="Allowed CORS origins. Provide as a JSON array or comma-separated string.",
    )

    # Database (SQLite file; DATABASE_URL overrides the derived URL)
    DB_PATH: str = Field(default="./data/db.sqlite", description="Path of the SQLite database file")
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Explicit SQLAlchemy database URL; derived from DB_PATH when unset",
    )

    # AceStream engine / proxy
    ACESTREAM_BASE: str = Field(default="http://acestream:6878", description="Origin of the AceStream engine")
    PUBLIC_BASE_URL: Optional[str] = Field(
        default=None,
        description="Externally reachable origin used when building stream links",
    )
    PROXY_FORWARD_ALL_HEADERS: bool = Field(
        default=False,
        description="Forward every inbound header to the engine instead of Accept/User-Agent only",
    )
    PROXY_USER_AGENT: str = Field(default="AceMux/1.0", description="User-Agent sent when the client provides none")
    PROXY_CONNECT_TIMEOUT: float = Field(default=10.0, description="Upstream connect timeout in seconds")
    PROXY_READ_TIMEOUT: float = Field(default=60.0, description="Upstream read timeout in seconds")

    # Stream status probe policy
    STATUS_MIN_ACTIVE_SPEED: int = Field(default=50, description="Download speed (KB/s) for a 'dl' stream to count as online")
    STATUS_MIN_PEERS_FOR_ONLINE: int = Field(default=2, description="Peers needed (with nonzero speed) to count as online")
    STATUS_REQUEST_TIMEOUT: float = Field(default=12.0, description="Manifest request timeout in seconds")
    STATUS_STATS_TIMEOUT: float = Field(default=6.0, description="Stats request timeout in seconds")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_FORMAT: str = Field(default="json", description="json for structured lines, text for local development")
    LOG_SERVICE_NAME: str = Field(default="acemux", description="Service name attached to structured logs")
    LOG_ENVIRONMENT: str = Field(default="development", description="Deployment environment")
    REQUEST_LOGGING_ENABLED: bool = Field(default=True, description="Enable per-request logging middleware")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @classmethod
    def parse_cors_origins(cls, value: List[str] | str) -> List[str]:
        """Normalize CORS origins from env (list or comma-separated string) to a list of strings."""
        if isinstance(value, list):
            return [str(item) for item in value]
        if isinstance(value, str):
            # Allow JSON-like list or comma-separated
            v = value.strip()
            if v.startswith("[") and v.endswith("]"):
                v = v[1:-1]
            return [item.strip().strip('"').strip("'") for item in v.split(",") if item.strip()]
        return ["*"]

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the stream store."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.DB_PATH}"

    @property
    def acestream_base(self) -> str:
        """Engine origin with trailing slashes stripped."""
        return self.ACESTREAM_BASE.rstrip("/")


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton Settings instance, with CORS origins normalized."""
    settings = Settings()  # type: ignore[call-arg]
    settings.CORS_ORIGINS = Settings.parse_cors_origins(settings.CORS_ORIGINS)  # type: ignore[assignment]
    return settings
