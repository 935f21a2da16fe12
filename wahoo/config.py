"""Application configuration using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Store
    STORE_DIR: str = "store"
    DATABASE_URL: str | None = None

    # HTTP server
    HOST: str = "localhost"
    PORT: int = 8080
    OPEN_BROWSER: bool = True

    # WhatsApp API
    WHATSAPP_API_URL: str = "http://localhost:3000"
    WHATSAPP_API_USER: str = ""
    WHATSAPP_API_PASSWORD: str = ""
    WHATSAPP_DEVICE_ID: str | None = None
    WHATSAPP_API_TIMEOUT: float = 30.0

    # Reconnection
    RECONNECT_POLICY: Literal["exponential", "none"] = "exponential"
    RECONNECT_INITIAL_DELAY: float = 1.0
    RECONNECT_MAX_DELAY: float = 60.0
    RECONNECT_MAX_ATTEMPTS: int | None = None
    SUPERVISOR_POLL_INTERVAL: float = 1.0
    SHUTDOWN_TIMEOUT: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"

    # Telemetry
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    OTEL_SERVICE_NAME: str = "wahoo"

    # Debug mode
    DEBUG: bool = False

    @property
    def database_url(self) -> str:
        """SQLite URL inside the store directory unless DATABASE_URL is set."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        path = Path(self.STORE_DIR) / "messages.db"
        return f"sqlite+aiosqlite:///{path}"

    @property
    def server_url(self) -> str:
        return f"http://{self.HOST}:{self.PORT}"
