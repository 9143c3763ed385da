"""Configuration management using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "CONVERGE ARENA"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Arena — viewport is read at round start and at every spawn
    viewport_width: float = Field(default=1280.0, gt=0)
    viewport_height: float = Field(default=720.0, gt=0)
    frame_rate: float = Field(default=60.0, gt=0)
    spawn_interval_ms: float = Field(default=1000.0, gt=0)

    # Publish every rendered frame on the event bus (WebSocket viewers)
    record_frames: bool = True


# Global settings instance
settings = Settings()
