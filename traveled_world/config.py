from typing import Final

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_PORT
from .domain.constants import DEFAULT_SEARCH_DEBOUNCE_MS, MAX_HISTORY_LENGTH
from .domain.entities import Theme, ViewMode


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./traveled_world.db",
        description="Database connection URL for persisted state",
    )

    # Application configuration
    app_name: str = Field(default="Traveled World", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Store configuration
    history_limit: int = Field(
        default=MAX_HISTORY_LENGTH,
        ge=1,
        le=1000,
        description="Maximum number of undo/redo snapshots kept",
    )
    default_view: ViewMode = Field(
        default=ViewMode.GLOBE, description="Initial map view (2d or 3d)"
    )
    default_theme: Theme = Field(default=Theme.DARK, description="Initial theme")
    search_debounce_ms: int = Field(
        default=DEFAULT_SEARCH_DEBOUNCE_MS,
        ge=0,
        description="Debounce interval handed to the city search collaborator",
    )

    # Logging configuration
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug


# Global settings instance
settings: Final = Settings()
