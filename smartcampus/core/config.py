"""
SmartCampus - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

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
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Report store: memory, firestore or sql
    store_backend: str = "memory"
    reports_collection: str = "reports"

    # Database (sql backend)
    database_url: Optional[str] = None

    # Firebase (firestore backend and identity)
    firebase_credentials_path: Optional[str] = None
    firebase_project_id: Optional[str] = None

    # Geolocation
    geolocation_timeout_seconds: float = 10.0
    geolocation_high_accuracy: bool = True
    ip_geolocation_url: Optional[str] = None

    # Wizard
    auto_advance_delay_ms: int = 200
    success_redirect: str = "/dashboard"

    # Heatmap
    campus_center_lat: float = 9.5916
    campus_center_lon: float = 76.5222
    heatmap_zoom: int = 16

    # Wizard sessions idle this long are closed by the API
    wizard_session_ttl_seconds: float = 1800.0

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def campus_center(self) -> tuple[float, float]:
        return (self.campus_center_lat, self.campus_center_lon)

    @property
    def auto_advance_delay_seconds(self) -> float:
        return self.auto_advance_delay_ms / 1000.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
