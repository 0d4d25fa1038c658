"""
Settings module for the tech radar.

Environment-based configuration with sensible defaults.
All settings can be overridden via environment variables prefixed with
TECH_RADAR_ (e.g. TECH_RADAR_SUNSET_PERIOD_DAYS=90).
"""

import os
from functools import lru_cache
from typing import Dict, List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tech_radar.models.enums import LayoutMode, Quadrant, ReviewCycle, Ring


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for development and tests.
    """

    # Review process
    review_cycle: ReviewCycle = Field(
        default=ReviewCycle.QUARTERLY,
        description="Cadence used to compute the next review date after a move"
    )

    # Deprecation timeline
    sunset_period_days: int = Field(
        default=180,
        description="Days from deprecation until sunset"
    )
    removal_period_days: int = Field(
        default=365,
        description="Days from deprecation until removal"
    )
    notification_periods: List[int] = Field(
        default_factory=lambda: [90, 30, 7],
        description="Remind recipients this many days before removal"
    )
    deprecation_warning_recipients: List[str] = Field(
        default_factory=list,
        description="Addresses that receive every deprecation notice"
    )
    team_email_domain: str = Field(
        default="company.com",
        description="Domain used to build per-team recipient addresses"
    )

    # Snapshot summary
    new_technology_window_days: int = Field(
        default=30,
        description="Entries created within this window count as new"
    )

    # Layout
    layout_mode: LayoutMode = Field(
        default=LayoutMode.RANDOM,
        description="random (new coordinates per call) or seeded (reproducible)"
    )
    canvas_width: int = Field(default=1200, description="Default canvas width")
    canvas_height: int = Field(default=800, description="Default canvas height")
    layout_padding: float = Field(
        default=50,
        description="Margin between the hold ring and the canvas edge"
    )
    min_canvas_size: int = Field(
        default=200,
        description="Smallest accepted canvas width/height"
    )
    ring_colors: Dict[str, str] = Field(
        default_factory=lambda: {
            Ring.ADOPT.value: "#5cb85c",
            Ring.TRIAL.value: "#f0ad4e",
            Ring.ASSESS.value: "#5bc0de",
            Ring.HOLD.value: "#d9534f",
        },
        description="Ring fill colors for renderers"
    )
    ring_names: Dict[str, str] = Field(
        default_factory=lambda: {
            Ring.ADOPT.value: "Adopt",
            Ring.TRIAL.value: "Trial",
            Ring.ASSESS.value: "Assess",
            Ring.HOLD.value: "Hold",
        },
    )
    quadrant_names: Dict[str, str] = Field(
        default_factory=lambda: {
            Quadrant.LANGUAGES_FRAMEWORKS.value: "Languages & Frameworks",
            Quadrant.TOOLS.value: "Tools",
            Quadrant.PLATFORMS.value: "Platforms",
            Quadrant.TECHNIQUES.value: "Techniques",
        },
    )

    # Database (SQL repositories)
    database_url: str = Field(
        default="sqlite:///tech_radar.db",
        description="SQLAlchemy URL for entry and snapshot storage"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Redis (notice repository)
    redis_host: str = Field(default="127.0.0.1", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database number")
    redis_password: Optional[str] = Field(
        default=None,
        description="Redis password (set via TECH_RADAR_REDIS_PASSWORD)"
    )
    redis_socket_timeout: int = Field(default=30, description="Redis socket timeout in seconds")
    redis_key_prefix: str = Field(default="tech_radar", description="Prefix for Redis keys")

    # Incident management collaborator
    incident_api_enabled: bool = Field(
        default=False,
        description="Forward incident requests to the incident API"
    )
    incident_api_base_url: str = Field(
        default="http://127.0.0.1:8085",
        description="Base URL of the incident-management API"
    )
    incident_api_timeout: int = Field(default=30, description="Incident API timeout in seconds")
    incident_source: str = Field(default="tech-radar", description="Source tag on incidents")
    incident_queue_size: int = Field(
        default=100,
        description="Pending incident requests kept before new ones are dropped"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )

    model_config = SettingsConfigDict(
        env_prefix="TECH_RADAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def redis_url(self) -> str:
        """Get Redis URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are cached. To reload, use:
        get_settings.cache_clear()

    Returns:
        Settings instance
    """
    return Settings()


def load_settings_from_env(env_file: str = ".env") -> Settings:
    """Load settings from a specific env file."""
    if os.path.exists(env_file):
        from dotenv import load_dotenv
        load_dotenv(env_file)
    get_settings.cache_clear()
    return get_settings()
