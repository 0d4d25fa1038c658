"""
Configuration package for the tech radar.

Contains:
- settings: Environment-based configuration
- log_setup: Logging configuration
"""

from tech_radar.config.settings import Settings, get_settings, load_settings_from_env
from tech_radar.config.log_setup import setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "load_settings_from_env",
    "setup_logging",
]
