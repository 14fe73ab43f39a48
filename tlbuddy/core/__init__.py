"""Core modules for TLBuddy."""

from .config import BOT_NAME, BOT_VERSION, Settings, get_settings
from .health_server import HealthCheckServer
from .logging import setup_logging
from .rate_limiter import RateLimitMonitor, RateLimitStats

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "BOT_NAME",
    "BOT_VERSION",
    # Services
    "HealthCheckServer",
    "RateLimitMonitor",
    "RateLimitStats",
    # Logging
    "setup_logging",
]
