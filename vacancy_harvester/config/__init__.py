"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_SCHEDULE_URLS,
    DEFAULT_USER_AGENT,
    FetchSettings,
    GlobalConfig,
    IngestSettings,
    ScheduleSettings,
    StorageSettings,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_SCHEDULE_URLS",
    "DEFAULT_USER_AGENT",
    "FetchSettings",
    "GlobalConfig",
    "IngestSettings",
    "ScheduleSettings",
    "StorageSettings",
]
