"""coursegate utilities."""

from .csv_parser import parse_csv, serialize_csv, records_from_matrix
from .config_loader import (
    Settings,
    ScheduleConfig,
    load_settings,
    load_schedule_config,
    get_available_schedules,
    CONFIG_DIR,
)

__all__ = [
    "parse_csv",
    "serialize_csv",
    "records_from_matrix",
    "Settings",
    "ScheduleConfig",
    "load_settings",
    "load_schedule_config",
    "get_available_schedules",
    "CONFIG_DIR",
]
