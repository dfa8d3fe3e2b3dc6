from logstash_layout.core import LayoutConfigError, UserFieldsError
from logstash_layout.core.config import LayoutConfig, USER_FIELDS_PROPERTY
from logstash_layout.core.event import LocationInfo, LogEvent, ThrowableInfo
from logstash_layout.event_layout import EventFormatter, date_format
from logstash_layout.utils.json_formatter import JsonFormatter, install_handler

__all__ = [
    "EventFormatter",
    "JsonFormatter",
    "LayoutConfig",
    "LayoutConfigError",
    "LocationInfo",
    "LogEvent",
    "ThrowableInfo",
    "USER_FIELDS_PROPERTY",
    "UserFieldsError",
    "date_format",
    "install_handler",
]
