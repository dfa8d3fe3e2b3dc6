import logging
import sys
from typing import Callable, Optional
from logstash_layout.core.config import SCHEMA_VERSION
from logstash_layout.core.event import LogEvent
from logstash_layout.event_layout import EventFormatter, date_format
from logstash_layout.utils.str_utils import safe_json_dumps


class JsonFormatter(logging.Formatter):
    """
    A logging formatter that outputs records as logstash v1 JSON events.
    Each formatted entry is a single JSON object on a single line, suitable
    for JSONL shipping. Values passed with `extra=` end up under "mdc".

    Can be declared in `logging.config.dictConfig` with the "()" key:

        "formatters": {
            "logstash": {
                "()": "logstash_layout.utils.json_formatter.JsonFormatter",
                "location_info": False,
                "user_fields": "app:billing,env:prod",
            }
        }
    """

    def __init__(self, fmt=None, datefmt=None, style='%',
                 location_info: Optional[bool] = None,
                 user_fields: Optional[str] = None,
                 host_name: Optional[str] = None,
                 env_lookup: Optional[Callable[[str], Optional[str]]] = None):
        super().__init__(fmt, datefmt, style)
        self.layout = EventFormatter(location_info=location_info,
                                     user_fields=user_fields,
                                     host_name=host_name,
                                     env_lookup=env_lookup)

    def format(self, record):
        """
        Formats a log record into a JSON string.
        The trailing newline of the event line is dropped since the handler's
        terminator adds one.
        """
        try:
            line = self.layout.format(LogEvent.from_record(record))
        except Exception:
            line = self._fallback(record)
        return line.rstrip("\n")

    def _fallback(self, record) -> str:
        try:
            message = record.getMessage()
        except Exception:
            message = str(record.msg)
        return safe_json_dumps({
            "@version": SCHEMA_VERSION,
            "@timestamp": date_format(int(record.created * 1000)),
            "source_host": self.layout.host_name,
            "message": message,
            "logger_name": record.name,
            "level": record.levelname,
        })


def install_handler(logger: Optional[logging.Logger] = None, stream=None,
                    level: int = logging.INFO, **kwargs) -> logging.Handler:
    """
    Attach a StreamHandler using JsonFormatter to a logger.

    Args:
        logger: Target logger, the root logger when None.
        stream: Output stream, sys.stdout when None.
        level: Level set on the logger.
        **kwargs: Passed to JsonFormatter.

    Returns:
        logging.Handler: The installed handler.
    """
    logger = logger or logging.getLogger()
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter(**kwargs))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
