import datetime
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
from readerwriterlock import rwlock
from logstash_layout.core.config import LayoutConfig, SCHEMA_VERSION, USER_FIELDS_PROPERTY
from logstash_layout.core.event import LogEvent
from logstash_layout.core.host import resolve_host_name
from logstash_layout.utils.str_utils import safe_json_dumps, split_user_fields


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_MIN_MOMENT = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
_MAX_MOMENT = datetime.datetime.max.replace(tzinfo=datetime.timezone.utc)

# Set while a format call runs on this thread; diagnostics are muted then so a
# layout attached to the root logger does not feed its own warnings back in.
_local = threading.local()


def date_format(timestamp: int) -> str:
    """
    Render epoch milliseconds as ISO-8601 UTC with millisecond precision.

    Example: 0 -> '1970-01-01T00:00:00.000Z'

    Timestamps outside the datetime range are clamped to its first or last
    representable millisecond.
    """
    timestamp = int(timestamp)
    try:
        moment = _EPOCH + datetime.timedelta(milliseconds=timestamp)
    except OverflowError:
        moment = _MAX_MOMENT if timestamp > 0 else _MIN_MOMENT
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def add_event_data(event: Dict[str, Any], pairs: Iterable[Tuple[str, Any]]) -> None:
    """Set each (key, value) pair on `event`, skipping None values."""
    for key, value in pairs:
        if value is not None:
            event[key] = value


@contextmanager
def _formatting():
    depth = getattr(_local, "depth", 0)
    _local.depth = depth + 1
    try:
        yield depth == 0
    finally:
        _local.depth = depth


class EventFormatter:
    """
    Renders a LogEvent as one line of logstash v1 JSON.

    Args:
        location_info (Optional[bool]): Emit file/line/class/method. Defaults
            to True (or `LOGSTASH_LAYOUT_LOCATION_INFO`).
        user_fields (Optional[str]): Static "key:value,..." fields added to
            every event.
        host_name (Optional[str]): Value of `source_host`. Resolved once from
            the local host when omitted.
        env_lookup (Optional[Callable[[str], Optional[str]]]): Reads the
            user-fields override property. Defaults to the process environment.

    Raises:
        UserFieldsError: If `user_fields` is malformed.
    """

    def __init__(self, location_info: Optional[bool] = None,
                 user_fields: Optional[str] = None,
                 host_name: Optional[str] = None,
                 env_lookup: Optional[Callable[[str], Optional[str]]] = None):
        self._config = LayoutConfig(location_info, user_fields)
        self._host_name = host_name or resolve_host_name()
        self._env_lookup = env_lookup
        self._rwlock = rwlock.RWLockRead()   # Reader priority
        self._warned_override = None
        if user_fields is not None:
            logger.debug(f"[{type(self).__name__}] Got user data from config: {user_fields}")

    @property
    def host_name(self) -> str:
        return self._host_name

    def get_location_info(self) -> bool:
        """Query whether events include location information."""
        with self._rwlock.gen_rlock():
            return self._config.get_location_info()

    def set_location_info(self, location_info: bool) -> None:
        """Set whether events include location information."""
        with self._rwlock.gen_wlock():
            self._config.set_location_info(location_info)

    def get_user_fields(self) -> Optional[str]:
        with self._rwlock.gen_rlock():
            return self._config.get_user_fields()

    def set_user_fields(self, user_fields: Optional[str]) -> None:
        """
        Set the static user fields.

        Raises:
            UserFieldsError: If a pair has no ':' separator or an empty key.
                The previous value is kept.
        """
        with self._rwlock.gen_wlock():
            self._config.set_user_fields(user_fields)
        if user_fields is not None:
            logger.debug(f"[{type(self).__name__}] Got user data from config: {user_fields}")

    def ignores_throwable(self) -> bool:
        return False

    def _lookup_override(self) -> Optional[str]:
        lookup = self._env_lookup or os.environ.get
        try:
            return lookup(USER_FIELDS_PROPERTY)
        except Exception as e:
            logger.warning(f"[{type(self).__name__}] Failed to read {USER_FIELDS_PROPERTY}: {e}")
            return None

    def _claim_override_warning(self, key) -> bool:
        if self._warned_override == key:
            return False
        with self._rwlock.gen_wlock():
            if self._warned_override == key:
                return False
            self._warned_override = key
            return True

    def _apply_override(self, override: str, configured: Optional[str],
                        event: Dict[str, Any], verbose: bool) -> None:
        whoami = type(self).__name__
        pairs, malformed = split_user_fields(override)
        if verbose:
            logger.debug(f"[{whoami}] Got user data from {USER_FIELDS_PROPERTY}: {override}")
            if configured is not None and self._claim_override_warning((configured, override)):
                logger.warning(f"[{whoami}] Loading UserFields from {USER_FIELDS_PROPERTY}. "
                               "This will override any UserFields set in the layout configuration")
            for segment in malformed:
                logger.warning(f"[{whoami}] Skipping malformed user field '{segment}' "
                               f"in {USER_FIELDS_PROPERTY}")
        add_event_data(event, pairs)

    def format(self, event: LogEvent) -> str:
        """
        Format one event.

        Args:
            event (LogEvent): The event to render.

        Returns:
            str: Compact JSON object followed by a single newline.
        """
        with _formatting() as verbose:
            with self._rwlock.gen_rlock():
                config = self._config.copy()

            header = {
                "@version": SCHEMA_VERSION,
                "@timestamp": date_format(event.timestamp),
            }
            logstash_event: Dict[str, Any] = dict(header)

            add_event_data(logstash_event, config.get_parsed_user_fields())
            override = self._lookup_override()
            if override is not None:
                self._apply_override(override, config.get_user_fields(), logstash_event, verbose)
            # user fields never replace @version or @timestamp
            logstash_event.update(header)

            add_event_data(logstash_event, [
                ("source_host", self._host_name),
                ("message", event.rendered_message),
            ])

            throwable = event.throwable_info
            if throwable is not None:
                exception_information: Dict[str, Any] = {}
                lines = throwable.stack_trace_lines
                add_event_data(exception_information, [
                    ("exception_class", throwable.class_name),
                    ("exception_message", throwable.message),
                    ("stacktrace", "\n".join(lines) if lines is not None else None),
                ])
                logstash_event["exception"] = exception_information

            info = event.location_info
            if config.get_location_info() and info is not None:
                add_event_data(logstash_event, [
                    ("file", info.file_name),
                    ("line_number", info.line_number),
                    ("class", info.class_name),
                    ("method", info.method_name),
                ])

            add_event_data(logstash_event, [
                ("logger_name", event.logger_name),
                ("mdc", dict(event.mdc) if event.mdc else None),
                ("ndc", event.ndc),
                ("level", event.level),
                ("thread_name", event.thread_name),
            ])

            return safe_json_dumps(logstash_event) + "\n"
