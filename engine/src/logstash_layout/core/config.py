import os
from typing import Optional
from logstash_layout.utils.str_utils import parse_user_fields


SCHEMA_VERSION = 1
USER_FIELDS_PROPERTY = "net.logstash.log4j.JSONEventLayoutV1.UserFields"
UNKNOWN_HOST = "unknown"

LOCATION_INFO_ENV = "LOGSTASH_LAYOUT_LOCATION_INFO"
USER_FIELDS_ENV = "LOGSTASH_LAYOUT_USER_FIELDS"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean from the environment, `default` when unset or unrecognised."""
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


class LayoutConfig:
    """Configuration of an event layout.

    Attributes:
        location_info (bool): Whether file/line/class/method are emitted.
            Defaults to `LOGSTASH_LAYOUT_LOCATION_INFO` or True.
        user_fields (Optional[str]): Raw "key:value,key:value" spec.
            Defaults to `LOGSTASH_LAYOUT_USER_FIELDS` when set.
    """

    def __init__(self, location_info: Optional[bool] = None,
                 user_fields: Optional[str] = None):
        if location_info is None:
            location_info = env_flag(LOCATION_INFO_ENV, True)
        if user_fields is None:
            user_fields = os.getenv(USER_FIELDS_ENV)
        self._location_info = bool(location_info)
        self._user_fields = None
        self._parsed_fields = ()
        self.set_user_fields(user_fields)

    def get_location_info(self) -> bool:
        return self._location_info

    def set_location_info(self, location_info: bool) -> None:
        self._location_info = bool(location_info)

    def get_user_fields(self) -> Optional[str]:
        """Get the raw user-fields spec."""
        return self._user_fields

    def get_parsed_user_fields(self):
        """Get the user fields as an ordered tuple of (key, value) pairs."""
        return self._parsed_fields

    def set_user_fields(self, user_fields: Optional[str]) -> None:
        """Set the user-fields spec.

        Raises:
            UserFieldsError: If a pair has no ':' separator or an empty key.
        """
        parsed = () if user_fields is None else tuple(parse_user_fields(user_fields))
        self._user_fields = user_fields
        self._parsed_fields = parsed

    def copy(self) -> "LayoutConfig":
        clone = LayoutConfig.__new__(LayoutConfig)
        clone._location_info = self._location_info
        clone._user_fields = self._user_fields
        clone._parsed_fields = self._parsed_fields
        return clone
