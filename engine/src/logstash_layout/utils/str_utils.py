import json
import math
from typing import Any, List, Tuple
from logstash_layout.core import UserFieldsError


_JSON_SEPARATORS = (",", ":")
_MAX_DEPTH = 64


def split_user_fields(spec: str) -> Tuple[List[Tuple[str, str]], List[str]]:
    """
    Split a "key:value,key:value" spec into pairs.

    Each pair is split on its first ':' only, so values may contain ':'.
    Empty segments (e.g. a trailing comma) are ignored.

    Args:
        spec (str): The raw user-fields spec.

    Returns:
        tuple: A tuple containing:
            - list[tuple[str, str]]: The (key, value) pairs in spec order.
            - list[str]: Segments that had no ':' or an empty key.
    """
    pairs = []
    malformed = []
    for segment in spec.split(","):
        if not segment:
            continue
        key, sep, value = segment.partition(":")
        if not sep or not key:
            malformed.append(segment)
            continue
        pairs.append((key, value))
    return pairs, malformed


def parse_user_fields(spec: str) -> List[Tuple[str, str]]:
    """
    Strict variant of `split_user_fields` used for configured specs.

    Raises:
        UserFieldsError: On the first malformed segment.
    """
    pairs, malformed = split_user_fields(spec)
    if malformed:
        raise UserFieldsError(spec, malformed[0])
    return pairs


def _stringify(value) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unserializable {type(value).__name__}>"


def json_safe(value, _path=None, _depth=0):
    """
    Recursively converts a value into something json.dumps always accepts.
    Containers nested deeper than _MAX_DEPTH are replaced by a marker string.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _stringify(value)

    if isinstance(value, (dict, list, tuple, set, frozenset)):
        if _depth >= _MAX_DEPTH:
            return f"<truncated {type(value).__name__}>"
        path = _path or set()
        if id(value) in path:
            return "<circular>"
        path = path | {id(value)}
        if isinstance(value, dict):
            return {_stringify(k) if not isinstance(k, str) else k: json_safe(v, path, _depth + 1)
                    for k, v in value.items()}
        return [json_safe(item, path, _depth + 1) for item in value]

    return _stringify(value)


def safe_json_dumps(payload: Any) -> str:
    """
    Compact single-line JSON that never raises.

    Values json cannot represent (arbitrary objects, non-string keys,
    NaN/Infinity, cycles, very deep nesting) are converted to strings.
    """
    try:
        return json.dumps(payload, ensure_ascii=False, separators=_JSON_SEPARATORS,
                          allow_nan=False, default=_stringify)
    except (TypeError, ValueError, RecursionError):
        return json.dumps(json_safe(payload), ensure_ascii=False,
                          separators=_JSON_SEPARATORS)
