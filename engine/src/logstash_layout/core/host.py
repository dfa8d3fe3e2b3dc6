import logging
import socket
from typing import Callable, Optional
from logstash_layout.core.config import UNKNOWN_HOST


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def resolve_host_name(resolver: Optional[Callable[[], str]] = None) -> str:
    """
    Resolve the name of the local host.

    Args:
        resolver: Callable returning the host name. Defaults to
            `socket.gethostname`.

    Returns:
        str: The host name, or "unknown" when resolution fails or yields nothing.
    """
    resolver = resolver or socket.gethostname
    try:
        name = resolver()
    except OSError as e:
        logger.warning(f"Failed to resolve host name: {e}")
        return UNKNOWN_HOST
    return name or UNKNOWN_HOST
