import logging

import pytest

from logstash_layout import EventFormatter, LogEvent, USER_FIELDS_PROPERTY
from logstash_layout.core.config import LOCATION_INFO_ENV, USER_FIELDS_ENV

HOST = "testhost"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (USER_FIELDS_PROPERTY, LOCATION_INFO_ENV, USER_FIELDS_ENV):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def env():
    """Mutable stand-in for the process environment."""
    return {}


@pytest.fixture
def layout(env):
    return EventFormatter(host_name=HOST, env_lookup=env.get)


@pytest.fixture
def basic_event():
    return LogEvent(
        timestamp=0,
        thread_name="main",
        logger_name="root",
        level="INFO",
        rendered_message="hello",
        mdc={},
    )


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Logger whose records are kept in a list instead of being emitted."""
    handler = ListHandler()
    logger = logging.getLogger("tests.captured")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, handler.records
    logger.removeHandler(handler)
