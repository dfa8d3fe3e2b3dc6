import io
import json
import logging
import logging.config

import pytest

from logstash_layout import USER_FIELDS_PROPERTY
from logstash_layout.utils.json_formatter import JsonFormatter, install_handler


@pytest.fixture
def stream_logger(env):
    buf = io.StringIO()
    logger = logging.getLogger("tests.json")
    logger.propagate = False
    handler = install_handler(logger, stream=buf, host_name="h", env_lookup=env.get)
    yield logger, buf
    logger.removeHandler(handler)


def lines(buf):
    return [json.loads(line) for line in buf.getvalue().splitlines()]


def test_one_json_line_per_record(stream_logger):
    logger, buf = stream_logger
    logger.info("hi %s", "x", extra={"request_id": "r-1"})
    logger.debug("not emitted at INFO")
    assert buf.getvalue().endswith("}\n")
    [doc] = lines(buf)
    assert doc["@version"] == 1
    assert doc["message"] == "hi x"
    assert doc["level"] == "INFO"
    assert doc["logger_name"] == "tests.json"
    assert doc["source_host"] == "h"
    assert doc["mdc"] == {"request_id": "r-1"}
    assert doc["method"] == "test_one_json_line_per_record"
    assert doc["file"] == "test_json_formatter.py"


def test_exception_is_rendered(stream_logger):
    logger, buf = stream_logger
    try:
        {}["missing"]
    except KeyError:
        logger.exception("lookup failed")
    [doc] = lines(buf)
    assert doc["exception"]["exception_class"] == "KeyError"
    assert doc["exception"]["exception_message"] == "'missing'"
    assert "Traceback" in doc["exception"]["stacktrace"]


def test_bad_format_args_still_emit_a_line(stream_logger):
    logger, buf = stream_logger
    logger.info("%s %s", "only-one")
    [doc] = lines(buf)
    assert doc["message"] == "%s %s"
    assert doc["level"] == "INFO"
    assert doc["source_host"] == "h"


def test_root_handler_does_not_reenter_on_diagnostics(env):
    buf = io.StringIO()
    root = logging.getLogger()
    old_level = root.level
    handler = install_handler(root, stream=buf, host_name="h", user_fields="a:1",
                              env_lookup=env.get)
    env[USER_FIELDS_PROPERTY] = "a:2"
    try:
        logging.getLogger("tests.root").info("first")
        logging.getLogger("tests.root").info("second")
    finally:
        root.removeHandler(handler)
        root.setLevel(old_level)

    docs = lines(buf)
    assert [d["level"] for d in docs] == ["WARNING", "INFO", "INFO"]
    assert docs[0]["logger_name"] == "logstash_layout.event_layout"
    assert docs[1]["a"] == "2"


def test_dict_config_factory():
    configurator = logging.config.DictConfigurator({"version": 1})
    formatter = configurator.configure_formatter({
        "()": "logstash_layout.utils.json_formatter.JsonFormatter",
        "location_info": False,
        "user_fields": "app:billing",
        "host_name": "h",
    })
    assert isinstance(formatter, JsonFormatter)
    assert formatter.layout.get_location_info() is False

    record = logging.LogRecord("svc", logging.INFO, __file__, 10, "ok", None, None)
    doc = json.loads(formatter.format(record))
    assert doc["app"] == "billing"
    assert "file" not in doc
