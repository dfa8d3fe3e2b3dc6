import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Attributes every LogRecord carries; anything else came in through `extra=`
_RESERVED = set(vars(logging.LogRecord(None, 0, "", 0, "", (), None))) | {"message", "asctime"}
_MDC_ATTR = "mdc"
_NDC_ATTR = "ndc"


@dataclass(frozen=True)
class LocationInfo:
    """Where the log call was made."""
    file_name: Optional[str] = None
    line_number: Optional[int] = None
    class_name: Optional[str] = None
    method_name: Optional[str] = None


@dataclass(frozen=True)
class ThrowableInfo:
    """Exception captured with a log event."""
    class_name: Optional[str] = None
    message: Optional[str] = None
    stack_trace_lines: Optional[List[str]] = None

    @classmethod
    def from_exc_info(cls, exc_info) -> "ThrowableInfo":
        exc_type, exc_value, exc_tb = exc_info
        message = str(exc_value) if exc_value is not None else None
        text = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
        return cls(
            class_name=qualified_name(exc_type) if exc_type is not None else None,
            message=message or None,
            stack_trace_lines=text.rstrip("\n").splitlines(),
        )


def qualified_name(klass: type) -> str:
    """Return `module.QualName`, or the bare name for builtins."""
    module = getattr(klass, "__module__", None)
    name = getattr(klass, "__qualname__", klass.__name__)
    if not module or module == "builtins":
        return name
    return f"{module}.{name}"


@dataclass(frozen=True)
class LogEvent:
    """
    A single captured log event.

    Attributes:
        timestamp (int): Milliseconds since the epoch.
        thread_name, logger_name, level, rendered_message, ndc (Optional[str]):
            Omitted from the output when None.
        mdc (Optional[Dict[str, Any]]): Mapped diagnostic context.
        location_info (Optional[LocationInfo]): Call site, if captured.
        throwable_info (Optional[ThrowableInfo]): Exception, if any.
    """
    timestamp: int
    thread_name: Optional[str] = None
    logger_name: Optional[str] = None
    level: Optional[str] = None
    rendered_message: Optional[str] = None
    mdc: Optional[Dict[str, Any]] = field(default_factory=dict)
    ndc: Optional[str] = None
    location_info: Optional[LocationInfo] = None
    throwable_info: Optional[ThrowableInfo] = None

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> "LogEvent":
        """
        Build an event from a standard library log record.

        Values passed with `extra=` become MDC entries; an `extra={"mdc": {...}}`
        mapping is merged in as well, and `extra={"ndc": "..."}` sets the NDC.
        """
        mdc = {}
        for k, v in record.__dict__.items():
            if k in _RESERVED or k in (_MDC_ATTR, _NDC_ATTR):
                continue
            mdc[k] = v
        explicit = getattr(record, _MDC_ATTR, None)
        if isinstance(explicit, dict):
            mdc.update(explicit)

        throwable = None
        if record.exc_info and record.exc_info[0] is not None:
            throwable = ThrowableInfo.from_exc_info(record.exc_info)
        elif record.exc_text:
            throwable = ThrowableInfo(stack_trace_lines=record.exc_text.splitlines())

        ndc = getattr(record, _NDC_ATTR, None)
        return cls(
            timestamp=int(record.created * 1000),
            thread_name=record.threadName,
            logger_name=record.name,
            level=record.levelname,
            rendered_message=record.getMessage(),
            mdc=mdc,
            ndc=str(ndc) if ndc is not None else None,
            location_info=LocationInfo(
                file_name=record.filename,
                line_number=record.lineno,
                class_name=record.module,
                method_name=record.funcName,
            ),
            throwable_info=throwable,
        )
