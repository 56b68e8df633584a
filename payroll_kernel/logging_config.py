"""
Structured JSON logging for the payroll kernel.

Every record under the ``payroll_kernel`` logger hierarchy is written as
one JSON line.  Besides the record's own ``extra`` fields, each line
carries the payroll context currently bound through ``LogContext``:

    rule_set_id, jurisdiction   bound by ``payroll_config.get_active_rules``
                                while a rule set is validated and traced
    engine, input_fingerprint   bound by ``@traced_engine`` for the duration
                                of each engine call

so a rejection warning or a ``vacation_calculated`` event can be joined
to the PAYROLL_ENGINE_TRACE or PAYROLL_CONFIG_TRACE that produced it.
Amounts are serialized as strings so no Decimal precision is lost.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Payroll context
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("rule_set_id", "jurisdiction", "engine", "input_fingerprint")

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"payroll_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """Async-safe payroll fields merged into every structured log line."""

    fields = _CONTEXT_FIELDS

    @classmethod
    @contextmanager
    def bind(cls, **values: str | None) -> Iterator[None]:
        """Bind fields for the enclosed block; None leaves a field untouched.

        Nested binds shadow outer values and restore them on exit, so an
        engine called from another engine logs under its own name.

        Raises:
            TypeError: If a field name is not a payroll context field.
        """
        unknown = sorted(set(values) - set(_CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(unknown)}")

        tokens = [
            (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(value))
            for name, value in values.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Currently bound fields, omitting unbound ones."""
        bound = {name: var.get() for name, var in _CONTEXT_VARS.items()}
        return {name: value for name, value in bound.items() if value is not None}

    @classmethod
    def clear(cls) -> None:
        """Unbind every field. Used between tests."""
        for var in _CONTEXT_VARS.values():
            var.set(None)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _PayrollJSONEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        return super().default(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_PayrollJSONEncoder, default=str)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        # PayrollKernelError subclasses expose code, field, value, reason, table
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for key, val in vars(exc).items():
            if not key.startswith("_"):
                fields[f"exc_{key}"] = val
        return fields


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "payroll_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the payroll_kernel namespace, e.g. ``engines.vacation``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the payroll_kernel hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Undo configure_logging. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    root_logger.propagate = True
