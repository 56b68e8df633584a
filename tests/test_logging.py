"""Tests for the JSON log format and the payroll log context."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from payroll_kernel.exceptions import ConfigurationError, InvalidInputError
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture
def stream(clean_logging):
    """A StringIO receiving the configured payroll_kernel JSON output."""
    out = StringIO()
    handler = logging.StreamHandler(out)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler)
    return out


def _lines(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestJsonLines:
    def test_envelope(self, stream):
        """Each line carries timestamp, level, logger and message."""
        get_logger("engines.vacation").info("vacation_calculated")

        (line,) = _lines(stream)
        assert line["level"] == "INFO"
        assert line["message"] == "vacation_calculated"
        assert line["logger"] == "payroll_kernel.engines.vacation"
        assert "ts" in line

    def test_amounts_and_dates_are_strings(self, stream):
        """Decimals keep every digit and dates are ISO formatted."""
        get_logger("engines.termination").info(
            "termination_calculated",
            extra={"total_net": Decimal("23985.23"), "hire_date": date(2019, 1, 1)},
        )

        (line,) = _lines(stream)
        assert line["total_net"] == "23985.23"
        assert line["hire_date"] == "2019-01-01"

    def test_debug_dropped_at_default_level(self, stream):
        """Bracket debug events are hidden unless DEBUG is configured."""
        logger = get_logger("engines.brackets")
        logger.debug("progressive_table_evaluated")
        logger.warning("bracket_table_rejected")

        assert [line["message"] for line in _lines(stream)] == ["bracket_table_rejected"]

    def test_invalid_input_fields_extracted(self, stream):
        """A rejected input is logged with its code, field and reason."""
        try:
            raise InvalidInputError("base_salary", Decimal("-1"), "must not be negative")
        except InvalidInputError:
            get_logger("engines.vacation").error("vacation_rejected", exc_info=True)

        (line,) = _lines(stream)
        assert line["exc_type"] == "InvalidInputError"
        assert line["exc_code"] == "INVALID_INPUT"
        assert line["exc_field"] == "base_salary"
        assert line["exc_value"] == "-1"
        assert line["exc_reason"] == "must not be negative"
        assert "traceback" in line

    def test_configuration_error_names_table(self, stream):
        """A bad table is logged with the table name."""
        try:
            raise ConfigurationError("INSS", "table is empty")
        except ConfigurationError:
            get_logger("config").error("rule_set_rejected", exc_info=True)

        (line,) = _lines(stream)
        assert line["exc_code"] == "CONFIGURATION_ERROR"
        assert line["exc_table"] == "INSS"

    def test_plain_exception(self, stream):
        """Exceptions without a code still log type and message."""
        try:
            raise ValueError("minimum_wage: cannot parse number")
        except ValueError:
            get_logger("config").error("load_failed", exc_info=True)

        (line,) = _lines(stream)
        assert line["exc_type"] == "ValueError"
        assert "exc_code" not in line


class TestLogContext:
    def test_bound_fields_reach_output(self, stream):
        """Bound payroll fields are merged into each line."""
        with LogContext.bind(rule_set_id="br-clt-2024", jurisdiction="BR"):
            get_logger("config").warning("rule_set_warning")

        (line,) = _lines(stream)
        assert line["rule_set_id"] == "br-clt-2024"
        assert line["jurisdiction"] == "BR"

    def test_unbound_fields_omitted(self, stream):
        """Nothing bound, nothing added."""
        get_logger("engines.charges").info("charges_summarized")

        (line,) = _lines(stream)
        assert not set(LogContext.fields) & set(line)

    def test_nested_bind_restores_outer_value(self):
        """An inner engine shadows the outer one only inside its block."""
        with LogContext.bind(engine="monthly", input_fingerprint="aaaa"):
            with LogContext.bind(engine="premium", input_fingerprint="bbbb"):
                assert LogContext.get_all()["engine"] == "premium"
            assert LogContext.get_all() == {"engine": "monthly", "input_fingerprint": "aaaa"}
        assert LogContext.get_all() == {}

    def test_none_leaves_field_untouched(self):
        """Binding None keeps the outer value."""
        with LogContext.bind(rule_set_id="br-clt-2025"):
            with LogContext.bind(rule_set_id=None, engine="termination"):
                assert LogContext.get_all()["rule_set_id"] == "br-clt-2025"

    def test_restored_after_exception(self):
        """A failing block still unbinds its fields."""
        with pytest.raises(InvalidInputError):
            with LogContext.bind(engine="vacation"):
                raise InvalidInputError("sold_days", 11, "too many")

        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        """Only payroll context fields can be bound."""
        with pytest.raises(TypeError, match="employee_id"):
            with LogContext.bind(employee_id="e-1"):
                pass

    def test_clear(self):
        """clear() drops every bound value."""
        with LogContext.bind(engine="charges", rule_set_id="br-clt-2024"):
            LogContext.clear()

            assert LogContext.get_all() == {}


class TestConfigureLogging:
    def test_idempotent(self, clean_logging):
        """A second call does not add another handler."""
        configure_logging(handler=logging.StreamHandler(StringIO()))
        configure_logging(handler=logging.StreamHandler(StringIO()))

        assert len(logging.getLogger("payroll_kernel").handlers) == 1

    def test_reset_restores_propagation(self, clean_logging):
        """reset_logging hands records back to the root logger."""
        configure_logging(handler=logging.StreamHandler(StringIO()))
        reset_logging()

        root = logging.getLogger("payroll_kernel")
        assert root.handlers == []
        assert root.propagate is True

    def test_engine_trace_reaches_configured_handler(self, stream):
        """Engine traces are written through the configured handler."""
        from payroll_engines.premium import hazard_bonus

        hazard_bonus(Decimal("2000.00"), Decimal("0.30"))

        traces = [line for line in _lines(stream) if line["message"] == "PAYROLL_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "premium"
        assert traces[0]["engine"] == "premium"
