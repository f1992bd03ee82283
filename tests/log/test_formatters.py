"""
Tests for OpenTelemetry-compliant log formatters.

Tests for JsonFormatter, HumanFormatter, and scoped_logger.
"""

import json
import logging


def _record(level=logging.INFO, msg="Test message", **extra):
    record = logging.LogRecord(
        name="sharedref.test",
        level=level,
        pathname="sharedref/_control.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_otel_structure(self):
        """Output follows OpenTelemetry Logging Data Model."""
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record()))

        assert set(parsed) == {"timestamp", "severityText", "body", "attributes", "resource"}
        assert parsed["body"] == "Test message"
        assert parsed["severityText"] == "INFO"
        assert parsed["resource"]["service.name"] == "sharedref"

    def test_timestamp_format(self):
        """Timestamp is RFC3339 with nanoseconds."""
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record()))

        assert parsed["timestamp"].endswith("Z")
        assert len(parsed["timestamp"].split(".")[1]) == 10  # 9 digits + Z

    def test_warning_maps_to_warn(self):
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(level=logging.WARNING)))

        assert parsed["severityText"] == "WARN"

    def test_extra_attributes_included(self):
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(scope="block", block_id=7)))

        assert parsed["attributes"]["scope"] == "block"
        assert parsed["attributes"]["block_id"] == 7

    def test_code_location_on_debug(self):
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(level=logging.DEBUG)))

        assert parsed["attributes"]["code.filepath"] == "_control.py"
        assert parsed["attributes"]["code.lineno"] == 42

    def test_no_code_location_on_info(self):
        from sharedref._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record()))

        assert "code.filepath" not in parsed["attributes"]


class TestHumanFormatter:
    """Tests for HumanFormatter."""

    def test_plain_output(self):
        from sharedref._logging import HumanFormatter

        output = HumanFormatter(use_colors=False).format(_record(scope="block"))

        assert "INFO" in output
        assert "[block]" in output
        assert "Test message" in output
        assert "\x1b[" not in output

    def test_block_id_inline(self):
        from sharedref._logging import HumanFormatter

        output = HumanFormatter(use_colors=False).format(_record(block_id=255))

        assert "(block=0xff)" in output

    def test_colors(self):
        from sharedref._logging import HumanFormatter

        output = HumanFormatter(use_colors=True).format(_record(level=logging.ERROR))

        assert "\x1b[31m" in output


class TestScopeInference:
    """Scope for records logged without an explicit one."""

    def test_infer_scope(self):
        from sharedref._logging import _infer_scope

        assert _infer_scope("sharedref._control") == "block"
        assert _infer_scope("sharedref.unique") == "unique"
        assert _infer_scope("sharedref.shared") == "shared"
        assert _infer_scope("sharedref.other") == "other"
        assert _infer_scope("") == "sharedref"

    def test_root_logger_name_is_package_scope(self):
        from sharedref._logging import _infer_scope

        assert _infer_scope("sharedref") == "sharedref"

    def test_root_logger_record_formats_with_package_scope(self):
        """A record from the package logger itself is not mistaken for a submodule."""
        from sharedref._logging import JsonFormatter, logger

        record = logger.makeRecord(
            "sharedref", logging.WARNING, "sharedref/api.py", 10, "plain", (), None
        )

        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["attributes"]["scope"] == "sharedref"

    def test_explicit_scope_wins(self):
        from sharedref._logging import HumanFormatter

        output = HumanFormatter(use_colors=False).format(_record(scope="weak"))

        assert "[weak]" in output


class TestLifecycleLogging:
    """Lifecycle events are emitted at DEBUG with scoped attributes."""

    def test_payload_and_block_events(self, debug_logs):
        from sharedref import create_shared

        handle = create_shared("v")
        block_id = id(handle._block)
        handle.reset()

        messages = [
            (r.getMessage(), getattr(r, "scope", None), getattr(r, "block_id", None))
            for r in debug_logs.records
        ]
        assert ("Payload destroyed", "block", block_id) in messages
        assert ("Block freed", "block", block_id) in messages

    def test_unique_destroy_event(self, debug_logs):
        from sharedref import create_unique

        create_unique("v").destroy()

        assert any(
            r.getMessage() == "Payload destroyed" and r.scope == "unique"
            for r in debug_logs.records
        )
