"""Tests for the diagnostics log and error types."""

import pytest

from elcov.diagnostics import DiagnosticsLog
from elcov.errors import (
    EXTRACTION_WARNING,
    FILE_READ_FAILED,
    MALFORMED_ELEMENT,
    ConfigurationError,
    CoverageError,
    FileReadError,
    SessionStateError,
)


class TestDiagnosticsLog:

    def test_record(self, diagnostics: DiagnosticsLog):
        entry = diagnostics.record(EXTRACTION_WARNING, "Failed to read a.spec.ts", operation="begin", source="a.spec.ts")

        assert entry.code == EXTRACTION_WARNING
        assert entry.operation == "begin"
        assert entry.source == "a.spec.ts"
        assert entry.timestamp.endswith("Z")
        assert len(diagnostics) == 1
        assert diagnostics.warnings == ["Failed to read a.spec.ts"]

    def test_bounded(self, diagnostics: DiagnosticsLog):
        for i in range(25):
            diagnostics.record(MALFORMED_ELEMENT, f"dropped {i}")

        assert len(diagnostics) == 10
        assert diagnostics.total_recorded == 25
        assert diagnostics.recent()[0].message == "dropped 15"
        assert diagnostics.recent()[-1].message == "dropped 24"

    def test_recent_n(self, diagnostics: DiagnosticsLog):
        for i in range(5):
            diagnostics.record(MALFORMED_ELEMENT, f"dropped {i}")

        assert [d.message for d in diagnostics.recent(2)] == ["dropped 3", "dropped 4"]
        assert diagnostics.recent(0) == []

    def test_clear(self, diagnostics: DiagnosticsLog):
        diagnostics.record(MALFORMED_ELEMENT, "x")
        diagnostics.clear()

        assert len(diagnostics) == 0
        assert diagnostics.total_recorded == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            DiagnosticsLog(capacity=0)

    def test_logs_warning(self, diagnostics: DiagnosticsLog, caplog):
        with caplog.at_level("WARNING", logger="elcov.diagnostics"):
            diagnostics.record(MALFORMED_ELEMENT, "Dropped element")
        assert "MALFORMED_ELEMENT: Dropped element" in caplog.text


class TestErrors:

    def test_file_read_error(self):
        error = FileReadError("Failed to read a.spec.ts", source="a.spec.ts")

        assert isinstance(error, CoverageError)
        assert error.code == FILE_READ_FAILED
        assert error.recoverable is True
        assert error.guidance

    def test_describe(self):
        error = ConfigurationError("threshold must be between 0 and 100", source="elcov-config.json")
        lines = error.describe().splitlines()

        assert lines[0] == "INVALID_CONFIG: threshold must be between 0 and 100"
        assert lines[1] == "  in elcov-config.json"
        assert lines[2].startswith("  1. ")

    def test_session_state_is_runtime_error(self):
        error = SessionStateError("end() called before begin()")
        assert isinstance(error, RuntimeError)
        assert error.recoverable is False
