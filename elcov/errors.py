"""Error taxonomy for coverage analysis."""

from __future__ import annotations

from typing import Optional

# Diagnostic codes for recoverable data-quality issues. These are recorded,
# never raised.
EXTRACTION_WARNING = "EXTRACTION_WARNING"
MALFORMED_ELEMENT = "MALFORMED_ELEMENT"

FILE_READ_FAILED = "FILE_READ_FAILED"
INVALID_CONFIG = "INVALID_CONFIG"
SESSION_STATE = "SESSION_STATE"

GUIDANCE: dict[str, list[str]] = {
    FILE_READ_FAILED: [
        "Check that the test file exists and is readable",
        "Verify the include globs in your config point at test sources",
        "Files that are not UTF-8 encoded are skipped",
    ],
    INVALID_CONFIG: [
        "Run 'elcov init' to regenerate a default config",
        "threshold must be between 0 and 100",
        "report_formats may only contain 'console' and 'json'",
    ],
    SESSION_STATE: [
        "Call begin() before test_end(), record_page() or end()",
    ],
}


class CoverageError(Exception):
    """Base class for coverage errors."""

    code = "COVERAGE_ERROR"
    recoverable = True

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source

    @property
    def guidance(self) -> list[str]:
        return GUIDANCE.get(self.code, [])

    def describe(self) -> str:
        """Format the error with its resolution steps for console output."""
        lines = [f"{self.code}: {self}"]
        if self.source:
            lines.append(f"  in {self.source}")
        for i, step in enumerate(self.guidance, 1):
            lines.append(f"  {i}. {step}")
        return "\n".join(lines)


class FileReadError(CoverageError):
    """A source file could not be read. Callers skip it and record a warning."""

    code = FILE_READ_FAILED


class ConfigurationError(CoverageError):
    """Invalid threshold, format or filter settings."""

    code = INVALID_CONFIG
    recoverable = False


class SessionStateError(CoverageError, RuntimeError):
    """Lifecycle hooks were called out of order."""

    code = SESSION_STATE
    recoverable = False
