"""Static selector extraction from test source files."""

from __future__ import annotations

import fnmatch
import glob
import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional, Sequence

from elcov.analyzer.classifier import determine_dialect
from elcov.analyzer.normalizer import normalize
from elcov.analyzer.patterns import (
    DEFAULT_PATTERNS,
    SelectorPattern,
    is_ignored,
    looks_like_selector,
)
from elcov.diagnostics import DiagnosticsLog
from elcov.errors import EXTRACTION_WARNING, FileReadError
from elcov.models.selector import (
    ExtractionResult,
    RawSelectorOccurrence,
    SelectorStatistics,
    TestSelector,
)

logger = logging.getLogger(__name__)

TEST_FILE_SUFFIXES = (
    ".spec.ts", ".test.ts", ".e2e.ts",
    ".spec.tsx", ".test.tsx",
    ".spec.js", ".test.js", ".e2e.js",
    ".spec.mjs", ".test.mjs",
)
SKIPPED_DIRS = frozenset({"node_modules", "dist", ".git", "__pycache__"})

CONTEXT_BEFORE = 20
CONTEXT_AFTER = 50


def is_test_file(path: str | Path) -> bool:
    name = Path(path).name
    if name.endswith(TEST_FILE_SUFFIXES):
        return True
    return name.endswith(".py") and (name.startswith("test_") or name.endswith("_test.py"))


class StaticAnalyzer:
    """Finds selector expressions in test source using ordered pattern families."""

    def __init__(
        self,
        patterns: Sequence[SelectorPattern] = DEFAULT_PATTERNS,
        diagnostics: Optional[DiagnosticsLog] = None,
    ):
        self.patterns = tuple(patterns)
        self.diagnostics = diagnostics

    def extract_from_text(self, text: str, source_file: str = "<text>") -> list[RawSelectorOccurrence]:
        """Return one occurrence per pattern match, in line order then pattern order."""
        occurrences: list[RawSelectorOccurrence] = []
        for line_number, line in enumerate(text.splitlines(), 1):
            for pattern in self.patterns:
                for match in pattern.regex.finditer(line):
                    payload = pattern.payload(match).strip()
                    if not payload or is_ignored(payload):
                        continue
                    if pattern.requires_selector_syntax and not looks_like_selector(payload):
                        continue
                    start = match.start()
                    occurrences.append(RawSelectorOccurrence(
                        text=payload,
                        dialect_hint=determine_dialect(
                            payload,
                            accessor=pattern.accessor(match),
                            pattern_name=pattern.name,
                            family_hint=pattern.dialect_hint,
                        ),
                        pattern_name=pattern.name,
                        source_file=source_file,
                        line_number=line_number,
                        surrounding_context=line[max(0, start - CONTEXT_BEFORE):start + CONTEXT_AFTER].strip(),
                    ))
        return occurrences

    def to_selectors(self, occurrences: Iterable[RawSelectorOccurrence]) -> list[TestSelector]:
        """Fold occurrences into selectors, collapsing equal (normalized, file) pairs.

        The first occurrence wins, so line numbers point at the earliest use.
        """
        seen: set[tuple[str, str]] = set()
        selectors: list[TestSelector] = []
        for occ in occurrences:
            normalized = normalize(occ.text, occ.dialect_hint)
            if not normalized:
                continue
            key = (normalized, occ.source_file)
            if key in seen:
                continue
            seen.add(key)
            selectors.append(TestSelector(
                raw=occ.text,
                normalized=normalized,
                dialect=occ.dialect_hint or determine_dialect(occ.text, pattern_name=occ.pattern_name),
                line_number=occ.line_number,
                file_path=occ.source_file,
                context=occ.surrounding_context or None,
            ))
        return selectors

    def selectors_from_text(self, text: str, file_path: str = "<text>") -> list[TestSelector]:
        return self.to_selectors(self.extract_from_text(text, file_path))

    def extract_from_file(self, path: str | Path) -> list[TestSelector]:
        """Extract deduplicated selectors from one file.

        Raises FileReadError when the file cannot be read or decoded.
        """
        path = str(path)
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(f"Failed to read {path}: {e}", source=path) from e
        selectors = self.selectors_from_text(text, path)
        logger.debug("Extracted %d selectors from %s", len(selectors), path)
        return selectors

    def find_test_files(
        self, patterns: Sequence[str], exclude: Sequence[str] = (),
    ) -> tuple[list[str], list[str]]:
        """Expand globs into test files. Returns (files, warnings)."""
        files: set[str] = set()
        warnings: list[str] = []
        for pattern in patterns:
            try:
                matches = glob.glob(pattern, recursive=True)
            except (OSError, ValueError) as e:
                warnings.append(self._warn(f"Failed to resolve pattern {pattern}: {e}", "find_test_files", pattern))
                continue
            for match in matches:
                p = Path(match)
                if not p.is_file() or SKIPPED_DIRS.intersection(p.parts):
                    continue
                if any(fnmatch.fnmatch(match, ex) for ex in exclude):
                    continue
                if is_test_file(p):
                    files.add(match)
        return sorted(files), warnings

    def analyze_files(self, patterns: Sequence[str], exclude: Sequence[str] = ()) -> ExtractionResult:
        """Best-effort scan: unreadable files become warnings, never errors."""
        files, warnings = self.find_test_files(patterns, exclude)
        result = ExtractionResult(files=files, warnings=warnings)
        for path in files:
            try:
                result.selectors.extend(self.extract_from_file(path))
            except FileReadError as e:
                result.warnings.append(self._warn(str(e), "extract_from_file", path))
        logger.info(
            "Static analysis: %d selectors in %d files (%d warnings)",
            len(result.selectors), len(files), len(result.warnings),
        )
        return result

    def _warn(self, message: str, operation: str, source: str | None) -> str:
        if self.diagnostics is not None:
            self.diagnostics.record(EXTRACTION_WARNING, message, operation=operation, source=source)
        else:
            logger.warning(message)
        return message


def selector_statistics(selectors: Sequence[TestSelector], top: int = 10) -> SelectorStatistics:
    by_dialect = Counter(s.dialect.value for s in selectors)
    by_file = Counter(s.file_path for s in selectors)
    common = Counter(s.normalized for s in selectors)
    return SelectorStatistics(
        total=len(selectors),
        by_dialect=dict(by_dialect),
        by_file=dict(by_file),
        most_common=common.most_common(top),
    )
