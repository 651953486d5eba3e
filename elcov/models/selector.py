"""Selector data structures produced by the static analyzer."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SelectorDialect(str, Enum):
    CSS = "css"
    XPATH = "xpath"
    TEXT = "text"
    ROLE = "role"
    TEST_ID = "test-id"
    ALT_TEXT = "alt-text"
    PLACEHOLDER = "placeholder"
    LABEL = "label"


# Dialects matched on visible text / accessibility semantics rather than DOM structure
SEMANTIC_DIALECTS = frozenset({SelectorDialect.TEXT, SelectorDialect.ROLE, SelectorDialect.LABEL})


class RawSelectorOccurrence(BaseModel):
    """One pattern match in one source line."""
    text: str
    dialect_hint: Optional[SelectorDialect] = None
    pattern_name: str = ""
    source_file: str = ""
    line_number: int = 0
    surrounding_context: str = ""


class TestSelector(BaseModel):
    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True)

    raw: str
    normalized: str
    dialect: SelectorDialect = SelectorDialect.CSS
    line_number: int = 0
    file_path: str = ""
    context: Optional[str] = None


class ExtractionResult(BaseModel):
    selectors: list[TestSelector] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SelectorStatistics(BaseModel):
    total: int = 0
    by_dialect: dict[str, int] = Field(default_factory=dict)
    by_file: dict[str, int] = Field(default_factory=dict)
    most_common: list[tuple[str, int]] = Field(default_factory=list)
