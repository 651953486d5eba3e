"""Configuration models for coverage analysis."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from elcov.errors import ConfigurationError
from elcov.models.element import ElementType

VALID_FORMATS = ("console", "json")
FILTER_PRESETS = ("comprehensive", "essential", "minimal", "forms", "navigation")


class AttributeFilter(BaseModel):
    name: str
    value: Optional[str] = None
    pattern: Optional[str] = None
    exists: Optional[bool] = None


class ElementFilterConfig(BaseModel):
    preset: Optional[str] = None
    include_types: list[ElementType] = Field(default_factory=lambda: list(ElementType))
    exclude_types: list[ElementType] = Field(default_factory=list)
    include_selectors: list[str] = Field(default_factory=list)
    exclude_selectors: list[str] = Field(default_factory=list)
    include_attributes: list[AttributeFilter] = Field(default_factory=list)
    exclude_attributes: list[AttributeFilter] = Field(default_factory=list)
    include_text_patterns: list[str] = Field(default_factory=list)
    exclude_text_patterns: list[str] = Field(default_factory=list)
    min_width: float = 1.0
    min_height: float = 1.0
    include_hidden: bool = False
    include_disabled: bool = True
    include_outside_viewport: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080

    @field_validator("preset")
    @classmethod
    def check_preset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in FILTER_PRESETS:
            raise ValueError(f"Unknown filter preset '{v}'. Expected one of {', '.join(FILTER_PRESETS)}")
        return v

    @field_validator("include_text_patterns", "exclude_text_patterns")
    @classmethod
    def check_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex pattern '{pattern}': {e}")
        return v

    @field_validator("min_width", "min_height")
    @classmethod
    def check_size(cls, v: float) -> float:
        if v < 0:
            raise ValueError("minimum size dimensions must be positive")
        return v


class CoverageConfig(BaseModel):
    # Test sources
    include: list[str] = Field(
        default_factory=lambda: ["tests/**/*.spec.ts", "tests/**/*.test.ts", "e2e/**/*.spec.ts"]
    )
    exclude: list[str] = Field(default_factory=lambda: ["**/node_modules/**", "**/dist/**"])

    # Elements never counted toward coverage
    ignore_elements: list[str] = Field(
        default_factory=lambda: ['[data-testid="skip-coverage"]', ".test-only", '[aria-hidden="true"]']
    )

    # Verdict
    threshold: int = 80

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["console", "json"])
    output_dir: str = "./coverage-report"
    max_recommendations: int = 20

    # Discovery
    static_analysis: bool = True
    static_elements: bool = True
    runtime_discovery: bool = False
    page_urls: list[str] = Field(default_factory=list)
    count_failed_tests: bool = False
    selector_analysis: bool = True
    filter: ElementFilterConfig = Field(default_factory=ElementFilterConfig)

    diagnostics_capacity: int = 100

    # AI summary
    ai_summary: bool = False
    ai_model: str = "claude-opus-4-6"

    @field_validator("threshold")
    @classmethod
    def check_threshold(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"threshold must be between 0 and 100, got {v}")
        return v

    @field_validator("report_formats")
    @classmethod
    def check_formats(cls, v: list[str]) -> list[str]:
        bad = [f for f in v if f not in VALID_FORMATS]
        if bad:
            raise ValueError(f"Unsupported report format(s): {', '.join(bad)}")
        return v

    @field_validator("max_recommendations", "diagnostics_capacity")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def check_discovery(self) -> "CoverageConfig":
        if self.runtime_discovery and not self.page_urls:
            raise ValueError("runtime_discovery requires at least one entry in page_urls")
        return self

    @classmethod
    def load(cls, path: str | Path) -> "CoverageConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Config is not valid JSON: {e}", source=str(path)) from e
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_dict(cls, data: dict, source: str | None = None) -> "CoverageConfig":
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(str(e), source=source) from e

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
