"""Coverage data structures."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from elcov.models.element import PageElement
from elcov.models.selector import SelectorStatistics, TestSelector

Priority = Literal["high", "medium", "low"]

PRIORITY_ORDER: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


class TypeCoverage(BaseModel):
    total: int = 0
    covered: int = 0
    percentage: int = 0


class PageBucket(BaseModel):
    total: int = 0
    covered: int = 0
    elements: list[PageElement] = Field(default_factory=list)


class CoverageResult(BaseModel):
    total_elements: int = 0
    covered_elements: int = 0
    uncovered_elements: list[PageElement] = Field(default_factory=list)
    coverage_percentage: int = 0
    coverage_by_type: dict[str, TypeCoverage] = Field(default_factory=dict)
    elements_by_page: dict[str, PageBucket] = Field(default_factory=dict)


class CoverageHit(BaseModel):
    test_file: str
    test_name: str = ""
    reason: str = ""
    timestamp: str = ""


class ElementRecord(BaseModel):
    """Aggregator bookkeeping for one discovered element."""
    element: PageElement
    normalized: str
    sources: list[str] = Field(default_factory=list)
    contexts: list[str] = Field(default_factory=list)
    first_seen_at: str = ""
    last_seen_at: str = ""
    covered: bool = False
    covered_by: list[CoverageHit] = Field(default_factory=list)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.normalized, self.element.discovery_context)


class PageCoverage(BaseModel):
    total: int = 0
    covered: int = 0
    uncovered: list[ElementRecord] = Field(default_factory=list)


class AggregatedCoverage(BaseModel):
    total_elements: int = 0
    covered_elements: int = 0
    uncovered_elements: list[ElementRecord] = Field(default_factory=list)
    coverage_percentage: int = 0
    coverage_by_type: dict[str, TypeCoverage] = Field(default_factory=dict)
    coverage_by_page: dict[str, PageCoverage] = Field(default_factory=dict)
    test_files: list[str] = Field(default_factory=list)
    last_updated: str = ""


class Recommendation(BaseModel):
    message: str
    priority: Priority = "medium"
    selector: Optional[str] = None
    element_type: Optional[str] = None
    suggested_test: Optional[str] = None


class UncoveredRecommendations(BaseModel):
    total_uncovered: int = 0
    items: list[Recommendation] = Field(default_factory=list)


class SelectorMismatch(BaseModel):
    """A test selector that matches no discovered live element."""
    selector: TestSelector
    possible_matches: list[PageElement] = Field(default_factory=list)
    match_score: float = 0.0
    reason: str = ""


class SelectorAnalysisReport(BaseModel):
    total_selectors: int = 0
    matched_selectors: int = 0
    unmatched_selectors: int = 0
    mismatches: list[SelectorMismatch] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class CoverageReport(BaseModel):
    """Everything a renderer needs after a session ends."""
    coverage: AggregatedCoverage
    recommendations: list[Recommendation] = Field(default_factory=list)
    uncovered: UncoveredRecommendations = Field(default_factory=UncoveredRecommendations)
    selector_stats: SelectorStatistics = Field(default_factory=SelectorStatistics)
    selector_analysis: Optional[SelectorAnalysisReport] = None
    warnings: list[str] = Field(default_factory=list)
    threshold: int = 80
    passed: bool = False
    summary: str = ""
    ai_summary: str = ""
