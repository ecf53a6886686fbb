"""
Base class and type contracts for all analyzers.
Every analyzer MUST inherit from AnalyzerEngine and implement run().

Design principles:
- Analyzers are stateless: all state comes from the ParsedDocument and context
- Analyzers are independent: no analyzer imports or awaits another
- Analyzers return a standardized AnalyzerResult
- execute() turns any analyzer exception into a zero-confidence result
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from seo_inspector.core.scoring import (
    Confidence,
    IssueKind,
    ScoreScale,
    Severity,
    Status,
    clamp_score,
    derive_status,
    lowest_status,
)
from seo_inspector.engines.models import AnalyzerDetail, Issue

if TYPE_CHECKING:
    from seo_inspector.core.context import AnalysisContext
    from seo_inspector.engines.fetcher.document import ParsedDocument

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class Category(str, Enum):
    META_TAGS = "meta_tags"
    PAGE_SPEED = "page_speed"
    KEYWORD_DENSITY = "keyword_density"
    MOBILE = "mobile"
    SITEMAP_ROBOTS = "sitemap_robots"
    TECHNICAL = "technical"
    SCHEMA = "schema"
    ALT_TEXT = "alt_text"
    CANONICAL = "canonical"
    BROKEN_LINKS = "broken_links"
    KEYWORD_RESEARCH = "keyword_research"
    BACKLINKS = "backlinks"
    COMPETITORS = "competitors"
    RANK_TRACKING = "rank_tracking"


# ─────────────────────────────────────────────
# Core data types
# ─────────────────────────────────────────────

class AnalysisTarget(BaseModel):
    """The one URL analyzed per invocation. Built by runner.validate_target()."""
    model_config = ConfigDict(frozen=True)

    url: str


class AnalysisParams(BaseModel):
    """Optional caller parameters for one analysis run."""
    model_config = ConfigDict(frozen=True)

    keywords: list[str] = Field(default_factory=list)
    business_description: str | None = None
    categories: list[Category] | None = None
    deadline_seconds: float | None = Field(default=None, gt=0)


class AnalyzerResult(BaseModel):
    """Standardized output from every analyzer."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    category: Category
    score: int = Field(ge=0, le=100, default=0)
    status: Status = Status.POOR
    issues: list[Issue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    confidence: Confidence = Confidence.MEASURED
    detail: AnalyzerDetail | None = None
    failed: bool = False
    error_message: str | None = None
    execution_time_ms: float = 0.0


class ActionItem(BaseModel):
    """One issue placed in the cross-category action plan."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    priority_rank: int
    category: Category
    kind: IssueKind
    severity: Severity
    message: str
    implementation_steps: list[str] = Field(default_factory=list)


class Report(BaseModel):
    """Terminal aggregate handed back to the caller."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    url: str
    final_url: str
    fetched: bool
    fetch_error: str | None = None
    overall_score: int = Field(ge=0, le=100)
    overall_status: Status
    confidence_score: float = Field(ge=0.0, le=100.0)
    per_category: list[AnalyzerResult] = Field(default_factory=list)
    action_plan: list[ActionItem] = Field(default_factory=list)
    issue_summary: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def result_for(self, category: Category | str) -> AnalyzerResult | None:
        key = Category(category).value
        return next((r for r in self.per_category if r.category == key), None)


# ─────────────────────────────────────────────
# Base Engine
# ─────────────────────────────────────────────

class AnalyzerEngine(ABC):
    """
    Abstract base class for all analyzers.

    All analyzers MUST:
    1. Implement run(document, context) -> AnalyzerResult
    2. Read markup with safe defaults; a fallback document is normal input
    3. Be stateless - store nothing on self between calls
    4. Never mutate the ParsedDocument
    """

    ENGINE_NAME: str = "base"
    CATEGORY: Category = Category.TECHNICAL
    SCALE: ScoreScale = ScoreScale.FOUR_TIER
    CONFIDENCE: Confidence = Confidence.MEASURED

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)

    @abstractmethod
    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        """
        Analyze one parsed document.

        Args:
            document: Shared, read-only parsed markup
            context: Settings, HTTP client, provider and caller params

        Returns:
            AnalyzerResult with score, issues and recommendations
        """
        ...

    async def execute(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        """
        Wrapper around run() that adds timing, logging, and error handling.
        Call this instead of run() directly.
        """
        start = time.perf_counter()
        self.logger.info(
            "Analyzer starting",
            engine=self.ENGINE_NAME,
            url=document.url,
            fallback=document.is_fallback,
        )

        try:
            result = await self.run(document, context)
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.info(
                "Analyzer complete",
                engine=self.ENGINE_NAME,
                url=document.url,
                score=result.score,
                issue_count=len(result.issues),
                elapsed_ms=round(elapsed, 2),
            )
            return result.model_copy(update={"execution_time_ms": elapsed})

        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.error(
                "Analyzer failed",
                engine=self.ENGINE_NAME,
                url=document.url,
                error=str(exc),
                elapsed_ms=round(elapsed, 2),
                exc_info=True,
            )
            return self.failed_result(str(exc) or exc.__class__.__name__, elapsed)

    def failed_result(self, error: str, elapsed_ms: float = 0.0) -> AnalyzerResult:
        return AnalyzerResult(
            category=self.CATEGORY,
            score=0,
            status=lowest_status(self.SCALE),
            confidence=Confidence.NONE,
            failed=True,
            error_message=error,
            execution_time_ms=elapsed_ms,
        )

    def build_result(
        self,
        score: float,
        issues: list[Issue],
        recommendations: list[str],
        detail: AnalyzerDetail,
        confidence: Confidence | None = None,
    ) -> AnalyzerResult:
        """Clamp the score and derive its status on this analyzer's scale."""
        final = clamp_score(score)
        return AnalyzerResult(
            category=self.CATEGORY,
            score=final,
            status=derive_status(final, self.SCALE),
            issues=issues,
            recommendations=recommendations,
            confidence=confidence or self.CONFIDENCE,
            detail=detail,
        )

    @staticmethod
    def issue(kind: IssueKind, severity: Severity, message: str, code: str = "") -> Issue:
        return Issue(kind=kind, severity=severity, message=message, code=code)
