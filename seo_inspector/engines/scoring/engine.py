"""
Scoring & Aggregation

Combines analyzer results into one Report. No re-weighting and no
cross-penalties: each category's score stands alone, and the overall
score is the unweighted mean of the categories that ran successfully.

Confidence score (0-100):
  (successful analyzers / requested analyzers) * 60
  + 40 when the real document was fetched (not the fallback)
"""

from __future__ import annotations

import structlog

from seo_inspector.core.scoring import Severity, derive_status, round_score
from seo_inspector.engines.base import AnalyzerResult, Report
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.prioritization.engine import build_action_plan

logger = structlog.get_logger(__name__)

ANALYZER_WEIGHT = 60.0
DOCUMENT_WEIGHT = 40.0


def calculate_confidence_score(results: list[AnalyzerResult], fetched: bool, requested: int | None = None) -> float:
    """How complete and reliable is this report?"""
    expected = requested if requested is not None else len(results)
    successful = len([r for r in results if not r.failed])
    coverage = successful / expected if expected else 0.0
    confidence = coverage * ANALYZER_WEIGHT + (DOCUMENT_WEIGHT if fetched else 0.0)
    return round(confidence, 2)


def calculate_overall_score(results: list[AnalyzerResult]) -> int:
    scores = [r.score for r in results if not r.failed]
    if not scores:
        return 0
    return round_score(sum(scores) / len(scores))


def summarize_issues(results: list[AnalyzerResult]) -> dict[str, int]:
    summary = {severity.value: 0 for severity in Severity}
    for result in results:
        for issue in result.issues:
            summary[Severity(issue.severity).value] += 1
    return summary


class Aggregator:
    """Builds the terminal Report from one run's analyzer results."""

    def aggregate(
        self,
        document: ParsedDocument,
        results: list[AnalyzerResult],
        requested: int | None = None,
    ) -> Report:
        fetched = not document.is_fallback
        overall = calculate_overall_score(results)
        confidence = calculate_confidence_score(results, fetched, requested)
        failed = [r.category for r in results if r.failed]

        if failed:
            logger.warning("Analyzers failed", url=document.url, categories=failed)

        report = Report(
            url=document.url,
            final_url=document.final_url,
            fetched=fetched,
            fetch_error=document.fetch_error,
            overall_score=overall,
            overall_status=derive_status(overall),
            confidence_score=confidence,
            per_category=results,
            action_plan=build_action_plan(results),
            issue_summary=summarize_issues(results),
        )

        logger.info(
            "Report aggregated",
            url=document.url,
            overall_score=overall,
            confidence=confidence,
            categories=len(results),
            issues=sum(report.issue_summary.values()),
        )
        return report
