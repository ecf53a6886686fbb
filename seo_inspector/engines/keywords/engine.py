"""
Keyword Density Engine

density = count / total_words * 100 over the visible-text token stream.
  > 3%  error   -10
  > 2%  warning  -5
Without caller keywords the default stop-word list is measured instead.
"""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, Severity, Status
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.keywords.text import (
    DEFAULT_DENSITY_KEYWORDS,
    count_phrases,
    extract_meaningful_keywords,
    tokenize,
)
from seo_inspector.engines.models import (
    Issue,
    KeywordDensityDetail,
    KeywordDensityEntry,
    TermFrequency,
)

ERROR_DENSITY = 3.0
WARNING_DENSITY = 2.0


def density_status(density: float) -> Status:
    if density > ERROR_DENSITY:
        return Status.ERROR
    if density > WARNING_DENSITY:
        return Status.WARNING
    return Status.GOOD


class KeywordDensityEngine(AnalyzerEngine):

    ENGINE_NAME = "keyword_density"
    CATEGORY = Category.KEYWORD_DENSITY

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document, context.params.keywords)

    def analyze(self, document: ParsedDocument, keywords: list[str] | None = None) -> AnalyzerResult:
        requested = list(dict.fromkeys(k.strip().lower() for k in (keywords or []) if k.strip()))
        used_default = not requested
        if used_default:
            requested = list(DEFAULT_DENSITY_KEYWORDS)

        tokens = tokenize(document.visible_text)
        total_words = len(tokens)
        counts = count_phrases(tokens, requested)

        score = 100
        issues: list[Issue] = []
        recommendations: list[str] = []
        entries = []

        for keyword in requested:
            count = counts[keyword]
            raw_density = count / total_words * 100 if total_words else 0.0
            status = density_status(raw_density)
            density = round(raw_density, 2)

            if status == Status.ERROR:
                score -= 10
                issues.append(self.issue(
                    IssueKind.ERROR, Severity.MEDIUM,
                    f'Keyword "{keyword}" density is too high ({density:.2f}%)', "density-too-high",
                ))
                recommendations.append(
                    f'Keyword "{keyword}" density is too high ({density:.2f}%) - risk of keyword stuffing'
                )
            elif status == Status.WARNING:
                score -= 5
                issues.append(self.issue(
                    IssueKind.WARNING, Severity.LOW,
                    f'Keyword "{keyword}" density is high ({density:.2f}%)', "density-high",
                ))
                recommendations.append(
                    f'Keyword "{keyword}" density is high ({density:.2f}%) - consider reducing usage'
                )

            entries.append(KeywordDensityEntry(keyword=keyword, count=count, density=density, status=status))

        if not issues:
            recommendations.append("Keyword density is within optimal range (0.5-2%)")
        if used_default:
            recommendations.append("Consider specifying target keywords for more focused analysis")

        detail = KeywordDensityDetail(
            total_words=total_words,
            used_default_keywords=used_default,
            keywords=entries,
            top_terms=[
                TermFrequency(term=term, count=count)
                for term, count in extract_meaningful_keywords(document.visible_text)
            ],
        )
        return self.build_result(score, issues, recommendations, detail)
