"""
Canonical Engine

The canonical link is resolved against the page URL and must point at the
page itself (requested or final URL). Fragment, host case and a trailing
slash are ignored in the comparison. Score 95 with no issues, else 60.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, ScoreScale, Severity, Status
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import CanonicalDetail, DuplicateContentHint, Issue

SCORE_OK = 95
SCORE_WITH_ISSUES = 60
SHORT_TITLE = 30
SHORT_DESCRIPTION = 120


def normalize_url(url: str) -> str:
    """Comparable form: lower-cased scheme and host, no fragment, no trailing slash."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url.strip()
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


class CanonicalEngine(AnalyzerEngine):

    ENGINE_NAME = "canonical"
    CATEGORY = Category.CANONICAL
    SCALE = ScoreScale.THREE_TIER

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        issues: list[Issue] = []
        recommendations: list[str] = []

        href = document.attr('link[rel~="canonical"]', "href").strip()
        resolved = None
        matches = False

        if not href:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, "Missing canonical URL", "canonical-missing",
            ))
        else:
            try:
                resolved = urljoin(document.url, href)
            except ValueError:
                resolved = href
            page_urls = {normalize_url(document.url), normalize_url(document.final_url)}
            matches = normalize_url(resolved) in page_urls
            if not matches:
                issues.append(self.issue(
                    IssueKind.WARNING, Severity.MEDIUM,
                    "Canonical URL differs from current URL", "canonical-mismatch",
                ))

        duplicates = []
        if len(document.title or "") < SHORT_TITLE:
            duplicates.append(DuplicateContentHint(
                field="title", similarity=85, recommendation="Short or generic title",
            ))
        if len(document.meta("description") or "") < SHORT_DESCRIPTION:
            duplicates.append(DuplicateContentHint(
                field="description", similarity=75, recommendation="Short or generic meta description",
            ))

        if issues:
            recommendations.append("Add canonical URL to prevent duplicate content issues")
        if duplicates:
            recommendations.append("Improve content uniqueness to avoid duplicate content penalties")
        if not recommendations:
            recommendations.append("Canonical URL is properly configured")

        detail = CanonicalDetail(
            canonical_url=href or None,
            resolved_canonical=resolved,
            matches_url=matches,
            status=Status.WARNING if issues else Status.GOOD,
            duplicate_content=duplicates,
        )
        score = SCORE_WITH_ISSUES if issues else SCORE_OK
        return self.build_result(score, issues, recommendations, detail)
