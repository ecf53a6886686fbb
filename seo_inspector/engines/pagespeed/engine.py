"""
Page-Speed Heuristic Engine

No browser timing is available, so this is a static approximation:

  performance     fixed 100, Core Web Vitals reported as placeholders
  accessibility   -5 per image without alt
  best practices  -2 per external link without rel=noopener/noreferrer
  seo             -10 no H1, -5 multiple H1

Overall = rounded mean of the four sub-scores.
"""

from __future__ import annotations

from urllib.parse import urlparse

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import Confidence, IssueKind, Severity, clamp_score, derive_status, round_score
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import Issue, Opportunity, PageSpeedDetail, PlaceholderMetrics, SubScore

SAFE_REL_VALUES = {"noopener", "noreferrer"}

OPPORTUNITIES = [
    Opportunity(title="Optimize Images", description="Compress and resize images", savings_seconds=2.1),
    Opportunity(title="Enable Compression", description="Enable gzip compression", savings_seconds=1.8),
    Opportunity(title="Minify CSS", description="Remove unused CSS", savings_seconds=0.9),
]

RECOMMENDATIONS = [
    "Optimize images by compressing and using modern formats like WebP",
    "Enable gzip compression on your server",
    "Minify CSS, JavaScript, and HTML files",
    "Use a Content Delivery Network (CDN)",
    "Implement lazy loading for images",
]


def unsafe_external_links(document: ParsedDocument) -> int:
    """External links that can reach window.opener of this page."""
    host = document.domain
    count = 0
    for a in document.select("a[href]"):
        href = str(a.get("href") or "").strip()
        if not href.lower().startswith("http"):
            continue
        try:
            link_host = (urlparse(href).hostname or "").lower()
        except ValueError:
            continue
        if not link_host or link_host == host:
            continue
        rel = {value.lower() for value in (a.get("rel") or [])}
        if not rel & SAFE_REL_VALUES:
            count += 1
    return count


class PageSpeedEngine(AnalyzerEngine):

    ENGINE_NAME = "page_speed"
    CATEGORY = Category.PAGE_SPEED
    CONFIDENCE = Confidence.HEURISTIC

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        issues: list[Issue] = []

        performance = 100

        missing_alt = sum(1 for image in document.images() if not image.alt)
        accessibility = 100 - missing_alt * 5
        if missing_alt:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM,
                f"{missing_alt} images missing alt text", "speed-images-missing-alt",
            ))

        unsafe_links = unsafe_external_links(document)
        best_practices = 100 - unsafe_links * 2
        if unsafe_links:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.LOW,
                f"{unsafe_links} external links without rel=\"noopener\"", "speed-unsafe-external-links",
            ))

        seo = 100
        h1_count = document.count("h1")
        if h1_count == 0:
            issues.append(self.issue(IssueKind.ERROR, Severity.HIGH, "Missing H1 tag", "structure-missing-h1"))
            seo -= 10
        elif h1_count > 1:
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "Multiple H1 tags found", "structure-multiple-h1"))
            seo -= 5

        sub_scores = [clamp_score(s) for s in (performance, accessibility, best_practices, seo)]
        overall = round_score(sum(sub_scores) / len(sub_scores))

        detail = PageSpeedDetail(
            performance=self._sub(sub_scores[0]),
            accessibility=self._sub(sub_scores[1]),
            best_practices=self._sub(sub_scores[2]),
            seo=self._sub(sub_scores[3]),
            metrics=PlaceholderMetrics(),
            opportunities=list(OPPORTUNITIES),
        )
        return self.build_result(overall, issues, list(RECOMMENDATIONS), detail)

    def _sub(self, score: int) -> SubScore:
        return SubScore(score=score, status=derive_status(score, self.SCALE))
