"""
Alt-Text Engine

Each <img> is good (alt of 5+ characters), poor (shorter alt) or missing
(absent or empty alt). Score and coverage are the percentage of good images.
"""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, Severity, percentage
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import AltTextDetail, ImageIssue, Issue

MIN_ALT_LENGTH = 5


class AltTextEngine(AnalyzerEngine):

    ENGINE_NAME = "alt_text"
    CATEGORY = Category.ALT_TEXT

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        images = document.images()
        image_issues: list[ImageIssue] = []
        good = 0

        for image in images:
            alt = (image.alt or "").strip()
            if not alt:
                image_issues.append(ImageIssue(src=image.src, problem="missing"))
            elif len(alt) < MIN_ALT_LENGTH:
                image_issues.append(ImageIssue(src=image.src, alt=alt, problem="poor"))
            else:
                good += 1

        missing = sum(1 for i in image_issues if i.problem == "missing")
        poor = len(image_issues) - missing

        issues: list[Issue] = []
        recommendations: list[str] = []
        if missing:
            issues.append(self.issue(
                IssueKind.ERROR, Severity.HIGH, f"{missing} images missing alt text", "alt-missing",
            ))
            recommendations.append(f"Add alt text to {missing} images")
        if poor:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, f"{poor} images with alt text too short", "alt-poor",
            ))
            recommendations.append(f"Improve alt text for {poor} images")
        if not recommendations:
            recommendations.append("All images have appropriate alt text")

        coverage = percentage(good, len(images))
        detail = AltTextDetail(
            total_images=len(images),
            images_with_alt=good,
            missing_alt=missing,
            poor_alt=poor,
            coverage=coverage,
            image_issues=image_issues,
        )
        return self.build_result(coverage, issues, recommendations, detail)
