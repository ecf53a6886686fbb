"""
Mobile-Friendliness Engine

Viewport: missing -30, lacking width=device-width -15.
Touch targets are only counted; no element sizes are available, so
too_small is always 0 and the detail says the check was not measured.
"""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import ScoreScale, Status
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.checks import ViewportState, check_viewport
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import MobileDetail, TouchTargets

TOUCH_TARGET_SELECTOR = "a, button, input, select, textarea"
VIEWPORT_PENALTIES = {ViewportState.MISSING: 30, ViewportState.MISCONFIGURED: 15}


class MobileEngine(AnalyzerEngine):

    ENGINE_NAME = "mobile"
    CATEGORY = Category.MOBILE
    SCALE = ScoreScale.THREE_TIER

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        score = 100
        issues = []
        recommendations = []

        state, viewport, viewport_issue = check_viewport(document.meta("viewport") or "")
        if viewport_issue:
            issues.append(viewport_issue)
            score -= VIEWPORT_PENALTIES[state]
            recommendations.append(viewport.recommendation)

        touch_targets = TouchTargets(
            total=document.count(TOUCH_TARGET_SELECTOR),
            too_small=0,
            measured=False,
            status=Status.GOOD,
        )

        is_mobile_friendly = viewport.status == Status.GOOD and touch_targets.status == Status.GOOD
        if not issues:
            recommendations.append("Page appears to be mobile-friendly")

        detail = MobileDetail(
            viewport=viewport,
            touch_targets=touch_targets,
            text_size_measured=False,
            content_width_measured=False,
            is_mobile_friendly=is_mobile_friendly,
        )
        return self.build_result(score, issues, recommendations, detail)
