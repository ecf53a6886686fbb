"""
Meta Tags Engine

Checks the head of the document against a fixed penalty table:

  title          missing -20 | <30 or >60 chars -5
  description    missing -15 | <120 or >160 chars -3
  keywords       present -2 (legacy tag)
  viewport       missing -15 | no width=device-width -5
  robots         noindex -10
  open graph     og:title or og:description missing -3
  twitter        card without title/description -2
  canonical      missing -5
  hreflang       reported only
"""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, Severity, Status
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.checks import ViewportState, check_viewport, robots_directives
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import FieldCheck, HreflangEntry, Issue, MetaTagsDetail

TITLE_MIN, TITLE_MAX = 30, 60
DESCRIPTION_MIN, DESCRIPTION_MAX = 120, 160
DEFAULT_ROBOTS = "index, follow"
VIEWPORT_PENALTIES = {ViewportState.MISSING: 15, ViewportState.MISCONFIGURED: 5}

OG_FIELDS = ("title", "description", "image", "type", "url")
TWITTER_FIELDS = ("card", "title", "description", "image")


def social_tag(document: ParsedDocument, key: str) -> str | None:
    """Social tags show up as both property= and name=; accept either."""
    value = document.meta_property(key)
    if value is None:
        value = document.meta(key)
    return value


class MetaTagsEngine(AnalyzerEngine):

    ENGINE_NAME = "meta_tags"
    CATEGORY = Category.META_TAGS

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        issues: list[Issue] = []
        score = 100

        title, penalty = self._check_title(document.title or "", issues)
        score -= penalty
        description, penalty = self._check_description(document.meta("description") or "", issues)
        score -= penalty
        keywords, penalty = self._check_keywords(document.meta("keywords"), issues)
        score -= penalty
        state, viewport, viewport_issue = check_viewport(document.meta("viewport") or "")
        if viewport_issue:
            issues.append(viewport_issue)
            score -= VIEWPORT_PENALTIES[state]
        robots, penalty = self._check_robots(document.meta("robots") or DEFAULT_ROBOTS, issues)
        score -= penalty

        # Open Graph
        open_graph = {
            name: self._presence(social_tag(document, f"og:{name}") or "")
            for name in OG_FIELDS
        }
        if not (open_graph["title"].present and open_graph["description"].present):
            issues.append(self.issue(IssueKind.WARNING, Severity.LOW, "Missing Open Graph tags", "meta-missing-og"))
            open_graph = self._flag(open_graph, ("title", "description"),
                                    "Missing Open Graph title or description - important for social sharing")
            score -= 3

        # Twitter Card
        twitter = {
            name: self._presence(social_tag(document, f"twitter:{name}") or "")
            for name in TWITTER_FIELDS
        }
        if twitter["card"].present and not (twitter["title"].present and twitter["description"].present):
            issues.append(self.issue(IssueKind.WARNING, Severity.LOW, "Incomplete Twitter Card tags", "meta-incomplete-twitter"))
            twitter = self._flag(twitter, ("title", "description"),
                                 "Twitter Card is configured but missing title or description")
            score -= 2

        # Canonical
        canonical_href = document.attr('link[rel~="canonical"]', "href")
        if canonical_href:
            canonical = FieldCheck(present=True, content=canonical_href, length=len(canonical_href),
                                   status=Status.GOOD, recommendation="Canonical URL is properly set")
        else:
            canonical = FieldCheck(status=Status.WARNING,
                                   recommendation="Missing canonical URL - helps prevent duplicate content issues")
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "Missing canonical URL", "meta-missing-canonical"))
            score -= 5

        # hreflang is optional; reported, never penalized
        hreflang = [
            HreflangEntry(lang=str(tag.get("hreflang") or ""), href=str(tag.get("href") or ""))
            for tag in document.select('link[rel~="alternate"][hreflang]')
        ]

        detail = MetaTagsDetail(
            title=title,
            description=description,
            keywords=keywords,
            viewport=viewport,
            robots=robots,
            canonical=canonical,
            open_graph=open_graph,
            twitter=twitter,
            hreflang=hreflang,
        )
        return self.build_result(score, issues, self._recommendations(detail), detail)

    # ─────────────────────────────────────────────
    # Field checks
    # ─────────────────────────────────────────────

    def _check_title(self, content: str, issues: list[Issue]) -> tuple[FieldCheck, int]:
        length = len(content)
        if length == 0:
            issues.append(self.issue(IssueKind.ERROR, Severity.HIGH, "Missing title tag", "meta-missing-title"))
            return FieldCheck(status=Status.ERROR,
                              recommendation="Missing title tag - this is critical for SEO"), 20
        if length < TITLE_MIN:
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "Title too short", "meta-title-length"))
            return FieldCheck(present=True, content=content, length=length, status=Status.WARNING,
                              recommendation="Title is too short - consider adding more descriptive text"), 5
        if length > TITLE_MAX:
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "Title too long", "meta-title-length"))
            return FieldCheck(present=True, content=content, length=length, status=Status.WARNING,
                              recommendation="Title is too long - it may be truncated in search results"), 5
        return FieldCheck(present=True, content=content, length=length, status=Status.GOOD,
                          recommendation="Title length is optimal for SEO"), 0

    def _check_description(self, content: str, issues: list[Issue]) -> tuple[FieldCheck, int]:
        length = len(content)
        if length == 0:
            issues.append(self.issue(IssueKind.ERROR, Severity.HIGH, "Missing meta description", "meta-missing-description"))
            return FieldCheck(status=Status.ERROR,
                              recommendation="Missing meta description - this is important for SEO"), 15
        if length < DESCRIPTION_MIN:
            issues.append(self.issue(IssueKind.WARNING, Severity.LOW, "Description too short", "meta-description-length"))
            return FieldCheck(present=True, content=content, length=length, status=Status.WARNING,
                              recommendation="Description could be more descriptive"), 3
        if length > DESCRIPTION_MAX:
            issues.append(self.issue(IssueKind.WARNING, Severity.LOW, "Description too long", "meta-description-length"))
            return FieldCheck(present=True, content=content, length=length, status=Status.WARNING,
                              recommendation="Description is too long - it may be truncated in search results"), 3
        return FieldCheck(present=True, content=content, length=length, status=Status.GOOD,
                          recommendation="Description length is within optimal range"), 0

    def _check_keywords(self, content: str | None, issues: list[Issue]) -> tuple[FieldCheck, int]:
        if content is None:
            return FieldCheck(status=Status.GOOD, recommendation="Meta keywords are not recommended for SEO"), 0
        issues.append(self.issue(IssueKind.WARNING, Severity.LOW, "Meta keywords present", "meta-keywords-present"))
        return FieldCheck(present=True, content=content, length=len(content), status=Status.WARNING,
                          recommendation="Meta keywords are not recommended for SEO. Consider removing them."), 2

    def _check_robots(self, content: str, issues: list[Issue]) -> tuple[FieldCheck, int]:
        if "noindex" in robots_directives(content):
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "Robots noindex detected", "meta-robots-noindex"))
            return FieldCheck(present=True, content=content, length=len(content), status=Status.WARNING,
                              recommendation="Robots meta tag prevents indexing - ensure this is intentional"), 10
        return FieldCheck(present=True, content=content, length=len(content), status=Status.GOOD,
                          recommendation="Robots meta tag allows search engine indexing"), 0

    @staticmethod
    def _presence(content: str) -> FieldCheck:
        if content:
            return FieldCheck(present=True, content=content, length=len(content), status=Status.GOOD)
        return FieldCheck(status=Status.GOOD)

    @staticmethod
    def _flag(fields: dict[str, FieldCheck], names: tuple[str, ...], recommendation: str) -> dict[str, FieldCheck]:
        flagged = dict(fields)
        for name in names:
            if not fields[name].present:
                flagged[name] = fields[name].model_copy(
                    update={"status": Status.WARNING, "recommendation": recommendation}
                )
        return flagged

    @staticmethod
    def _recommendations(detail: MetaTagsDetail) -> list[str]:
        recommendations = []
        if detail.title.status != Status.GOOD:
            recommendations.append("Optimize meta title length (50-60 characters)")
        if detail.description.status != Status.GOOD:
            recommendations.append("Write compelling meta descriptions (120-155 characters)")
        if detail.viewport.status != Status.GOOD:
            recommendations.append("Ensure viewport meta tag is present for mobile optimization")
        if any(f.status != Status.GOOD for f in detail.open_graph.values()):
            recommendations.append("Use Open Graph tags for better social media sharing")
        if any(f.status != Status.GOOD for f in detail.twitter.values()):
            recommendations.append("Add Twitter Card meta tags for Twitter sharing")
        if detail.canonical.status != Status.GOOD:
            recommendations.append("Implement canonical URLs to avoid duplicate content issues")
        if detail.keywords.status != Status.GOOD:
            recommendations.append("Remove the legacy meta keywords tag")
        if detail.robots.status != Status.GOOD:
            recommendations.append("Confirm the noindex directive is intentional")
        return recommendations or ["Meta tags are well optimized"]
