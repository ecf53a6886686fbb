"""
Technical SEO Engine

Five buckets, each good unless one of its checks fires:

  crawlability   robots meta nofollow                        -10  warning
  indexability   noindex in robots meta or X-Robots-Tag      -15  error
  site_structure missing or multiple H1                      -10  warning
  performance    images without alt                           -5  warning
  security       final URL not https, or mixed content       -20  error
"""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, ScoreScale, Severity, Status
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.checks import robots_directives
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import Issue, TechnicalBucket, TechnicalDetail

# Subresources that trigger mixed-content warnings on an https page
MIXED_CONTENT_SELECTORS = (
    ("img", "src"),
    ("script", "src"),
    ("iframe", "src"),
    ("link[rel~=stylesheet]", "href"),
    ("source", "src"),
    ("video", "src"),
    ("audio", "src"),
)


def insecure_resources(document: ParsedDocument) -> list[str]:
    """http:// subresources referenced from the page."""
    found = []
    for selector, attribute in MIXED_CONTENT_SELECTORS:
        for tag in document.select(selector):
            value = str(tag.get(attribute) or "").strip()
            if value.lower().startswith("http://"):
                found.append(value)
    return found


class TechnicalSeoEngine(AnalyzerEngine):

    ENGINE_NAME = "technical"
    CATEGORY = Category.TECHNICAL
    SCALE = ScoreScale.THREE_TIER

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        score = 100
        issues: list[Issue] = []
        recommendations: list[str] = []

        robots_meta = robots_directives(document.meta("robots") or "")
        header_directives = robots_directives(document.headers.get("x-robots-tag", ""))

        # Crawlability
        crawlability = TechnicalBucket()
        if "nofollow" in robots_meta:
            score -= 10
            crawlability = TechnicalBucket(status=Status.WARNING, issues=["Robots meta tag contains nofollow"])
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, "Robots meta tag contains nofollow", "technical-nofollow",
            ))
            recommendations.append("Remove nofollow from the robots meta tag so crawlers follow page links")

        # Indexability
        indexability = TechnicalBucket()
        if "noindex" in robots_meta or "noindex" in header_directives:
            score -= 15
            source = "robots meta tag" if "noindex" in robots_meta else "X-Robots-Tag header"
            message = f"Page is set to noindex via {source}"
            indexability = TechnicalBucket(status=Status.ERROR, issues=[message])
            issues.append(self.issue(IssueKind.ERROR, Severity.HIGH, message, "technical-noindex"))
            recommendations.append("Remove the noindex directive if this page should appear in search results")

        # Site structure
        site_structure = TechnicalBucket()
        h1_count = document.count("h1")
        if h1_count != 1:
            score -= 10
            message = "Missing H1 tag" if h1_count == 0 else "Multiple H1 tags found"
            site_structure = TechnicalBucket(status=Status.WARNING, issues=[message])
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, message, "technical-h1"))
            recommendations.append("Use exactly one H1 tag describing the page topic")

        # Performance
        performance = TechnicalBucket()
        without_alt = sum(1 for image in document.images() if not image.alt)
        if without_alt:
            score -= 5
            message = f"{without_alt} images without alt text"
            performance = TechnicalBucket(status=Status.WARNING, issues=[message])
            issues.append(self.issue(IssueKind.WARNING, Severity.LOW, message, "technical-images-alt"))
            recommendations.append("Add descriptive alt text to all images")

        # Security
        security_issues = []
        if not document.final_url.lower().startswith("https://"):
            security_issues.append("Site not using HTTPS")
        elif insecure_resources(document):
            security_issues.append("Mixed content: page loads resources over HTTP")
        security = TechnicalBucket()
        if security_issues:
            score -= 20
            security = TechnicalBucket(status=Status.ERROR, issues=security_issues)
            for message in security_issues:
                issues.append(self.issue(IssueKind.ERROR, Severity.HIGH, message, "technical-https"))
            recommendations.append("Serve the site and all of its resources over HTTPS")

        if not recommendations:
            recommendations.append("Technical SEO fundamentals are in place")

        detail = TechnicalDetail(
            crawlability=crawlability,
            indexability=indexability,
            site_structure=site_structure,
            performance=performance,
            security=security,
        )
        return self.build_result(score, issues, recommendations, detail)
