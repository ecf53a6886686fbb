"""
Action plan.

Every issue from every analyzer, ordered by severity
(critical > high > medium > low). The sort is stable, so within a tier
issues keep result order, then insertion order. Issues with a known code
carry implementation steps.
"""

from __future__ import annotations

from seo_inspector.core.scoring import SEVERITY_RANK, Severity
from seo_inspector.engines.base import ActionItem, AnalyzerResult

IMPLEMENTATION_STEPS: dict[str, list[str]] = {
    "meta-missing-title": [
        "Research the primary keyword for the page",
        "Write a unique title following the formula: Primary Keyword | Secondary Keyword | Brand",
        "Keep the title between 30-60 characters",
        "Deploy via CMS or template modification",
    ],
    "meta-missing-description": [
        "Write a compelling meta description that includes the primary keyword",
        "Target 120-160 characters with a clear value proposition",
        "Include a soft call-to-action where appropriate",
        "Update via CMS or developer template",
    ],
    "viewport-missing": [
        'Add <meta name="viewport" content="width=device-width, initial-scale=1"> to the <head>',
        "Check the layout on a small screen after the change",
    ],
    "viewport-misconfigured": [
        "Include width=device-width in the viewport meta tag",
        "Avoid fixed pixel widths in the viewport content",
    ],
    "structure-missing-h1": [
        "Identify the primary content theme of the page",
        "Write a clear H1 that reflects the page's primary keyword focus",
        "Ensure the H1 is different from the page title (complementary, not identical)",
    ],
    "technical-https": [
        "Install an SSL certificate (Let's Encrypt for free, or premium CA)",
        "Configure the web server to redirect HTTP to HTTPS (301)",
        "Update internal links and resource URLs to use HTTPS",
        "Update canonical tags to HTTPS versions",
        "Monitor for mixed content warnings after the switch",
    ],
    "technical-noindex": [
        "Confirm whether the page should be excluded from search results",
        "Remove noindex from the robots meta tag and the X-Robots-Tag header if not",
        "Request re-indexing in Google Search Console",
    ],
    "robots-blocks-all": [
        "Open robots.txt and locate the User-agent: * group",
        "Replace 'Disallow: /' with rules for the paths that must stay private",
        "Test the file with the robots.txt tester in Google Search Console",
    ],
    "sitemap-missing": [
        "Generate a sitemap.xml listing all indexable URLs",
        "Serve it at /sitemap.xml and reference it from robots.txt",
        "Submit the sitemap in Google Search Console",
    ],
    "robots-missing": [
        "Create a robots.txt at the site root",
        "Allow crawling of public sections and reference the sitemap",
    ],
    "schema-invalid-json": [
        "Copy each JSON-LD block into a JSON validator and fix syntax errors",
        "Re-test the page with Google's Rich Results Test",
    ],
    "schema-missing": [
        "Pick the schema.org types matching the page (Organization, WebSite, Article, Product)",
        "Add them as a JSON-LD script in the <head>",
        "Validate with Google's Rich Results Test",
    ],
    "alt-missing": [
        "List the images without alt attributes from the report",
        "Write a short description of what each image shows",
        'Use alt="" only for purely decorative images',
    ],
    "links-broken": [
        "Export the broken URLs from the report",
        "Update links whose target moved, or add 301 redirects on your own site",
        "Remove links whose target no longer exists",
    ],
    "canonical-missing": [
        'Add <link rel="canonical" href="..."> pointing to the preferred URL',
        "Use absolute HTTPS URLs in canonical tags",
    ],
    "canonical-mismatch": [
        "Check whether the canonical target is the intended preferred version",
        "Point the canonical at this URL if this page holds the primary copy",
    ],
}


def build_action_plan(results: list[AnalyzerResult]) -> list[ActionItem]:
    """Issues across all results, sorted by severity with stable ties."""
    collected = [(result.category, issue) for result in results for issue in result.issues]
    collected.sort(key=lambda pair: SEVERITY_RANK[Severity(pair[1].severity)])

    return [
        ActionItem(
            priority_rank=rank,
            category=category,
            kind=issue.kind,
            severity=issue.severity,
            message=issue.message,
            implementation_steps=IMPLEMENTATION_STEPS.get(issue.code, []),
        )
        for rank, (category, issue) in enumerate(collected, start=1)
    ]
