"""Broken-link analyzer: scores the share of outbound links that respond."""

from __future__ import annotations

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, Severity, percentage
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.links.prober import LinkProber
from seo_inspector.engines.models import BrokenLinksDetail, LinkRecord


class BrokenLinksEngine(AnalyzerEngine):
    """
    Probes every link on the page once (duplicates fanned out) and scores
    round(working / total * 100). Invalid hrefs count as broken.
    """

    ENGINE_NAME = "broken_links"
    CATEGORY = Category.BROKEN_LINKS

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        records = await LinkProber(context).probe(document.links(), document.final_url)
        return self.score_records(records)

    def score_records(self, records: list[LinkRecord]) -> AnalyzerResult:
        broken = [r for r in records if not r.reachable]
        total = len(records)

        issues = [
            self.issue(
                IssueKind.ERROR,
                Severity.HIGH,
                f"Broken link: {r.resolved_url or r.raw_href} ({self._describe(r)})",
                code="links-broken",
            )
            for r in broken
        ]

        if not broken:
            recommendations = ["All links are working correctly"]
        else:
            recommendations = [
                f"Found {len(broken)} broken links that need to be fixed",
                "Update or remove broken links to improve user experience",
                "Consider setting up redirects for moved pages",
                "Check for typos in URLs and ensure all internal links are correct",
            ]

        detail = BrokenLinksDetail(total_links=total, broken_count=len(broken), links=records)
        return self.build_result(percentage(total - len(broken), total), issues, recommendations, detail)

    @staticmethod
    def _describe(record: LinkRecord) -> str:
        if record.http_status:
            return f"HTTP {record.http_status}"
        return record.error or "unreachable"
