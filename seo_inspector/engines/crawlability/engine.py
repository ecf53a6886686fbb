"""
Sitemap & Robots Engine

Probes {origin}/sitemap.xml and {origin}/robots.txt. Each file that
answers 2xx is worth 50 points. robots.txt is parsed into per-agent
allow/disallow groups; sitemap.xml is inspected for its <loc> entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
from bs4 import BeautifulSoup

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, ScoreScale, Severity
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import Issue, RobotsRuleGroup, SiteFile, SitemapRobotsDetail

FILE_POINTS = 50


# ─────────────────────────────────────────────
# Robots.txt Parser
# ─────────────────────────────────────────────

@dataclass
class RobotsTxt:
    groups: list[RobotsRuleGroup] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)
    malformed_lines: list[tuple[int, str]] = field(default_factory=list)

    def group(self, user_agent: str) -> RobotsRuleGroup | None:
        return next((g for g in self.groups if g.user_agent == user_agent), None)


def parse_robots_txt(text: str) -> RobotsTxt:
    """
    Parse User-agent / Allow / Disallow / Sitemap lines.

    Rules before any User-agent line apply to "*". Consecutive User-agent
    lines share the rules that follow them. Groups are created on the first
    rule for an agent and merged if the agent appears again.
    """
    rules: dict[str, dict[str, list[str]]] = {}
    sitemaps: list[str] = []
    malformed: list[tuple[int, str]] = []

    current_agents = ["*"]
    collecting_agents = False

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        if ":" not in line:
            malformed.append((number, raw.strip()))
            continue

        directive, value = line.split(":", 1)
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            if not value:
                malformed.append((number, raw.strip()))
                continue
            if collecting_agents:
                current_agents.append(value)
            else:
                current_agents = [value]
                collecting_agents = True
            continue

        collecting_agents = False
        if directive == "sitemap":
            if value:
                sitemaps.append(value)
        elif directive in ("allow", "disallow") and value:
            for agent in current_agents:
                group = rules.setdefault(agent, {"allow": [], "disallow": []})
                group[directive].append(value)

    groups = [
        RobotsRuleGroup(user_agent=agent, allow=group["allow"], disallow=group["disallow"])
        for agent, group in rules.items()
    ]
    return RobotsTxt(groups=groups, sitemaps=sitemaps, malformed_lines=malformed)


def inspect_sitemap(content: str) -> tuple[str | None, int]:
    """(sitemap type, number of <loc> entries); type is None when unrecognized."""
    if "<sitemapindex" in content:
        kind = "sitemapindex"
    elif "<urlset" in content:
        kind = "urlset"
    else:
        return None, 0
    soup = BeautifulSoup(content, "xml")
    return kind, len(soup.find_all("loc"))


# ─────────────────────────────────────────────
# Engine
# ─────────────────────────────────────────────

class SitemapRobotsEngine(AnalyzerEngine):

    ENGINE_NAME = "sitemap_robots"
    CATEGORY = Category.SITEMAP_ROBOTS
    SCALE = ScoreScale.THREE_TIER

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        origin = document.origin
        sitemap_file, sitemap_body = await self._probe(f"{origin}/sitemap.xml", context)
        robots_file, robots_body = await self._probe(f"{origin}/robots.txt", context)
        return self.analyze(sitemap_file, sitemap_body, robots_file, robots_body)

    async def _probe(self, url: str, context: AnalysisContext) -> tuple[SiteFile, str]:
        if context.expired():
            return SiteFile(url=url), ""
        try:
            response = await context.http_client.get(
                url,
                headers=context.request_headers(),
                follow_redirects=True,
                timeout=context.timeout_for(context.settings.SITE_FILE_TIMEOUT),
            )
        except httpx.HTTPError as e:
            self.logger.debug("Site file probe failed", url=url, error=str(e))
            return SiteFile(url=url), ""

        exists = response.is_success
        return SiteFile(url=url, exists=exists, http_status=response.status_code), response.text if exists else ""

    def analyze(
        self,
        sitemap: SiteFile,
        sitemap_body: str,
        robots: SiteFile,
        robots_body: str,
    ) -> AnalyzerResult:
        issues: list[Issue] = []
        recommendations: list[str] = []
        sitemap_type, sitemap_urls = None, 0
        parsed = RobotsTxt()

        if sitemap.exists:
            sitemap_type, sitemap_urls = inspect_sitemap(sitemap_body)
            if sitemap_type is None:
                issues.append(self.issue(
                    IssueKind.WARNING, Severity.MEDIUM,
                    "Sitemap is not a valid XML sitemap", "sitemap-invalid",
                ))
                recommendations.append("Serve a <urlset> or <sitemapindex> document at /sitemap.xml")
        else:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, "Sitemap not found or not accessible", "sitemap-missing",
            ))
            recommendations.append("Create and submit a sitemap.xml file")

        if robots.exists:
            parsed = parse_robots_txt(robots_body)
            for number, line in parsed.malformed_lines:
                issues.append(self.issue(
                    IssueKind.INFO, Severity.LOW,
                    f"Malformed robots.txt line {number}: {line[:80]}", "robots-malformed-line",
                ))
            wildcard = parsed.group("*")
            if wildcard and "/" in wildcard.disallow:
                issues.append(self.issue(
                    IssueKind.ERROR, Severity.CRITICAL,
                    "robots.txt disallows the entire site for all crawlers", "robots-blocks-all",
                ))
                recommendations.append("Remove 'Disallow: /' for User-agent * unless the site must stay hidden")
        else:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, "Robots.txt not found or not accessible", "robots-missing",
            ))
            recommendations.append("Create a robots.txt file to guide search engine crawlers")

        if not recommendations:
            recommendations.append("Sitemap and robots.txt are properly configured")

        score = (FILE_POINTS if sitemap.exists else 0) + (FILE_POINTS if robots.exists else 0)
        detail = SitemapRobotsDetail(
            sitemap=sitemap,
            robots=robots,
            robots_rules=parsed.groups,
            declared_sitemaps=parsed.sitemaps,
            sitemap_type=sitemap_type,
            sitemap_url_count=sitemap_urls,
        )
        return self.build_result(score, issues, recommendations, detail)
