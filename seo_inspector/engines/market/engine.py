"""
Market analyzers: keyword research, backlinks, competitors, rank tracking.

All four read their numbers from context.provider and report the
provider's confidence (simulated or external). None of them generates
data itself.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable
from urllib.parse import urljoin, urlparse

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import Confidence, IssueKind, Severity, clamp_score, round_score
from seo_inspector.engines.base import AnalysisParams, AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.keywords.text import (
    STOP_WORDS,
    extract_meaningful_keywords,
    extract_seed_keywords,
)
from seo_inspector.engines.market.provider import domain_label
from seo_inspector.engines.models import (
    BacklinksDetail,
    CompetitionBreakdown,
    CompetitorsDetail,
    Issue,
    KeywordGap,
    KeywordResearchDetail,
    RankingChange,
    RankTrackingDetail,
)

DESCRIPTION_WORD_RE = re.compile(r"\b[a-z]{3,}\b")

LONG_TAIL_TEMPLATES = ["best {k} tools", "how to use {k}", "{k} for small business", "{k} software"]
RELATED_SUFFIXES = ["seo", "tools", "optimization"]

# Hosts never treated as competitors when found in page links
NON_COMPETITOR_HOSTS = (
    "facebook.com", "twitter.com", "linkedin.com", "youtube.com",
    "google.com", "github.com", "instagram.com", "pinterest.com",
)


def resolve_seed_keywords(document: ParsedDocument, params: AnalysisParams, limit: int = 5) -> list[str]:
    """
    Seed keywords for market lookups, first non-empty source wins:
    caller keywords, business description, page text, domain label.
    """
    keywords = [k.strip() for k in params.keywords if k.strip()]
    if keywords:
        return list(dict.fromkeys(keywords))

    if params.business_description:
        words = [
            w for w in DESCRIPTION_WORD_RE.findall(params.business_description.lower())
            if w not in STOP_WORDS
        ]
        if words:
            return list(dict.fromkeys(words))[:limit]

    if not document.is_fallback:
        seeds = extract_seed_keywords(document.visible_text, limit=limit)
        if seeds:
            return seeds

    return [part for part in domain_label(document.domain).split("-") if part]


def provider_confidence(sources: Iterable[Confidence | str]) -> Confidence:
    """EXTERNAL only when every item came from a real provider."""
    values = [Confidence(s) for s in sources]
    if values and all(v == Confidence.EXTERNAL for v in values):
        return Confidence.EXTERNAL
    return Confidence.SIMULATED


# ─────────────────────────────────────────────
# Keyword Research
# ─────────────────────────────────────────────

class KeywordResearchEngine(AnalyzerEngine):

    ENGINE_NAME = "keyword_research"
    CATEGORY = Category.KEYWORD_RESEARCH
    CONFIDENCE = Confidence.SIMULATED

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        seeds = resolve_seed_keywords(document, context.params)

        related = [f"{k} {suffix}" for k in seeds[:3] for suffix in RELATED_SUFFIXES]
        related = [k for k in dict.fromkeys(related) if k not in seeds][:8]
        long_tail = [t.format(k=k) for k in seeds[:2] for t in LONG_TAIL_TEMPLATES]

        metrics = await context.provider.keyword_metrics([*seeds, *related, *long_tail])
        by_keyword = {m.keyword.lower(): m for m in metrics}

        def lookup(keywords: list[str]):
            found = [by_keyword[k.lower()] for k in keywords if k.lower() in by_keyword]
            return sorted(found, key=lambda m: m.search_volume, reverse=True)

        primary = lookup(seeds)[:10]
        related_metrics = lookup(related)
        long_tail_metrics = lookup(long_tail)[:6]

        competition = CompetitionBreakdown(
            high=sum(1 for m in primary if m.competition >= 65),
            medium=sum(1 for m in primary if 45 <= m.competition < 65),
            low=sum(1 for m in primary if m.competition < 45),
        )
        average_volume = sum(m.search_volume for m in primary) / len(primary) if primary else 0
        score = clamp_score(round_score(50 + average_volume / 100), 20, 100)

        issues: list[Issue] = []
        if competition.high and competition.high == len(primary):
            issues.append(self.issue(
                IssueKind.INFO, Severity.LOW,
                "All primary keywords face high competition", "keywords-high-competition",
            ))

        recommendations = [
            f"Analyzed {len(seeds)} seed keywords",
            "Focus on primary keywords with high search volume and manageable difficulty",
            "Use related keywords to expand your content strategy",
            "Target long-tail keywords for quicker ranking opportunities",
        ]
        if not context.params.keywords:
            recommendations.append("Provide target keywords for more accurate keyword research")

        detail = KeywordResearchDetail(
            seed_keywords=seeds,
            primary_keywords=primary,
            related_keywords=related_metrics,
            long_tail_keywords=long_tail_metrics,
            competition=competition,
            average_search_volume=round_score(average_volume),
        )
        return self.build_result(
            score, issues, recommendations, detail,
            confidence=provider_confidence(m.source for m in metrics),
        )


# ─────────────────────────────────────────────
# Backlinks
# ─────────────────────────────────────────────

class BacklinksEngine(AnalyzerEngine):

    ENGINE_NAME = "backlinks"
    CATEGORY = Category.BACKLINKS
    CONFIDENCE = Confidence.SIMULATED

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        profile = await context.provider.backlink_profile(document.domain)
        links = profile.backlinks

        total = len(links)
        average_da = round_score(sum(b.domain_authority for b in links) / total) if total else 0
        dofollow = sum(1 for b in links if b.link_type == "dofollow")
        nofollow = total - dofollow
        high_quality = sum(1 for b in links if b.domain_authority >= 70)
        low_spam = sum(1 for b in links if b.spam_score <= 20)

        score = (
            min(30, total * 2)
            + min(40, average_da * 0.4)
            + min(15, high_quality * 3)
            + min(10, low_spam * 2)
            + (5 if dofollow > nofollow else 0)
        )

        issues: list[Issue] = []
        recommendations: list[str] = []
        if not total:
            issues.append(self.issue(IssueKind.WARNING, Severity.MEDIUM, "No backlinks found", "backlinks-none"))
            recommendations.extend([
                "No backlinks found - focus on building your first backlinks",
                "Start with directory submissions and industry listings",
                "Create shareable content to attract natural backlinks",
            ])
        else:
            recommendations.extend([
                f"Found {total} backlinks from {len(profile.referring_domains)} referring domains",
                f"Average domain authority: {average_da}/100",
                f"Link distribution: {dofollow} dofollow, {nofollow} nofollow",
            ])
            if average_da < 50:
                issues.append(self.issue(
                    IssueKind.WARNING, Severity.MEDIUM,
                    "Backlinks come mostly from low-authority domains", "backlinks-low-authority",
                ))
                recommendations.append("Focus on acquiring backlinks from higher authority domains (DA 50+)")
            if high_quality < total * 0.3:
                recommendations.append("Aim for more high-quality backlinks (DA 70+) to improve link profile")
            if dofollow < nofollow:
                recommendations.append("Work on getting more dofollow links for better SEO value")
            spammy = sum(1 for b in links if b.spam_score > 50)
            if spammy:
                issues.append(self.issue(
                    IssueKind.WARNING, Severity.HIGH,
                    f"{spammy} potentially spammy backlinks", "backlinks-spam",
                ))
                recommendations.append(f"Consider disavowing {spammy} potentially spammy backlinks")

        recommendations.extend([
            "Monitor your backlink profile monthly for new and lost links",
            "Use diverse anchor text to maintain a natural link profile",
        ])

        detail = BacklinksDetail(
            total_backlinks=total,
            referring_domains=len(profile.referring_domains),
            average_domain_authority=average_da,
            dofollow=dofollow,
            nofollow=nofollow,
            high_quality=high_quality,
            low_spam=low_spam,
            backlinks=links,
        )
        return self.build_result(score, issues, recommendations, detail, confidence=Confidence(profile.source))


# ─────────────────────────────────────────────
# Competitors
# ─────────────────────────────────────────────

def linked_hosts(document: ParsedDocument, limit: int = 4) -> list[str]:
    """Most-linked external hosts on the page, social networks and the site itself excluded."""
    own = document.domain.removeprefix("www.")
    counts: Counter[str] = Counter()
    for link in document.links():
        try:
            parsed = urlparse(urljoin(document.final_url, link.href))
        except ValueError:
            continue
        host = (parsed.hostname or "").lower()
        if parsed.scheme not in ("http", "https") or not host:
            continue
        bare = host.removeprefix("www.")
        if bare == own or bare.endswith("." + own):
            continue
        if any(bare == h or bare.endswith("." + h) for h in NON_COMPETITOR_HOSTS):
            continue
        counts[host] += 1
    return [host for host, _ in counts.most_common(limit)]


class CompetitorsEngine(AnalyzerEngine):

    ENGINE_NAME = "competitors"
    CATEGORY = Category.COMPETITORS
    CONFIDENCE = Confidence.SIMULATED

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        business_context = " ".join([
            document.title or "",
            document.meta("description") or "",
            document.text("h1"),
        ]).lower()

        seeds = [k.strip() for k in context.params.keywords if k.strip()]
        if not seeds:
            seeds = [term for term, _ in extract_meaningful_keywords(business_context, 3, 8)]
        if not seeds:
            seeds = resolve_seed_keywords(document, context.params)

        competitors = await context.provider.competitor_set(
            document.domain, seeds, linked_hosts(document),
        )

        candidates = list(dict.fromkeys(
            [k for c in competitors for k in c.top_keywords] + seeds
        ))[:15]
        metrics = await context.provider.keyword_metrics(candidates)
        gaps = [
            KeywordGap(
                keyword=m.keyword,
                opportunity=clamp_score(m.search_volume / 100 * (100 - m.competition) / 10, 10, 100),
                difficulty=m.competition,
            )
            for m in metrics
            if m.keyword.lower() not in business_context
        ]
        gaps.sort(key=lambda g: g.opportunity, reverse=True)

        average_da = (
            sum(c.domain_authority for c in competitors) / len(competitors) if competitors else 0
        )
        score = 50
        if competitors:
            if average_da > 70:
                score = 40
            elif average_da > 50:
                score = 60
            else:
                score = 80
            if gaps:
                score += min(15, len(gaps) * 2)
            if len(competitors) >= 3:
                score += 5

        issues: list[Issue] = []
        recommendations: list[str] = []
        if competitors:
            recommendations.append(
                f"Analyzed {len(competitors)} competitors with average DA of {round_score(average_da)}"
            )
            strong = sum(1 for c in competitors if c.domain_authority >= 70)
            if strong:
                issues.append(self.issue(
                    IssueKind.INFO, Severity.LOW,
                    f"{strong} strong competitors (DA 70+)", "competitors-strong",
                ))
                recommendations.append(f"{strong} strong competitors identified - focus on long-tail keywords")
            weak = sum(1 for c in competitors if c.domain_authority < 50)
            if weak:
                recommendations.append(f"{weak} weaker competitors - opportunity for direct competition")
            if gaps:
                high = sum(1 for g in gaps if g.opportunity >= 70)
                recommendations.append(f"Found {len(gaps)} competitive gaps ({high} high-opportunity)")
        else:
            recommendations.append("Limited competitor data available - consider manual competitor research")
        recommendations.append("Create content that fills gaps in competitor coverage")

        detail = CompetitorsDetail(
            competitors=competitors,
            keyword_gaps=gaps,
            average_domain_authority=round_score(average_da),
        )
        return self.build_result(
            score, issues, recommendations, detail,
            confidence=provider_confidence(c.source for c in competitors),
        )


# ─────────────────────────────────────────────
# Rank Tracking
# ─────────────────────────────────────────────

class RankTrackingEngine(AnalyzerEngine):

    ENGINE_NAME = "rank_tracking"
    CATEGORY = Category.RANK_TRACKING
    CONFIDENCE = Confidence.SIMULATED

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        keywords = [k.strip() for k in context.params.keywords if k.strip()]
        used_domain_keywords = not keywords
        if used_domain_keywords:
            name = domain_label(document.domain)
            keywords = [name, f"{name} services", f"{name} solutions", "professional services", "business solutions"]

        entries = await context.provider.rank_history(document.domain, keywords)
        rankings = [
            RankingChange(
                keyword=e.keyword,
                current_rank=e.current_rank,
                previous_rank=e.previous_rank,
                change=e.change,
                search_volume=e.search_volume,
                difficulty=e.difficulty,
            )
            for e in entries
        ]

        average_rank = sum(r.current_rank for r in rankings) / len(rankings) if rankings else 50.0
        top_three = sum(1 for r in rankings if r.current_rank <= 3)
        first_page = sum(1 for r in rankings if r.current_rank <= 10)
        improved = sum(1 for r in rankings if r.change > 0)
        declined = sum(1 for r in rankings if r.change < 0)

        score = (
            min(40, (100 - average_rank) * 0.4)
            + min(20, top_three * 4)
            + min(15, first_page * 1.5)
            + min(15, improved * 3)
            + (10 if improved > declined else 0)
        )

        issues: list[Issue] = []
        recommendations = [
            f"Tracking {len(rankings)} keywords with average position {round_score(average_rank)}"
        ]
        if first_page:
            recommendations.append(f"{first_page} keywords ranking in top 10")
        else:
            recommendations.append("Focus on getting keywords into top 10 positions for maximum traffic")

        falling = [r for r in rankings if r.change < -3]
        if falling:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM,
                f"{len(falling)} keywords dropped more than 3 positions", "rankings-declining",
            ))
            recommendations.append(f"{len(falling)} keywords declining - review and optimize content")
        if improved > declined:
            recommendations.append("Positive trend: More keywords improving than declining")
        elif declined > improved:
            recommendations.append("Attention needed: More keywords declining than improving")
        if used_domain_keywords:
            recommendations.append("Add target keywords for more accurate tracking")

        detail = RankTrackingDetail(
            rankings=rankings,
            average_rank=round(average_rank, 1),
            top_three=top_three,
            first_page=first_page,
            improved=improved,
            declined=declined,
        )
        return self.build_result(
            score, issues, recommendations, detail,
            confidence=provider_confidence(e.source for e in entries),
        )
