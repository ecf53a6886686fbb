"""
Tests for the market-data providers and the four market analyzers.
Analyzer scores are checked against a fixed in-memory provider; the
DataForSEO client talks to an httpx MockTransport.
"""

import json

import httpx
import pytest

from seo_inspector.core.config import Settings
from seo_inspector.core.scoring import Confidence
from seo_inspector.engines.base import AnalysisParams
from seo_inspector.engines.fetcher.engine import fallback_document
from seo_inspector.engines.market.engine import (
    BacklinksEngine,
    CompetitorsEngine,
    KeywordResearchEngine,
    RankTrackingEngine,
    linked_hosts,
    provider_confidence,
    resolve_seed_keywords,
)
from seo_inspector.engines.market.models import (
    Backlink,
    BacklinkProfile,
    CompetitorProfile,
    KeywordMetric,
    RankEntry,
)
from seo_inspector.engines.market.provider import (
    MAX_COMPETITORS,
    DataForSEOProvider,
    MarketDataProvider,
    SimulatedMarketDataProvider,
    build_provider,
    domain_label,
)


class FixedMarketDataProvider(MarketDataProvider):
    """Returns canned data so analyzer formulas can be checked exactly."""

    name = "fixed"

    def __init__(self, *, backlinks=(), competitors=(), ranks=(), volume=1000, competition=70,
                 source=Confidence.SIMULATED):
        self.backlinks = list(backlinks)
        self.competitors = list(competitors)
        self.ranks = list(ranks)
        self.volume = volume
        self.competition = competition
        self.source = source
        self.competitor_calls = []

    async def keyword_metrics(self, seed_keywords):
        return [
            KeywordMetric(keyword=k, search_volume=self.volume, competition=self.competition,
                          cpc=1.0, source=self.source)
            for k in dict.fromkeys(seed_keywords)
        ]

    async def backlink_profile(self, domain):
        return BacklinkProfile(domain=domain, backlinks=self.backlinks, source=self.source)

    async def competitor_set(self, domain, seed_keywords=(), candidates=()):
        self.competitor_calls.append((domain, list(seed_keywords), list(candidates)))
        return self.competitors

    async def rank_history(self, domain, keywords):
        return self.ranks


def backlink(source: str, authority: int, link_type: str = "dofollow", spam: int = 10) -> Backlink:
    return Backlink(url=f"https://{source}/post", source_domain=source, anchor_text="widgets",
                    link_type=link_type, domain_authority=authority, spam_score=spam)


def rank(keyword: str, current: int, previous: int) -> RankEntry:
    return RankEntry(keyword=keyword, current_rank=current, previous_rank=previous,
                     search_volume=1000, difficulty=40)


def competitor(domain: str, authority: int, keywords: list[str]) -> CompetitorProfile:
    return CompetitorProfile(domain=domain, domain_authority=authority, estimated_traffic=10000,
                             top_keywords=keywords)


# ─────────────────────────────────────────────
# Simulated Provider Tests
# ─────────────────────────────────────────────

class TestSimulatedMarketDataProvider:

    @pytest.mark.asyncio
    async def test_identical_inputs_give_identical_output(self):
        first, second = SimulatedMarketDataProvider(), SimulatedMarketDataProvider()

        assert await first.keyword_metrics(["widgets"]) == await second.keyword_metrics(["widgets"])
        assert await first.backlink_profile("example.com") == await second.backlink_profile("example.com")
        assert await first.rank_history("example.com", ["widgets"]) == await second.rank_history("example.com", ["widgets"])

    @pytest.mark.asyncio
    async def test_keyword_metric_ranges(self, provider):
        metrics = await provider.keyword_metrics(["widgets", "Widgets", "garden tools", ""])

        assert [m.keyword for m in metrics] == ["widgets", "garden tools"]
        for metric in metrics:
            assert 500 <= metric.search_volume <= 3500
            assert 20 <= metric.competition <= 80
            assert 0.5 <= metric.cpc <= 2.5
            assert metric.source == Confidence.SIMULATED

    @pytest.mark.asyncio
    async def test_backlink_profile_never_empty(self, provider):
        for domain in ("example.com", "acme-tools.org", "a.io"):
            profile = await provider.backlink_profile(domain)
            assert profile.backlinks
            for link in profile.backlinks:
                assert 0 <= link.spam_score <= 100

    @pytest.mark.asyncio
    async def test_competitor_set(self, provider):
        competitors = await provider.competitor_set(
            "acme.com", ["widgets"], ["rival.com", "acme.com", "other.org", "x.net", "y.net", "z.net"],
        )
        domains = [c.domain for c in competitors]

        assert len(domains) == MAX_COMPETITORS
        assert "acme.com" not in domains
        assert domains[:2] == ["rival.com", "other.org"]
        for profile in competitors:
            assert 20 <= profile.domain_authority <= 95
            assert profile.estimated_traffic >= 500
            assert len(profile.top_keywords) <= 8

    @pytest.mark.asyncio
    async def test_generated_competitors_without_candidates(self, provider):
        competitors = await provider.competitor_set("www.acme.com")
        assert [c.domain for c in competitors] == ["acme-pro.com", "best-acme.com", "acme-solutions.com"]

    @pytest.mark.asyncio
    async def test_rank_history_bounds(self, provider):
        entries = await provider.rank_history(
            "example.com", ["example", "widgets", "best widgets for small kitchens", "a b c"],
        )

        assert len(entries) == 4
        for entry in entries:
            assert 1 <= entry.current_rank <= 100
            assert 1 <= entry.previous_rank <= 100

    def test_domain_label(self):
        assert domain_label("www.acme-tools.com") == "acme-tools"
        assert domain_label("Example.org") == "example"


# ─────────────────────────────────────────────
# DataForSEO Provider Tests
# ─────────────────────────────────────────────

class TestDataForSEOProvider:

    @pytest.mark.asyncio
    async def test_external_metrics_with_simulated_gaps(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization", "")
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={
                "tasks": [{"result": [
                    {"keyword": "widgets", "search_volume": 1200, "competition_index": 42, "cpc": 1.5},
                    {"keyword": "gizmos", "search_volume": 300, "competition": 0.35, "cpc": None},
                ]}],
            })

        provider = DataForSEOProvider("user", "secret", transport=httpx.MockTransport(handler))
        metrics = await provider.keyword_metrics(["widgets", "gizmos", "gadgets"])

        assert seen["auth"].startswith("Basic ")
        assert seen["payload"][0]["keywords"] == ["widgets", "gizmos", "gadgets"]

        widgets, gizmos, gadgets = metrics
        assert (widgets.search_volume, widgets.competition, widgets.source) == (1200, 42, Confidence.EXTERNAL)
        assert (gizmos.competition, gizmos.cpc) == (35, 0.0)
        assert gadgets.source == Confidence.SIMULATED

    @pytest.mark.asyncio
    async def test_competition_levels_and_unreadable_values(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "tasks": [{"result": [
                    {"keyword": "widgets", "search_volume": 900, "competition_index": None, "competition": "HIGH"},
                    {"keyword": "gizmos", "search_volume": 100, "competition": "low"},
                    {"keyword": "gadgets", "search_volume": 50, "competition": "unknown"},
                ]}],
            })

        provider = DataForSEOProvider("user", "secret", transport=httpx.MockTransport(handler))
        widgets, gizmos, gadgets = await provider.keyword_metrics(["widgets", "gizmos", "gadgets"])

        assert (widgets.competition, widgets.source) == (75, Confidence.EXTERNAL)
        assert (gizmos.competition, gizmos.source) == (25, Confidence.EXTERNAL)
        assert gadgets.source == Confidence.SIMULATED

    @pytest.mark.asyncio
    async def test_api_failure_falls_back_to_simulated(self):
        provider = DataForSEOProvider(
            "user", "secret", transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        metrics = await provider.keyword_metrics(["widgets"])

        assert metrics == await SimulatedMarketDataProvider().keyword_metrics(["widgets"])

    @pytest.mark.asyncio
    async def test_other_lookups_delegate_to_fallback(self):
        provider = DataForSEOProvider("user", "secret", transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        simulated = SimulatedMarketDataProvider()

        assert await provider.backlink_profile("example.com") == await simulated.backlink_profile("example.com")

    def test_build_provider(self):
        assert isinstance(build_provider(Settings(_env_file=None)), SimulatedMarketDataProvider)
        without_credentials = Settings(_env_file=None, MARKET_DATA_PROVIDER="dataforseo")
        assert isinstance(build_provider(without_credentials), SimulatedMarketDataProvider)
        configured = Settings(
            _env_file=None, MARKET_DATA_PROVIDER="dataforseo", DATAFORSEO_LOGIN="u", DATAFORSEO_PASSWORD="p",
        )
        assert isinstance(build_provider(configured), DataForSEOProvider)


# ─────────────────────────────────────────────
# Seed Keyword Tests
# ─────────────────────────────────────────────

class TestSeedKeywords:

    def test_caller_keywords_win(self, make_document, html_page):
        params = AnalysisParams(keywords=["widgets", " ", "widgets", "gizmos"], business_description="bakery")
        assert resolve_seed_keywords(make_document(html_page()), params) == ["widgets", "gizmos"]

    def test_business_description(self, make_document, html_page):
        params = AnalysisParams(business_description="We sell handmade garden tools")
        assert resolve_seed_keywords(make_document(html_page()), params) == ["sell", "handmade", "garden", "tools"]

    def test_page_text(self, make_document):
        document = make_document("<p>Ceramic planters. Ceramic planters and ceramic mugs.</p>")
        assert resolve_seed_keywords(document, AnalysisParams())[:2] == ["ceramic", "planters"]

    def test_domain_label_for_fallback(self):
        document = fallback_document("https://acme-tools.com/", "timeout")
        assert resolve_seed_keywords(document, AnalysisParams()) == ["acme", "tools"]

    def test_provider_confidence(self):
        assert provider_confidence([]) == Confidence.SIMULATED
        assert provider_confidence(["external", "external"]) == Confidence.EXTERNAL
        assert provider_confidence([Confidence.EXTERNAL, Confidence.SIMULATED]) == Confidence.SIMULATED


# ─────────────────────────────────────────────
# Market Analyzer Tests
# ─────────────────────────────────────────────

class TestKeywordResearchEngine:

    @pytest.mark.asyncio
    async def test_score_from_average_volume(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(volume=1000, competition=70)
        async with open_context(params=AnalysisParams(keywords=["widgets"]), provider=provider) as context:
            result = await KeywordResearchEngine().execute(make_document(html_page()), context)

        detail = result.detail
        assert result.score == 60
        assert result.confidence == "simulated"
        assert [m.keyword for m in detail.primary_keywords] == ["widgets"]
        assert [m.keyword for m in detail.related_keywords] == ["widgets seo", "widgets tools", "widgets optimization"]
        assert len(detail.long_tail_keywords) == 4
        assert detail.competition.high == 1
        assert result.issues[0].code == "keywords-high-competition"

    @pytest.mark.asyncio
    async def test_external_metrics_reported_as_external(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(volume=5000, competition=30, source=Confidence.EXTERNAL)
        async with open_context(params=AnalysisParams(keywords=["widgets"]), provider=provider) as context:
            result = await KeywordResearchEngine().execute(make_document(html_page()), context)

        assert result.confidence == "external"
        assert result.score == 100
        assert result.detail.competition.low == 1

    @pytest.mark.asyncio
    async def test_simulated_provider_run(self, open_context, make_document, html_page):
        async with open_context() as context:
            result = await KeywordResearchEngine().execute(make_document(html_page()), context)

        assert not result.failed
        assert 20 <= result.score <= 100
        assert len(result.detail.related_keywords) <= 8
        assert len(result.detail.long_tail_keywords) <= 6
        assert "Provide target keywords for more accurate keyword research" in result.recommendations


class TestBacklinksEngine:

    @pytest.mark.asyncio
    async def test_score_formula(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(backlinks=[
            backlink("a.com", 80),
            backlink("b.com", 80),
            backlink("c.com", 60),
            backlink("d.com", 60, link_type="nofollow"),
            backlink("e.com", 70),
        ])
        async with open_context(provider=provider) as context:
            result = await BacklinksEngine().execute(make_document(html_page()), context)

        # 10 links + 28 authority + 9 high quality + 10 low spam + 5 dofollow majority
        assert result.score == 62
        assert result.detail.average_domain_authority == 70
        assert (result.detail.dofollow, result.detail.nofollow) == (4, 1)
        assert result.detail.referring_domains == 5

    @pytest.mark.asyncio
    async def test_no_backlinks(self, open_context, make_document, html_page):
        async with open_context(provider=FixedMarketDataProvider()) as context:
            result = await BacklinksEngine().execute(make_document(html_page()), context)

        assert result.score == 0
        assert result.issues[0].code == "backlinks-none"

    @pytest.mark.asyncio
    async def test_spammy_and_low_authority_links(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(backlinks=[backlink("spam.biz", 10, spam=80), backlink("ok.com", 40)])
        async with open_context(provider=provider) as context:
            result = await BacklinksEngine().execute(make_document(html_page()), context)

        assert {i.code for i in result.issues} == {"backlinks-low-authority", "backlinks-spam"}


class TestCompetitorsEngine:

    def test_linked_hosts(self, make_document):
        document = make_document(
            '<a href="https://rival.com/a">1</a><a href="https://rival.com/b">2</a>'
            '<a href="https://other.org/">3</a><a href="https://www.facebook.com/acme">fb</a>'
            '<a href="/about">own</a><a href="https://blog.example.com/">own sub</a>'
            '<a href="mailto:a@rival.com">mail</a>'
        )
        assert linked_hosts(document) == ["rival.com", "other.org"]

    @pytest.mark.asyncio
    async def test_score_and_gaps(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(
            competitors=[
                competitor("alpha.com", 60, ["alpha"]),
                competitor("beta.com", 60, ["beta"]),
                competitor("gamma.com", 75, ["gamma"]),
            ],
            volume=1000,
            competition=70,
        )
        body = '<h1>Handmade Widgets</h1><a href="https://rival.com/">rival</a>'
        async with open_context(params=AnalysisParams(keywords=["widgets"]), provider=provider) as context:
            result = await CompetitorsEngine().execute(make_document(html_page(body=body)), context)

        # average DA 65 -> 60, three gaps -> +6, three competitors -> +5
        assert result.score == 71
        assert [g.keyword for g in result.detail.keyword_gaps] == ["alpha", "beta", "gamma"]
        assert result.detail.keyword_gaps[0].opportunity == 30
        assert result.issues[0].code == "competitors-strong"
        assert provider.competitor_calls == [("example.com", ["widgets"], ["rival.com"])]

    @pytest.mark.asyncio
    async def test_no_competitors(self, open_context, make_document, html_page):
        async with open_context(provider=FixedMarketDataProvider()) as context:
            result = await CompetitorsEngine().execute(make_document(html_page()), context)

        assert result.score == 50
        assert result.detail.competitors == []


class TestRankTrackingEngine:

    @pytest.mark.asyncio
    async def test_score_formula(self, open_context, make_document, html_page):
        provider = FixedMarketDataProvider(ranks=[rank("a", 2, 5), rank("b", 8, 8), rank("c", 40, 30)])
        async with open_context(params=AnalysisParams(keywords=["a", "b", "c"]), provider=provider) as context:
            result = await RankTrackingEngine().execute(make_document(html_page()), context)

        detail = result.detail
        # 33.3 position + 4 top three + 3 first page + 3 improved
        assert result.score == 43
        assert detail.average_rank == 16.7
        assert (detail.top_three, detail.first_page) == (1, 2)
        assert (detail.improved, detail.declined) == (1, 1)
        assert [r.change for r in detail.rankings] == [3, 0, -10]
        assert result.issues[0].code == "rankings-declining"

    @pytest.mark.asyncio
    async def test_domain_keywords_without_caller_keywords(self, open_context, make_document, html_page):
        async with open_context() as context:
            result = await RankTrackingEngine().execute(
                make_document(html_page(), url="https://acme.com/"), context,
            )

        assert [r.keyword for r in result.detail.rankings] == [
            "acme", "acme services", "acme solutions", "professional services", "business solutions",
        ]
        assert result.confidence == "simulated"
        assert "Add target keywords for more accurate tracking" in result.recommendations
