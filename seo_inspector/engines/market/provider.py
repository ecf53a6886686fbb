"""
Market data providers.

Keyword research, backlinks, competitors and rank tracking need data the
engine cannot observe from one page: search volume, domain authority,
third-party rankings. Analyzers only talk to the MarketDataProvider
interface, so a real provider can replace the simulated one without
touching analyzer code.

SimulatedMarketDataProvider derives every number from an MD5 digest of its
inputs. Identical inputs always give identical output; nothing here is
authoritative and every model it returns is marked Confidence.SIMULATED.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

import httpx
import structlog

from seo_inspector.core.config import Settings
from seo_inspector.core.scoring import Confidence
from seo_inspector.engines.market.models import (
    Backlink,
    BacklinkProfile,
    CompetitorProfile,
    KeywordMetric,
    RankEntry,
)

logger = structlog.get_logger(__name__)

MAX_COMPETITORS = 6


def _stable_int(low: int, high: int, *parts: str) -> int:
    """Deterministic integer in [low, high] derived from the given parts."""
    digest = hashlib.md5("|".join(parts).encode("utf-8")).hexdigest()
    return low + int(digest[:8], 16) % (high - low + 1)


def _chance(probability: float, *parts: str) -> bool:
    return _stable_int(0, 99, *parts) < probability * 100


def domain_label(domain: str) -> str:
    """'www.acme-tools.com' -> 'acme-tools'."""
    host = domain.lower()
    if host.startswith("www."):
        host = host[4:]
    return host.split(".")[0]


# ─────────────────────────────────────────────
# Interface
# ─────────────────────────────────────────────

class MarketDataProvider(ABC):
    """Source of search-market data for the market analyzers."""

    name: str = "base"

    @abstractmethod
    async def keyword_metrics(self, seed_keywords: Sequence[str]) -> list[KeywordMetric]:
        """One metric per distinct keyword, in input order."""
        ...

    @abstractmethod
    async def backlink_profile(self, domain: str) -> BacklinkProfile:
        ...

    @abstractmethod
    async def competitor_set(
        self,
        domain: str,
        seed_keywords: Sequence[str] = (),
        candidates: Sequence[str] = (),
    ) -> list[CompetitorProfile]:
        """
        Competitor profiles for a domain.

        Args:
            domain: The analyzed site's host
            seed_keywords: Keywords describing the site's business
            candidates: Competitor hosts already discovered by the caller,
                        profiled ahead of any the provider finds itself
        """
        ...

    @abstractmethod
    async def rank_history(self, domain: str, keywords: Sequence[str]) -> list[RankEntry]:
        ...


# ─────────────────────────────────────────────
# Simulated provider
# ─────────────────────────────────────────────

# (source domain, domain authority)
BACKLINK_SOURCES = [
    ("reddit.com", 75),
    ("stackoverflow.com", 85),
    ("github.com", 85),
    ("medium.com", 75),
    ("linkedin.com", 70),
    ("twitter.com", 70),
    ("facebook.com", 60),
    ("pinterest.com", 60),
    ("quora.com", 60),
    ("wikipedia.org", 95),
]
NOFOLLOW_SOURCES = {"twitter.com", "facebook.com"}


class SimulatedMarketDataProvider(MarketDataProvider):

    name = "simulated"

    async def keyword_metrics(self, seed_keywords: Sequence[str]) -> list[KeywordMetric]:
        return [self.metric_for(keyword) for keyword in _distinct(seed_keywords)]

    def metric_for(self, keyword: str) -> KeywordMetric:
        key = keyword.lower()
        return KeywordMetric(
            keyword=keyword,
            search_volume=_stable_int(500, 3500, "volume", key),
            competition=_stable_int(20, 80, "competition", key),
            cpc=_stable_int(50, 250, "cpc", key) / 100,
            source=Confidence.SIMULATED,
        )

    async def backlink_profile(self, domain: str) -> BacklinkProfile:
        slug = domain.replace(".", "-")
        label = domain_label(domain)
        backlinks = []

        for source, authority in BACKLINK_SOURCES:
            if not _chance(0.4, "backlink", domain, source):
                continue
            backlinks.append(Backlink(
                url=f"https://{source}/discussion-about-{slug}",
                source_domain=source,
                anchor_text=f"Discussion about {domain}",
                link_type="nofollow" if source in NOFOLLOW_SOURCES else "dofollow",
                domain_authority=authority,
                spam_score=_stable_int(5, 19, "spam", domain, source),
            ))

        directories = [
            Backlink(url=f"https://www.dmoz.org/business/{label}", source_domain="dmoz.org",
                     anchor_text=f"{label} business listing", domain_authority=80, spam_score=5),
            Backlink(url=f"https://www.yellowpages.com/business/{label}", source_domain="yellowpages.com",
                     anchor_text=f"{label} directory", domain_authority=75, spam_score=10),
        ]
        backlinks.extend(b for b in directories if _chance(0.5, "directory", domain, b.source_domain))

        if not backlinks:
            backlinks = [
                Backlink(url=f"https://example-industry-blog.com/review-of-{slug}",
                         source_domain="example-industry-blog.com", anchor_text=f"Review of {domain}",
                         domain_authority=45, spam_score=15),
                Backlink(url=f"https://business-directory.com/listing/{domain}",
                         source_domain="business-directory.com", anchor_text=domain,
                         domain_authority=55, spam_score=20),
            ]

        return BacklinkProfile(domain=domain, backlinks=backlinks, source=Confidence.SIMULATED)

    async def competitor_set(
        self,
        domain: str,
        seed_keywords: Sequence[str] = (),
        candidates: Sequence[str] = (),
    ) -> list[CompetitorProfile]:
        label = domain_label(domain)
        generated = [f"{label}-pro.com", f"best-{label}.com", f"{label}-solutions.com"]
        domains = [d for d in _distinct([*candidates, *generated]) if d != domain.lower()]
        return [self.profile_for(d, seed_keywords) for d in domains[:MAX_COMPETITORS]]

    def profile_for(self, domain: str, seed_keywords: Sequence[str] = ()) -> CompetitorProfile:
        extension = domain.rsplit(".", 1)[-1]
        name = domain_label(domain)

        authority = 45
        if extension in ("edu", "gov"):
            authority = 85
        elif extension == "org":
            authority = 65
        elif extension == "com":
            authority = 55

        if len(name) < 10:
            authority += 5
        elif len(name) > 20:
            authority -= 5

        authority = max(20, min(95, authority + _stable_int(-10, 9, "authority", domain)))
        traffic = max(500, round(authority / 100 * 50000) + _stable_int(0, 19999, "traffic", domain))

        keywords = []
        for seed in list(seed_keywords)[:3]:
            keywords.extend([seed, f"{seed} services", f"best {seed}"])
        keywords.extend([name, f"{name} solutions"])

        return CompetitorProfile(
            domain=domain,
            domain_authority=authority,
            estimated_traffic=traffic,
            top_keywords=_distinct(keywords)[:8],
            source=Confidence.SIMULATED,
        )

    async def rank_history(self, domain: str, keywords: Sequence[str]) -> list[RankEntry]:
        entries = []
        for keyword in _distinct(keywords):
            current = self.rank_for(keyword, domain)
            if current <= 10:
                drift = _stable_int(-3, 2, "previous", domain, keyword)
            elif current <= 30:
                drift = _stable_int(-5, 4, "previous", domain, keyword)
            else:
                drift = _stable_int(-10, 9, "previous", domain, keyword)
            metric = self.metric_for(keyword)
            entries.append(RankEntry(
                keyword=keyword,
                current_rank=current,
                previous_rank=max(1, min(100, current + drift)),
                search_volume=metric.search_volume,
                difficulty=metric.competition,
                source=Confidence.SIMULATED,
            ))
        return entries

    def rank_for(self, keyword: str, domain: str) -> int:
        """Branded terms rank best, long-tail next, short generic terms worst."""
        words = keyword.split()
        label = domain_label(domain)
        branded = bool(label) and label in keyword.lower()

        if branded:
            rank = _stable_int(1, 15, "rank", domain, keyword)
        elif len(words) >= 3 and _chance(0.7, "suggested", keyword.lower()):
            # long-tail term that search suggestions would surface
            rank = _stable_int(15, 45, "rank", domain, keyword)
        elif len(words) <= 2:
            rank = _stable_int(50, 90, "rank", domain, keyword)
        else:
            rank = _stable_int(25, 60, "rank", domain, keyword)

        if ".com" in domain:
            rank -= 5
        if len(domain) < 15:
            rank -= 3
        elif len(domain) > 25:
            rank += 5

        rank += _stable_int(-5, 4, "variation", domain, keyword)
        return max(1, min(100, rank))


# ─────────────────────────────────────────────
# DataForSEO provider
# ─────────────────────────────────────────────

COMPETITION_LEVELS = {"LOW": 25, "MEDIUM": 50, "HIGH": 75}
DATAFORSEO_SEARCH_VOLUME_URL = (
    "https://api.dataforseo.com/v3/keywords_data/google_ads/search_volume/live"
)


class DataForSEOProvider(MarketDataProvider):
    """
    Real search volume from the DataForSEO Google Ads endpoint.

    Only keyword_metrics() has a real source. Keywords the API does not
    return, API failures, and the other three lookups are served by the
    simulated fallback.
    """

    name = "dataforseo"

    def __init__(
        self,
        login: str,
        password: str,
        *,
        location_code: int = 2840,
        language_code: str = "en",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
        fallback: MarketDataProvider | None = None,
    ):
        self.auth = httpx.BasicAuth(login, password)
        self.location_code = location_code
        self.language_code = language_code
        self.timeout = timeout
        self.transport = transport
        self.fallback = fallback or SimulatedMarketDataProvider()

    async def keyword_metrics(self, seed_keywords: Sequence[str]) -> list[KeywordMetric]:
        keywords = _distinct(seed_keywords)
        if not keywords:
            return []

        found = await self._search_volume(keywords)
        missing = [k for k in keywords if k.lower() not in found]
        simulated = {m.keyword.lower(): m for m in await self.fallback.keyword_metrics(missing)}
        return [found.get(k.lower()) or simulated[k.lower()] for k in keywords]

    async def _search_volume(self, keywords: list[str]) -> dict[str, KeywordMetric]:
        payload = [{
            "keywords": keywords,
            "location_code": self.location_code,
            "language_code": self.language_code,
        }]
        try:
            async with httpx.AsyncClient(auth=self.auth, timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(DATAFORSEO_SEARCH_VOLUME_URL, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("DataForSEO request failed, using simulated metrics", error=str(e))
            return {}

        metrics = {}
        for item in self._result_items(body):
            keyword = item.get("keyword")
            if not keyword:
                continue
            competition = self._competition(item)
            if competition is None:
                logger.debug("Unreadable competition value", keyword=keyword, competition=item.get("competition"))
                continue
            metrics[keyword.lower()] = KeywordMetric(
                keyword=keyword,
                search_volume=max(0, int(item.get("search_volume") or 0)),
                competition=max(0, min(100, competition)),
                cpc=max(0.0, float(item.get("cpc") or 0.0)),
                source=Confidence.EXTERNAL,
            )
        logger.info("DataForSEO metrics fetched", requested=len(keywords), found=len(metrics))
        return metrics

    @staticmethod
    def _competition(item: dict) -> int | None:
        """0-100 competition from competition_index, a 0-1 ratio or a LOW/MEDIUM/HIGH level."""
        value = item.get("competition_index")
        if value is None:
            value = item.get("competition") or 0
        if isinstance(value, str):
            level = COMPETITION_LEVELS.get(value.strip().upper())
            if level is not None:
                return level
        try:
            index = float(value)
        except (TypeError, ValueError):
            return None
        return round(index if index > 1 else index * 100)

    @staticmethod
    def _result_items(body: dict) -> list[dict]:
        tasks = body.get("tasks") or []
        if not tasks:
            return []
        result = tasks[0].get("result") or []
        if result and isinstance(result[0], dict) and "items" in result[0]:
            return result[0].get("items") or []
        return [item for item in result if isinstance(item, dict)]

    async def backlink_profile(self, domain: str) -> BacklinkProfile:
        return await self.fallback.backlink_profile(domain)

    async def competitor_set(
        self,
        domain: str,
        seed_keywords: Sequence[str] = (),
        candidates: Sequence[str] = (),
    ) -> list[CompetitorProfile]:
        return await self.fallback.competitor_set(domain, seed_keywords, candidates)

    async def rank_history(self, domain: str, keywords: Sequence[str]) -> list[RankEntry]:
        return await self.fallback.rank_history(domain, keywords)


# ─────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────

def build_provider(settings: Settings) -> MarketDataProvider:
    """Provider selected by MARKET_DATA_PROVIDER."""
    if settings.MARKET_DATA_PROVIDER == "dataforseo":
        if settings.dataforseo_enabled:
            return DataForSEOProvider(
                settings.DATAFORSEO_LOGIN,
                settings.DATAFORSEO_PASSWORD,
                location_code=settings.DATAFORSEO_LOCATION_CODE,
                language_code=settings.DATAFORSEO_LANGUAGE_CODE,
            )
        logger.warning("DataForSEO selected without credentials, using simulated provider")
    return SimulatedMarketDataProvider()


def _distinct(values: Iterable[str]) -> list[str]:
    """Non-empty values, first occurrence wins, compared case-insensitively."""
    seen = set()
    out = []
    for value in values:
        value = value.strip()
        if value and value.lower() not in seen:
            seen.add(value.lower())
            out.append(value)
    return out
