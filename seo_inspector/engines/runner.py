"""
Analysis runner - the engine's entry point for callers.

Flow:
1. validate_target()   -> fail fast on unusable URLs, before any network I/O
2. DocumentFetcher     -> one ParsedDocument (real or fallback), shared read-only
3. analyzers           -> launched together, each wrapped by execute()
4. Aggregator          -> Report, per-category results in registry order

Error handling:
- InvalidTargetError / UnknownCategoryError are the only exceptions raised
- Transport failures become fallback or unreachable states downstream
- A failing analyzer becomes a zero-confidence result; the run continues
"""

from __future__ import annotations

import asyncio
import re
from urllib.parse import urlparse

import httpx
import structlog

from seo_inspector.core.config import Settings, get_settings
from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.exceptions import InvalidTargetError, UnknownCategoryError
from seo_inspector.core.logging import analysis_log_context
from seo_inspector.engines.base import (
    AnalysisParams,
    AnalysisTarget,
    AnalyzerEngine,
    AnalyzerResult,
    Category,
    Report,
)
from seo_inspector.engines.canonical.engine import CanonicalEngine
from seo_inspector.engines.crawlability.engine import SitemapRobotsEngine
from seo_inspector.engines.fetcher.engine import DocumentFetcher
from seo_inspector.engines.images.engine import AltTextEngine
from seo_inspector.engines.keywords.engine import KeywordDensityEngine
from seo_inspector.engines.links.engine import BrokenLinksEngine
from seo_inspector.engines.market.engine import (
    BacklinksEngine,
    CompetitorsEngine,
    KeywordResearchEngine,
    RankTrackingEngine,
)
from seo_inspector.engines.market.provider import MarketDataProvider, build_provider
from seo_inspector.engines.metatags.engine import MetaTagsEngine
from seo_inspector.engines.mobile.engine import MobileEngine
from seo_inspector.engines.pagespeed.engine import PageSpeedEngine
from seo_inspector.engines.schema.engine import SchemaEngine
from seo_inspector.engines.scoring.engine import Aggregator
from seo_inspector.engines.technical.engine import TechnicalSeoEngine

# "mailto:", "tel:" and the like; "host:8080" is a port, not a scheme
OPAQUE_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:(?!//|\d)", re.IGNORECASE)

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Engine Registry
# ─────────────────────────────────────────────

ENGINE_REGISTRY: dict[Category, type[AnalyzerEngine]] = {
    Category.META_TAGS: MetaTagsEngine,
    Category.PAGE_SPEED: PageSpeedEngine,
    Category.KEYWORD_DENSITY: KeywordDensityEngine,
    Category.MOBILE: MobileEngine,
    Category.SITEMAP_ROBOTS: SitemapRobotsEngine,
    Category.TECHNICAL: TechnicalSeoEngine,
    Category.SCHEMA: SchemaEngine,
    Category.ALT_TEXT: AltTextEngine,
    Category.CANONICAL: CanonicalEngine,
    Category.BROKEN_LINKS: BrokenLinksEngine,
    Category.KEYWORD_RESEARCH: KeywordResearchEngine,
    Category.BACKLINKS: BacklinksEngine,
    Category.COMPETITORS: CompetitorsEngine,
    Category.RANK_TRACKING: RankTrackingEngine,
}


def resolve_category(value: Category | str) -> Category:
    try:
        category = Category(value)
    except ValueError:
        raise UnknownCategoryError(str(value)) from None
    if category not in ENGINE_REGISTRY:
        raise UnknownCategoryError(category.value)
    return category


def validate_target(url: str) -> AnalysisTarget:
    """
    Normalize and check a caller-supplied URL.

    A bare host ("example.com") gets https://. Anything that is not an
    http(s) URL with a host raises InvalidTargetError.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidTargetError(url, "URL is empty")
    if "://" not in candidate:
        if OPAQUE_SCHEME_RE.match(candidate):
            raise InvalidTargetError(url, f"unsupported scheme {candidate.split(':', 1)[0]!r}")
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        _ = parsed.port
    except ValueError as e:
        raise InvalidTargetError(url, str(e)) from e

    if parsed.scheme.lower() not in ("http", "https"):
        raise InvalidTargetError(url, f"unsupported scheme {parsed.scheme!r}")
    if not parsed.hostname:
        raise InvalidTargetError(url, "URL has no host")
    if parsed.username is not None:
        raise InvalidTargetError(url, "URL must not contain credentials")

    return AnalysisTarget(url=candidate)


def selected_categories(params: AnalysisParams) -> list[Category]:
    """Requested categories in registry order; all of them by default."""
    if not params.categories:
        return list(ENGINE_REGISTRY)
    requested = {resolve_category(c) for c in params.categories}
    return [c for c in ENGINE_REGISTRY if c in requested]


# ─────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────

async def analyze(
    url: str,
    params: AnalysisParams | None = None,
    *,
    settings: Settings | None = None,
    provider: MarketDataProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Report:
    """Run the selected analyzers against one URL and aggregate a Report."""
    target = validate_target(url)
    params = params or AnalysisParams()
    settings = settings or get_settings()
    provider = provider or build_provider(settings)
    categories = selected_categories(params)

    with analysis_log_context(target.url, [c.value for c in categories] if params.categories else ()):
        logger.info("Analysis starting", analyzers=len(categories), provider=provider.name)

        async with AnalysisContext.open(
            provider=provider, params=params, settings=settings, transport=transport,
        ) as context:
            document = await DocumentFetcher(context).fetch(target.url)
            engines = [ENGINE_REGISTRY[c]() for c in categories]
            results = await asyncio.gather(*(engine.execute(document, context) for engine in engines))

        report = Aggregator().aggregate(document, list(results), requested=len(engines))
        logger.info(
            "Analysis complete",
            overall_score=report.overall_score,
            fetched=report.fetched,
            confidence=report.confidence_score,
        )
        return report


async def run_analyzer(
    category: Category | str,
    url: str,
    params: AnalysisParams | None = None,
    *,
    settings: Settings | None = None,
    provider: MarketDataProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AnalyzerResult:
    """Run a single analyzer against one URL."""
    category = resolve_category(category)
    target = validate_target(url)
    params = params or AnalysisParams()
    settings = settings or get_settings()
    provider = provider or build_provider(settings)

    with analysis_log_context(target.url, [category.value]):
        async with AnalysisContext.open(
            provider=provider, params=params, settings=settings, transport=transport,
        ) as context:
            document = await DocumentFetcher(context).fetch(target.url)
            return await ENGINE_REGISTRY[category]().execute(document, context)
