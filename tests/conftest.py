"""
Shared fixtures.
Network access is always replaced by httpx.MockTransport.
"""

import httpx
import pytest

from seo_inspector.core.config import Settings
from seo_inspector.core.context import AnalysisContext
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.market.provider import SimulatedMarketDataProvider

TITLE_45 = "Handmade widgets for every home, every season"
DESCRIPTION_130 = ("Discover handmade widgets crafted from sustainable materials. " * 3)[:130]
VIEWPORT_OK = "width=device-width, initial-scale=1"


def build_html(
    *,
    title: str | None = TITLE_45,
    description: str | None = DESCRIPTION_130,
    viewport: str | None = VIEWPORT_OK,
    head: str = "",
    body: str = "<h1>Handmade Widgets</h1><p>Widgets built by hand in small batches.</p>",
) -> str:
    parts = ["<!DOCTYPE html><html><head>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if description is not None:
        parts.append(f'<meta name="description" content="{description}">')
    if viewport is not None:
        parts.append(f'<meta name="viewport" content="{viewport}">')
    parts.append(head)
    parts.append(f"</head><body>{body}</body></html>")
    return "".join(parts)


@pytest.fixture
def html_page():
    """Builder for test pages; every argument has a well-formed default."""
    return build_html


@pytest.fixture
def make_document():
    def _make(html: str, url: str = "https://example.com/", **kwargs) -> ParsedDocument:
        return ParsedDocument(url, html, **kwargs)
    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, LOG_FORMAT="console", LINK_PROBE_CONCURRENCY=5)


@pytest.fixture
def provider() -> SimulatedMarketDataProvider:
    return SimulatedMarketDataProvider()


@pytest.fixture
def open_context(settings, provider):
    """
    Factory for an AnalysisContext backed by a mock transport.
    Usage: async with open_context(handler) as context: ...
    """
    def _open(handler=None, params=None, **overrides):
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(404)))
        return AnalysisContext.open(
            provider=overrides.get("provider", provider),
            params=params,
            settings=overrides.get("settings", settings),
            transport=transport,
        )
    return _open
