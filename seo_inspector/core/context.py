"""
Per-run analysis context.

One AnalysisContext is built by the caller for each analysis run and passed
to every component. It replaces module-level shared state: the HTTP client,
the market-data provider, caller parameters and the deadline all live here.
"""

from __future__ import annotations

import asyncio
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AsyncIterator

import httpx

from seo_inspector.core.config import Settings, get_settings
from seo_inspector.engines.base import AnalysisParams

if TYPE_CHECKING:
    from seo_inspector.engines.market.provider import MarketDataProvider


DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass
class AnalysisContext:
    settings: Settings
    http_client: httpx.AsyncClient
    provider: MarketDataProvider
    params: AnalysisParams = field(default_factory=AnalysisParams)
    deadline: float | None = None   # absolute, on the event loop clock

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - asyncio.get_running_loop().time())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def timeout_for(self, timeout: float) -> float:
        """Per-request timeout, shortened to fit the remaining deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)

    def pick_user_agent(self) -> str:
        return random.choice(self.settings.FETCH_USER_AGENTS)

    def request_headers(self) -> dict[str, str]:
        """Per-request headers with a browser User-Agent from the configured pool."""
        return {"User-Agent": self.pick_user_agent()}

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        *,
        provider: MarketDataProvider,
        params: AnalysisParams | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AsyncIterator[AnalysisContext]:
        """Build a context with its own HTTP client; the client closes on exit."""
        settings = settings or get_settings()
        params = params or AnalysisParams()

        deadline_seconds = params.deadline_seconds or settings.ANALYSIS_DEADLINE
        deadline = None
        if deadline_seconds:
            deadline = asyncio.get_running_loop().time() + deadline_seconds

        limits = httpx.Limits(
            max_connections=settings.LINK_PROBE_CONCURRENCY + 5,
            max_keepalive_connections=settings.LINK_PROBE_CONCURRENCY,
        )
        async with httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            limits=limits,
            max_redirects=settings.FETCH_MAX_REDIRECTS,
            timeout=settings.FETCH_TIMEOUT,
            transport=transport,
        ) as client:
            yield cls(
                settings=settings,
                http_client=client,
                provider=provider,
                params=params,
                deadline=deadline,
            )
