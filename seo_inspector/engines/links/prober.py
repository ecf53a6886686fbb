"""
Link Prober - resolves hrefs and probes each distinct URL once.

Architecture:
- Origin-relative, absolute and path-relative hrefs resolved against the page
- One HEAD request per distinct resolved URL, results fanned out to every
  occurrence of that URL on the page
- Async concurrency capped by a semaphore (LINK_PROBE_CONCURRENCY)
- No retries: a single failed attempt marks the link unreachable
- Deadline aware: probes still pending at the deadline are cancelled and
  recorded as unreachable
"""

from __future__ import annotations

import asyncio
import time
from typing import Sequence
from urllib.parse import urljoin, urlparse

import httpx
import structlog

from seo_inspector.core.context import AnalysisContext
from seo_inspector.engines.fetcher.document import LinkCandidate
from seo_inspector.engines.models import LinkRecord

logger = structlog.get_logger(__name__)

SKIPPED_PREFIXES = ("mailto:", "tel:", "javascript:", "data:", "#")

DEADLINE_EXCEEDED = "deadline exceeded"
INVALID_URL = "invalid url"


# ─────────────────────────────────────────────
# URL Utilities
# ─────────────────────────────────────────────

class LinkResolver:
    """Turns raw hrefs into absolute http(s) URLs."""

    @staticmethod
    def is_probeable(href: str) -> bool:
        """False for hrefs that are not navigations (mail, phone, script, fragment)."""
        return bool(href) and not href.lower().startswith(SKIPPED_PREFIXES)

    @staticmethod
    def resolve(href: str, base_url: str) -> str | None:
        """
        Resolve href against base_url.
        Returns None if the result is not a valid http(s) URL.
        """
        href = href.strip()
        try:
            base = urlparse(base_url)
            if href.startswith("//"):
                resolved = f"{base.scheme}:{href}"
            elif href.startswith("/"):
                resolved = f"{base.scheme}://{base.netloc}{href}"
            elif urlparse(href).scheme:
                resolved = href
            else:
                resolved = urljoin(base_url, href)

            parsed = urlparse(resolved)
            if parsed.scheme not in ("http", "https") or not parsed.hostname:
                return None
            # Port access raises ValueError on garbage like "host:abc"
            _ = parsed.port
            return resolved.split("#", 1)[0]

        except ValueError:
            return None


# ─────────────────────────────────────────────
# Prober
# ─────────────────────────────────────────────

class LinkProber:
    """Concurrent, bounded reachability checks for the links of one page."""

    def __init__(self, context: AnalysisContext):
        self.context = context
        self.settings = context.settings
        self._semaphore = asyncio.Semaphore(self.settings.LINK_PROBE_CONCURRENCY)

    async def probe(self, links: Sequence[LinkCandidate], base_url: str) -> list[LinkRecord]:
        start = time.perf_counter()
        candidates = [link for link in links if LinkResolver.is_probeable(link.href)]
        resolved = [LinkResolver.resolve(link.href, base_url) for link in candidates]

        unique_urls = list(dict.fromkeys(url for url in resolved if url))
        outcomes = await self._probe_all(unique_urls)

        records = []
        for link, url in zip(candidates, resolved):
            if url is None:
                records.append(LinkRecord(
                    raw_href=link.href,
                    resolved_url="",
                    anchor_text=link.anchor_text,
                    http_status=0,
                    reachable=False,
                    error=INVALID_URL,
                ))
                continue

            status, error = outcomes[url]
            records.append(LinkRecord(
                raw_href=link.href,
                resolved_url=url,
                anchor_text=link.anchor_text,
                http_status=status,
                reachable=200 <= status < 400,
                error=error,
            ))

        logger.info(
            "Link probe complete",
            base_url=base_url,
            links=len(records),
            unique_urls=len(unique_urls),
            unreachable=sum(1 for r in records if not r.reachable),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return records

    async def _probe_all(self, urls: list[str]) -> dict[str, tuple[int, str | None]]:
        if not urls:
            return {}

        tasks = {url: asyncio.create_task(self._probe_one(url)) for url in urls}
        remaining = self.context.remaining()
        done, pending = await asyncio.wait(tasks.values(), timeout=remaining)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("Link probe deadline reached", unprobed=len(pending), probed=len(done))

        outcomes: dict[str, tuple[int, str | None]] = {}
        for url, task in tasks.items():
            if task in done:
                outcomes[url] = task.result()
            else:
                outcomes[url] = (0, DEADLINE_EXCEEDED)
        return outcomes

    async def _probe_one(self, url: str) -> tuple[int, str | None]:
        async with self._semaphore:
            if self.context.expired():
                return 0, DEADLINE_EXCEEDED
            try:
                response = await self.context.http_client.head(
                    url,
                    headers=self.context.request_headers(),
                    follow_redirects=True,
                    timeout=self.context.timeout_for(self.settings.LINK_PROBE_TIMEOUT),
                )
                return response.status_code, None
            except httpx.TimeoutException:
                return 0, "timeout"
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                logger.debug("Link probe failed", url=url, error=str(e))
                return 0, str(e) or e.__class__.__name__
