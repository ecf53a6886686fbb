"""
Document Fetcher - retrieves the target page and never raises.

Any transport error, error status or implausibly short body is logged and
replaced with a minimal fallback document, so every analyzer downstream can
run without special-casing a failed fetch.
"""

from __future__ import annotations

import time

import httpx
import structlog

from seo_inspector.core.context import AnalysisContext
from seo_inspector.engines.fetcher.document import ParsedDocument

logger = structlog.get_logger(__name__)


FALLBACK_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Analysis Target</title>
<meta name="description" content="Website analysis target">
</head>
<body>
<h1>Website Analysis</h1>
<p>This is a fallback document for analysis purposes.</p>
</body>
</html>"""

ERROR_STATUS_THRESHOLD = 400


def fallback_document(url: str, reason: str) -> ParsedDocument:
    return ParsedDocument(url, FALLBACK_HTML, status_code=0, is_fallback=True, fetch_error=reason)


class DocumentFetcher:
    """Fetches one document through the context's HTTP client."""

    def __init__(self, context: AnalysisContext):
        self.context = context
        self.settings = context.settings

    async def fetch(self, url: str) -> ParsedDocument:
        start = time.perf_counter()

        if self.context.expired():
            return self._fail(url, "deadline exceeded")

        try:
            response = await self.context.http_client.get(
                url,
                headers=self.context.request_headers(),
                follow_redirects=True,
                timeout=self.context.timeout_for(self.settings.FETCH_TIMEOUT),
            )
        except httpx.TimeoutException:
            return self._fail(url, "timeout")
        except httpx.TooManyRedirects:
            return self._fail(url, f"more than {self.settings.FETCH_MAX_REDIRECTS} redirects")
        except Exception as e:
            return self._fail(url, f"{e.__class__.__name__}: {e}")

        if response.status_code >= ERROR_STATUS_THRESHOLD:
            return self._fail(url, f"HTTP {response.status_code}")

        html = response.text
        if len(html) < self.settings.FETCH_MIN_BODY_LENGTH:
            return self._fail(url, "Response too short, likely blocked or invalid")

        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "Document fetched",
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            size_bytes=len(response.content),
            elapsed_ms=round(elapsed, 2),
        )
        return ParsedDocument(
            url,
            html,
            final_url=str(response.url),
            status_code=response.status_code,
            headers=response.headers,
        )

    def _fail(self, url: str, reason: str) -> ParsedDocument:
        logger.warning("Document fetch failed, using fallback", url=url, reason=reason)
        return fallback_document(url, reason)
