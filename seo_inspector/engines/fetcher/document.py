"""
ParsedDocument - read-only query surface over fetched markup.

The tree is parsed once per run and shared by every analyzer. Accessors
never mutate the tree; visible text is extracted from a private second
parse so stripping script/style does not touch the shared soup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

PARSER = "lxml"
INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


@dataclass(frozen=True)
class LinkCandidate:
    href: str
    anchor_text: str = ""


@dataclass(frozen=True)
class ImageInfo:
    src: str
    alt: str | None   # None when the attribute is absent


class ParsedDocument:
    """
    Parsed markup for one analysis target.

    `url` is the requested URL, `final_url` the URL after redirects. A
    fallback document (fetch failed) carries is_fallback=True and the
    failure reason in fetch_error.
    """

    __slots__ = (
        "_url", "_final_url", "_html", "_soup", "_visible_text", "_headers",
        "_status_code", "_is_fallback", "_fetch_error", "_frozen",
    )

    def __init__(
        self,
        url: str,
        html: str,
        *,
        final_url: str | None = None,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        is_fallback: bool = False,
        fetch_error: str | None = None,
    ):
        self._url = url
        self._final_url = final_url or url
        self._html = html
        self._soup = BeautifulSoup(html, PARSER)
        self._visible_text = self._extract_visible_text(html)
        self._headers = MappingProxyType({k.lower(): v for k, v in (headers or {}).items()})
        self._status_code = status_code
        self._is_fallback = is_fallback
        self._fetch_error = fetch_error
        self._frozen = True

    def __setattr__(self, name: str, value: object) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"ParsedDocument is read-only (tried to set {name!r})")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"ParsedDocument(url={self._url!r}, fallback={self._is_fallback})"

    @staticmethod
    def _extract_visible_text(html: str) -> str:
        soup = BeautifulSoup(html, PARSER)
        for tag in soup(INVISIBLE_TAGS):
            tag.decompose()
        root = soup.body or soup
        return " ".join(root.get_text(separator=" ").split())

    # ─────────────────────────────────────────────
    # Fetch metadata
    # ─────────────────────────────────────────────

    @property
    def url(self) -> str:
        return self._url

    @property
    def final_url(self) -> str:
        return self._final_url

    @property
    def html(self) -> str:
        return self._html

    @property
    def headers(self) -> Mapping[str, str]:
        """Response headers, lower-cased names."""
        return self._headers

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def is_fallback(self) -> bool:
        return self._is_fallback

    @property
    def fetch_error(self) -> str | None:
        return self._fetch_error

    @property
    def origin(self) -> str:
        parsed = urlparse(self._final_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def domain(self) -> str:
        return (urlparse(self._final_url).hostname or "").lower()

    # ─────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────

    def select(self, selector: str) -> list[Tag]:
        return self._soup.select(selector)

    def select_one(self, selector: str) -> Tag | None:
        return self._soup.select_one(selector)

    def count(self, selector: str) -> int:
        return len(self._soup.select(selector))

    def attr(self, selector: str, name: str, default: str = "") -> str:
        """Attribute of the first match, or default. Multi-valued attributes are space-joined."""
        tag = self._soup.select_one(selector)
        if tag is None:
            return default
        value = tag.get(name)
        if value is None:
            return default
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def text(self, selector: str) -> str:
        tag = self._soup.select_one(selector)
        return tag.get_text().strip() if tag is not None else ""

    def has(self, selector: str) -> bool:
        return self._soup.select_one(selector) is not None

    def meta(self, name: str) -> str | None:
        """content of <meta name=...>; None when the tag is absent."""
        tag = self._soup.find("meta", attrs={"name": re.compile(f"^{re.escape(name)}$", re.I)})
        if tag is None:
            return None
        return str(tag.get("content") or "")

    def meta_property(self, prop: str) -> str | None:
        """content of <meta property=...>; None when the tag is absent."""
        tag = self._soup.find("meta", attrs={"property": re.compile(f"^{re.escape(prop)}$", re.I)})
        if tag is None:
            return None
        return str(tag.get("content") or "")

    @property
    def title(self) -> str | None:
        tag = self._soup.find("title")
        return tag.get_text().strip() if tag is not None else None

    @property
    def visible_text(self) -> str:
        return self._visible_text

    def links(self) -> list[LinkCandidate]:
        return [
            LinkCandidate(href=str(a.get("href") or "").strip(), anchor_text=a.get_text(strip=True))
            for a in self._soup.find_all("a", href=True)
        ]

    def images(self) -> list[ImageInfo]:
        out = []
        for img in self._soup.find_all("img"):
            alt = img.get("alt")
            out.append(ImageInfo(src=str(img.get("src") or ""), alt=None if alt is None else str(alt)))
        return out

    def json_ld_blocks(self) -> list[str]:
        return [
            script.string or script.get_text() or ""
            for script in self._soup.find_all("script", attrs={"type": re.compile(r"^\s*application/ld\+json\s*$", re.I)})
        ]
