"""
Result payloads shared by all analyzers.

Every analyzer returns the same AnalyzerResult envelope (see base.py) with a
category-specific `detail` drawn from the closed set of models below. The
`kind` literal on each detail model is the union discriminator.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from seo_inspector.core.scoring import IssueKind, Severity, Status
from seo_inspector.engines.market.models import (
    Backlink,
    CompetitorProfile,
    KeywordMetric,
)


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ─────────────────────────────────────────────
# Core data types
# ─────────────────────────────────────────────

class Issue(FrozenModel):
    """A single problem found by an analyzer."""
    kind: IssueKind
    message: str
    severity: Severity
    code: str = ""   # stable identifier, used to look up implementation steps


class LinkRecord(FrozenModel):
    """The resolved-and-probed state of one hyperlink on the analyzed page."""
    raw_href: str
    resolved_url: str = ""
    anchor_text: str = ""
    http_status: int = 0
    reachable: bool = False
    error: str | None = None


class FieldCheck(FrozenModel):
    """Presence/length check on one markup field."""
    present: bool = False
    content: str = ""
    length: int = 0
    status: Status = Status.GOOD
    recommendation: str = ""


class SubScore(FrozenModel):
    score: int = Field(ge=0, le=100)
    status: Status


# ─────────────────────────────────────────────
# Per-category details
# ─────────────────────────────────────────────

class HreflangEntry(FrozenModel):
    lang: str
    href: str


class MetaTagsDetail(FrozenModel):
    kind: Literal["meta_tags"] = "meta_tags"
    title: FieldCheck
    description: FieldCheck
    keywords: FieldCheck
    viewport: FieldCheck
    robots: FieldCheck
    canonical: FieldCheck
    open_graph: dict[str, FieldCheck] = Field(default_factory=dict)
    twitter: dict[str, FieldCheck] = Field(default_factory=dict)
    hreflang: list[HreflangEntry] = Field(default_factory=list)


class PlaceholderMetrics(FrozenModel):
    """Core Web Vitals placeholders. Static values, never measured."""
    first_contentful_paint: float = 1.2      # seconds
    largest_contentful_paint: float = 2.1    # seconds
    first_input_delay: float = 45.0          # milliseconds
    cumulative_layout_shift: float = 0.08
    measured: bool = False


class Opportunity(FrozenModel):
    title: str
    description: str
    savings_seconds: float


class PageSpeedDetail(FrozenModel):
    kind: Literal["page_speed"] = "page_speed"
    performance: SubScore
    accessibility: SubScore
    best_practices: SubScore
    seo: SubScore
    metrics: PlaceholderMetrics = Field(default_factory=PlaceholderMetrics)
    opportunities: list[Opportunity] = Field(default_factory=list)


class KeywordDensityEntry(FrozenModel):
    keyword: str
    count: int = Field(ge=0)
    density: float = Field(ge=0.0)
    status: Status


class TermFrequency(FrozenModel):
    term: str
    count: int


class KeywordDensityDetail(FrozenModel):
    kind: Literal["keyword_density"] = "keyword_density"
    total_words: int = 0
    used_default_keywords: bool = False
    keywords: list[KeywordDensityEntry] = Field(default_factory=list)
    top_terms: list[TermFrequency] = Field(default_factory=list)


class TouchTargets(FrozenModel):
    total: int = 0
    too_small: int = 0
    measured: bool = False
    status: Status = Status.GOOD


class MobileDetail(FrozenModel):
    kind: Literal["mobile"] = "mobile"
    viewport: FieldCheck
    touch_targets: TouchTargets
    text_size_measured: bool = False
    content_width_measured: bool = False
    is_mobile_friendly: bool = False


class SiteFile(FrozenModel):
    url: str
    exists: bool = False
    http_status: int = 0


class RobotsRuleGroup(FrozenModel):
    user_agent: str
    allow: list[str] = Field(default_factory=list)
    disallow: list[str] = Field(default_factory=list)


class SitemapRobotsDetail(FrozenModel):
    kind: Literal["sitemap_robots"] = "sitemap_robots"
    sitemap: SiteFile
    robots: SiteFile
    robots_rules: list[RobotsRuleGroup] = Field(default_factory=list)
    declared_sitemaps: list[str] = Field(default_factory=list)
    sitemap_type: Literal["urlset", "sitemapindex"] | None = None
    sitemap_url_count: int = 0


class TechnicalBucket(FrozenModel):
    status: Status = Status.GOOD
    issues: list[str] = Field(default_factory=list)


class TechnicalDetail(FrozenModel):
    kind: Literal["technical"] = "technical"
    crawlability: TechnicalBucket
    indexability: TechnicalBucket
    site_structure: TechnicalBucket
    performance: TechnicalBucket
    security: TechnicalBucket


class SchemaTypeCount(FrozenModel):
    type: str
    count: int
    status: Status = Status.GOOD


class SchemaDetail(FrozenModel):
    kind: Literal["schema"] = "schema"
    schema_types: list[SchemaTypeCount] = Field(default_factory=list)
    valid_blocks: int = 0
    invalid_blocks: int = 0


class ImageIssue(FrozenModel):
    src: str
    alt: str = ""
    problem: Literal["missing", "poor"]


class AltTextDetail(FrozenModel):
    kind: Literal["alt_text"] = "alt_text"
    total_images: int = 0
    images_with_alt: int = 0
    missing_alt: int = 0
    poor_alt: int = 0
    coverage: int = 100
    image_issues: list[ImageIssue] = Field(default_factory=list)


class DuplicateContentHint(FrozenModel):
    field: Literal["title", "description"]
    similarity: int
    recommendation: str


class CanonicalDetail(FrozenModel):
    kind: Literal["canonical"] = "canonical"
    canonical_url: str | None = None
    resolved_canonical: str | None = None
    matches_url: bool = False
    status: Status = Status.GOOD
    duplicate_content: list[DuplicateContentHint] = Field(default_factory=list)


class BrokenLinksDetail(FrozenModel):
    kind: Literal["broken_links"] = "broken_links"
    total_links: int = 0
    broken_count: int = 0
    links: list[LinkRecord] = Field(default_factory=list)


class CompetitionBreakdown(FrozenModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class KeywordResearchDetail(FrozenModel):
    kind: Literal["keyword_research"] = "keyword_research"
    seed_keywords: list[str] = Field(default_factory=list)
    primary_keywords: list[KeywordMetric] = Field(default_factory=list)
    related_keywords: list[KeywordMetric] = Field(default_factory=list)
    long_tail_keywords: list[KeywordMetric] = Field(default_factory=list)
    competition: CompetitionBreakdown = Field(default_factory=CompetitionBreakdown)
    average_search_volume: int = 0


class BacklinksDetail(FrozenModel):
    kind: Literal["backlinks"] = "backlinks"
    total_backlinks: int = 0
    referring_domains: int = 0
    average_domain_authority: int = 0
    dofollow: int = 0
    nofollow: int = 0
    high_quality: int = 0
    low_spam: int = 0
    backlinks: list[Backlink] = Field(default_factory=list)


class KeywordGap(FrozenModel):
    keyword: str
    opportunity: int
    difficulty: int


class CompetitorsDetail(FrozenModel):
    kind: Literal["competitors"] = "competitors"
    competitors: list[CompetitorProfile] = Field(default_factory=list)
    keyword_gaps: list[KeywordGap] = Field(default_factory=list)
    average_domain_authority: int = 0


class RankingChange(FrozenModel):
    keyword: str
    current_rank: int
    previous_rank: int
    change: int
    search_volume: int
    difficulty: int


class RankTrackingDetail(FrozenModel):
    kind: Literal["rank_tracking"] = "rank_tracking"
    rankings: list[RankingChange] = Field(default_factory=list)
    average_rank: float = 0.0
    top_three: int = 0
    first_page: int = 0
    improved: int = 0
    declined: int = 0


AnalyzerDetail = Annotated[
    Union[
        MetaTagsDetail,
        PageSpeedDetail,
        KeywordDensityDetail,
        MobileDetail,
        SitemapRobotsDetail,
        TechnicalDetail,
        SchemaDetail,
        AltTextDetail,
        CanonicalDetail,
        BrokenLinksDetail,
        KeywordResearchDetail,
        BacklinksDetail,
        CompetitorsDetail,
        RankTrackingDetail,
    ],
    Field(discriminator="kind"),
]
