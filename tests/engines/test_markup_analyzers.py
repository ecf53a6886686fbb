"""
Tests for the markup-only analyzers: technical SEO, schema, alt text and canonical.
"""

import pytest

from seo_inspector.core.scoring import Status
from seo_inspector.engines.canonical.engine import CanonicalEngine, normalize_url
from seo_inspector.engines.images.engine import AltTextEngine
from seo_inspector.engines.schema.engine import SchemaEngine, iter_schema_types
from seo_inspector.engines.technical.engine import TechnicalSeoEngine, insecure_resources


def ld_json(payload: str) -> str:
    return f'<script type="application/ld+json">{payload}</script>'


# ─────────────────────────────────────────────
# Technical SEO Tests
# ─────────────────────────────────────────────

class TestTechnicalSeoEngine:

    def test_clean_page(self, make_document, html_page):
        result = TechnicalSeoEngine().analyze(make_document(html_page()))

        assert result.score == 100
        assert result.status == "good"
        assert result.detail.security.status == Status.GOOD

    def test_nofollow_and_noindex_meta(self, make_document, html_page):
        head = '<meta name="robots" content="noindex, nofollow">'
        result = TechnicalSeoEngine().analyze(make_document(html_page(head=head)))

        assert result.score == 75
        assert result.detail.crawlability.status == Status.WARNING
        assert result.detail.indexability.status == Status.ERROR

    def test_noindex_from_header(self, make_document, html_page):
        document = make_document(html_page(), headers={"X-Robots-Tag": "noindex"})
        result = TechnicalSeoEngine().analyze(document)

        assert result.score == 85
        assert result.detail.indexability.issues == ["Page is set to noindex via X-Robots-Tag header"]

    @pytest.mark.parametrize("body", ["<p>no heading</p>", "<h1>One</h1><h1>Two</h1>"])
    def test_h1_must_be_unique(self, make_document, html_page, body):
        result = TechnicalSeoEngine().analyze(make_document(html_page(body=body)))

        assert result.score == 90
        assert result.detail.site_structure.status == Status.WARNING

    def test_images_without_alt(self, make_document, html_page):
        body = '<h1>Gallery</h1><img src="a.png"><img src="b.png">'
        result = TechnicalSeoEngine().analyze(make_document(html_page(body=body)))

        assert result.score == 95
        assert result.detail.performance.issues == ["2 images without alt text"]

    def test_plain_http_page(self, make_document, html_page):
        result = TechnicalSeoEngine().analyze(make_document(html_page(), url="http://example.com/"))

        assert result.score == 80
        assert result.detail.security.issues == ["Site not using HTTPS"]

    def test_https_redirect_counts_as_secure(self, make_document, html_page):
        document = make_document(html_page(), url="http://example.com/", final_url="https://example.com/")
        assert TechnicalSeoEngine().analyze(document).score == 100

    def test_mixed_content(self, make_document, html_page):
        body = '<h1>Page</h1><script src="http://cdn.example.net/app.js"></script><img src="https://cdn.example.net/a.png" alt="A logo">'
        document = make_document(html_page(body=body))

        assert insecure_resources(document) == ["http://cdn.example.net/app.js"]
        result = TechnicalSeoEngine().analyze(document)
        assert result.score == 80
        assert result.detail.security.status == Status.ERROR


# ─────────────────────────────────────────────
# Schema Tests
# ─────────────────────────────────────────────

class TestSchemaEngine:

    def test_iter_schema_types_handles_lists_and_graph(self):
        payload = [
            {"@type": "Organization"},
            {"@type": ["Product", "Thing"]},
            {"@graph": [{"@type": "WebSite"}, {"@type": "BreadcrumbList"}]},
            "not an object",
        ]
        assert list(iter_schema_types(payload)) == ["Organization", "Product", "Thing", "WebSite", "BreadcrumbList"]

    def test_valid_schema(self, make_document, html_page):
        head = ld_json('{"@context": "https://schema.org", "@type": "Organization", "name": "Widgets"}')
        result = SchemaEngine().analyze(make_document(html_page(head=head)))

        assert result.score == 90
        assert result.status == "good"
        assert result.issues == []
        assert [(t.type, t.count) for t in result.detail.schema_types] == [("Organization", 1)]

    def test_types_counted_across_blocks(self, make_document, html_page):
        head = ld_json('{"@type": "Product"}') + ld_json('{"@graph": [{"@type": "Product"}, {"@type": "Offer"}]}')
        result = SchemaEngine().analyze(make_document(html_page(head=head)))

        counts = {t.type: t.count for t in result.detail.schema_types}
        assert counts == {"Product": 2, "Offer": 1}
        assert result.detail.valid_blocks == 2

    def test_no_schema(self, make_document, html_page):
        result = SchemaEngine().analyze(make_document(html_page()))

        assert result.score == 30
        assert result.status == "error"
        assert [i.message for i in result.issues] == ["No structured data found"]

    def test_invalid_json_is_one_error(self, make_document, html_page):
        head = ld_json('{"@type": "Organization",') + ld_json('{"@type": "WebSite"}')
        result = SchemaEngine().analyze(make_document(html_page(head=head)))

        errors = [i for i in result.issues if i.kind == "error"]
        assert len(errors) == 1
        assert errors[0].message == "Invalid JSON-LD syntax found"
        assert result.detail.invalid_blocks == 1
        assert result.score == 90


# ─────────────────────────────────────────────
# Alt Text Tests
# ─────────────────────────────────────────────

class TestAltTextEngine:

    def test_no_images_scores_full(self, make_document, html_page):
        result = AltTextEngine().analyze(make_document(html_page()))

        assert result.score == 100
        assert result.detail.coverage == 100
        assert result.recommendations == ["All images have appropriate alt text"]

    def test_missing_and_poor_alt(self, make_document, html_page):
        body = (
            '<img src="a.png" alt="Blue widget">'
            '<img src="b.png" alt="Red widget">'
            '<img src="c.png">'
            '<img src="d.png" alt="  ">'
            '<img src="e.png" alt="img">'
        )
        result = AltTextEngine().analyze(make_document(html_page(body=body)))

        assert result.detail.total_images == 5
        assert result.detail.missing_alt == 2
        assert result.detail.poor_alt == 1
        assert result.score == 40
        assert [(i.code, i.severity) for i in result.issues] == [("alt-missing", "high"), ("alt-poor", "medium")]

    def test_two_of_three_images_good(self, make_document, html_page):
        body = '<img src="a.png" alt="Blue widget"><img src="b.png" alt="Red widget"><img src="c.png">'
        result = AltTextEngine().analyze(make_document(html_page(body=body)))

        assert result.score == 67
        assert result.status == "needs-improvement"


# ─────────────────────────────────────────────
# Canonical Tests
# ─────────────────────────────────────────────

class TestCanonicalEngine:

    @pytest.mark.parametrize(
        "left, right",
        [
            ("https://Example.com/page/", "https://example.com/page"),
            ("HTTPS://example.com/page#top", "https://example.com/page"),
        ],
    )
    def test_normalize_url(self, left, right):
        assert normalize_url(left) == normalize_url(right)

    def test_self_referencing_canonical(self, make_document, html_page):
        head = '<link rel="canonical" href="https://example.com/page/">'
        result = CanonicalEngine().analyze(make_document(html_page(head=head), url="https://example.com/page"))

        assert result.score == 95
        assert result.detail.matches_url
        assert result.detail.duplicate_content == []

    def test_relative_canonical_resolved(self, make_document, html_page):
        head = '<link rel="canonical" href="/page">'
        result = CanonicalEngine().analyze(make_document(html_page(head=head), url="https://example.com/page"))

        assert result.detail.resolved_canonical == "https://example.com/page"
        assert result.score == 95

    def test_missing_canonical(self, make_document, html_page):
        result = CanonicalEngine().analyze(make_document(html_page()))

        assert result.score == 60
        assert result.status == "warning"
        assert result.issues[0].code == "canonical-missing"

    def test_canonical_pointing_elsewhere(self, make_document, html_page):
        head = '<link rel="canonical" href="https://example.com/other">'
        result = CanonicalEngine().analyze(make_document(html_page(head=head), url="https://example.com/page"))

        assert result.score == 60
        assert result.issues[0].code == "canonical-mismatch"
        assert not result.detail.matches_url

    def test_short_title_and_description_hints(self, make_document, html_page):
        head = '<link rel="canonical" href="https://example.com/">'
        html = html_page(title="Widgets", description="Handmade widgets", head=head)
        result = CanonicalEngine().analyze(make_document(html))

        assert [(d.field, d.similarity) for d in result.detail.duplicate_content] == [
            ("title", 85),
            ("description", 75),
        ]
        assert result.score == 95
