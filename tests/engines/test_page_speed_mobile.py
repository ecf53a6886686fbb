"""
Tests for the page-speed heuristic and mobile-friendliness analyzers.
"""

import pytest

from seo_inspector.core.scoring import Status
from seo_inspector.engines.mobile.engine import MobileEngine
from seo_inspector.engines.pagespeed.engine import PageSpeedEngine, unsafe_external_links


# ─────────────────────────────────────────────
# Page Speed Tests
# ─────────────────────────────────────────────

class TestPageSpeedEngine:

    def test_clean_page_scores_full_with_heuristic_confidence(self, make_document, html_page):
        result = PageSpeedEngine().analyze(make_document(html_page()))

        assert result.score == 100
        assert result.confidence == "heuristic"
        assert result.detail.metrics.measured is False
        assert len(result.detail.opportunities) == 3

    def test_images_without_alt_lower_accessibility(self, make_document, html_page):
        body = '<h1>Widgets</h1><img src="a.png" alt="A widget"><img src="b.png"><img src="c.png" alt="">'
        result = PageSpeedEngine().analyze(make_document(html_page(body=body)))

        assert result.detail.accessibility.score == 90
        # mean of 100, 90, 100, 100
        assert result.score == 98

    def test_missing_h1(self, make_document, html_page):
        result = PageSpeedEngine().analyze(make_document(html_page(body="<p>No heading</p>")))

        assert result.detail.seo.score == 90
        assert any(i.code == "structure-missing-h1" for i in result.issues)

    def test_multiple_h1(self, make_document, html_page):
        result = PageSpeedEngine().analyze(make_document(html_page(body="<h1>One</h1><h1>Two</h1>")))
        assert result.detail.seo.score == 95

    def test_unsafe_external_links(self, make_document, html_page):
        body = (
            "<h1>Links</h1>"
            '<a href="https://other.org/">unsafe</a>'
            '<a href="https://partner.org/" rel="noopener">safe</a>'
            '<a href="https://press.org/" rel="nofollow noreferrer">safe</a>'
            '<a href="https://example.com/about">internal</a>'
            '<a href="/contact">relative</a>'
        )
        document = make_document(html_page(body=body))

        assert unsafe_external_links(document) == 1
        assert PageSpeedEngine().analyze(document).detail.best_practices.score == 98


# ─────────────────────────────────────────────
# Mobile Tests
# ─────────────────────────────────────────────

class TestMobileEngine:

    def test_good_viewport(self, make_document, html_page):
        result = MobileEngine().analyze(make_document(html_page()))

        assert result.score == 100
        assert result.status == "good"
        assert result.detail.is_mobile_friendly
        assert result.recommendations == ["Page appears to be mobile-friendly"]

    @pytest.mark.parametrize(
        "viewport, score, status",
        [
            (None, 70, "warning"),
            ("initial-scale=1", 85, "good"),
        ],
    )
    def test_viewport_penalties(self, make_document, html_page, viewport, score, status):
        result = MobileEngine().analyze(make_document(html_page(viewport=viewport)))

        assert result.score == score
        assert result.status == status
        assert not result.detail.is_mobile_friendly

    def test_missing_viewport_issue(self, make_document, html_page):
        result = MobileEngine().analyze(make_document(html_page(viewport=None)))

        assert result.detail.viewport.status == Status.ERROR
        assert result.issues[0].code == "viewport-missing"

    def test_touch_targets_counted_but_not_measured(self, make_document, html_page):
        body = '<h1>Form</h1><a href="/">Home</a><button>Go</button><input name="q"><select></select>'
        result = MobileEngine().analyze(make_document(html_page(body=body)))

        targets = result.detail.touch_targets
        assert targets.total == 4
        assert targets.too_small == 0
        assert targets.measured is False
        assert result.detail.text_size_measured is False
