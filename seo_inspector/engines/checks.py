"""Markup checks shared by more than one analyzer."""

from __future__ import annotations

from enum import Enum

from seo_inspector.core.scoring import IssueKind, Severity, Status
from seo_inspector.engines.models import FieldCheck, Issue


class ViewportState(str, Enum):
    OK = "ok"
    MISSING = "missing"
    MISCONFIGURED = "misconfigured"


def check_viewport(content: str) -> tuple[ViewportState, FieldCheck, Issue | None]:
    """Classify a viewport meta value. Callers apply their own penalty table."""
    if not content:
        return (
            ViewportState.MISSING,
            FieldCheck(status=Status.ERROR,
                       recommendation="Missing viewport meta tag - this is critical for mobile SEO"),
            Issue(kind=IssueKind.ERROR, severity=Severity.HIGH,
                  message="Missing viewport meta tag", code="viewport-missing"),
        )
    if "width=device-width" not in content.replace(" ", "").lower():
        return (
            ViewportState.MISCONFIGURED,
            FieldCheck(present=True, content=content, length=len(content), status=Status.WARNING,
                       recommendation="Viewport meta tag should include width=device-width"),
            Issue(kind=IssueKind.WARNING, severity=Severity.MEDIUM,
                  message="Viewport not properly configured", code="viewport-misconfigured"),
        )
    return (
        ViewportState.OK,
        FieldCheck(present=True, content=content, length=len(content), status=Status.GOOD,
                   recommendation="Viewport meta tag is properly configured for mobile"),
        None,
    )


def robots_directives(content: str) -> set[str]:
    """Lower-cased directives of a robots meta / X-Robots-Tag value."""
    return {part.strip().lower() for part in content.split(",") if part.strip()}
