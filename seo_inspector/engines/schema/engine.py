"""
Schema Validation Engine

Parses every application/ld+json block. Invalid JSON is one error per
block; @type values are collected from top-level objects, arrays and
@graph members. Score is 90 with any schema type, else 30.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Iterator

from seo_inspector.core.context import AnalysisContext
from seo_inspector.core.scoring import IssueKind, ScoreScale, Severity
from seo_inspector.engines.base import AnalyzerEngine, AnalyzerResult, Category
from seo_inspector.engines.fetcher.document import ParsedDocument
from seo_inspector.engines.models import Issue, SchemaDetail, SchemaTypeCount

SCORE_WITH_SCHEMA = 90
SCORE_WITHOUT_SCHEMA = 30

RECOMMENDATIONS = [
    "Add structured data to improve search result appearance",
    "Use appropriate schema types for your content",
    "Validate your structured data with Google's Rich Results Test",
    "Consider adding Organization, WebSite, and BreadcrumbList schemas",
]


def iter_schema_types(data: Any) -> Iterator[str]:
    """Yield @type values from a decoded JSON-LD payload."""
    if isinstance(data, list):
        for item in data:
            yield from iter_schema_types(item)
        return
    if not isinstance(data, dict):
        return

    declared = data.get("@type")
    if isinstance(declared, str) and declared:
        yield declared
    elif isinstance(declared, list):
        yield from (t for t in declared if isinstance(t, str) and t)

    graph = data.get("@graph")
    if isinstance(graph, list):
        for item in graph:
            yield from iter_schema_types(item)


class SchemaEngine(AnalyzerEngine):

    ENGINE_NAME = "schema"
    CATEGORY = Category.SCHEMA
    SCALE = ScoreScale.THREE_TIER

    async def run(self, document: ParsedDocument, context: AnalysisContext) -> AnalyzerResult:
        return self.analyze(document)

    def analyze(self, document: ParsedDocument) -> AnalyzerResult:
        issues: list[Issue] = []
        types: Counter[str] = Counter()
        valid = invalid = 0

        for block in document.json_ld_blocks():
            try:
                data = json.loads(block)
            except json.JSONDecodeError:
                invalid += 1
                issues.append(self.issue(
                    IssueKind.ERROR, Severity.HIGH, "Invalid JSON-LD syntax found", "schema-invalid-json",
                ))
                continue
            valid += 1
            types.update(iter_schema_types(data))

        if not types:
            issues.append(self.issue(
                IssueKind.WARNING, Severity.MEDIUM, "No structured data found", "schema-missing",
            ))

        detail = SchemaDetail(
            schema_types=[SchemaTypeCount(type=name, count=count) for name, count in types.items()],
            valid_blocks=valid,
            invalid_blocks=invalid,
        )
        score = SCORE_WITH_SCHEMA if types else SCORE_WITHOUT_SCHEMA
        return self.build_result(score, issues, list(RECOMMENDATIONS), detail)
