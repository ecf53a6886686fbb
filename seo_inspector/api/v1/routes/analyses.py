"""
Analysis API Routes

No business logic lives here.
Routes validate input, call the runner, return its models.
"""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from seo_inspector.core.config import Settings, get_settings
from seo_inspector.engines.base import AnalysisParams, AnalyzerResult, Category, Report
from seo_inspector.engines.market.provider import MarketDataProvider, build_provider
from seo_inspector.engines.runner import ENGINE_REGISTRY, analyze, run_analyzer

logger = structlog.get_logger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Dependencies
# ─────────────────────────────────────────────

def get_provider(settings: Annotated[Settings, Depends(get_settings)]) -> MarketDataProvider:
    return build_provider(settings)


def get_transport() -> httpx.AsyncBaseTransport | None:
    """Outbound transport; None means real network. Overridden in tests."""
    return None


# ─────────────────────────────────────────────
# Request / Response Schemas
# ─────────────────────────────────────────────

class AnalysisRequest(BaseModel):
    url: str
    keywords: list[str] = Field(default_factory=list)
    business_description: str | None = None
    categories: list[Category] | None = None
    deadline_seconds: float | None = Field(default=None, gt=0, le=300)

    @field_validator("keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        if len(v) > 50:
            raise ValueError("At most 50 keywords per analysis")
        return [k.strip() for k in v if k.strip()]

    def to_params(self) -> AnalysisParams:
        return AnalysisParams(
            keywords=self.keywords,
            business_description=self.business_description,
            categories=self.categories,
            deadline_seconds=self.deadline_seconds,
        )


class CategoriesResponse(BaseModel):
    categories: list[str]


# ─────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────

@router.get("/categories", response_model=CategoriesResponse)
async def list_categories() -> CategoriesResponse:
    return CategoriesResponse(categories=[c.value for c in ENGINE_REGISTRY])


@router.post("", response_model=Report)
async def create_analysis(
    payload: AnalysisRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    provider: Annotated[MarketDataProvider, Depends(get_provider)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_transport)],
) -> Report:
    """Run the selected analyzers (all by default) and return the full report."""
    logger.info("Analysis requested", url=payload.url, categories=payload.categories)
    return await analyze(
        payload.url,
        payload.to_params(),
        settings=settings,
        provider=provider,
        transport=transport,
    )


@router.post("/{category}", response_model=AnalyzerResult)
async def run_single_analysis(
    category: str,
    payload: AnalysisRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    provider: Annotated[MarketDataProvider, Depends(get_provider)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_transport)],
) -> AnalyzerResult:
    """Run one analyzer. Unknown categories are a 404."""
    return await run_analyzer(
        category,
        payload.url,
        payload.to_params(),
        settings=settings,
        provider=provider,
        transport=transport,
    )
