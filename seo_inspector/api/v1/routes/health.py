"""Health check endpoints for load balancer and monitoring."""

from fastapi import APIRouter
from pydantic import BaseModel

from seo_inspector.core.config import get_settings
from seo_inspector.engines.runner import ENGINE_REGISTRY

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    checks: dict[str, str]


@router.get("", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    settings = get_settings()

    checks = {
        "analyzers": str(len(ENGINE_REGISTRY)),
        "market_provider": settings.MARKET_DATA_PROVIDER,
    }
    if settings.MARKET_DATA_PROVIDER == "dataforseo" and not settings.dataforseo_enabled:
        checks["market_provider"] = "dataforseo: missing credentials, using simulated"

    return HealthResponse(
        status="healthy" if "missing" not in checks["market_provider"] else "degraded",
        version=settings.APP_VERSION,
        checks=checks,
    )


@router.get("/ready", include_in_schema=False)
async def readiness() -> dict:
    """Kubernetes readiness probe."""
    return {"ready": True}


@router.get("/live", include_in_schema=False)
async def liveness() -> dict:
    """Kubernetes liveness probe."""
    return {"alive": True}
