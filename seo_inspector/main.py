"""
SEO Inspector - Main Application Entry Point
Thin, stateless HTTP surface over the inspection engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from seo_inspector.api.v1.routes import analyses, health
from seo_inspector.core.config import get_settings
from seo_inspector.core.exceptions import InvalidTargetError, UnknownCategoryError
from seo_inspector.core.logging import configure_logging

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Manage application lifecycle: startup and shutdown."""
    configure_logging()
    logger.info(
        "Starting SEO Inspector",
        version=settings.APP_VERSION,
        env=settings.ENV,
        market_provider=settings.MARKET_DATA_PROVIDER,
    )

    yield

    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    app = FastAPI(
        title="SEO Inspector API",
        description="Single-page SEO inspection engine with independent analyzers.",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Routers
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(analyses.router, prefix="/api/v1/analyses", tags=["Analyses"])

    @app.exception_handler(InvalidTargetError)
    async def invalid_target_handler(request: Request, exc: InvalidTargetError) -> JSONResponse:
        logger.info("Rejected analysis target", path=request.url.path, url=exc.url, reason=exc.reason)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(UnknownCategoryError)
    async def unknown_category_handler(request: Request, exc: UnknownCategoryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": request.headers.get("x-request-id")},
        )

    return app


app = create_application()


def run() -> None:
    uvicorn.run(
        "seo_inspector.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
