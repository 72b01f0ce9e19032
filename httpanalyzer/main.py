"""
HTTP Analyzer - FastAPI Application Entry Point

Main application module with logging infrastructure,
the periodic rate-limit sweep, and route mounting.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from httpanalyzer import __version__
from httpanalyzer.config import settings
from httpanalyzer.context import AnalyzerContext

# =============================================================================
# Logging Configuration
# =============================================================================


def configure_logging() -> None:
    """Configure structured logging with structlog."""
    # Map log level string to logging module level
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Determine processors based on log format
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure logging on module load
configure_logging()

# Get logger for this module
logger = structlog.get_logger(__name__)


# =============================================================================
# Periodic Sweep
# =============================================================================


async def run_sweeper(ctx: AnalyzerContext, interval: float) -> None:
    """Prune rate-limit windows on a fixed interval, independent of traffic."""
    while True:
        await asyncio.sleep(interval)
        ctx.sweep()


# =============================================================================
# Application Factory
# =============================================================================


def create_app(context: AnalyzerContext | None = None) -> FastAPI:
    """
    Build the API application around an analyzer context.

    Args:
        context: Session to serve; a fresh one is created when omitted.
    """
    ctx = context or AnalyzerContext(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan handler.

        Starts the sweep task and resets the context on shutdown.
        """
        logger.info(
            "http_analyzer_starting",
            version=__version__,
            host=settings.host,
            port=settings.port,
            max_items=ctx.config.max_items,
        )

        sweeper = asyncio.create_task(
            run_sweeper(ctx, ctx.config.sweep_interval_seconds)
        )

        yield

        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
        ctx.close()
        logger.info("http_analyzer_shutdown")

    app = FastAPI(
        title="HTTP Analyzer",
        description="Passive HTTP exchange tagging and triage",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = ctx

    # CORS middleware for panel access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check() -> dict:
        """
        Health check endpoint.

        Returns service status and store occupancy.
        """
        return {
            "status": "healthy",
            "service": "http-analyzer",
            "version": __version__,
            "exchanges": len(ctx.store),
            "rate_limited_keys": len(ctx.aggregator),
        }

    # Import and include API routes
    from httpanalyzer.api.routes import router as api_router
    from httpanalyzer.api.websocket import router as ws_router

    app.include_router(api_router, prefix="/api")
    app.include_router(ws_router)

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "httpanalyzer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
