"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_query_cache
from src.api.routes import health, listings, profiles
from src.config import settings
from src.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level)
    logger.info("marketplace_starting", contract_address=settings.contract_address)
    # Initial fetch; a failure leaves the cache empty and is logged by the cache
    await get_query_cache().refresh()
    yield
    logger.info("marketplace_stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title="AtomMarket Orchestrator",
        description="Listing lifecycle orchestrator for the AtomMarket escrow marketplace.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(listings.router)
    app.include_router(profiles.router)

    return app


app = create_app()
