"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router
from src.api.schemas import MAX_BATCH_URLS
from src.config import get_settings
from src.logging_config import setup_logging
from src.scraper import build_scraper
from src.scraper.batch import MAX_CONCURRENCY

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting scrape service")

    scraper = await build_scraper(settings)

    # Attach to app state for dependency injection
    app.state.settings = settings
    app.state.scraper = scraper

    logger.info(
        "scrape service ready",
        extra={
            "dynamic_rendering": scraper.dynamic_rendering_available,
            "max_attempts": scraper.config.max_attempts,
            "fetch_timeout": scraper.config.fetch_timeout,
        },
    )

    yield

    # Cleanup
    logger.info("shutting down scrape service")
    await scraper.aclose()


app = FastAPI(title="Scrape Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in get_settings().cors_allowed_origins.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router, prefix="/api")


@app.get("/health")
async def health(request: Request):
    scraper = getattr(request.app.state, "scraper", None)
    return {
        "status": "ok",
        "dynamic_rendering": bool(scraper and scraper.dynamic_rendering_available),
        "limits": {
            "batch_size": MAX_BATCH_URLS,
            "max_concurrent": MAX_CONCURRENCY,
            "content_limit": scraper.config.max_content_length if scraper else None,
            "timeout_seconds": scraper.config.fetch_timeout if scraper else None,
        },
    }
