from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.dashboard import build_default_dashboard
from settings import get_settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    dashboard = build_default_dashboard()
    dashboard.start()
    snapshot = dashboard.store.snapshot
    logger.info(
        "Dashboard started",
        extra={
            "source": dashboard.store.source.name,
            "reading_count": len(snapshot.readings) if snapshot else 0,
        },
    )
    try:
        yield
    finally:
        dashboard.shutdown()
        build_default_dashboard.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Air Quality Dashboard",
        description="Threshold warnings and chart series for recorded air-quality readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    run()
