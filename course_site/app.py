"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from course_site.config import STATIC_DIR
from course_site.routers import applications, pages
from course_site.services.data_cache import DataCache
from course_site.sheets_client import SheetsClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    owns_client = app.state.sheets is None
    if owns_client:
        app.state.sheets = SheetsClient()
        logger.info("Sheets client ready for %s", app.state.sheets.base_url)
    if app.state.data_cache is None:
        app.state.data_cache = DataCache(app.state.sheets)

    yield

    if owns_client:
        await app.state.sheets.aclose()


def create_app(sheets: SheetsClient | None = None) -> FastAPI:
    """Build the site. ``sheets`` replaces the client built from the environment."""
    app = FastAPI(
        title="Course Site",
        description="Course catalog, schedule and application site backed by a spreadsheet.",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.sheets = sheets
    app.state.data_cache = DataCache(sheets) if sheets is not None else None

    # Static files
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok"}

    for r in [pages, applications]:
        app.include_router(r.router)

    return app
