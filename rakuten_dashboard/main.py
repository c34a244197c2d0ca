"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import router
from .config import get_settings
from .data.fetcher import build_data_source
from .errors import BadRequestError, UpstreamFetchError

logger = logging.getLogger("rakuten_dashboard")


def configure_logging(level: str) -> None:
    """Set up the root handler once; later calls only adjust the level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("rakuten_dashboard").setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    app.state.settings = settings
    app.state.data_source = build_data_source(settings)
    logger.info("Started with data source %s", app.state.data_source.name)
    try:
        yield
    finally:
        app.state.data_source.close()


# Create FastAPI app
app = FastAPI(
    title="Rakuten Sales Dashboard",
    description="Order, product and SKU rollups for the Rakuten sales dashboard",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(BadRequestError)
async def bad_request_handler(request: Request, exc: BadRequestError):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(UpstreamFetchError)
async def upstream_error_handler(request: Request, exc: UpstreamFetchError):
    logger.error("Upstream fetch failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"success": False, "error": "API request failed"})


# Include API routes
app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Rakuten Sales Dashboard",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/health",
    }


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rakuten_dashboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
