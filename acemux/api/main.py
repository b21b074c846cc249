"""
AceMux application entry point.

The app serves the stream list API under /api/streams and the AceStream
engine proxy under /ace. Shared httpx clients live on app.state for the
lifetime of the process.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from acemux.api.deps import build_http_clients
from acemux.api.routes.ace import router as ace_router
from acemux.api.routes.streams import router as streams_router
from acemux.core.config import Settings, get_settings
from acemux.core.logging import configure_logging, get_logger
from acemux.db.init_db import create_all_tables
from acemux.middleware.request_logging import RequestLoggingMiddleware

logger = get_logger("acemux.app")

openapi_tags = [
    {"name": "Health", "description": "Service health and readiness."},
    {"name": "Streams", "description": "Stream list management, status probes and links."},
    {"name": "Proxy", "description": "Pass-through to the AceStream engine with URL rewriting."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging()
    create_all_tables()
    app.state.http_client, app.state.engine_client = build_http_clients(settings)
    logger.info(
        "AceMux started",
        extra={"acestream_base": settings.acestream_base, "db": settings.database_url},
    )
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        await app.state.engine_client.aclose()
        logger.info("AceMux stopped")


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application with middleware and routers mounted."""
    settings = settings or get_settings()

    application = FastAPI(
        title="AceMux",
        description="Stream list, AceStream proxy and HLS player backend.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    application.state.settings = settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.REQUEST_LOGGING_ENABLED:
        application.add_middleware(RequestLoggingMiddleware)

    @application.get(
        "/",
        summary="Health Check",
        description="Liveness probe. Does not contact the AceStream engine.",
        tags=["Health"],
        responses={200: {"description": "Service is healthy"}},
    )
    def health_check():
        return {"message": "Healthy"}

    application.include_router(streams_router)
    application.include_router(ace_router)
    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("acemux.api.main:app", host=settings.API_HOST, port=settings.API_PORT)
