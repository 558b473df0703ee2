"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from app.api import activity, auth, health, logs, repos
from app.config import settings
from app.core.logging import setup_logging
from app.core.tracing import TracingContext
from app.database.mongo import close_client, ensure_indexes, get_database
from app.dtos.common import format_response
from app.middleware.errors import register_exception_handlers
from app.middleware.rate_limit import GENERAL_POLICY, limit_per_user
from app.services.cache_service import AnalysisCache

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    try:
        ensure_indexes(get_database())
    except PyMongoError as exc:  # pragma: no cover - best effort at startup
        logger.warning("Skipping index creation: %s", exc)

    app.state.analysis_cache = AnalysisCache()
    app.state.analysis_cache.start()
    logger.info("%s v%s started (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)

    yield

    await app.state.analysis_cache.stop()
    close_client()
    logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Repository analysis, daily work logs and activity tracking for developers",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    TracingContext.clear()
    correlation_id = request.headers.get(CORRELATION_HEADER)
    if correlation_id:
        TracingContext.set(correlation_id=correlation_id)
    else:
        correlation_id = TracingContext.get_or_create_correlation_id()

    logger.info("%s %s", request.method, request.url.path)
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


register_exception_handlers(app)

general_limit = [Depends(limit_per_user(GENERAL_POLICY))]

app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api")
app.include_router(repos.router, prefix="/api", dependencies=general_limit)
app.include_router(logs.router, prefix="/api", dependencies=general_limit)
app.include_router(activity.router, prefix="/api", dependencies=general_limit)


@app.get("/")
async def root():
    """Root endpoint."""
    return format_response(
        data={
            "version": settings.APP_VERSION,
            "endpoints": {
                "auth": "/api/auth",
                "repositories": "/api/repos",
                "logs": "/api/logs",
                "activity": "/api/activity",
                "health": "/health",
                "docs": "/api/docs",
            },
        },
        message=settings.APP_NAME,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
