"""
Client Docs Messenger API

FastAPI application: storage lifecycle, health probes, request context
middleware and the routers under /api.
"""

import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

# .env must be loaded before settings are read
load_dotenv(Path(__file__).parent / '.env')

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.cors import CORSMiddleware

from config import get_cors_config, get_settings, validate_environment
from database import connection, dispose_db, init_db
from logging_config import clear_request_context, get_request_id, set_request_context, setup_logging
from routers import (
    auth_router,
    client_documents_router,
    clients_router,
    documents_router,
    drive_router,
    messages_router,
    templates_router,
)
from sentry_integration import capture_exception, init_sentry
from services.demo_data import seed_demo_data
from services.repository import InMemoryRepository, Repository
from services.sql_repository import SqlAlchemyRepository
from services.templates import ensure_default_templates

settings = get_settings()

setup_logging(level=settings.LOG_LEVEL, json_format=settings.is_production)
logger = logging.getLogger(__name__)

if settings.SENTRY_DSN:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=settings.API_VERSION,
        traces_sample_rate=0.1 if settings.is_production else 0.0,
    )


# ==================== STORAGE LIFECYCLE ====================

async def _seed(repo: Repository) -> None:
    created = await ensure_default_templates(repo)
    if created:
        logger.info(f"Seeded {len(created)} default template(s)")
    if settings.DEMO_MODE:
        summary = await seed_demo_data(repo)
        if summary["clients"]:
            logger.info(f"Demo data: {summary['clients']} client(s), {summary['documents']} document(s)")


async def _open_storage(app: FastAPI) -> None:
    """
    Memory backend: one repository on app.state for the process lifetime.
    Postgres backend: tables are ensured here and routers open a session per
    request, so app.state.repository stays None.
    """
    if settings.uses_database:
        await init_db(create_tables=settings.AUTO_CREATE_TABLES)
        app.state.repository = None
        async with connection.AsyncSessionLocal() as session:
            await _seed(SqlAlchemyRepository(session))
        return

    repository = InMemoryRepository()
    await _seed(repository)
    app.state.repository = repository


async def _close_storage(app: FastAPI) -> None:
    repository = getattr(app.state, "repository", None)
    if repository is not None:
        await repository.close()
        app.state.repository = None
    if settings.uses_database:
        await dispose_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    env_status = validate_environment()
    for error in env_status["errors"]:
        logger.error(f"Configuration error: {error}")
    for warning in env_status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
    if settings.is_production and not env_status["valid"]:
        raise RuntimeError("Refusing to start with an invalid production configuration")

    await _open_storage(app)
    logger.info(
        f"{settings.API_TITLE} {settings.API_VERSION} started "
        f"(environment={settings.ENVIRONMENT}, storage={settings.STORAGE_BACKEND}, demo={settings.DEMO_MODE})"
    )

    yield

    await _close_storage(app)
    logger.info(f"{settings.API_TITLE} stopped")


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=(
        "Track the documents exchanged with each client and turn them into "
        "ready-to-send WhatsApp messages.\n\n"
        "- **Clients / Documents**: owner-scoped CRUD, Drive breadcrumbs\n"
        "- **Templates**: global and client-attached texts with `{{variable}}` placeholders\n"
        "- **Messages**: render a message and build its wa.me link"
    ),
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug_enabled else None,
    redoc_url="/api/redoc" if settings.debug_enabled else None,
)

api_router = APIRouter(prefix="/api")


# ==================== HEALTH ====================

async def _storage_status(request: Request) -> dict:
    if not settings.uses_database:
        ready = getattr(request.app.state, "repository", None) is not None
        return {"status": "ready" if ready else "not_initialized", "type": "memory"}

    async with connection.engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return {"status": "connected", "type": "postgresql"}


@api_router.get("/", tags=["Health"])
async def root():
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@api_router.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Storage, Drive and configuration status. 503 when storage is unusable.
    """
    checks = {}
    healthy = True

    try:
        checks["storage"] = await _storage_status(request)
        healthy = checks["storage"]["status"] != "not_initialized"
    except Exception as e:
        logger.error(f"Storage health check failed: {e}")
        checks["storage"] = {"status": "disconnected", "error": str(e)}
        healthy = False

    checks["drive"] = {"status": "configured" if settings.drive_configured else "per_request_token"}

    env_status = validate_environment()
    checks["configuration"] = {
        "status": "valid" if env_status["valid"] else "invalid",
        "warnings": len(env_status["warnings"]),
        "errors": len(env_status["errors"]),
    }

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "checks": checks,
    }
    if not healthy:
        raise HTTPException(status_code=503, detail=body)
    return body


@api_router.get("/health/ready", tags=["Health"])
async def readiness_check(request: Request):
    try:
        storage = await _storage_status(request)
    except Exception as e:
        raise HTTPException(status_code=503, detail={"status": "not_ready", "error": str(e)})
    if storage["status"] == "not_initialized":
        raise HTTPException(status_code=503, detail={"status": "not_ready", "error": "Repository not initialized"})
    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}


@api_router.get("/health/live", tags=["Health"])
async def liveness_check():
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


for _router in (
    auth_router,
    clients_router,
    client_documents_router,
    documents_router,
    templates_router,
    messages_router,
    drive_router,
):
    api_router.include_router(_router)

app.include_router(api_router)

app.add_middleware(CORSMiddleware, **get_cors_config())


# ==================== REQUEST CONTEXT ====================

@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id for logging and report timing headers."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"
    # Reset first: the id must still be readable by the exception handler
    clear_request_context()
    set_request_context(request_id=request_id)
    started = time.perf_counter()
    response = await call_next(request)

    elapsed = time.perf_counter() - started
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{elapsed * 1000:.2f}"
    if response.status_code >= 400 or settings.debug_enabled:
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")
    return response


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    capture_exception(exc, path=request.url.path, method=request.method)

    body = {"detail": "Internal server error", "request_id": get_request_id()}
    if not settings.is_production:
        body["detail"] = str(exc)
        body["type"] = type(exc).__name__
        if settings.debug_enabled:
            body["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=500, content=body)
