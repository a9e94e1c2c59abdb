"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert

from hardstore import __version__
from hardstore.app.api.v1 import admin_router, auth_router
from hardstore.app.config import get_settings
from hardstore.app.logging import setup_logging
from hardstore.app.metrics import get_metrics_response, setup_metrics
from hardstore.app.middleware import LoggingMiddleware
from hardstore.core.domain.auth import Role
from hardstore.core.errors import HardstoreError
from hardstore.core.logging_schema import LogEvent
from hardstore.core.models import User, generate_ulid, utc_now
from hardstore.core.security import hash_password
from hardstore.infra import close_db, get_engine, get_session_factory, init_db

setup_logging()
logger = logging.getLogger(__name__)


async def _ensure_admin_user() -> None:
    """Create or update the bootstrap admin from ADMIN_ settings.

    Uses PostgreSQL upsert to handle concurrent worker startup safely.
    The upsert also clears any lockout on the admin account.
    """
    admin = get_settings().admin

    stmt = insert(User).values(
        id=generate_ulid(),
        username=admin.username,
        password_hash=hash_password(admin.password),
        role=Role.ADMIN.value,
        created_at=utc_now(),
        failed_attempts=0,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["username"],
        set_={
            "password_hash": stmt.excluded.password_hash,
            "role": Role.ADMIN.value,
            "failed_attempts": 0,
            "last_failed_at": None,
            "cooldown_until": None,
        },
    )
    async with get_session_factory()() as session:
        await session.execute(stmt)
        await session.commit()
    logger.info(
        "Ensured admin user",
        extra={"event": LogEvent.APP_STARTED, "username": admin.username},
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if settings.metrics.enabled:
        setup_metrics()

    await init_db()
    await _ensure_admin_user()

    logger.info("Starting application", extra={"event": LogEvent.APP_STARTED})

    yield

    logger.info("Shutting down application", extra={"event": LogEvent.APP_STOPPED})
    await close_db()


app = FastAPI(title="Hardstore", version=__version__, lifespan=lifespan)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(HardstoreError)
async def hardstore_error_handler(request: Request, exc: HardstoreError) -> JSONResponse:
    """Handle HardstoreError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
        headers=exc.headers(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


async def _check_postgres() -> str:
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
        return "connected"
    except RuntimeError:
        return "not initialized"
    except Exception as e:
        return f"error: {e}"


@app.get("/health")
async def health():
    services = {"database": await _check_postgres()}
    is_degraded = any(s != "connected" for s in services.values())

    return {
        "status": "degraded" if is_degraded else "ok",
        "version": __version__,
        "services": services,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()
