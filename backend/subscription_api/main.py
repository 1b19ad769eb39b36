"""Subscription API — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from subscription_api.api.routes.auth import router as auth_router
from subscription_api.api.routes.paypal import router as paypal_router
from subscription_api.api.routes.plans import router as plans_router
from subscription_api.api.routes.subscriptions import router as subscriptions_router
from subscription_api.api.routes.users import router as users_router
from subscription_api.api.routes.webhooks import router as webhooks_router
from subscription_api.config import settings
from subscription_api.errors import BillingError

# Configure root logger so all subscription_api.* loggers output to stderr.
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    from subscription_api.database import Base, engine

    # Startup
    if settings.create_tables_on_startup:
        import subscription_api.models  # noqa: F401  (registers every table)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")
    yield
    # Shutdown: dispose engine connections
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Subscription billing backend with PayPal checkout and webhook reconciliation.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Render domain errors with the HTTP status their kind maps to."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.original_error or exc,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(plans_router)
app.include_router(subscriptions_router)
app.include_router(paypal_router)
app.include_router(webhooks_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
