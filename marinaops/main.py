"""
FastAPI application factory with middleware, CORS, and request tracing.
"""

import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marinaops import __version__
from marinaops.config import get_settings
from marinaops.routers import (
    auth,
    berths,
    boats,
    bookings,
    contracts,
    data_source,
    invoices,
    marina_groups,
    marinas,
    owners,
    payments,
    reports,
    system,
    users,
    work_orders,
)
from marinaops.storage import get_settings_store
from marinaops.utils.logging import bind_request_context, configure_logging, get_logger

# Configure logging at module level
configure_logging()
logger = get_logger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    settings = get_settings()

    logger.info(
        "application_startup",
        version=app.version,
        environment=settings.environment,
        dev_mode=settings.dev_mode,
    )

    db_dir = os.path.dirname(settings.db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
        logger.info("directories_created", paths=[db_dir])

    data_source_settings = get_settings_store().settings
    logger.info(
        "data_source_ready",
        source=data_source_settings.current_source.value,
        forced_mode=data_source_settings.forced_mode.value,
    )

    yield

    logger.info("application_shutdown")


def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Marina Operations API",
        description="Marina, berth, contract and billing summaries with demo/live data sources",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Request tracing middleware
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Bind a request id, time the request and turn crashes into a 500 envelope."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        bind_request_context(request_id, method=request.method, path=request.url.path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id},
            )

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": app.version,
            "environment": settings.environment,
        }

    # Include routers
    app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])
    app.include_router(marinas.router, prefix=f"{API_PREFIX}/marinas", tags=["Marinas"])
    app.include_router(
        marina_groups.router, prefix=f"{API_PREFIX}/marina-groups", tags=["Marina Groups"]
    )
    app.include_router(owners.router, prefix=f"{API_PREFIX}/owners", tags=["Owners"])
    app.include_router(owners.router, prefix=f"{API_PREFIX}/customers", tags=["Customers"])
    app.include_router(berths.router, prefix=f"{API_PREFIX}/berths", tags=["Berths"])
    app.include_router(boats.router, prefix=f"{API_PREFIX}/boats", tags=["Boats"])
    app.include_router(contracts.router, prefix=f"{API_PREFIX}/contracts", tags=["Contracts"])
    app.include_router(bookings.router, prefix=f"{API_PREFIX}/bookings", tags=["Bookings"])
    app.include_router(invoices.router, prefix=f"{API_PREFIX}/invoices", tags=["Invoices"])
    app.include_router(payments.router, prefix=f"{API_PREFIX}/payments", tags=["Payments"])
    app.include_router(
        work_orders.router, prefix=f"{API_PREFIX}/work-orders", tags=["Work Orders"]
    )
    app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])
    app.include_router(
        data_source.router, prefix=f"{API_PREFIX}/data-source", tags=["Data Source"]
    )
    app.include_router(reports.router, prefix=f"{API_PREFIX}/reports", tags=["Reports"])
    app.include_router(system.router, prefix=f"{API_PREFIX}/system", tags=["System"])

    logger.info("application_configured", routers_count=16)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "marinaops.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
