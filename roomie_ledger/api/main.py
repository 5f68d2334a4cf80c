"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from roomie_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from roomie_ledger.api.v1 import expenses, balances, settlements, notifications, members
from roomie_ledger.infrastructure.observability.logging import setup_logging
from roomie_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Roomie Ledger",
        description="Shared expenses, balances and atomic settle-up for small groups",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(members.router, prefix="/v1", tags=["members"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(balances.router, prefix="/v1", tags=["balances"])
    app.include_router(settlements.router, prefix="/v1", tags=["settlements"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])

    return app


app = create_app()
