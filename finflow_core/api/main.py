"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finflow_core.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finflow_core.api.v1 import audit, copilot, debts, obligations, recurring
from finflow_core.infrastructure.observability.logging import setup_logging
from finflow_core.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinFlow Core",
        description="Debt payment reconciliation, recurring transactions and document confirmation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(obligations.router, prefix="/v1", tags=["obligations"])
    app.include_router(recurring.router, prefix="/v1", tags=["recurring"])
    app.include_router(copilot.router, prefix="/v1", tags=["copilot"])
    app.include_router(audit.router, prefix="/v1", tags=["audit"])

    return app


app = create_app()
