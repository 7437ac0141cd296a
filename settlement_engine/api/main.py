"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from settlement_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from settlement_engine.api.v1 import finance, settlements
from settlement_engine.domain.exceptions import ProviderRequiredError
from settlement_engine.infrastructure.observability.logging import setup_logging
from settlement_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Settlement Engine",
        description="Commission, settlement and financial reporting service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(ProviderRequiredError)
    async def provider_required_handler(request: Request, exc: ProviderRequiredError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(finance.router, prefix="/v1", tags=["finance"])
    app.include_router(settlements.router, prefix="/v1", tags=["settlements"])

    return app


app = create_app()
