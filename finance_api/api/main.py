"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from finance_api.api.dependencies import get_request_id
from finance_api.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_api.api.v1 import ai_analysis, budget_goals, categories, credit_cards, periods, transactions
from finance_api.infrastructure.observability.logging import setup_logging
from finance_api.config import settings

# Setup structured logging
setup_logging(settings.log_level)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors in the success/message envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"success": False, "message": "Invalid data", "errors": errors})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors no router mapped; the session is rolled back by get_db"""
    logging.error(
        f"Unhandled error: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path},
    )
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance API",
        description="Personal finance tracking: transactions, credit cards, bills and month duplication",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"success": True, "status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(periods.router, prefix="/api", tags=["periods"])
    app.include_router(transactions.router, prefix="/api", tags=["transactions"])
    app.include_router(categories.router, prefix="/api", tags=["categories"])
    app.include_router(credit_cards.router, prefix="/api", tags=["credit-cards"])
    app.include_router(ai_analysis.router, prefix="/api", tags=["ai-analysis"])
    app.include_router(budget_goals.router, prefix="/api", tags=["budget-goals"])

    return app


app = create_app()
