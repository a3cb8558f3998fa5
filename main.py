"""
OMNIX AI Backend

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog

from config import settings, check_connection
from exceptions import AppError
from models.base import utc_now

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_PREFIX = "/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: Seed the memory backend, check storage
    Shutdown: Nothing to release; repositories live with the process
    """
    logger.info(
        "application_starting",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
        model_analysis=settings.ai_analysis_enabled and bool(settings.anthropic_api_key)
    )

    if settings.storage_backend == "memory" and settings.seed_demo_data:
        from scripts.seed_demo_data import seed_demo_data
        seed_demo_data()

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "storage_connected",
            backend=db_status["backend"],
            products=db_status["products_count"]
        )
    else:
        logger.error(
            "storage_connection_failed",
            backend=db_status["backend"],
            error=db_status.get("error")
        )

    yield

    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="OMNIX AI",
    description="Inventory management with consumption prediction and AI recommendations",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Basic health status and storage state
    """
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": utc_now().isoformat(),
        "environment": settings.environment,
        "database": db_status
    }


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns:
        API information and available endpoints
    """
    return {
        "name": "OMNIX AI API",
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "products": f"{API_PREFIX}/products",
            "orders": f"{API_PREFIX}/orders",
            "customers": f"{API_PREFIX}/customers",
            "alerts": f"{API_PREFIX}/alerts",
            "recommendations": f"{API_PREFIX}/recommendations",
            "dashboard": f"{API_PREFIX}/dashboard",
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Errors raised outside route bodies, e.g. by auth dependencies."""
    logger.warning(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler.

    Catches unhandled exceptions and returns standard error format.
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": utc_now().isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes import (
    products_router,
    orders_router,
    customers_router,
    alerts_router,
    recommendations_router,
    dashboard_router,
)

app.include_router(products_router, prefix=f"{API_PREFIX}/products", tags=["Products"])
app.include_router(orders_router, prefix=f"{API_PREFIX}/orders", tags=["Orders"])
app.include_router(customers_router, prefix=f"{API_PREFIX}/customers", tags=["Customers"])
app.include_router(alerts_router, prefix=f"{API_PREFIX}/alerts", tags=["Alerts"])
app.include_router(recommendations_router, prefix=f"{API_PREFIX}/recommendations", tags=["Recommendations"])
app.include_router(dashboard_router, prefix=f"{API_PREFIX}/dashboard", tags=["Dashboard"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
