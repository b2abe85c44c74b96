"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quasar import __version__
from quasar.api.routes import (admin_categories, admin_component_configs,
                               admin_customers, admin_delivery_methods,
                               admin_fulfillments, admin_loyalty,
                               admin_mail_providers, admin_mail_templates,
                               admin_notifications, admin_orders,
                               admin_payment_methods, admin_products,
                               admin_sections, admin_shipping_providers,
                               admin_warehouses, auth, client_sections,
                               health, metrics, user_notifications)
from quasar.core.config import get_settings
from quasar.core.errors import AppError, CommonErrorCodes
from quasar.core.logging_config import LoggingConfig
from quasar.core.middleware import RequestContextMiddleware
from quasar.core.middleware_metrics import MetricsMiddleware
from quasar.core.responses import ResponseService

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} {__version__} in {settings.app_env} mode...")
    yield
    logger.info(f"Shutting down {settings.app_name}...")


_settings = get_settings()

app = FastAPI(
    title=_settings.app_name,
    description="E-commerce admin and storefront backend",
    version=__version__,
    lifespan=lifespan,
)

# Logging context first so every request carries a request id
app.add_middleware(RequestContextMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} {exc.message}", extra={"path": request.url.path, "method": request.method})
    else:
        logger.info(f"{exc.code} {exc.message}", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=exc.status_code, content=ResponseService.from_app_error(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=ResponseService.error(
            "Request validation failed",
            reason=CommonErrorCodes.VALIDATION_ERROR,
            domain="request",
            http_code=400,
            status="WARNING",
            metadata={"errors": exc.errors()},
        ),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    # Don't handle HTTPException - let FastAPI handle it
    if isinstance(exc, FastAPIHTTPException):
        raise exc

    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(status_code=500, content=ResponseService.error(str(exc)))


app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(auth.router)

# Admin
app.include_router(admin_products.router)
app.include_router(admin_categories.router)
app.include_router(admin_warehouses.router)
app.include_router(admin_customers.router)
app.include_router(admin_orders.router)
app.include_router(admin_fulfillments.router)
app.include_router(admin_payment_methods.router)
app.include_router(admin_delivery_methods.router)
app.include_router(admin_shipping_providers.router)
app.include_router(admin_loyalty.router)
app.include_router(admin_notifications.router)
app.include_router(admin_mail_templates.router)
app.include_router(admin_mail_providers.router)
app.include_router(admin_sections.router)
app.include_router(admin_component_configs.router)

# Storefront and signed-in user
app.include_router(client_sections.router)
app.include_router(user_notifications.router)


@app.get("/api")
async def root():
    """Root API endpoint"""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "quasar.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
    )
