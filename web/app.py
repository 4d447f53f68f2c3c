from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from stock_dashboard.api.rate_limit import limiter
from stock_dashboard.api.router import api_router
from stock_dashboard.api.routes_health import router as health_router
from stock_dashboard.config import Settings, get_settings
from stock_dashboard.exceptions import (
    ConfigurationError,
    ConflictError,
    DatabaseError,
    ExternalAPIError,
    NotFoundError,
    StockDashboardError,
    SyncError,
    ValidationError,
)
from stock_dashboard.lifecycle import lifespan
from stock_dashboard.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Instantiate the FastAPI application with routing and middleware."""
    settings = settings or get_settings()
    configure_logging(settings)

    application = FastAPI(
        title="Stock Dashboard API",
        version="1.0.0",
        description="Daily US equity data synced from Financial Modeling Prep.",
        lifespan=lifespan,
    )
    application.state.settings = settings

    # Rate limiting
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Register exception handlers
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.api_prefix)
    application.include_router(health_router, tags=["health"])

    return application


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same envelope as the other error responses, with slowapi's retry headers."""
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    response = JSONResponse(
        status_code=429,
        content={"success": False, "error": f"Rate limit exceeded: {exc.detail}"}
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


def _request_error_messages(exc: RequestValidationError) -> list:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
        messages.append(f"Invalid {location or 'request'}: {error['msg']}")
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers for business exceptions."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning(f"Validation error: {exc.errors}")
        return JSONResponse(
            status_code=400,
            content=exc.to_dict()
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle missing records with 404 status."""
        logger.warning(f"Not found: {exc.resource} {exc.identifier}")
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": exc.message}
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        """Handle duplicate natural keys with 409 status."""
        logger.warning(f"Conflict: {exc.message}")
        return JSONResponse(
            status_code=409,
            content={"success": False, "error": exc.message}
        )

    @app.exception_handler(ExternalAPIError)
    async def external_api_error_handler(request: Request, exc: ExternalAPIError) -> JSONResponse:
        """Handle external API errors with 502 status."""
        logger.error(f"External API error: {exc.message}")
        return JSONResponse(
            status_code=502,
            content=exc.to_dict()
        )

    @app.exception_handler(SyncError)
    async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
        """Handle aborted syncs with 500 status."""
        logger.error(f"{exc.message}: {exc.reason}")
        return JSONResponse(
            status_code=500,
            content=exc.to_dict()
        )

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
        """Handle database errors with 500 status."""
        logger.error(f"Database error: {exc.message}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=exc.to_dict()
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        """Handle configuration errors with 500 status."""
        logger.error(f"Configuration error: {exc.message}")
        return JSONResponse(
            status_code=500,
            content=exc.to_dict()
        )

    @app.exception_handler(StockDashboardError)
    async def base_exception_handler(request: Request, exc: StockDashboardError) -> JSONResponse:
        """Catch-all handler for any custom business exception."""
        logger.error(f"Unhandled business exception: {exc.message}", exc_info=True)
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_dict()
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed query, path or body values are reported like rule failures."""
        errors = _request_error_messages(exc)
        logger.warning(f"Request validation error: {errors}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "errors": errors}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Route not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"}
        )


app = create_app()
