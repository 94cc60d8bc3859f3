"""EPC Intake Service - FastAPI server for the Elite Performance Clinic website."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.auth.routes import router as auth_router
from src.shared.config.settings import Settings
from src.shared.forms.routes import router as forms_router
from src.shared.integrations.http import create_http_client
from src.shared.payment.routes import router as payment_router
from src.shared.security.rate_limit import MemoryRateLimitStore, RateLimiter
from src.shared.security.rate_limit_database import SqlRateLimitStore, create_rate_limit_engine
from src.shared.security.responses import error_body, sanitize_error


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """In-memory limiter by default; SQL-backed when RATE_LIMIT_DATABASE_URL is set."""
    if settings.rate_limit_database_url:
        store = SqlRateLimitStore(create_rate_limit_engine(settings.rate_limit_database_url))
        store.create_tables()
        logging.info("Using database-backed rate limit store")
        return RateLimiter(store)
    return RateLimiter(MemoryRateLimitStore())


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for error in exc.errors():
        # Drop the leading "body" element of the location
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc) or "body", "error": error.get("msg", "Invalid value")})
    return errors


def create_app(
    settings: Optional[Settings] = None,
    rate_limiter: Optional[RateLimiter] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Startup configuration (CORS origins, log level, stores)
        rate_limiter: Limiter shared by all rate-limited routes
        http_client: Outbound client for Airtable, Resend and Square; when
            omitted one is opened and closed with the app lifespan
    """
    settings = settings or Settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = getattr(app.state, "http_client", None) is None
        if owns_client:
            app.state.http_client = create_http_client(settings.http_timeout_seconds)
        logging.info("EPC Intake Service started")
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()
                app.state.http_client = None

    app = FastAPI(
        title="EPC Intake Service",
        description="Form intake, payments and staff login for the Elite Performance Clinic website",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.rate_limiter = rate_limiter or build_rate_limiter(settings)
    app.state.http_client = http_client

    # CORS configuration
    allowed_origins = settings.cors_allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    def cors_headers(request: Request) -> dict:
        headers = {}
        origin = request.headers.get("origin")
        if origin in allowed_origins:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers

    def error_headers(request: Request, extra: Optional[dict] = None) -> dict:
        """Rate limit headers computed for this request, plus the exception's own."""
        headers = dict(getattr(request.state, "rate_limit_headers", None) or {})
        headers.update(extra or {})
        return headers

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Render HTTP errors as ``{"error", "details"?}`` bodies."""
        if isinstance(exc.detail, dict):
            content = exc.detail
        elif exc.status_code == 405:
            content = {"error": "Method not allowed"}
        else:
            content = {"error": str(exc.detail)}

        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=error_headers(request, getattr(exc, "headers", None))
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Request-model validation failures are client errors like any other."""
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", _validation_errors(exc)),
            headers=error_headers(request)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Last resort: log and hide internals. Runs outside the CORS middleware."""
        logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        production = settings.is_production
        return JSONResponse(
            status_code=500,
            content=error_body("Internal server error", sanitize_error(str(exc), production), production),
            headers=error_headers(request, cors_headers(request))
        )

    app.include_router(forms_router)
    app.include_router(payment_router)
    app.include_router(auth_router)

    @app.get("/")
    async def root():
        return {"message": "EPC Intake Service is running", "status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.app:app", host="0.0.0.0", port=8000)
