"""
Field Visit Tracker: FastAPI application entry point

Aggregates the API routers, configures middleware and error rendering, and
initializes the database on startup.
"""
import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fieldvisit.api.middleware import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from fieldvisit.api.v1 import api_router
from fieldvisit.core.config import settings
from fieldvisit.core.errors import AppError
from fieldvisit.core.logging_config import configure_logging
from fieldvisit.db.session import init_db
from fieldvisit.utils.rate_limiter import auth_limiter, api_limiter

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Field visit logging for loan collection: agents record visit outcomes "
        "with photos and location; managers search visits and manage accounts."
    ),
)


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s v%s started", settings.APP_NAME, settings.APP_VERSION)


def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


# ─── Error Handlers ──────────────────────────────────────────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return error_response(400, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return error_response(400, f"{field}: {message}" if field else message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


# ─── Middleware ──────────────────────────────────────────────────────
@app.middleware("http")
async def rate_limit(request: Request, call_next):
    """Reject bursts per client address; /api/auth counts against both limits.

    The looser api limit is checked first so a request it refuses never
    spends the stricter auth quota.
    """
    path = request.url.path
    if path.startswith("/api"):
        client_key = request.client.host if request.client else "unknown"
        limiters = [api_limiter, auth_limiter] if path.startswith("/api/auth") else [api_limiter]
        for limiter in limiters:
            allowed, retry_after = limiter.check(client_key)
            if not allowed:
                return error_response(
                    429,
                    "Too many requests, please try again later.",
                    headers={"Retry-After": str(retry_after)},
                )
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["health"])
def health():
    """Liveness check"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
