"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from gqlauth import __version__
from gqlauth.api import health, tokens
from gqlauth.config import settings
from gqlauth.database import SessionLocal
from gqlauth.errors import ErrorCategory, TokenAuthError
from gqlauth.middleware.header_rewrite import HeaderRewriteMiddleware
from gqlauth.middleware.monitoring import record_auth_failure
from gqlauth.middleware.rate_limit import limiter
from gqlauth.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

STATUS_BY_CATEGORY = {
    ErrorCategory.UNAUTHENTICATED: 401,
    ErrorCategory.BAD_INPUT: 400,
    ErrorCategory.MISCONFIGURED: 500,
    ErrorCategory.STORAGE: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("gqlauth starting up", extra={"action": "startup"})
    if not settings.JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is not set; token issuance and JWT verification will fail")
    yield
    logger.info("gqlauth shutting down", extra={"action": "shutdown"})


app = FastAPI(
    title="gqlauth",
    description="Token issuance, validation, refresh and revocation for GraphQL API clients",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.RESTRICT_REQUESTS:
    app.add_middleware(HeaderRewriteMiddleware, session_factory=SessionLocal)

if settings.METRICS_ENABLED:
    from gqlauth.middleware.monitoring import MonitoringMiddleware
    app.add_middleware(MonitoringMiddleware)

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics", "/health", "/health/ready"],
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting; the limiter itself honours RATE_LIMIT_ENABLED
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={"action": "rate_limit", "request_id": getattr(request.state, "request_id", None)}
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail)
        }
    )

# ===== Route Setup =====

app.include_router(health.router)
app.include_router(tokens.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": "gqlauth",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

@app.exception_handler(TokenAuthError)
async def token_auth_exception_handler(request: Request, exc: TokenAuthError):
    """Map token lifecycle errors to HTTP responses"""
    status_code = STATUS_BY_CATEGORY[exc.category]
    headers = {}

    if exc.category is ErrorCategory.UNAUTHENTICATED:
        record_auth_failure(exc.kind)
        headers["WWW-Authenticate"] = "Bearer"
        logger.debug(f"Rejected credentials: {exc.message}", extra={"kind": exc.kind, "action": "authenticate"})
    elif status_code >= 500:
        logger.error(f"Token service failure: {exc.message}", extra={"kind": exc.kind, "action": "token_service"})

    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"action": "unhandled_exception"},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please contact support."
        }
    )
