"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from vision.core.config import settings
from vision.core.errors import VisionError, error_envelope
from vision.core.logging import setup_logging
from vision.core.middleware import setup_cors_middleware, access_log_middleware
from vision.db.session import init_db
from vision.db.redis import get_redis_client
from vision.models import Base  # Import all models to register with Base.metadata
from vision.services.peertube import PeerTubeClient

# Import routers
from vision.api import seasons, games, videos, accounts, shared

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    logger.info("Testing Redis connection...")
    try:
        get_redis_client().ping()
        logger.info("Redis connection successful")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        raise

    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    peertube = PeerTubeClient.from_settings(settings)
    app.state.peertube_client = peertube
    try:
        peertube.tokens.initialize()
    except VisionError as e:
        # Not fatal: the token is fetched again on first use
        logger.error(f"PeerTube authentication failed at startup: {e.message}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    peertube.close()


# Create FastAPI app
app = FastAPI(
    title="Vision Backend",
    description="Season, game and video library backed by PeerTube",
    version="1.0.0",
    lifespan=lifespan
)

setup_cors_middleware(app)
app.middleware("http")(access_log_middleware)

# Include routers
app.include_router(seasons.router)
app.include_router(games.router)
app.include_router(videos.router)
app.include_router(accounts.router)
app.include_router(shared.router)


@app.exception_handler(VisionError)
async def vision_error_handler(request: Request, exc: VisionError):
    """Domain errors -> failure envelope with the error's status"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.code, exc.details)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are reported as 400 like any other validation failure"""
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_envelope("Invalid request", "VALIDATION_FAILED", errors)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    codes = {401: "UNAUTHENTICATED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), codes.get(exc.status_code, "HTTP_ERROR")),
        headers=getattr(exc, "headers", None)
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_envelope("Internal server error", "INTERNAL_ERROR")
    )


# Prometheus metrics endpoint
@app.get("/metrics")
def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
