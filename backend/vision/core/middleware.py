"""Middleware configuration for FastAPI application"""
import json
import logging
import time
from datetime import datetime, timezone

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware

from vision.core.config import settings

api_access_logger = logging.getLogger("api_access")


def get_allowed_origins():
    """Get list of allowed CORS origins"""
    allowed_origins = [settings.FRONTEND_URL]
    if settings.ENVIRONMENT == "development":
        allowed_origins.extend([
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000"
        ])
    return allowed_origins


def setup_cors_middleware(app):
    """Setup CORS middleware for FastAPI app"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def log_api_access(request: Request, status_code: int, duration_ms: float):
    """Log one API request; failures at warning level"""
    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.client.host if request.client else "unknown"

    session_id = request.cookies.get("session_id")
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": request.method,
        "path": request.url.path,
        "session_id": session_id[:16] + "..." if session_id else None,
        "client_ip": client_ip,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 1),
    }

    if status_code >= 400:
        api_access_logger.warning(f"API Access: {json.dumps(log_data)}")
    else:
        api_access_logger.info(f"API Access: {json.dumps(log_data)}")


async def access_log_middleware(request: Request, call_next):
    """Middleware for API access logging"""
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        log_api_access(request, status_code, (time.perf_counter() - start) * 1000)
