"""Security dependencies"""
import logging

from fastapi import HTTPException, Request

from vision.db.redis import get_session

security_logger = logging.getLogger("security")


def require_auth(request: Request) -> int:
    """Dependency: Require authentication, return user_id"""
    session_id = request.cookies.get("session_id")

    if not session_id:
        raise HTTPException(401, "Not authenticated. Please log in.")

    user_id = get_session(session_id)
    if not user_id:
        security_logger.info(f"Expired or unknown session on {request.url.path}")
        raise HTTPException(401, "Session expired. Please log in again.")

    return user_id
