"""Domain error taxonomy and the response envelope built from it"""
from typing import Any, Dict, Optional


class VisionError(Exception):
    """Base class for errors reported to callers as a failure envelope"""
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(VisionError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ValidationFailed(VisionError):
    status_code = 400
    code = "VALIDATION_FAILED"
    default_message = "Invalid request"


class FileTooLarge(ValidationFailed):
    status_code = 413
    code = "FILE_TOO_LARGE"
    default_message = "File too large"


class NoRemoteChannel(VisionError):
    status_code = 404
    code = "NO_REMOTE_CHANNEL"
    default_message = "No PeerTube channel linked to this user"


class RemoteServiceError(VisionError):
    """Failure talking to the PeerTube instance"""
    code = "REMOTE_SERVICE_ERROR"
    default_message = "PeerTube request failed"

    def __init__(self, message: Optional[str] = None, details: Any = None, status: Optional[int] = None):
        super().__init__(message, details)
        self.status = status  # HTTP status returned by PeerTube, None on transport errors


class RemoteUploadFailed(RemoteServiceError):
    code = "REMOTE_UPLOAD_FAILED"
    default_message = "PeerTube upload failed"


class RemoteDeleteFailed(RemoteServiceError):
    code = "REMOTE_DELETE_FAILED"
    default_message = "PeerTube delete failed"


class ChannelCreationFailed(RemoteServiceError):
    code = "CHANNEL_CREATION_FAILED"
    default_message = "Failed to create channel after multiple attempts"


class InternalError(VisionError):
    pass


def success_envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Build the success response body"""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def error_envelope(message: str, code: str = "INTERNAL_ERROR", details: Any = None) -> Dict[str, Any]:
    """Build the failure response body"""
    body: Dict[str, Any] = {"success": False, "code": code, "message": message}
    if details is not None:
        body["details"] = details
    return body
