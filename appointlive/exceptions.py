import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppointLiveError(Exception):
    """Base class for errors raised by the application services"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidTransition(AppointLiveError):
    """Requested status change is not an edge of the status graph"""

    status_code = status.HTTP_409_CONFLICT
    error_code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str, actor: str):
        super().__init__(
            f"Cannot move appointment from '{current}' to '{target}' as {actor}",
            details={"current": current, "target": target, "actor": actor},
        )
        self.current = current
        self.target = target
        self.actor = actor


class ValidationError(AppointLiveError):
    """Missing or invalid input; ``details`` maps field name to message"""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"

    def __init__(self, field_errors: Dict[str, str], message: str = "Please fill in all required fields"):
        super().__init__(message, details=dict(field_errors))

    @property
    def field_errors(self) -> Dict[str, str]:
        return self.details


class DuplicateSubmission(AppointLiveError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "DUPLICATE_SUBMISSION"

    def __init__(self, form_id: str):
        super().__init__("A booking for this form is already being submitted", details={"form_id": form_id})


class LocationUnavailable(AppointLiveError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "LOCATION_UNAVAILABLE"

    def __init__(self, reason: str):
        super().__init__(
            "Unable to get your location. Please ensure location permissions are enabled.",
            details={"reason": reason},
        )
        self.reason = reason


class ServiceUnavailable(AppointLiveError):
    """The route time service failed or answered with something unusable"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "SERVICE_UNAVAILABLE"


class StoreError(AppointLiveError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "STORE_ERROR"


class NotFound(AppointLiveError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class PermissionDenied(AppointLiveError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"


def create_error_response(error_message: Any, status_code: int = 400, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message,
    }
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )


async def appointlive_exception_handler(request: Request, exc: AppointLiveError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code, exc.error_code, exc.details),
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/query validation failures as a field map"""
    fields: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields[".".join(loc) or "request"] = err.get("msg", "Invalid value")
    return JSONResponse(
        status_code=422,
        content=create_error_response("Invalid request", 422, ValidationError.error_code, fields),
    )
