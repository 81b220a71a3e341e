"""
Custom Exceptions for StudentHub Portal
=======================================

Every failure the portal can surface (network failure, non-2xx response,
unparseable body, client-side validation) is one of these. Views catch
PortalError at the action boundary and reduce it to a single notification.

Usage:
    from studenthub.exceptions import NotFoundError, ValidationError

    try:
        course = await api.courses.get_by_id(code)
    except NotFoundError:
        notifier.error("Course not found")
"""

from typing import Optional, Any, Dict


class PortalError(Exception):
    """Base exception for all portal errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# HTTP / API Errors
# ============================================

class APIError(PortalError):
    """Backend answered with a non-2xx status"""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str = "API_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        details["status_code"] = status_code
        super().__init__(message, code=code, details=details)
        self.status_code = status_code


class NotFoundError(APIError):
    """Resource does not exist (404)"""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 404, code="NOT_FOUND", details=details)


class AuthenticationError(APIError):
    """Missing or rejected credentials (401)"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, 401, code="AUTH_FAILED")


class AuthorizationError(APIError):
    """Caller is not allowed to perform this action (403)"""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, 403, code="NOT_AUTHORIZED")


class ConflictError(APIError):
    """Backend reported a conflicting state (409)"""

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, 409, code="CONFLICT")


# ============================================
# Transport Errors
# ============================================

class ConnectionFailedError(PortalError):
    """Backend could not be reached"""

    def __init__(self, message: str = "Cannot connect to server"):
        super().__init__(message, code="CONNECTION_FAILED")


class RequestTimeoutError(PortalError):
    """Backend did not answer in time"""

    def __init__(self, timeout: float):
        super().__init__(
            f"Request timed out after {timeout}s",
            code="TIMEOUT",
            details={"timeout": timeout}
        )


class InvalidResponseError(PortalError):
    """Backend answered 2xx but the body was not valid JSON or not the expected shape"""

    def __init__(self, message: str = "Invalid response from server"):
        super().__init__(message, code="INVALID_RESPONSE")


# ============================================
# Client-side Validation Errors
# ============================================

class ValidationError(PortalError):
    """Input rejected before any network call"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidTransitionError(ValidationError):
    """Status change not allowed from the current status"""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change status from {current} to {target}", field="status")
        self.code = "INVALID_TRANSITION"
        self.details.update({"from": current, "to": target})


class TransferIncompleteError(PortalError):
    """Course transfer created the new enrollment but failed to remove the old one"""

    def __init__(self, new_enrollment_id: str, old_enrollment_id: str, reason: str):
        super().__init__(
            f"Transfer left a duplicate enrollment ({old_enrollment_id}): {reason}",
            code="TRANSFER_INCOMPLETE",
            details={
                "new_enrollment_id": new_enrollment_id,
                "old_enrollment_id": old_enrollment_id,
            }
        )


def error_from_status(status_code: int, message: str) -> APIError:
    """Map an HTTP status to the matching APIError subclass"""
    if status_code == 401:
        return AuthenticationError(message)
    if status_code == 403:
        return AuthorizationError(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    return APIError(message, status_code)
