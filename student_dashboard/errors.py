"""
Domain errors

Every error the services raise carries its HTTP status and a stable code.
main.py turns them into {"success": false, "code": ..., "message": ...}.
"""
from fastapi import status


class DashboardError(Exception):
    """Base class for expected, client-visible failures"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(DashboardError):
    """Duplicate course code/email, already enrolled, or not enrolled"""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class CapacityExceededError(DashboardError):
    status_code = status.HTTP_409_CONFLICT
    code = "CAPACITY_EXCEEDED"


class ForbiddenError(DashboardError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ValidationFailedError(DashboardError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"


class InactiveError(DashboardError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INACTIVE"


class ServerFaultError(DashboardError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVER_ERROR"
