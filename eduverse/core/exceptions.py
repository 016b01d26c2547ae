"""
Service-level errors.

Services raise these instead of HTTPException so they can be reused outside of a
request (scripts, tests). `eduverse.main` maps them to JSON responses.
"""
from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ServiceUnavailableError(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
