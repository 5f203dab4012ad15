# app/utils/exceptions.py
"""
Typed HTTP errors shared by every route.

All of them are ``HTTPException`` subclasses, so the usual
``except HTTPException: raise`` blocks in handlers let them through and the
exception handlers in ``app.main`` render them as the standard
``{"success": false, "error": ...}`` envelope.
"""
from fastapi import HTTPException, status


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDeniedError(HTTPException):
    def __init__(self, detail: str = "Permission denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationFailedError(HTTPException):
    def __init__(self, detail: str = "Missing required fields"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidIdentifierError(ValidationFailedError):
    def __init__(self, detail: str = "Invalid identifier"):
        super().__init__(detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Record already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DatabaseUnavailableError(HTTPException):
    def __init__(self, detail: str = "Database connection failed"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
