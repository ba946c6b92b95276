"""
Error taxonomy for the check-in service.

Services raise these directly; each carries the HTTP status and the short
user-facing message the client shows in its notification banner.
"""

from typing import Optional

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """A lookup returned no row."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConstraintViolation(HTTPException):
    """A write broke a unique, not-null or check constraint."""

    def __init__(self, detail: str, constraint: Optional[str] = None):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
        self.constraint = constraint


class StateConflict(HTTPException):
    """The row exists but its state forbids the operation."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class TransportError(HTTPException):
    """The record store could not be reached or the call failed."""

    def __init__(self, detail: str = "Record store unavailable. Please try again."):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class InvalidInput(HTTPException):
    """The request is well-formed but contradicts the stored row."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
