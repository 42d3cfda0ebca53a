"""
Error taxonomy shared by the services.

Every failure is either "not found" (a referenced entity is absent) or
"invalid input" (a validation failure or duplicate name).

Nothing in this package serves HTTP; ``to_http_exception`` is for HTTP
adapters built outside it that expose the services as endpoints.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class CatKeeperError(Exception):
    """Base class for service-level failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CatKeeperError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidInputError(CatKeeperError):
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateNameError(InvalidInputError):
    status_code = status.HTTP_409_CONFLICT


def to_http_exception(error: CatKeeperError) -> HTTPException:
    """Map a service error into an HTTPException carrying its message."""
    return HTTPException(status_code=error.status_code, detail=error.message)
