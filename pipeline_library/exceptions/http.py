"""
HTTP exceptions for API layer.

These exceptions are used ONLY in the API layer to return proper HTTP responses.
They should NOT be used in services or the store.
"""

from typing import Self

from fastapi import HTTPException, status


class CustomHTTPException(HTTPException):
    """Base HTTP exception with context support."""

    def with_context(self, detail: str) -> Self:
        """
        Add context to an HTTP exception.

        Args:
            detail: Additional information about the error

        Returns:
            A new HTTPException with updated details
        """
        self.detail = detail
        return self


UNAUTHORIZED = CustomHTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid authentication credentials",
    headers={"WWW-Authenticate": "Bearer"},
)
