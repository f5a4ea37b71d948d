"""
Domain exceptions for business logic layer.

These exceptions are used in the store, validators and services to represent
business logic errors without coupling to HTTP status codes.
"""

from typing import Self


class PipelineLibraryError(Exception):
    """Base exception for all Pipeline Library errors."""

    def with_context(self, detail: str) -> Self:
        """Add context information to the exception.

        Args:
            detail: Additional details about the error

        Returns:
            Self with updated message
        """
        self.args = (detail,)
        return self


# Base domain exceptions
class EntityNotFoundError(PipelineLibraryError):
    """Raised when an entity is not found in the store."""

    pass


class EntityAlreadyExistsError(PipelineLibraryError):
    """Raised when trying to create an entity that already exists."""

    pass


class ConflictError(PipelineLibraryError):
    """Raised when a write is based on a stale copy of a document."""

    pass


class AuthenticationError(PipelineLibraryError):
    """Raised when the caller identity cannot be established."""

    pass


class AuthorizationError(PipelineLibraryError):
    """Raised when the caller lacks required permissions."""

    pass


class PreconditionFailedError(PipelineLibraryError):
    """Raised when an operation is not allowed in the current runtime state."""

    pass


class BadRequestError(PipelineLibraryError):
    """Raised when a request parameter or body is malformed."""

    pass


class StoreError(PipelineLibraryError):
    """Raised when the pipeline store fails for reasons unrelated to the request."""

    pass


class ConfigurationError(PipelineLibraryError):
    """Raised when there's a configuration problem."""

    pass


# Pipeline-specific exceptions
class PipelineNotFoundError(EntityNotFoundError):
    """Raised when a pipeline is not found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Pipeline '{name}' does not exist")


class PipelineRevisionNotFoundError(EntityNotFoundError):
    """Raised when a pipeline revision is not found."""

    def __init__(self, name: str, rev: str) -> None:
        super().__init__(f"Pipeline '{name}' has no revision '{rev}'")


class PipelineAlreadyExistsError(EntityAlreadyExistsError):
    """Raised when trying to create a pipeline that already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Pipeline '{name}' already exists")


class PipelineConflictError(ConflictError):
    """Raised when a pipeline is saved with an outdated uuid."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"The provided UUID for pipeline '{name}' does not match the stored one, please reload"
        )


class RuleDefinitionsConflictError(ConflictError):
    """Raised when rule definitions are saved with an outdated uuid."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"The provided UUID for the rules of pipeline '{name}' does not match "
            "the stored one, please reload"
        )


# Access exceptions
class InsufficientPermissionsError(AuthorizationError):
    """Raised when the caller has none of the roles an operation requires."""

    def __init__(self, action: str | None = None) -> None:
        if action:
            super().__init__(f"Insufficient permissions for action: {action}")
        else:
            super().__init__("Insufficient permissions")


class AccessDeniedError(AuthorizationError):
    """Raised for routes that have no access policy."""

    def __init__(self) -> None:
        super().__init__("Access denied")


class SlaveModeError(PreconditionFailedError):
    """Raised when a write is attempted while running as a slave."""

    def __init__(self) -> None:
        super().__init__("This operation is not supported in SLAVE mode")
