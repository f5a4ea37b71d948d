"""Exceptions for Pipeline Library."""

from .domain import (
    AccessDeniedError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    InsufficientPermissionsError,
    PipelineAlreadyExistsError,
    PipelineConflictError,
    PipelineLibraryError,
    PipelineNotFoundError,
    PipelineRevisionNotFoundError,
    PreconditionFailedError,
    RuleDefinitionsConflictError,
    SlaveModeError,
    StoreError,
)
from .http import UNAUTHORIZED, CustomHTTPException

__all__ = [
    "UNAUTHORIZED",
    "AccessDeniedError",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConfigurationError",
    "ConflictError",
    "CustomHTTPException",
    "EntityAlreadyExistsError",
    "EntityNotFoundError",
    "InsufficientPermissionsError",
    "PipelineAlreadyExistsError",
    "PipelineConflictError",
    "PipelineLibraryError",
    "PipelineNotFoundError",
    "PipelineRevisionNotFoundError",
    "PreconditionFailedError",
    "RuleDefinitionsConflictError",
    "SlaveModeError",
    "StoreError",
]
