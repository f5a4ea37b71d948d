"""
Security utilities for the Pipeline Library API.

Callers are identified by a bearer JWT minted by an upstream identity provider
(or by :func:`create_access_token`). The token carries the caller name in ``sub``
and the granted roles in ``roles``.
"""

import enum
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from authlib.jose import JoseError, jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field, field_validator

from pipeline_library.exceptions import UNAUTHORIZED
from pipeline_library.settings import settings
from pipeline_library.utils.logger import logger

bearer_scheme = HTTPBearer(auto_error=False)


class AuthzRole(str, enum.Enum):
    """Roles the access policy table checks membership of."""

    GUEST = "guest"
    MANAGER = "manager"
    CREATOR = "creator"
    ADMIN = "admin"


class Token(BaseModel):
    """Schema for an issued access token."""

    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Schema for JWT token payload."""

    sub: str
    roles: frozenset[AuthzRole] = Field(default_factory=frozenset)
    exp: datetime | None = None

    @field_validator("roles", mode="before")
    @classmethod
    def _known_roles(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        known = {role.value for role in AuthzRole}
        return frozenset(
            role for role in (str(item).lower() for item in value) if role in known
        )


def create_access_token(
    user: str, roles: list[AuthzRole], expires_delta: timedelta | None = None
) -> Token:
    """Create a new JWT access token."""
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expire_minutes)

    payload = {
        "sub": user,
        "roles": sorted(role.value for role in roles),
        "exp": int(expire.timestamp()),
    }
    header = {"alg": settings.jwt_algorithm}
    encoded_jwt = jwt.encode(header, payload, settings.secret_key)

    return Token(access_token=encoded_jwt.decode())


def decode_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> TokenData:
    """Decode and validate a JWT token from the Authorization header."""
    if credentials is None:
        raise UNAUTHORIZED

    try:
        claims = jwt.decode(credentials.credentials, settings.secret_key)
        claims.validate()
        token_data = TokenData.model_validate(dict(claims))
    except (JoseError, ValueError) as e:
        logger.debug(f"Rejected bearer token: {e}")
        raise UNAUTHORIZED from e

    if token_data.exp is None or token_data.exp < datetime.now(UTC):
        raise UNAUTHORIZED
    return token_data
