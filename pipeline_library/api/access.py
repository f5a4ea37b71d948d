"""
Route access policies.

Every route of the pipeline library router must be listed in
:data:`ROUTE_POLICIES`; routes missing from the table are denied.
"""

from dataclasses import dataclass

from fastapi import Request

from pipeline_library.exceptions import (
    AccessDeniedError,
    InsufficientPermissionsError,
    SlaveModeError,
)
from pipeline_library.runtime import RuntimeInfo
from pipeline_library.utils.logger import logger

from .security import AuthzRole


@dataclass(frozen=True)
class AccessPolicy:
    """Who may call a route.

    Attributes:
        roles: Roles allowed to call the route; None admits any authenticated caller.
        rejects_slave: Whether the route is refused while running in SLAVE mode.
    """

    roles: frozenset[AuthzRole] | None = None
    rejects_slave: bool = False

    def check(self, user: str, roles: frozenset[AuthzRole], runtime: RuntimeInfo, action: str):
        if self.roles is not None and not self.roles & roles:
            logger.warning(f"User {user} lacks the roles required for {action}")
            raise InsufficientPermissionsError(action)
        if self.rejects_slave and runtime.is_slave:
            logger.warning(f"Refused {action} by {user} in SLAVE mode")
            raise SlaveModeError()


AUTHENTICATED = AccessPolicy()
PIPELINE_WRITE = AccessPolicy(
    roles=frozenset({AuthzRole.CREATOR, AuthzRole.ADMIN}), rejects_slave=True
)
RULES_WRITE = AccessPolicy(
    roles=frozenset({AuthzRole.CREATOR, AuthzRole.MANAGER, AuthzRole.ADMIN})
)

ROUTE_POLICIES: dict[str, AccessPolicy] = {
    "list_pipelines": AUTHENTICATED,
    "get_pipeline": AUTHENTICATED,
    "create_pipeline": PIPELINE_WRITE,
    "delete_pipeline": PIPELINE_WRITE,
    "save_pipeline": PIPELINE_WRITE,
    "get_rules": AUTHENTICATED,
    # Rule edits stay allowed on slaves
    "save_rules": RULES_WRITE,
}


def route_name(request: Request) -> str | None:
    route = request.scope.get("route")
    return getattr(route, "name", None)


def resolve_policy(name: str | None) -> AccessPolicy:
    """Look up the policy of a route, denying routes that have none."""
    if name is None or name not in ROUTE_POLICIES:
        raise AccessDeniedError()
    return ROUTE_POLICIES[name]
