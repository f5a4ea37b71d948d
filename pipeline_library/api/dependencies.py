"""
Common dependencies for Pipeline Library API endpoints.

Long-lived collaborators (store, stage library, runtime info) are created by the
application lifespan and kept on ``app.state``; per-request data is collected in
a :class:`RequestContext`.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from pipeline_library.runtime import RuntimeInfo
from pipeline_library.services.pipeline_library import PipelineLibraryService
from pipeline_library.services.stage_library import StageLibrary
from pipeline_library.store import PipelineStore

from .access import resolve_policy, route_name
from .security import AuthzRole, TokenData, decode_token


@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request record handed to the endpoints.

    Attributes:
        user: Name of the authenticated caller.
        roles: Roles granted to the caller.
        runtime: Runtime information of this process.
        base_uri: Absolute URI of the pipeline collection.
    """

    user: str
    roles: frozenset[AuthzRole]
    runtime: RuntimeInfo
    base_uri: str

    def resource_uri(self, name: str) -> str:
        return f"{self.base_uri}/{name}"


def get_pipeline_store(request: Request) -> PipelineStore:
    return request.app.state.pipeline_store


def get_stage_library(request: Request) -> StageLibrary:
    return request.app.state.stage_library


def get_runtime_info(request: Request) -> RuntimeInfo:
    return request.app.state.runtime_info


PipelineStoreDep = Annotated[PipelineStore, Depends(get_pipeline_store)]
StageLibraryDep = Annotated[StageLibrary, Depends(get_stage_library)]
RuntimeInfoDep = Annotated[RuntimeInfo, Depends(get_runtime_info)]


async def get_request_context(
    request: Request,
    token: Annotated[TokenData, Depends(decode_token)],
    runtime: RuntimeInfoDep,
) -> RequestContext:
    """Build the request context of an authenticated caller."""
    base_uri = str(request.url_for("list_pipelines")).rstrip("/")
    return RequestContext(user=token.sub, roles=token.roles, runtime=runtime, base_uri=base_uri)


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]


async def enforce_access_policy(request: Request, context: RequestContextDep) -> None:
    """Apply the access policy of the matched route before the endpoint runs.

    FastAPI decodes the JSON body before any dependency runs, so a body that
    is not JSON at all is answered with 400 ahead of this check. Field errors
    in a decoded body are reported only after the policy has passed.

    Raises:
        AccessDeniedError: If the route has no policy
        InsufficientPermissionsError: If the caller has none of the required roles
        SlaveModeError: If the route writes and the process runs as a slave
    """
    name = route_name(request)
    policy = resolve_policy(name)
    policy.check(context.user, context.roles, context.runtime, name or request.url.path)


def get_pipeline_library_service(
    store: PipelineStoreDep, stage_library: StageLibraryDep
) -> PipelineLibraryService:
    return PipelineLibraryService(store, stage_library)


PipelineLibraryServiceDep = Annotated[
    PipelineLibraryService, Depends(get_pipeline_library_service)
]
