"""
Pipeline library router.

Endpoints for listing, reading, creating, saving and deleting pipelines and
their rule definitions. Access to every endpoint is decided by the route
policy table before the endpoint body runs.
"""

from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from pipeline_library.api.dependencies import (
    PipelineLibraryServiceDep,
    RequestContextDep,
    enforce_access_policy,
)
from pipeline_library.envelopes import (
    PipelineConfigurationJson,
    RuleDefinitionsJson,
    unwrap_pipeline_configuration,
    unwrap_rule_definitions,
    wrap_export,
    wrap_pipeline_configuration,
    wrap_pipeline_info,
    wrap_pipeline_infos,
    wrap_pipeline_rev_infos,
    wrap_rule_definitions,
)
from pipeline_library.models import HEAD_REV
from pipeline_library.services.pipeline_library import PipelineDetail, ValidatedPipeline

router = APIRouter(
    tags=["Pipeline Library"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Not authenticated"},
        403: {"description": "Forbidden"},
        404: {"description": "Not found"},
        409: {"description": "Conflict"},
    },
    dependencies=[Depends(enforce_access_policy)],
)

RevQuery = Annotated[str, Query(description="Revision, '0' selects the head")]


def _pipeline_json(validated: ValidatedPipeline) -> dict[str, Any]:
    return wrap_pipeline_configuration(validated.config, validated.verdict).to_json()


@router.get("", name="list_pipelines")
async def list_pipelines(service: PipelineLibraryServiceDep) -> JSONResponse:
    """List the info of every pipeline."""
    infos = await service.list_pipelines()
    return JSONResponse(content=[info.to_json() for info in wrap_pipeline_infos(infos)])


@router.get("/{name}", name="get_pipeline")
async def get_pipeline(
    name: str,
    service: PipelineLibraryServiceDep,
    rev: RevQuery = HEAD_REV,
    get: Annotated[str, Query(description="One of pipeline, info, history")] = "pipeline",
    attachment: bool = False,
) -> JSONResponse:
    """Get a pipeline, its info or its history.

    With ``attachment=true`` the data is bundled with the rule definitions of the
    same revision for download.
    """
    data: Any
    match PipelineDetail.parse(get):
        case PipelineDetail.PIPELINE:
            data = _pipeline_json(await service.get_pipeline(name, rev))
        case PipelineDetail.INFO:
            data = wrap_pipeline_info(await service.get_info(name)).to_json()
        case PipelineDetail.HISTORY:
            history = await service.get_history(name)
            data = [info.to_json() for info in wrap_pipeline_rev_infos(history)]

    if not attachment:
        return JSONResponse(content=data)

    rules = await service.export_rules(name, rev)
    return JSONResponse(
        content=wrap_export(data, rules).to_json(),
        headers={"Content-Disposition": f"attachment; filename={name}.json"},
    )


@router.put("/{name}", name="create_pipeline", status_code=status.HTTP_201_CREATED)
async def create_pipeline(
    name: str,
    context: RequestContextDep,
    service: PipelineLibraryServiceDep,
    description: str = "",
) -> JSONResponse:
    """Create a pipeline seeded with the default metric rules."""
    validated = await service.create_pipeline(name, description, context.user)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=_pipeline_json(validated),
        headers={"Location": context.resource_uri(quote(name, safe=""))},
    )


@router.delete("/{name}", name="delete_pipeline")
async def delete_pipeline(
    name: str, context: RequestContextDep, service: PipelineLibraryServiceDep
) -> Response:
    """Delete a pipeline and its rule definitions."""
    await service.delete_pipeline(name, context.user)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/{name}", name="save_pipeline")
async def save_pipeline(
    name: str,
    pipeline: PipelineConfigurationJson,
    context: RequestContextDep,
    service: PipelineLibraryServiceDep,
    tag: str = HEAD_REV,
    tag_description: Annotated[str | None, Query(alias="tagDescription")] = None,
) -> JSONResponse:
    """Validate and save a new revision of a pipeline."""
    validated = await service.save_pipeline(
        name, context.user, tag, tag_description, unwrap_pipeline_configuration(pipeline)
    )
    return JSONResponse(content=_pipeline_json(validated))


@router.get("/{name}/rules", name="get_rules")
async def get_rules(
    name: str, service: PipelineLibraryServiceDep, rev: RevQuery = HEAD_REV
) -> JSONResponse:
    """Get the rule definitions of a pipeline revision, annotated with issues."""
    rules = wrap_rule_definitions(await service.get_rules(name, rev))
    return JSONResponse(content=rules.to_json() if rules is not None else None)


@router.post("/{name}/rules", name="save_rules")
async def save_rules(
    name: str,
    rules: RuleDefinitionsJson,
    context: RequestContextDep,
    service: PipelineLibraryServiceDep,
    rev: RevQuery = HEAD_REV,
) -> JSONResponse:
    """Validate and save the rule definitions of a pipeline revision."""
    saved = await service.save_rules(name, rev, unwrap_rule_definitions(rules), context.user)
    wrapped = wrap_rule_definitions(saved)
    return JSONResponse(content=wrapped.to_json() if wrapped is not None else None)
