"""Global test configuration: in-memory store, stage library, app clients and tokens."""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Import all models to ensure metadata is populated
from pipeline_library import models  # noqa: F401
from pipeline_library.api.app import create_app
from pipeline_library.api.dependencies import (
    get_pipeline_store,
    get_runtime_info,
    get_stage_library,
)
from pipeline_library.api.security import AuthzRole, create_access_token
from pipeline_library.models import (
    ConfigDefinition,
    ConfigType,
    ConfigValue,
    PipelineConfiguration,
    StageConfiguration,
    StageDefinition,
    StageType,
    default_pipeline_configuration,
)
from pipeline_library.runtime import RuntimeInfo
from pipeline_library.services.stage_library import StaticStageLibrary
from pipeline_library.store import SqlPipelineStore


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory) -> SqlPipelineStore:
    return SqlPipelineStore(session_factory, default_memory_limit_mb=1024)


@pytest.fixture
def stage_library() -> StaticStageLibrary:
    """A small stage library: origin, processors, destination and error target."""
    return StaticStageLibrary(
        [
            StageDefinition(
                library="basic",
                name="dev_raw_source",
                version="1",
                type=StageType.SOURCE,
                config_definitions=[
                    ConfigDefinition(name="rawData", type=ConfigType.TEXT, required=True),
                ],
            ),
            StageDefinition(
                library="basic", name="identity", version="1", type=StageType.PROCESSOR
            ),
            StageDefinition(
                library="basic",
                name="field_filter",
                version="1",
                type=StageType.PROCESSOR,
                config_definitions=[
                    ConfigDefinition(name="fieldCount", type=ConfigType.NUMBER),
                    ConfigDefinition(
                        name="mode", type=ConfigType.STRING, allowed_values=["KEEP", "REMOVE"]
                    ),
                    ConfigDefinition(
                        name="fields",
                        type=ConfigType.LIST,
                        schema={"type": "array", "items": {"type": "string"}},
                    ),
                ],
            ),
            StageDefinition(library="basic", name="trash", version="1", type=StageType.TARGET),
            StageDefinition(
                library="basic",
                name="to_error",
                version="1",
                type=StageType.TARGET,
                error_stage=True,
            ),
        ]
    )


def stage(
    instance_name: str,
    stage_name: str,
    inputs: list[str] | None = None,
    outputs: list[str] | None = None,
    **configs,
) -> StageConfiguration:
    return StageConfiguration(
        instance_name=instance_name,
        library="basic",
        stage_name=stage_name,
        stage_version="1",
        configuration=[ConfigValue(name=key, value=value) for key, value in configs.items()],
        input_lanes=inputs or [],
        output_lanes=outputs or [],
    )


@pytest.fixture
def make_stage() -> Callable[..., StageConfiguration]:
    return stage


@pytest.fixture
def valid_pipeline() -> PipelineConfiguration:
    """origin -> identity -> trash, with an error target; passes every check."""
    return PipelineConfiguration(
        description="valid",
        configuration=default_pipeline_configuration(),
        stages=[
            stage("source", "dev_raw_source", outputs=["source_out"], rawData="{}"),
            stage("identity", "identity", inputs=["source_out"], outputs=["identity_out"]),
            stage("trash", "trash", inputs=["identity_out"]),
        ],
        error_stage=stage("error", "to_error"),
        memory_limit_mb=1024,
    )


@pytest.fixture
def runtime_info() -> RuntimeInfo:
    return RuntimeInfo()


@pytest.fixture
def app(store, stage_library, runtime_info) -> FastAPI:
    """Application wired to the in-memory store; the lifespan is not run."""
    application = create_app()
    application.dependency_overrides[get_pipeline_store] = lambda: store
    application.dependency_overrides[get_stage_library] = lambda: stage_library
    application.dependency_overrides[get_runtime_info] = lambda: runtime_info
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test API client without credentials."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build Authorization headers for a caller with the given roles."""

    def make(*roles: AuthzRole, user: str = "tester") -> dict[str, str]:
        token = create_access_token(user, list(roles))
        return {"Authorization": f"Bearer {token.access_token}"}

    return make


@pytest.fixture
def admin_headers(auth_headers) -> dict[str, str]:
    return auth_headers(AuthzRole.ADMIN, user="admin")


@pytest.fixture
def guest_headers(auth_headers) -> dict[str, str]:
    return auth_headers(AuthzRole.GUEST, user="guest")


@pytest.fixture
def manager_headers(auth_headers) -> dict[str, str]:
    return auth_headers(AuthzRole.MANAGER, user="manager")


@pytest.fixture
def creator_headers(auth_headers) -> dict[str, str]:
    return auth_headers(AuthzRole.CREATOR, user="creator")
