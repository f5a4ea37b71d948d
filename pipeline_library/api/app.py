"""
Main API application module for Pipeline Library.

This module creates and configures the FastAPI application with the pipeline
library router and the collaborators it needs.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipeline_library import __version__
from pipeline_library.api.exception_handlers import setup_exception_handlers
from pipeline_library.api.routers import pipeline_library
from pipeline_library.runtime import RuntimeInfo
from pipeline_library.services.stage_library import load_stage_library
from pipeline_library.settings import settings
from pipeline_library.store import SqlPipelineStore
from pipeline_library.utils.db_manager import db_manager
from pipeline_library.utils.logger import logger

API_PREFIX = "/v1/pipeline-library"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Creates database tables, loads the stage library and builds the store.
    """
    runtime_info = RuntimeInfo.from_settings(settings)

    await db_manager.create_db_and_tables_async()
    logger.info("Database initialized with async support")

    app.state.runtime_info = runtime_info
    app.state.stage_library = await load_stage_library(settings.stage_library_dir)
    app.state.pipeline_store = SqlPipelineStore(
        db_manager.async_session_factory,
        default_memory_limit_mb=settings.default_memory_limit_mb,
    )

    logger.info(
        f"Application startup complete (mode {runtime_info.execution_mode.value}, "
        f"{len(app.state.stage_library)} stage definitions)"
    )

    try:
        yield
    finally:
        # Cleanup database connections on shutdown
        await db_manager.close()
        logger.info("Application shutdown")


# noinspection PyTypeChecker
def create_app(root_path: str = "/") -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        root_path: The root path for the application

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Pipeline Library",
        description="Storage and validation service for data pipeline configurations",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        root_path=root_path if root_path != "/" else "",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "Content-Disposition"],
    )

    # Setup exception handlers using decorators
    setup_exception_handlers(app)

    app.include_router(pipeline_library.router, prefix=API_PREFIX)

    return app


# Create default application instance
app = create_app(root_path=settings.root_url)
