"""Repository layer for data access operations."""

from pipeline_library.repositories.base import BaseRepository
from pipeline_library.repositories.pipeline_repository import (
    PipelineRepository,
    PipelineRevisionRepository,
)
from pipeline_library.repositories.rules_repository import PipelineRulesRepository

__all__ = [
    "BaseRepository",
    "PipelineRepository",
    "PipelineRevisionRepository",
    "PipelineRulesRepository",
]
