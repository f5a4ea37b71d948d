"""Pipeline store contract and its SQL implementation."""

from pipeline_library.store.base import PipelineStore
from pipeline_library.store.sql_store import SqlPipelineStore

__all__ = ["PipelineStore", "SqlPipelineStore"]
