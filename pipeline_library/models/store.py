"""
Table models backing the SQL pipeline store.

Documents are kept as JSON columns; the summary fields of a pipeline are
kept as columns so that listing does not need to decode documents.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Column, Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class PipelineRecord(SQLModel, table=True):
    """Head record of a pipeline."""

    __tablename__ = "pipeline"

    name: str = Field(primary_key=True, min_length=1, max_length=255)
    description: str = ""
    creator: str
    last_modifier: str
    created: datetime = Field(default_factory=utcnow)
    last_modified: datetime = Field(default_factory=utcnow)
    last_rev: str
    uuid: str


class PipelineRevisionRecord(SQLModel, table=True):
    """One stored snapshot of a pipeline configuration."""

    __tablename__ = "pipeline_revision"
    __table_args__ = (UniqueConstraint("pipeline_name", "rev"),)

    id: int | None = Field(default=None, primary_key=True)
    pipeline_name: str = Field(index=True, max_length=255)
    rev: str
    tag: str | None = None
    tag_description: str | None = None
    user: str
    created: datetime = Field(default_factory=utcnow)
    document: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))


class PipelineRulesRecord(SQLModel, table=True):
    """Rule-definitions document of a pipeline at one revision."""

    __tablename__ = "pipeline_rules"

    pipeline_name: str = Field(primary_key=True, max_length=255)
    rev: str = Field(primary_key=True)
    uuid: str
    document: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
