"""
Base models for Pipeline Library.

This module provides the base pydantic classes shared by the domain documents.
"""

from pydantic import BaseModel, ConfigDict

# Revision tag selecting the current (head) snapshot of a pipeline
HEAD_REV = "0"


class DocumentModel(BaseModel):
    """Mutable domain document."""

    model_config = ConfigDict(validate_assignment=True, allow_inf_nan=False)


class FrozenDocumentModel(BaseModel):
    """Immutable domain document; changes are made with ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)
