"""Schemas shared across resources (bulk operations)."""

from pydantic import BaseModel, Field


class BulkIdsRequest(BaseModel):
    """Request body carrying a list of ids (bulk delete)."""

    ids: list[str] = Field(..., min_length=1, max_length=100)


class BulkResultResponse(BaseModel):
    """Number of items affected by a bulk operation."""

    count: int
