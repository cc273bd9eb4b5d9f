"""Pydantic schemas for chunk upload and merge endpoints."""

from pydantic import BaseModel, Field


class UploadChunkResponse(BaseModel):
    """Response model for a stored chunk."""
    error: bool = False
    message: str
    file: str


class MergeChunksRequest(BaseModel):
    """Request model for merging the chunks of one file."""
    file_name: str = Field(..., min_length=1)
    total_chunks: int = Field(..., ge=1)


class MergeChunksResponse(BaseModel):
    """Response model for a completed merge."""
    error: bool = False
    message: str
