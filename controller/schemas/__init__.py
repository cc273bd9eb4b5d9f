"""Pydantic schemas for API requests and responses."""

from controller.schemas.uploads import (
    UploadChunkResponse,
    MergeChunksRequest,
    MergeChunksResponse
)
from controller.schemas.common import ErrorResponse

__all__ = [
    "UploadChunkResponse",
    "MergeChunksRequest",
    "MergeChunksResponse",
    "ErrorResponse"
]
