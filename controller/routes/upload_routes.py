"""Chunk upload and merge API routes."""

import asyncio
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile

from common.exceptions import FileMissingError
from common.logging_config import get_logger
from controller.schemas.uploads import (
    UploadChunkResponse,
    MergeChunksRequest,
    MergeChunksResponse
)
from controller.service_locator import get_chunk_store, get_merge_engine

logger = get_logger(__name__)

router = APIRouter(tags=["Uploads"])


@router.post("/upload-file", response_model=UploadChunkResponse)
async def upload_file(
    chunk_index: int = Form(...),
    file: Optional[UploadFile] = File(None)
):
    """
    Store one chunk of a file.

    Parameters:
        - chunk_index: Zero-based index of this chunk (form field)
        - file: Chunk bytes (multipart/form-data); its filename names the logical file

    Returns:
        - error: false
        - message: Confirmation message
        - file: Logical filename the chunk was stored under

    Raises:
        - 400: Invalid request data or missing file field
        - 500: Temporary file could not be created or written
    """
    if file is None or not file.filename:
        raise FileMissingError("File upload failed", "no file provided in form field 'file'")

    store = get_chunk_store()
    loop = asyncio.get_running_loop()
    try:
        stored_name = await loop.run_in_executor(
            None, store.store_chunk, file.filename, chunk_index, file.file
        )
    finally:
        await file.close()

    logger.info(f"Stored chunk {chunk_index} of {stored_name}")
    return UploadChunkResponse(message="File uploaded successfully", file=stored_name)


@router.post("/merge-chunk", response_model=MergeChunksResponse)
async def merge_chunks(request: MergeChunksRequest):
    """
    Merge the uploaded chunks of a file into its final output.

    Parameters:
        - file_name: Logical filename
        - total_chunks: Declared number of chunks (>= 1)

    Returns:
        - error: false
        - message: Confirmation message

    Raises:
        - 400: Invalid request data
        - 500: Output file could not be created or temporary files not cleaned up
    """
    engine = get_merge_engine()
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, engine.merge_chunks, request.file_name, request.total_chunks
    )
    return MergeChunksResponse(message="Chunks merged successfully")
