"""Manages chunk artifacts on disk: naming, streaming writes and lookups."""

import logging
import shutil
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from chunkserver.upload_registry import UploadRegistry
from common.constants import CHUNK_SUFFIX, COPY_BUFFER_BYTES, SWEEP_GLOB
from common.exceptions import InvalidRequestError, StorageIOError

logger = logging.getLogger(__name__)


def get_chunk_name(filename: str, chunk_index: int) -> str:
    """
    Build the artifact name for one chunk.

    Args:
        filename: Logical filename
        chunk_index: Zero-based chunk index

    Returns:
        Name of the form "<filename>.part<chunk_index>" (no zero padding)
    """
    return f"{filename}{CHUNK_SUFFIX}{chunk_index}"


def parse_chunk_name(name: str) -> Optional[Tuple[str, int]]:
    """
    Split an artifact name back into (filename, chunk_index).

    Args:
        name: Artifact file name (no directory)

    Returns:
        Tuple of (filename, chunk_index), or None if name is not a chunk artifact
    """
    filename, sep, index = name.rpartition(CHUNK_SUFFIX)
    if not sep or not filename or not index.isdigit():
        return None
    return filename, int(index)


def validate_filename(filename) -> None:
    """Raise InvalidRequestError unless filename is a non-empty string usable as a path."""
    if not isinstance(filename, str) or not filename:
        raise InvalidRequestError("Invalid request data", "file name must be a non-empty string")
    if '\x00' in filename:
        raise InvalidRequestError("Invalid request data", "file name must not contain NUL bytes")


class ChunkStore:
    """
    Persists chunks of logical files as temporary artifacts.

    Each call writes exactly one artifact at a deterministic path, so concurrent
    uploads of distinct (filename, chunk_index) pairs never conflict.
    """

    def __init__(
        self,
        temp_dir: Union[str, Path],
        final_dir: Union[str, Path],
        buffer_size: int = COPY_BUFFER_BYTES,
        registry: Optional[UploadRegistry] = None
    ):
        """
        Initialize chunk store.

        Args:
            temp_dir: Directory holding chunk artifacts
            final_dir: Directory holding merged output files
            buffer_size: Copy buffer size in bytes used when streaming chunk data
            registry: Registry used to advertise in-progress writes to the merge sweep
        """
        self.temp_dir = Path(temp_dir)
        self.final_dir = Path(final_dir)
        self.buffer_size = buffer_size
        self.registry = registry or UploadRegistry()

    def ensure_directories(self) -> None:
        """
        Ensure the temporary and final directories exist.

        Raises:
            StorageIOError: If either directory cannot be created
        """
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            self.final_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError("Failed to prepare storage directories", str(e)) from e

    def chunk_path(self, filename: str, chunk_index: int) -> Path:
        """Get file path for a chunk artifact."""
        return self.temp_dir / get_chunk_name(filename, chunk_index)

    def store_chunk(self, filename: str, chunk_index: int, data: BinaryIO) -> str:
        """
        Stream one chunk to its temporary artifact.

        An existing artifact for the same (filename, chunk_index) is overwritten.

        Args:
            filename: Logical filename the chunk belongs to
            chunk_index: Zero-based chunk index
            data: Readable binary stream with the chunk bytes

        Returns:
            The original filename, for echoing back to the uploader

        Raises:
            InvalidRequestError: If filename or chunk_index is invalid
            StorageIOError: If directory creation, file creation or the copy fails
        """
        validate_filename(filename)
        if not isinstance(chunk_index, int) or isinstance(chunk_index, bool) or chunk_index < 0:
            raise InvalidRequestError("Invalid request data", "chunk index must be a non-negative integer")

        self.ensure_directories()
        path = self.chunk_path(filename, chunk_index)

        with self.registry.track(filename):
            try:
                output = open(path, 'wb')
            except (OSError, ValueError) as e:
                raise StorageIOError("Failed to create temporary file", str(e)) from e

            with output:
                try:
                    shutil.copyfileobj(data, output, self.buffer_size)
                except (OSError, ValueError) as e:
                    raise StorageIOError("Failed to write file chunk", str(e)) from e

        logger.debug(f"Stored chunk {chunk_index} of {filename} at {path}")
        return filename

    def chunk_exists(self, filename: str, chunk_index: int) -> bool:
        """Check if a chunk artifact exists on disk."""
        return self.chunk_path(filename, chunk_index).is_file()

    def get_chunk_size(self, filename: str, chunk_index: int) -> Optional[int]:
        """
        Get size of a chunk artifact in bytes.

        Returns:
            Size in bytes, or None if the chunk doesn't exist
        """
        path = self.chunk_path(filename, chunk_index)
        if path.is_file():
            return path.stat().st_size
        return None

    def list_chunk_artifacts(self) -> List[Path]:
        """
        List every artifact in the temporary directory matching the chunk glob.

        Returns:
            Sorted list of artifact paths, empty if the directory is missing
        """
        if not self.temp_dir.exists():
            return []
        return sorted(p for p in self.temp_dir.glob(SWEEP_GLOB) if p.is_file())
