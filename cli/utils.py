"""Utility functions for CLI operations."""

from pathlib import Path
from typing import Iterator, Tuple, Union


def count_chunks(file_size: int, chunk_size: int) -> int:
    """
    Number of chunks needed to upload file_size bytes.

    An empty file still needs one (empty) chunk so that a merge can run.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if file_size == 0:
        return 1
    return (file_size + chunk_size - 1) // chunk_size


def iter_file_chunks(file_path: Union[str, Path], chunk_size: int) -> Iterator[Tuple[int, bytes]]:
    """
    Read a file as consecutive chunks.

    Args:
        file_path: Path of the file to split
        chunk_size: Maximum chunk size in bytes

    Yields:
        Tuples of (chunk_index, chunk_bytes)
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    with open(file_path, 'rb') as f:
        index = 0
        while True:
            data = f.read(chunk_size)
            if not data:
                break
            yield index, data
            index += 1

        if index == 0:
            yield 0, b''


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
