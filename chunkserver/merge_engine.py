"""
Merge engine: reassembles chunk artifacts into one output file.

Chunks are read concurrently by a bounded thread pool, but only the calling
thread writes to the output file, and it consumes reads strictly in ascending
chunk index order. Ordering therefore never depends on which read finishes
first.
"""

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional

from chunkserver.chunk_storage import ChunkStore, parse_chunk_name, validate_filename
from common.constants import DEFAULT_MERGE_WORKERS
from common.exceptions import InvalidRequestError, StorageIOError

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    """
    Outcome of one merge invocation.
    """
    file_name: str
    total_chunks: int
    merged: List[int] = field(default_factory=list)
    missing: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    bytes_written: int = 0
    swept: int = 0

    @property
    def complete(self) -> bool:
        """True when every declared chunk made it into the output."""
        return not self.missing and not self.failed


class MergeEngine:
    """
    Assembles the chunk artifacts of a logical file into its output artifact,
    then sweeps leftover chunk artifacts from the temporary directory.
    """

    def __init__(self, store: ChunkStore, max_workers: int = DEFAULT_MERGE_WORKERS):
        """
        Initialize merge engine.

        Args:
            store: ChunkStore whose artifacts are consumed
            max_workers: Number of threads reading chunks concurrently
        """
        self.store = store
        self.max_workers = max(1, max_workers)

    def merge_chunks(self, file_name: str, total_chunks: int) -> MergeReport:
        """
        Merge chunks [0, total_chunks) of file_name into <final-dir>/<file_name>.

        Missing or unreadable chunks are logged and skipped; they never fail
        the merge. Only failing to create the output file or failing to sweep
        the temporary directory is fatal.

        Args:
            file_name: Logical filename
            total_chunks: Declared number of chunks

        Returns:
            MergeReport describing which chunks were written

        Raises:
            InvalidRequestError: If file_name is empty or total_chunks < 1
            StorageIOError: If the output file cannot be created or the sweep fails
        """
        validate_filename(file_name)
        if not isinstance(total_chunks, int) or isinstance(total_chunks, bool) or total_chunks < 1:
            raise InvalidRequestError("Invalid request data", "total chunks must be a positive integer")

        report = MergeReport(file_name=file_name, total_chunks=total_chunks)
        out_path = self.store.final_dir / file_name

        try:
            output = open(out_path, 'wb')
        except (OSError, ValueError) as e:
            raise StorageIOError("Failed to create output file", str(e)) from e

        with output:
            self._merge_into(output, report)

        report.swept = self.sweep()

        logger.info(
            f"Merged {file_name}: {len(report.merged)}/{total_chunks} chunks, "
            f"{report.bytes_written} bytes, swept {report.swept} artifacts"
        )
        if not report.merged:
            logger.warning(f"No chunks found for {file_name}; output file is empty")
        if not report.complete:
            logger.warning(
                f"Merge of {file_name} incomplete: missing={report.missing} failed={report.failed}"
            )
        return report

    def _merge_into(self, output: BinaryIO, report: MergeReport) -> None:
        """
        Read chunks in parallel and write them to output in index order.

        At most max_workers * 2 reads are in flight, which bounds the number of
        chunk buffers held in memory.
        """
        window = self.max_workers * 2
        pending = deque()
        next_index = 0

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="merge") as pool:
            while next_index < report.total_chunks or pending:
                while next_index < report.total_chunks and len(pending) < window:
                    future = pool.submit(self._read_chunk, report.file_name, next_index)
                    pending.append((next_index, future))
                    next_index += 1

                index, future = pending.popleft()
                self._write_chunk(output, index, future, report)

    def _read_chunk(self, file_name: str, chunk_index: int) -> Optional[bytes]:
        """
        Read an entire chunk artifact into memory.

        Returns:
            Chunk bytes, or None if the artifact does not exist

        Raises:
            OSError: If the artifact exists but cannot be read
            ValueError: If the artifact path cannot be opened at all
        """
        path = self.store.chunk_path(file_name, chunk_index)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def _write_chunk(
        self,
        output: BinaryIO,
        chunk_index: int,
        future: Future,
        report: MergeReport
    ) -> None:
        """Append one chunk to output and delete its artifact, recording the outcome."""
        file_name = report.file_name

        try:
            data = future.result()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read chunk {chunk_index} of {file_name}: {e}")
            report.failed.append(chunk_index)
            return

        if data is None:
            logger.warning(f"Chunk {chunk_index} of {file_name} does not exist, skipping")
            report.missing.append(chunk_index)
            return

        try:
            output.write(data)
        except OSError as e:
            logger.error(f"Failed to write chunk {chunk_index} of {file_name} to output file: {e}")
            report.failed.append(chunk_index)
            return

        report.merged.append(chunk_index)
        report.bytes_written += len(data)

        try:
            self.store.chunk_path(file_name, chunk_index).unlink()
        except OSError as e:
            logger.error(f"Failed to remove chunk {chunk_index} of {file_name}: {e}")

    def sweep(self) -> int:
        """
        Remove every chunk artifact left in the temporary directory.

        Artifacts of any filename are removed, except those whose filename has
        a chunk write in progress.

        Returns:
            Number of artifacts removed

        Raises:
            StorageIOError: If listing the directory or removing an artifact fails
        """
        try:
            artifacts = self.store.list_chunk_artifacts()
        except OSError as e:
            raise StorageIOError("Failed to clean up temporary files", f"failed to list temp files: {e}") from e

        registry = self.store.registry
        removed = 0

        for path in artifacts:
            parsed = parse_chunk_name(path.name)
            if parsed and registry.is_active(parsed[0]):
                logger.info(f"Skipping {path.name} during sweep: upload in progress")
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageIOError(
                    "Failed to clean up temporary files",
                    f"failed to remove temp file {path}: {e}"
                ) from e
            removed += 1

        if removed:
            logger.debug(f"Swept {removed} chunk artifacts from {self.store.temp_dir}")
        return removed
