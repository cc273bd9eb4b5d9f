"""HTTP client for communicating with the upload Controller service."""

import time
import uuid
from pathlib import Path
from typing import Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.utils import count_chunks, format_file_size, iter_file_chunks

logger = get_logger(__name__)


class UploadError(Exception):
    """Raised when the server rejects an upload or merge request."""
    pass


class UploadsClient:
    """HTTP client for the chunk upload API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize uploads client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        logger.info(f"Initialized UploadsClient [base_url={config.get_base_url()}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx/429 errors and network failures.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                retryable = response.status_code >= 500 or response.status_code == 429
                if retryable and attempt < max_retries:
                    delay = backoff ** attempt
                    if response.status_code == 429:
                        delay = self._retry_after(response, delay)
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                if response.status_code >= 400:
                    logger.warning(
                        f"Request failed: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to upload server. Is it running?")

    @staticmethod
    def _retry_after(response: httpx.Response, default: float) -> float:
        """Seconds to wait before retrying a rate-limited request, from its Retry-After header."""
        value = response.headers.get('Retry-After')
        if value is None:
            return default
        try:
            return max(0.0, float(value))
        except ValueError:
            return default

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP error responses to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            message = error_data.get('message', 'Unknown error')
            details = error_data.get('details', '')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            message = response.text or 'Unknown error'
            details = ''
            code = 'UNKNOWN'

        error_messages = {
            'INVALID_REQUEST': 'Server rejected the request as invalid.',
            'FILE_MISSING': 'Server did not receive the chunk data.',
            'IO_FAILURE': 'Server failed to store the data.',
            'RATE_LIMITED': 'Too many requests. Please slow down and try again.',
        }

        text = error_messages.get(code, message)
        if details:
            text = f"{text} ({details})"
        return f"{text} [status={response.status_code}, code={code}]"

    def upload_chunk(self, file_name: str, chunk_index: int, data: bytes) -> str:
        """
        Upload one chunk.

        Args:
            file_name: Logical filename the chunk belongs to
            chunk_index: Zero-based chunk index
            data: Chunk bytes

        Returns:
            Filename echoed by the server

        Raises:
            UploadError: If the server rejects the chunk
            ConnectionError: If the server cannot be reached
        """
        response = self._request_with_retry(
            'POST',
            '/upload-file',
            files={'file': (file_name, data, 'application/octet-stream')},
            data={'chunk_index': str(chunk_index)}
        )
        if response.status_code != 200:
            raise UploadError(f"Chunk {chunk_index} upload failed: {self._format_error(response)}")
        return response.json()['file']

    def merge_chunks(self, file_name: str, total_chunks: int) -> str:
        """
        Ask the server to merge the uploaded chunks of file_name.

        Returns:
            Server confirmation message

        Raises:
            UploadError: If the server rejects the merge
            ConnectionError: If the server cannot be reached
        """
        response = self._request_with_retry(
            'POST',
            '/merge-chunk',
            json={'file_name': file_name, 'total_chunks': total_chunks}
        )
        if response.status_code != 200:
            raise UploadError(f"Merge failed: {self._format_error(response)}")
        return response.json()['message']

    def upload_file(
        self,
        file_path: str,
        file_name: Optional[str] = None,
        chunk_size: Optional[int] = None
    ) -> str:
        """
        Split a local file into chunks, upload each chunk, then merge.

        Args:
            file_path: Path of the local file
            file_name: Name to store the file under (defaults to the local basename)
            chunk_size: Chunk size in bytes (uses config default if None)

        Returns:
            Result message for display
        """
        path = Path(file_path)
        if not path.is_file():
            return f"Error: file not found: {file_path}"

        file_name = file_name or path.name
        chunk_size = chunk_size or self.config.get_chunk_size()
        file_size = path.stat().st_size
        total_chunks = count_chunks(file_size, chunk_size)

        logger.info(
            f"Uploading {path} as {file_name}: {format_file_size(file_size)} in {total_chunks} chunks"
        )
        try:
            for chunk_index, data in iter_file_chunks(path, chunk_size):
                self.upload_chunk(file_name, chunk_index, data)
                logger.debug(f"Uploaded chunk {chunk_index + 1}/{total_chunks} of {file_name}")

            message = self.merge_chunks(file_name, total_chunks)
        except (UploadError, ConnectionError) as e:
            logger.error(f"Upload of {file_name} failed: {e}")
            return f"Error: {e}"

        logger.info(f"Upload of {file_name} complete")
        return f"{message}: {file_name} ({format_file_size(file_size)}, {total_chunks} chunks)"

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
