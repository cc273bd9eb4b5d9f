"""Shared pytest fixtures for all tests."""

import io

import pytest

from chunkserver.chunk_storage import ChunkStore
from chunkserver.merge_engine import MergeEngine
from chunkserver.upload_registry import UploadRegistry
from cli.config import Config


@pytest.fixture
def storage_dirs(tmp_path):
    """
    Create temporary and final storage directory paths.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Tuple of (temp_dir, final_dir) Paths (not yet created)
    """
    return tmp_path / 'temp', tmp_path / 'uploads'


@pytest.fixture
def chunk_store(storage_dirs):
    """
    Create a ChunkStore over temporary directories.

    Returns:
        ChunkStore with both directories created
    """
    temp_dir, final_dir = storage_dirs
    store = ChunkStore(temp_dir=temp_dir, final_dir=final_dir, registry=UploadRegistry())
    store.ensure_directories()
    return store


@pytest.fixture
def merge_engine(chunk_store):
    """Create a MergeEngine consuming chunk_store's artifacts."""
    return MergeEngine(chunk_store, max_workers=4)


@pytest.fixture
def store_chunks(chunk_store):
    """
    Return a helper that uploads a list of payloads as consecutive chunks.

    Returns:
        Callable(filename, payloads, skip=()) storing every payload whose index is not in skip
    """
    def _store(filename, payloads, skip=()):
        for index, payload in enumerate(payloads):
            if index in skip:
                continue
            chunk_store.store_chunk(filename, index, io.BytesIO(payload))
    return _store


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .chunked-uploads directory
    """
    config_dir = tmp_path / '.chunked-uploads'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing chunked uploads.

    Returns:
        Path to sample binary file
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(bytes(range(256)) * 40)
    return file_path
