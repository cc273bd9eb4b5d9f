"""Tests for chunk artifact storage."""

import io

import pytest

from chunkserver.chunk_storage import ChunkStore, get_chunk_name, parse_chunk_name
from common.exceptions import InvalidRequestError, StorageIOError


class FailingStream(io.RawIOBase):
    """Readable stream that fails after the first read."""

    def __init__(self):
        self.calls = 0

    def readable(self):
        return True

    def read(self, size=-1):
        self.calls += 1
        if self.calls > 1:
            raise OSError("connection reset while reading upload")
        return b'partial'


class TestChunkNaming:
    """Test the artifact naming contract."""

    def test_chunk_name_has_no_padding(self):
        assert get_chunk_name('doc.txt', 0) == 'doc.txt.part0'
        assert get_chunk_name('doc.txt', 12) == 'doc.txt.part12'

    def test_parse_chunk_name(self):
        assert parse_chunk_name('doc.txt.part3') == ('doc.txt', 3)

    def test_parse_chunk_name_uses_last_suffix(self):
        assert parse_chunk_name('report.partial.txt.part7') == ('report.partial.txt', 7)

    def test_parse_chunk_name_rejects_non_chunks(self):
        assert parse_chunk_name('doc.txt') is None
        assert parse_chunk_name('doc.txt.partX') is None
        assert parse_chunk_name('.part1') is None

    def test_chunk_path_is_inside_temp_dir(self, chunk_store):
        path = chunk_store.chunk_path('doc.txt', 4)
        assert path == chunk_store.temp_dir / 'doc.txt.part4'


class TestStoreChunk:
    """Test ChunkStore.store_chunk."""

    def test_store_chunk_round_trip(self, chunk_store):
        payload = b'\x00\x01binary payload\xff' * 100

        result = chunk_store.store_chunk('video.mp4', 2, io.BytesIO(payload))

        assert result == 'video.mp4'
        assert (chunk_store.temp_dir / 'video.mp4.part2').read_bytes() == payload

    def test_store_chunk_larger_than_buffer(self, storage_dirs):
        temp_dir, final_dir = storage_dirs
        store = ChunkStore(temp_dir, final_dir, buffer_size=16)
        payload = bytes(range(256)) * 10

        store.store_chunk('big.bin', 0, io.BytesIO(payload))

        assert store.chunk_path('big.bin', 0).read_bytes() == payload

    def test_store_chunk_creates_directories(self, storage_dirs):
        temp_dir, final_dir = storage_dirs
        store = ChunkStore(temp_dir, final_dir)

        store.store_chunk('a.txt', 0, io.BytesIO(b'x'))

        assert temp_dir.is_dir()
        assert final_dir.is_dir()

    def test_repeated_uploads_do_not_fail_on_existing_directories(self, chunk_store):
        chunk_store.store_chunk('a.txt', 0, io.BytesIO(b'one'))
        chunk_store.store_chunk('a.txt', 1, io.BytesIO(b'two'))

        assert chunk_store.chunk_exists('a.txt', 0)
        assert chunk_store.chunk_exists('a.txt', 1)

    def test_same_index_last_write_wins(self, chunk_store):
        chunk_store.store_chunk('a.txt', 0, io.BytesIO(b'first'))
        chunk_store.store_chunk('a.txt', 0, io.BytesIO(b'second'))

        assert chunk_store.chunk_path('a.txt', 0).read_bytes() == b'second'

    def test_store_empty_chunk(self, chunk_store):
        chunk_store.store_chunk('empty.txt', 0, io.BytesIO(b''))

        assert chunk_store.get_chunk_size('empty.txt', 0) == 0

    @pytest.mark.parametrize('filename', ['', None])
    def test_rejects_empty_filename(self, chunk_store, filename):
        with pytest.raises(InvalidRequestError):
            chunk_store.store_chunk(filename, 0, io.BytesIO(b'x'))

    def test_rejects_filename_with_nul_byte(self, chunk_store):
        with pytest.raises(InvalidRequestError) as exc_info:
            chunk_store.store_chunk('a\x00b', 0, io.BytesIO(b'x'))

        assert 'NUL' in exc_info.value.details
        assert chunk_store.list_chunk_artifacts() == []

    def test_unopenable_path_raises_storage_error(self, chunk_store, monkeypatch):
        def rejecting_open(path, mode='r', *args, **kwargs):
            raise ValueError("path not representable on this filesystem")

        monkeypatch.setattr('chunkserver.chunk_storage.open', rejecting_open, raising=False)

        with pytest.raises(StorageIOError) as exc_info:
            chunk_store.store_chunk('a.txt', 0, io.BytesIO(b'x'))

        assert exc_info.value.message == 'Failed to create temporary file'
        assert not chunk_store.registry.is_active('a.txt')

    @pytest.mark.parametrize('chunk_index', [-1, '1', 1.5, True])
    def test_rejects_invalid_chunk_index(self, chunk_store, chunk_index):
        with pytest.raises(InvalidRequestError):
            chunk_store.store_chunk('a.txt', chunk_index, io.BytesIO(b'x'))

    def test_directory_creation_failure(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')
        store = ChunkStore(blocker / 'temp', tmp_path / 'uploads')

        with pytest.raises(StorageIOError) as exc_info:
            store.store_chunk('a.txt', 0, io.BytesIO(b'x'))

        assert exc_info.value.message == 'Failed to prepare storage directories'
        assert exc_info.value.details

    def test_artifact_creation_failure(self, chunk_store):
        with pytest.raises(StorageIOError) as exc_info:
            chunk_store.store_chunk('no/such/dir.txt', 0, io.BytesIO(b'x'))

        assert exc_info.value.message == 'Failed to create temporary file'

    def test_stream_copy_failure(self, chunk_store):
        with pytest.raises(StorageIOError) as exc_info:
            chunk_store.store_chunk('a.txt', 0, FailingStream())

        assert exc_info.value.message == 'Failed to write file chunk'
        assert 'connection reset' in exc_info.value.details

    def test_registry_released_after_write(self, chunk_store):
        chunk_store.store_chunk('a.txt', 0, io.BytesIO(b'x'))

        assert not chunk_store.registry.is_active('a.txt')

    def test_registry_released_after_failed_write(self, chunk_store):
        with pytest.raises(StorageIOError):
            chunk_store.store_chunk('a.txt', 0, FailingStream())

        assert not chunk_store.registry.is_active('a.txt')


class TestChunkLookups:
    """Test helper lookups over stored chunks."""

    def test_get_chunk_size_missing(self, chunk_store):
        assert chunk_store.get_chunk_size('nothing.txt', 0) is None

    def test_list_chunk_artifacts(self, chunk_store):
        chunk_store.store_chunk('b.txt', 0, io.BytesIO(b'1'))
        chunk_store.store_chunk('a.txt', 1, io.BytesIO(b'2'))
        (chunk_store.temp_dir / 'unrelated.tmp').write_bytes(b'')

        names = [p.name for p in chunk_store.list_chunk_artifacts()]

        assert names == ['a.txt.part1', 'b.txt.part0']

    def test_list_chunk_artifacts_without_temp_dir(self, storage_dirs):
        temp_dir, final_dir = storage_dirs
        store = ChunkStore(temp_dir, final_dir)

        assert store.list_chunk_artifacts() == []
