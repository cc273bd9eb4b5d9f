"""Tests for CLI utility helpers."""

import pytest

from cli.utils import count_chunks, format_file_size, iter_file_chunks


@pytest.mark.parametrize('file_size,chunk_size,expected', [
    (0, 10, 1),
    (1, 10, 1),
    (10, 10, 1),
    (11, 10, 2),
    (10240, 4096, 3),
])
def test_count_chunks(file_size, chunk_size, expected):
    assert count_chunks(file_size, chunk_size) == expected


def test_count_chunks_rejects_non_positive_size():
    with pytest.raises(ValueError):
        count_chunks(10, 0)


def test_iter_file_chunks(tmp_path):
    path = tmp_path / 'data.bin'
    path.write_bytes(b'abcdefghij')

    chunks = list(iter_file_chunks(path, 4))

    assert chunks == [(0, b'abcd'), (1, b'efgh'), (2, b'ij')]


def test_iter_file_chunks_empty_file(tmp_path):
    path = tmp_path / 'empty.bin'
    path.write_bytes(b'')

    assert list(iter_file_chunks(path, 4)) == [(0, b'')]


def test_format_file_size():
    assert format_file_size(512) == '512 B'
    assert format_file_size(1536) == '1.50 KiB'
    assert format_file_size(5 * 1024 * 1024) == '5.00 MiB'
