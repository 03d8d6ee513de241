"""Tests for the range-clamped byte source."""

import pytest

from blobrange.core.model import BlobLocator, BlobNotFoundError, ByteRange, TransportError
from blobrange.io.base import DEFAULT_CHUNK_SIZE
from blobrange.io.bounded import BoundedByteSource

from conftest import FakeBlobStore


class TestOpen:

    def test_seeks_to_start_plus_resume_offset(self, store, locator):
        source = BoundedByteSource.open(store, locator, ByteRange(100, 50), resume_offset=20)
        assert store.seeks == [120]
        assert source.position == 120
        assert source.remaining == 30

    def test_no_seek_from_object_start(self, store, locator):
        source = BoundedByteSource.open(store, locator, ByteRange(0, 50))
        assert store.seeks == []
        assert source.position == 0

    def test_resume_from_object_start(self, store, locator):
        BoundedByteSource.open(store, locator, ByteRange(0, 50), resume_offset=7)
        assert store.seeks == [7]

    def test_missing_on_open(self, store):
        with pytest.raises(BlobNotFoundError) as excinfo:
            BoundedByteSource.open(store, BlobLocator("bucket", "absent"), ByteRange())
        assert excinfo.value.locator == BlobLocator("bucket", "absent")
        assert excinfo.value.__cause__.status == 404

    def test_transient_open_failure_unmapped(self, store, locator):
        store.open_failures = 1
        with pytest.raises(TransportError) as excinfo:
            BoundedByteSource.open(store, locator, ByteRange())
        assert not isinstance(excinfo.value, BlobNotFoundError)
        assert excinfo.value.status == 503


class TestReadInto:

    def test_chunk_size_shrunk_near_boundary_and_restored(self, store, locator, blob_data):
        source = BoundedByteSource.open(store, locator, ByteRange(10, 30))
        buf = bytearray(64)

        n = source.readinto(buf)
        assert n == 30
        assert bytes(buf[:n]) == blob_data[10:40]
        # shrink to what remains, then back to the default
        assert store.chunk_sizes == [30, 0]
        position, requested, window = store.fetches[0]
        assert (position, requested, window) == (10, 30, 30)

    def test_no_shrink_far_from_boundary(self, locator):
        blob = bytes(DEFAULT_CHUNK_SIZE + 100)
        store = FakeBlobStore({"blobA": blob})
        source = BoundedByteSource.open(store, locator, ByteRange())

        assert source.readinto(bytearray(1000)) == 1000
        assert store.chunk_sizes == [0]
        assert store.fetches[0][1] == DEFAULT_CHUNK_SIZE

    def test_no_fetch_requests_more_than_remaining(self, locator):
        blob = bytes(DEFAULT_CHUNK_SIZE * 2)
        store = FakeBlobStore({"blobA": blob})
        byte_range = ByteRange(1000, DEFAULT_CHUNK_SIZE + 12345)
        source = BoundedByteSource.open(store, locator, byte_range)

        buf = bytearray(256 * 1024)
        total = 0
        while True:
            n = source.readinto(buf)
            if n == 0:
                break
            total += n
        assert total == byte_range.length

        near_end = [f for f in store.fetches if byte_range.end - f[0] < DEFAULT_CHUNK_SIZE]
        assert near_end
        for position, requested, window in near_end:
            assert requested <= byte_range.end - position
            assert window <= byte_range.end - position

    def test_shrink_follows_channel_default_chunk(self, locator):
        MiB = 1024 * 1024
        store = FakeBlobStore({"blobA": bytes(4 * MiB)}, default_chunk=8 * MiB)
        byte_range = ByteRange(0, 3 * MiB)
        source = BoundedByteSource.open(store, locator, byte_range)

        buf = bytearray(64 * 1024)
        while source.readinto(buf):
            pass
        assert source.position == byte_range.end
        assert store.chunk_sizes[0] == 3 * MiB
        for position, requested, window in store.fetches:
            assert requested <= byte_range.end - position

    def test_end_of_range_does_not_fetch(self, store, locator):
        source = BoundedByteSource.open(store, locator, ByteRange(0, 4))
        assert source.readinto(bytearray(10)) == 4
        fetches = len(store.fetches)
        assert source.readinto(bytearray(10)) == 0
        assert len(store.fetches) == fetches

    def test_end_of_object(self, store, locator):
        source = BoundedByteSource.open(store, locator, ByteRange(990))
        assert source.readinto(bytearray(100)) == 10
        assert source.readinto(bytearray(100)) == 0

    def test_chunk_size_restored_after_failure(self, store, locator):
        store.always_fail = True
        source = BoundedByteSource.open(store, locator, ByteRange(0, 100))
        with pytest.raises(TransportError):
            source.readinto(bytearray(10))
        assert store.chunk_sizes == [100, 0]
        assert source.position == 0

    def test_missing_on_fetch(self, store, locator):
        store.missing = True
        source = BoundedByteSource.open(store, locator, ByteRange())
        with pytest.raises(BlobNotFoundError) as excinfo:
            source.readinto(bytearray(10))
        assert "blobA" in str(excinfo.value)

    def test_executor_routes_network_calls(self, store, locator, blob_data):
        calls = []

        def executor(operation):
            calls.append(operation)
            return operation()

        source = BoundedByteSource.open(store, locator, ByteRange(5, 5), executor=executor)
        buf = bytearray(5)
        source.readinto(buf)
        source.close()
        assert bytes(buf) == blob_data[5:10]
        assert len(calls) == 4   # open, seek, fetch, close

    def test_close_quietly(self, store, locator):
        store.close_error = True
        source = BoundedByteSource.open(store, locator, ByteRange())
        source.close_quietly()
        assert not source.is_open()
        with pytest.raises(TransportError):
            source.close()
