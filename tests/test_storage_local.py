"""Unit tests for the local filesystem object store."""

import pytest

from camgate.config import StorageConfig
from camgate.errors import StoreError
from camgate.storage import create_object_store
from camgate.storage.local import LocalObjectStore


@pytest.fixture
async def store(tmp_path):
    """A local store holding a couple of days of files."""
    root = tmp_path / "objects"
    (root / "2024" / "05" / "01").mkdir(parents=True)
    (root / "2024" / "05" / "02").mkdir(parents=True)
    (root / "2024" / "05" / "01" / "b.jpg").write_bytes(b"B" * 10)
    (root / "2024" / "05" / "01" / "a.jpg").write_bytes(b"A" * 100_000)
    (root / "2024" / "05" / "02" / "c.avi").write_bytes(b"C")
    backend = LocalObjectStore(root)
    await backend.init()
    yield backend
    await backend.close()


class TestListKeys:
    """Tests for LocalObjectStore.list_keys()."""

    async def test_lists_day_sorted(self, store):
        assert await store.list_keys("2024/05/01/") == ["2024/05/01/a.jpg", "2024/05/01/b.jpg"]

    async def test_missing_day_is_empty(self, store):
        assert await store.list_keys("2030/01/01/") == []

    async def test_name_prefix(self, store):
        assert await store.list_keys("2024/05/01/b") == ["2024/05/01/b.jpg"]

    async def test_subdirectories_are_skipped(self, store):
        (store.root / "2024" / "05" / "01" / "nested").mkdir()
        assert "2024/05/01/nested" not in await store.list_keys("2024/05/01/")


class TestOpenStream:
    """Tests for LocalObjectStore.open_stream()."""

    async def test_streams_in_chunks(self, store):
        stream = await store.open_stream("2024/05/01/a.jpg")
        chunks = [chunk async for chunk in stream]
        assert len(chunks) == 2
        assert b"".join(chunks) == b"A" * 100_000

    async def test_missing_file(self, store):
        with pytest.raises(StoreError):
            await store.open_stream("2024/05/01/zzz.jpg")

    async def test_directory_is_not_an_object(self, store):
        with pytest.raises(StoreError):
            await store.open_stream("2024/05/01")

    async def test_key_cannot_escape_root(self, store, tmp_path):
        (tmp_path / "secret.jpg").write_bytes(b"x")
        with pytest.raises(StoreError):
            await store.open_stream("../secret.jpg")


class TestInit:
    """Tests for LocalObjectStore.init()."""

    async def test_missing_root_only_warns(self, tmp_path, caplog):
        backend = LocalObjectStore(tmp_path / "absent")
        await backend.init()
        assert any("does not exist" in r.getMessage() for r in caplog.records)


class TestCreateObjectStore:
    """Tests for the backend factory."""

    def test_local(self, tmp_path):
        backend = create_object_store(StorageConfig(backend="local", local_root=str(tmp_path)))
        assert isinstance(backend, LocalObjectStore)
        assert backend.root == tmp_path

    def test_aws(self):
        from camgate.storage.aws import S3ObjectStore

        backend = create_object_store(StorageConfig(backend="aws", aws_bucket="cam"))
        assert isinstance(backend, S3ObjectStore)
        assert backend.bucket_name == "cam"

    def test_aws_requires_bucket(self):
        with pytest.raises(ValueError, match="bucket is required"):
            create_object_store(StorageConfig(backend="aws", aws_bucket=""))

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_object_store(StorageConfig(backend="ftp"))
