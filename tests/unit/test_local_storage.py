import io

import pytest

from cutroom.adapters.local_storage import LocalFileStorage, create_local_storage
from cutroom.domain.errors import AssetUnavailable


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path)


def test_put_bytes_and_read_back(storage):
    ref = storage.put(b"video-bytes", "video/mp4", "clip.mp4")

    assert ref.startswith("assets/")
    assert ref.endswith(".mp4")
    with storage.get_stream(ref) as f:
        assert f.read() == b"video-bytes"


def test_put_stream(storage):
    ref = storage.put(io.BytesIO(b"x" * 3000), "video/quicktime", "Take2.MOV")
    assert ref.endswith(".mov")
    with storage.get_stream(ref) as f:
        assert len(f.read()) == 3000


def test_refs_are_unique(storage):
    assert storage.put(b"a", "video/mp4") != storage.put(b"a", "video/mp4")


def test_missing_ref(storage):
    with pytest.raises(AssetUnavailable):
        storage.get_stream("assets/missing.mp4")


def test_delete(storage):
    ref = storage.put(b"a", "video/mp4", "a.mp4")
    storage.delete(ref)
    assert not storage.exists(ref)
    with pytest.raises(AssetUnavailable):
        storage.get_stream(ref)
    # Deleting twice is harmless.
    storage.delete(ref)


def test_traversal_stays_inside_base(storage, tmp_path):
    path = storage._ref_to_path("../../etc/passwd")
    assert str(path).startswith(str(tmp_path))


def test_factory_reads_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CUTROOM_STORAGE_PATH", str(tmp_path / "store"))
    storage = create_local_storage()
    assert storage.base_path == tmp_path / "store"
    assert (tmp_path / "store" / "assets").is_dir()
