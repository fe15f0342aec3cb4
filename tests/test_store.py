import pytest

from shard_index import IndexClosedError, ShardRouter, ShardStore, StorageIOError
from shard_index.router import segment_paths
from shard_index.store import frame_record


@pytest.fixture
def store(tmp_path):
    st = ShardStore(tmp_path / "idx", ShardRouter(4))
    yield st
    st.close()


def test_creates_every_segment_pair(tmp_path):
    base = tmp_path / "nested" / "idx"
    st = ShardStore(base, ShardRouter(3))
    try:
        for shard in range(3):
            dat, idx = segment_paths(base, shard)
            assert dat.exists() and dat.stat().st_size == 0
            assert idx.exists() and idx.stat().st_size == 0
    finally:
        st.close()


def test_construction_truncates_existing_segments(tmp_path):
    base = tmp_path / "idx"
    base.mkdir()
    dat, _ = segment_paths(base, 0)
    dat.write_bytes(b"stale\trecord\n")
    st = ShardStore(base, ShardRouter(2))
    try:
        assert dat.read_bytes() == b""
        assert st.scan(0, "stale") == []
    finally:
        st.close()


def test_unwritable_directory_is_fatal(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(StorageIOError):
        ShardStore(blocker / "idx", ShardRouter(2))


def test_append_then_scan_in_file_order(store):
    store.append(1, "beatles", "101")
    store.append(1, "queen", "201")
    store.append(1, "beatles", "102")
    store.append(1, "beatles", "101")
    assert store.scan(1, "beatles") == ["101", "102", "101"]
    assert store.scan(1, "queen") == ["201"]
    assert store.scan(1, "doors") == []
    assert store.scan(2, "beatles") == []


def test_records_are_tab_framed_lines(store, tmp_path):
    store.append(0, "sigur rós", "7")
    dat, idx = segment_paths(tmp_path / "idx", 0)
    assert dat.read_bytes() == "sigur rós\t7\n".encode("utf-8")
    assert idx.read_bytes() == b""


def test_key_must_not_contain_framing_bytes(store):
    with pytest.raises(ValueError):
        store.append(0, "bad\tkey", "1")
    with pytest.raises(ValueError):
        store.append(0, "key", "bad\nvalue")
    with pytest.raises(ValueError):
        frame_record("a\nb", "c")


def test_scan_skips_unterminated_tail(store, tmp_path):
    store.append(0, "a", "1")
    dat, _ = segment_paths(tmp_path / "idx", 0)
    with open(dat, "ab") as fh:
        fh.write(b"a\t2")
    assert store.scan(0, "a") == ["1"]


def test_handles_are_held_and_released(store):
    store.append(0, "a", "1")
    store.append(0, "b", "2")
    store.scan(3, "c")
    assert store.open_handles == 2
    store.close()
    assert store.closed
    assert store.open_handles == 0
    store.close()
    with pytest.raises(IndexClosedError):
        store.append(0, "a", "3")


def test_records_survive_close(tmp_path):
    base = tmp_path / "idx"
    st = ShardStore(base, ShardRouter(2))
    st.append(1, "queen", "201")
    st.close()
    assert segment_paths(base, 1)[0].read_bytes() == b"queen\t201\n"


class FailingHandle:
    """Writes the first ``keep`` bytes of each write, then raises."""

    def __init__(self, fh, keep=0, truncate_fails=False):
        self._fh = fh
        self.keep = keep
        self.truncate_fails = truncate_fails

    def __getattr__(self, name):
        return getattr(self._fh, name)

    def write(self, data):
        self._fh.write(data[:self.keep])
        raise OSError("disk full")

    def truncate(self, size=None):
        if self.truncate_fails:
            raise OSError("read-only file system")
        return self._fh.truncate(size)


def test_write_failure_surfaces_as_storage_error(store):
    store.append(0, "a", "1")
    fh = store._handles[0]
    store._handles[0] = FailingHandle(fh)
    with pytest.raises(StorageIOError):
        store.append(0, "b", "2")
    store._handles[0] = fh
    store.append(0, "c", "3")
    assert store.scan(0, "a") == ["1"]
    assert store.scan(0, "b") == []
    assert store.scan(0, "c") == ["3"]


def test_partial_write_is_rolled_back(store, tmp_path):
    store.append(0, "beatles", "101")
    fh = store._handles[0]
    store._handles[0] = FailingHandle(fh, keep=len("beatles\t10"))
    with pytest.raises(StorageIOError):
        store.append(0, "beatles", "1024")
    store._handles[0] = fh
    store.append(0, "queen", "1")
    assert store.scan(0, "beatles") == ["101"]
    assert store.scan(0, "queen") == ["1"]
    dat, _ = segment_paths(tmp_path / "idx", 0)
    store.close()
    assert dat.read_bytes() == b"beatles\t101\nqueen\t1\n"


def test_partial_record_hidden_until_truncate_succeeds(store, tmp_path):
    store.append(0, "björk", "1")
    fh = store._handles[0]
    cut = len("björk\t".encode("utf-8")) + 1   # inside the two-byte "é"
    store._handles[0] = FailingHandle(fh, keep=cut, truncate_fails=True)
    with pytest.raises(StorageIOError):
        store.append(0, "björk", "é9")
    assert store.scan(0, "björk") == ["1"]
    with pytest.raises(StorageIOError):
        store.append(0, "björk", "2")
    store._handles[0] = fh
    store.append(0, "björk", "3")
    assert store.scan(0, "björk") == ["1", "3"]
    dat, _ = segment_paths(tmp_path / "idx", 0)
    store.close()
    assert dat.read_bytes() == "björk\t1\nbjörk\t3\n".encode("utf-8")


def test_scan_skips_undecodable_record(store, tmp_path):
    store.append(0, "björk", "1")
    dat, _ = segment_paths(tmp_path / "idx", 0)
    with open(dat, "ab") as fh:
        fh.write("björk\t".encode("utf-8") + b"\xc3\n")
    store.append(0, "björk", "2")
    assert store.scan(0, "björk") == ["1", "2"]
