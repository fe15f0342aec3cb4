import pytest

from shard_index import IndexConfig, IndexService


@pytest.fixture
def config(tmp_path):
    return IndexConfig(index_dir=str(tmp_path / "index"), shard_count=8,
                       cache_size=16, bloom_bits=1 << 16, bloom_hashes=3,
                       shutdown_grace=0.5)


@pytest.fixture
def service(config):
    svc = IndexService(config)
    yield svc
    svc.shutdown()


@pytest.fixture
def load_path(tmp_path):
    def write(text, name="load.tsv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return write
