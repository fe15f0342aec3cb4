# ==================================================
# shard_index/router.py
# ==================================================
from __future__ import annotations

import os
import zlib
from pathlib import Path
from typing import Tuple

from .const import DATA_SUFFIX, ENCODING, INDEX_SUFFIX, SEGMENT_FMT
from .errors import ConfigurationError


def crc32_of(key: str) -> int:
    return zlib.crc32(key.encode(ENCODING))


def segment_paths(base_dir: str | os.PathLike, shard: int) -> Tuple[Path, Path]:
    """(record file, reserved offset-index file) for one shard."""
    stem = Path(base_dir) / SEGMENT_FMT.format(shard)
    return stem.with_suffix(DATA_SUFFIX), stem.with_suffix(INDEX_SUFFIX)


class ShardRouter:
    """Pure key -> shard mapping; stable across processes since CRC32 is."""

    def __init__(self, shard_count: int):
        if shard_count < 1:
            raise ConfigurationError("Shard count has to be positive")
        self.shard_count = shard_count

    def route(self, key: str) -> int:
        return crc32_of(key) % self.shard_count

    def __len__(self) -> int:
        return self.shard_count
