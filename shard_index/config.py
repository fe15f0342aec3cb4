# ==================================================
# shard_index/config.py
# ==================================================
from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .const import (DEFAULT_BLOOM_BITS, DEFAULT_BLOOM_HASHES, DEFAULT_CACHE_SIZE,
                    DEFAULT_GRACE_SEC, DEFAULT_INDEX_DIR, DEFAULT_SHARDS)
from .errors import ConfigurationError

ENV_PREFIX = "SHARD_INDEX_"


def _env(name: str, default, cast):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name}={raw!r} is not a valid {cast.__name__}") from exc


@dataclass(frozen=True)
class IndexConfig:
    index_dir:      str   = DEFAULT_INDEX_DIR
    shard_count:    int   = DEFAULT_SHARDS
    cache_size:     int   = DEFAULT_CACHE_SIZE
    bloom_bits:     int   = DEFAULT_BLOOM_BITS
    bloom_hashes:   int   = DEFAULT_BLOOM_HASHES
    shutdown_grace: float = DEFAULT_GRACE_SEC

    @classmethod
    def from_env(cls) -> "IndexConfig":
        """Defaults overridden by ``SHARD_INDEX_*`` environment variables."""
        return cls(
            index_dir      = _env("DIR",            DEFAULT_INDEX_DIR,    str),
            shard_count    = _env("SHARDS",         DEFAULT_SHARDS,       int),
            cache_size     = _env("CACHE_SIZE",     DEFAULT_CACHE_SIZE,   int),
            bloom_bits     = _env("BLOOM_BITS",     DEFAULT_BLOOM_BITS,   int),
            bloom_hashes   = _env("BLOOM_HASHES",   DEFAULT_BLOOM_HASHES, int),
            shutdown_grace = _env("SHUTDOWN_GRACE", DEFAULT_GRACE_SEC,    float),
        )

    def with_overrides(self, **changes) -> "IndexConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
