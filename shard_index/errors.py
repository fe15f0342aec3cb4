# ==================================================
# shard_index/errors.py
# ==================================================


class ShardIndexError(Exception):
    """Base class for everything raised by shard_index."""


class ConfigurationError(ShardIndexError, ValueError):
    """Invalid construction parameters (hash rounds < 1, capacity < 1, ...)."""


class StorageIOError(ShardIndexError, OSError):
    """Opening, seeking, reading or writing a shard file failed."""


class IndexClosedError(ShardIndexError, RuntimeError):
    """Operation attempted after shutdown()."""
