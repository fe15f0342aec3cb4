from .bloom import BitFilter
from .cache import CONFIRMED_ABSENT, RecencyCache
from .config import IndexConfig
from .errors import ConfigurationError, IndexClosedError, ShardIndexError, StorageIOError
from .router import ShardRouter
from .service import Index, IndexService, InMemoryIndex, open_index
from .store import ShardStore

__all__ = [
    "BitFilter", "RecencyCache", "CONFIRMED_ABSENT", "ShardRouter", "ShardStore",
    "Index", "IndexService", "InMemoryIndex", "open_index", "IndexConfig",
    "ShardIndexError", "ConfigurationError", "StorageIOError", "IndexClosedError",
]
