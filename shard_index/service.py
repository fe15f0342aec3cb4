# ==================================================
# shard_index/service.py
# ==================================================
"""Index backends sharing one ``add`` / ``search`` / ``shutdown`` surface.

:class:`IndexService` spreads records over a catalog of shard files and keeps
two layers in front of them: a :class:`BitFilter` that answers "definitely
absent" and a :class:`RecencyCache` for repeat queries. Disk is only touched
when both miss.

Cached results are *not* invalidated by later ``add`` calls for the same
key; a cached entry (including ``CONFIRMED_ABSENT``) stays as-is until it is
evicted by capacity pressure.
"""
from __future__ import annotations

import logging
import threading
from collections import Counter
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol

from .bloom import BitFilter
from .cache import CONFIRMED_ABSENT, RecencyCache
from .config import IndexConfig
from .errors import IndexClosedError, StorageIOError
from .router import ShardRouter
from .store import ShardStore

logger = logging.getLogger(__name__)


class Index(Protocol):
    def add(self, key: str, value: str) -> None: ...

    def search(self, key: str) -> List[str]: ...

    def shutdown(self, timeout: Optional[float] = None) -> None: ...


class IndexService:
    """Disk-backed index. Construction recreates every shard file."""

    def __init__(self, config: Optional[IndexConfig] = None):
        self.config = config or IndexConfig()
        self.bloom  = BitFilter(self.config.bloom_bits, self.config.bloom_hashes)
        self.cache  = RecencyCache(self.config.cache_size)
        self.router = ShardRouter(self.config.shard_count)
        self.store  = ShardStore(self.config.index_dir, self.router)

        self._cond      = threading.Condition()
        self._in_flight = 0
        self._closed    = False
        self._stats: Counter = Counter()

    # -- bookkeeping -------------------------------------------------------
    @contextmanager
    def _operation(self) -> Iterator[None]:
        with self._cond:
            if self._closed:
                raise IndexClosedError("Index has been shut down")
            self._in_flight += 1
        try:
            yield
        finally:
            with self._cond:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._cond.notify_all()

    def _count(self, name: str) -> None:
        with self._cond:
            self._stats[name] += 1

    def stats(self) -> Dict[str, int]:
        with self._cond:
            return {name: self._stats[name] for name in
                    ("adds", "searches", "filter_rejects", "cache_hits", "scans", "dropped_adds")}

    # ----------------------------------------------------------------------
    def add(self, key: str, value: str) -> None:
        with self._operation():
            self._count("adds")
            # registering first is harmless if the write below fails: the
            # filter may then say "maybe" for a key with no record on disk
            self.bloom.add(key)
            try:
                self.store.append(self.router.route(key), key, value)
            except StorageIOError:
                self._count("dropped_adds")
                logger.exception("Error while trying to add key/value to disk.")
            except IndexClosedError:
                # shutdown grace expired while this call was in flight
                self._count("dropped_adds")
                logger.warning("Dropping add for %r, shard store already closed.", key)

    def search(self, key: str) -> List[str]:
        with self._operation():
            self._count("searches")
            if not self.bloom.maybe_contains(key):
                self._count("filter_rejects")
                return []

            cached = self.cache.get(key)
            if cached is not None:
                self._count("cache_hits")
                return [] if cached is CONFIRMED_ABSENT else list(cached)

            try:
                found = self.store.scan(self.router.route(key), key)
            except StorageIOError:
                logger.exception("Error while trying to read key %r from disk.", key)
                return []
            except IndexClosedError:
                logger.warning("Search for %r raced shutdown, shard store already closed.", key)
                return []
            self._count("scans")
            self.cache.put(key, tuple(found) if found else CONFIRMED_ABSENT)
            return found

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Wait up to ``timeout`` (default: config grace) for in-flight calls, then close."""
        grace = self.config.shutdown_grace if timeout is None else timeout
        with self._cond:
            if self._closed:
                logger.debug("Disk index already shut down")
                return
            self._closed = True
            if not self._cond.wait_for(lambda: self._in_flight == 0, timeout=grace):
                logger.warning("Closing disk index with %d operations in flight", self._in_flight)
        logger.info("Shutting down disk index...")
        self.store.close()
        self.cache.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "IndexService":
        return self

    def __exit__(self, *_) -> None:
        self.shutdown()


class InMemoryIndex:
    """Whole mapping in a dict; meant for datasets that fit comfortably in RAM."""

    def __init__(self):
        self._index: Dict[str, List[str]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def add(self, key: str, value: str) -> None:
        with self._lock:
            if self._closed:
                raise IndexClosedError("Index has been shut down")
            self._index.setdefault(key, []).append(value)

    def search(self, key: str) -> List[str]:
        with self._lock:
            if self._closed:
                raise IndexClosedError("Index has been shut down")
            return list(self._index.get(key, ()))

    def shutdown(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            logger.info("Shutting down in-memory index...")
            self._index.clear()

    def __enter__(self) -> "InMemoryIndex":
        return self

    def __exit__(self, *_) -> None:
        self.shutdown()


def open_index(config: Optional[IndexConfig] = None, in_memory: bool = False) -> Index:
    if in_memory:
        return InMemoryIndex()
    return IndexService(config)
