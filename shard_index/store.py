# ==================================================
# shard_index/store.py
# ==================================================
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import BinaryIO, Dict, List

from .const import ENCODING, FIELD_SEP, RECORD_END
from .errors import IndexClosedError, StorageIOError
from .router import ShardRouter, segment_paths

logger = logging.getLogger(__name__)


def frame_record(key: str, value: str) -> bytes:
    """``key<TAB>value<LF>``; neither field may contain a framing byte."""
    k, v = key.encode(ENCODING), value.encode(ENCODING)
    for field in (k, v):
        if FIELD_SEP in field or RECORD_END in field:
            raise ValueError(f"Field {field!r} contains a record framing byte")
    return k + FIELD_SEP + v + RECORD_END


class ShardStore:
    """Append-only record files, one per shard.

    Construction *recreates* every ``segmentNNNNN.dat`` / ``.idx`` pair under
    ``base_dir``; whatever was there before is truncated without any check.
    The ``.idx`` file is reserved for a future offset table and stays empty.

    Record handles are opened on first use and held until :meth:`close`.
    """

    def __init__(self, base_dir: str | os.PathLike, router: ShardRouter):
        self.base_dir = Path(base_dir)
        self.router   = router
        self._handles: Dict[int, BinaryIO] = {}
        self._torn: Dict[int, int] = {}     # shard -> offset of a partial record
        self._locks   = [threading.Lock() for _ in range(router.shard_count)]
        self._registry_lock = threading.Lock()
        self._closed  = False
        self._create_segments()

    # ------------------------------------------------------------------
    def _create_segments(self):
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError(f"Error while trying to create directory {self.base_dir}") from exc
        for shard in range(self.router.shard_count):
            for path in segment_paths(self.base_dir, shard):
                try:
                    with open(path, "wb"):
                        pass
                except OSError as exc:
                    raise StorageIOError(f"Error while trying to create file {path.name}") from exc
        logger.debug("Initialized %d segments under %s", self.router.shard_count, self.base_dir)

    def _handle(self, shard: int) -> BinaryIO:
        # caller holds self._locks[shard]
        with self._registry_lock:
            if self._closed:
                raise IndexClosedError("Shard store is closed")
            fh = self._handles.get(shard)
            if fh is None:
                fh = open(segment_paths(self.base_dir, shard)[0], "r+b")
                self._handles[shard] = fh
            return fh

    # ------------------------------------------------------------------
    def append(self, shard: int, key: str, value: str) -> None:
        record = frame_record(key, value)
        with self._locks[shard]:
            try:
                fh = self._handle(shard)
                if shard in self._torn:
                    self._rollback(shard, fh, strict=True)
                offset = fh.seek(0, os.SEEK_END)
            except OSError as exc:
                raise StorageIOError(f"Error while preparing shard {shard} for writing") from exc
            try:
                fh.write(record)
                fh.flush()
            except OSError as exc:
                self._torn[shard] = offset
                self._rollback(shard, fh)
                raise StorageIOError(f"Error while writing record to shard {shard}") from exc

    def _rollback(self, shard: int, fh: BinaryIO, strict: bool = False) -> None:
        # cut the shard back to its last complete record; caller holds the shard lock
        try:
            fh.truncate(self._torn[shard])
        except OSError:
            if strict:
                raise
            logger.warning("Could not truncate partial record in shard %d, retrying on next write", shard)
            return
        del self._torn[shard]

    def scan(self, shard: int, key: str) -> List[str]:
        """Values of every record for ``key`` in the shard, earliest first."""
        wanted = key.encode(ENCODING)
        found: List[str] = []
        with self._locks[shard]:
            limit = self._torn.get(shard)
            try:
                fh = self._handle(shard)
                fh.seek(0)
                pos = 0
                for line in iter(fh.readline, b""):
                    if limit is not None and pos >= limit:
                        break
                    pos += len(line)
                    if line == RECORD_END:
                        continue
                    if not line.endswith(RECORD_END):
                        logger.warning("Skipping unterminated record at end of shard %d", shard)
                        continue
                    rec_key, sep, rec_value = line[:-1].partition(FIELD_SEP)
                    if not sep:
                        logger.warning("Skipping malformed record in shard %d", shard)
                        continue
                    if rec_key != wanted:
                        continue
                    try:
                        found.append(rec_value.decode(ENCODING))
                    except UnicodeDecodeError:
                        logger.warning("Skipping undecodable record in shard %d", shard)
            except OSError as exc:
                raise StorageIOError(f"Error while reading records from shard {shard}") from exc
        return found

    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def open_handles(self) -> int:
        with self._registry_lock:
            return len(self._handles)

    def close(self):
        with self._registry_lock:
            if self._closed:
                return
            self._closed = True
            handles, self._handles = self._handles, {}
        for shard, fh in sorted(handles.items()):
            with self._locks[shard]:
                try:
                    if shard in self._torn:
                        self._rollback(shard, fh)
                    fh.flush()
                    os.fsync(fh.fileno())
                    fh.close()
                except OSError:
                    logger.exception("Error while closing shard %d", shard)
                    if not fh.closed:
                        fh.close()
