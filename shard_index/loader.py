# ==================================================
# shard_index/loader.py
# ==================================================
from __future__ import annotations

import logging
import os
from typing import Iterator, Tuple

from .compression import open_text

logger = logging.getLogger(__name__)

DELIMITER = "\t"


def iter_records(path: str | os.PathLike) -> Iterator[Tuple[str, str]]:
    """Yield ``(key, value)`` per valid line; lines without exactly two fields are skipped."""
    with open_text(path) as fh:
        for line_no, line in enumerate(fh, start=1):
            fields = line.rstrip("\r\n").split(DELIMITER)
            if len(fields) != 2:
                logger.warning("Invalid line [%s] in file %s at line %d. Skipping.",
                               line.rstrip("\r\n"), path, line_no)
                continue
            yield fields[0], fields[1]


def load_file(index, path: str | os.PathLike) -> int:
    """Replay a bulk-load file into ``index``; returns the number of records added."""
    count = 0
    for key, value in iter_records(path):
        index.add(key, value)
        count += 1
    logger.info("Loaded %d records from %s", count, path)
    return count
