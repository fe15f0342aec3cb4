# ==================================================
# shard_index/compression.py
# ==================================================
from __future__ import annotations

import io
import os
from typing import TextIO

import zstandard as zstd

from .const import ENCODING

ZSTD_SUFFIX = ".zst"

# errors a caller may see while reading a (possibly compressed) load file
READ_ERRORS = (OSError, UnicodeDecodeError, zstd.ZstdError)

# -------- zstd wrappers ---------------------------------------------------

cctx = zstd.ZstdCompressor(level=3)


def compress(data: bytes) -> bytes:
    return cctx.compress(data)


# -------- load-file access ------------------------------------------------

def is_compressed(path: str | os.PathLike) -> bool:
    return os.fspath(path).endswith(ZSTD_SUFFIX)


def open_text(path: str | os.PathLike) -> TextIO:
    """Open a load file for text reading, decompressing ``*.zst`` on the fly."""
    if not is_compressed(path):
        return open(path, "r", encoding=ENCODING)
    raw = open(path, "rb")
    try:
        reader = zstd.ZstdDecompressor().stream_reader(raw, closefd=True)
    except zstd.ZstdError:
        raw.close()
        raise
    return io.TextIOWrapper(reader, encoding=ENCODING)
