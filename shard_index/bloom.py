# ==================================================
# shard_index/bloom.py
# ==================================================
"""Bit-array membership filter used as a "definitely absent" pre-check.

The filter never yields a false negative. Its false-positive rate depends on
the bit-array size ``m``, the number of hash rounds ``k`` and the number of
keys added ``n``, roughly ``(1 - e^(-kn/m))^k``; it is tunable through the
constructor or :meth:`BitFilter.for_capacity`, not fixed.
"""
from __future__ import annotations

import threading
import zlib
from math import ceil, exp, log

import numpy as np

from .const import ENCODING, ROUND_SALT
from .errors import ConfigurationError


class BitFilter:
    def __init__(self, size_bits: int, hashes: int):
        if hashes < 1:
            raise ConfigurationError("Number of hashes has to be positive")
        if size_bits < 1:
            raise ConfigurationError("Bit array size has to be positive")
        self.m = size_bits
        self.k = hashes
        self.bits = np.zeros((size_bits + 7) // 8, dtype=np.uint8)
        self._added = 0
        # bits are only ever OR-ed in; the lock keeps two concurrent
        # read-modify-writes on one byte from dropping a bit
        self._lock = threading.Lock()

    @classmethod
    def for_capacity(cls, n_items: int, fp_rate: float = 0.01) -> "BitFilter":
        """Size a filter for ``n_items`` keys at roughly ``fp_rate`` false positives."""
        if not 0 < fp_rate < 1:
            raise ConfigurationError("fp_rate must be in (0, 1)")
        n_items = max(1, n_items)
        m = ceil(-(n_items * log(fp_rate)) / (log(2) ** 2))
        k = max(1, ceil((m / n_items) * log(2)))
        return cls(m, k)

    # -- hashing helpers ---------------------------------------------------
    def _positions(self, key: str) -> np.ndarray:
        base = zlib.crc32(key.encode(ENCODING))
        return np.fromiter(
            (zlib.crc32(bytes(((i * ROUND_SALT) & 0xFF,)), base) % self.m
             for i in range(self.k)),
            dtype=np.int64, count=self.k)

    @staticmethod
    def _masks(positions: np.ndarray) -> np.ndarray:
        return np.left_shift(1, positions & 7).astype(np.uint8)

    # ----------------------------------------------------------------------
    def add(self, key: str) -> None:
        pos = self._positions(key)
        with self._lock:
            np.bitwise_or.at(self.bits, pos >> 3, self._masks(pos))
            self._added += 1

    def maybe_contains(self, key: str) -> bool:
        pos = self._positions(key)
        return bool(np.all(self.bits[pos >> 3] & self._masks(pos)))

    __contains__ = maybe_contains

    def __len__(self) -> int:
        return self._added

    def estimated_fp_rate(self, n_items: int | None = None) -> float:
        n = self._added if n_items is None else n_items
        return (1.0 - exp(-self.k * n / self.m)) ** self.k
