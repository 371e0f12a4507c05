"""MurmurHash64A and a microsecond timestamp helper."""

from __future__ import annotations

import time

_MASK = (1 << 64) - 1
_M = 0xC6A4A7935BD1E995
_R = 47


def murmur_hash64a(key: str | bytes, seed: int = 0) -> int:
    """Return the 64-bit MurmurHash64A of ``key`` (strings are UTF-8 encoded)."""
    data = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    length = len(data)
    h = (seed ^ (length * _M)) & _MASK

    body = length - (length & 7)
    for offset in range(0, body, 8):
        k = int.from_bytes(data[offset:offset + 8], "little")
        k = (k * _M) & _MASK
        k ^= k >> _R
        k = (k * _M) & _MASK
        h ^= k
        h = (h * _M) & _MASK

    tail = data[body:]
    if tail:
        h ^= int.from_bytes(tail, "little")
        h = (h * _M) & _MASK

    h ^= h >> _R
    h = (h * _M) & _MASK
    h ^= h >> _R
    return h


def current_timestamp_micros() -> int:
    """Return the current wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1000