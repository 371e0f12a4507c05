"""Wavelet tree over an array of unsigned integers.

For an array ``A[0..n)`` with ``0 <= A[i] < k`` the tree takes about
``n * log2(k)`` bits and answers access, rank, select and range-frequency
queries in ``O(log k)`` time.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable
from itertools import accumulate
from typing import BinaryIO, NamedTuple

from relkit.bit_array import BitArray

_HEADER = struct.Struct("<QQ")


class RankResult(NamedTuple):
    """Counts of values equal to, less than and greater than a character."""

    rank: int
    less_than: int
    more_than: int


def _log2(x: int) -> int:
    """Number of bits needed to write values ``0 .. x - 1``."""
    return (x - 1).bit_length() if x > 0 else 0


def _msb(x: int, pos: int, length: int) -> int:
    """Bit ``pos`` of ``x`` counted from the most significant of ``length`` bits."""
    return (x >> (length - (pos + 1))) & 1


def _lsb(x: int, pos: int) -> int:
    return (x >> pos) & 1


class WaveletTree:
    """Wavelet tree built from an array of unsigned integers."""

    def __init__(self, array: Iterable[int] = ()) -> None:
        self._build(list(array))

    @property
    def alphabet_num(self) -> int:
        """One more than the largest value in the array (0 when empty)."""
        return self._alphabet_num

    @property
    def length(self) -> int:
        return self._length

    def __len__(self) -> int:
        return self._length

    def clear(self) -> None:
        """Release the index and become the tree of an empty array."""
        self._build([])

    def _build(self, values: list[int]) -> None:
        for value in values:
            if value < 0:
                raise ValueError(f"values must be unsigned, got {value}")
        self._bit_arrays: list[BitArray] = []
        self._alphabet_num = max(values) + 1 if values else 0
        self._alphabet_bit_num = _log2(self._alphabet_num)
        self._length = len(values)
        self._set_array(values)
        self._set_occs(values)

    def _beg_poses(self, values: list[int], bits: int) -> list[list[int]]:
        counts = [[0] * (1 << level) for level in range(bits)]
        for c in values:
            for level, level_counts in enumerate(counts):
                level_counts[c >> (bits - level)] += 1
        return [list(accumulate(level_counts, initial=0))[:-1] for level_counts in counts]

    def _set_array(self, values: list[int]) -> None:
        if self._alphabet_num == 0:
            return
        bits = self._alphabet_bit_num
        self._bit_arrays = [BitArray(self._length) for _ in range(bits)]
        starts = self._beg_poses(values, bits)
        for c in values:
            for level, (bit_array, level_starts) in enumerate(
                zip(self._bit_arrays, starts)
            ):
                prefix = c >> (bits - level)
                bit_array.set_bit(_msb(c, level, bits), level_starts[prefix])
                level_starts[prefix] += 1
        for bit_array in self._bit_arrays:
            bit_array.build()

    def _set_occs(self, values: list[int]) -> None:
        counts = [0] * self._alphabet_num
        for c in values:
            counts[c] += 1
        self._occs = BitArray(self._length + self._alphabet_num + 1)
        position = 0
        for count in counts:
            self._occs.set_bit(1, position)
            position += count + 1
        self._occs.set_bit(1, position)
        self._occs.build()

    def _check_char(self, c: int) -> None:
        if not 0 <= c < self._alphabet_num:
            raise ValueError(
                f"character {c} is outside the alphabet 0..{self._alphabet_num - 1}"
            )

    def lookup(self, pos: int) -> int:
        """Return ``A[pos]``."""
        if not 0 <= pos < self._length:
            raise IndexError(f"position {pos} is out of range 0..{self._length - 1}")
        start, end, c = 0, self._length, 0
        for bit_array in self._bit_arrays:
            boundary = start + bit_array.rank(0, end) - bit_array.rank(0, start)
            bit = bit_array.lookup(start + pos)
            c = (c << 1) | bit
            if bit:
                pos = bit_array.rank(1, start + pos) - bit_array.rank(1, start)
                start = boundary
            else:
                pos = bit_array.rank(0, start + pos) - bit_array.rank(0, start)
                end = boundary
        return c

    def __getitem__(self, pos: int) -> int:
        return self.lookup(pos)

    def rank_all(self, c: int, pos: int) -> RankResult:
        """Counts of values ``== c``, ``< c`` and ``> c`` in ``A[0..pos)``.

        A ``pos`` beyond the end is treated as the length of the array.
        """
        self._check_char(c)
        if pos < 0:
            raise ValueError(f"position {pos} must not be negative")
        pos = min(pos, self._length)
        begin, end = 0, self._length
        less_than = more_than = 0
        levels = len(self._bit_arrays)
        for level, bit_array in enumerate(self._bit_arrays):
            if begin >= end:
                break
            begin_zero = bit_array.rank(0, begin)
            begin_one = begin - begin_zero
            end_zero = bit_array.rank(0, end)
            boundary = begin + end_zero - begin_zero
            if not _msb(c, level, levels):
                more_than += bit_array.rank(1, pos) - begin_one
                pos = begin + bit_array.rank(0, pos) - begin_zero
                end = boundary
            else:
                less_than += bit_array.rank(0, pos) - begin_zero
                pos = boundary + bit_array.rank(1, pos) - begin_one
                begin = boundary
        return RankResult(pos - begin, less_than, more_than)

    def rank(self, c: int, pos: int) -> int:
        """Frequency of ``c`` in ``A[0..pos)``."""
        return self.rank_all(c, pos).rank

    def rank_less_than(self, c: int, pos: int) -> int:
        """Frequency of values ``< c`` in ``A[0..pos)``."""
        return self.rank_all(c, pos).less_than

    def rank_more_than(self, c: int, pos: int) -> int:
        """Frequency of values ``> c`` in ``A[0..pos)``."""
        return self.rank_all(c, pos).more_than

    def select(self, c: int, rank: int) -> int:
        """Position of the ``rank``-th (1-based) occurrence of ``c``."""
        self._check_char(c)
        frequency = self.freq(c)
        if not 1 <= rank <= frequency:
            raise ValueError(
                f"rank {rank} is outside 1..{frequency} for character {c}"
            )
        for i in range(self._alphabet_bit_num):
            lower_c = c & ~((1 << (i + 1)) - 1)
            begin_node = self._occs.select(1, lower_c + 1) - lower_c
            bit_array = self._bit_arrays[self._alphabet_bit_num - i - 1]
            bit = _lsb(c, i)
            before_rank = bit_array.rank(bit, begin_node)
            rank = bit_array.select(bit, before_rank + rank) - begin_node + 1
        return rank - 1

    def _less_than_or_all(self, c: int, pos: int) -> int:
        if c >= self._alphabet_num:
            return min(pos, self._length)
        return self.rank_less_than(c, pos)

    def freq_range(self, min_c: int, max_c: int, begin_pos: int, end_pos: int) -> int:
        """Frequency of values ``min_c <= v < max_c`` in ``A[begin_pos..end_pos)``.

        Returns 0 for an empty or invalid character or position range.
        """
        if min_c < 0 or min_c >= self._alphabet_num:
            return 0
        if max_c <= min_c:
            return 0
        if begin_pos < 0 or end_pos > self._length or begin_pos > end_pos:
            return 0
        return (
            self._less_than_or_all(max_c, end_pos)
            - self.rank_less_than(min_c, end_pos)
            - self._less_than_or_all(max_c, begin_pos)
            + self.rank_less_than(min_c, begin_pos)
        )

    def freq(self, c: int) -> int:
        """Frequency of ``c`` in the whole array."""
        self._check_char(c)
        return self._occs.select(1, c + 2) - self._occs.select(1, c + 1) - 1

    def freq_sum(self, min_c: int, max_c: int) -> int:
        """Frequency of values ``min_c <= v < max_c`` in the whole array."""
        if min_c < 0 or max_c > self._alphabet_num or min_c > max_c:
            raise ValueError(
                f"invalid character range [{min_c}, {max_c}) for alphabet "
                f"of size {self._alphabet_num}"
            )
        return (
            self._occs.select(1, max_c + 1)
            - self._occs.select(1, min_c + 1)
            - (max_c - min_c)
        )

    def save(self, stream: BinaryIO) -> None:
        """Write the tree as little-endian 64-bit words."""
        stream.write(_HEADER.pack(self._alphabet_num, self._length))
        for bit_array in self._bit_arrays:
            bit_array.save(stream)
        self._occs.save(stream)

    @classmethod
    def load(cls, stream: BinaryIO) -> WaveletTree:
        """Read a tree written by :meth:`save`."""
        header = stream.read(_HEADER.size)
        if len(header) != _HEADER.size:
            raise ValueError("truncated wavelet tree header")
        alphabet_num, length = _HEADER.unpack(header)
        tree = cls()
        tree._alphabet_num = alphabet_num
        tree._alphabet_bit_num = _log2(alphabet_num)
        tree._length = length
        tree._bit_arrays = [
            BitArray.load(stream) for _ in range(tree._alphabet_bit_num)
        ]
        tree._occs = BitArray.load(stream)
        return tree