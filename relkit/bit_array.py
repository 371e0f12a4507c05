"""A bit vector with rank and select support."""

from __future__ import annotations

import struct
from typing import BinaryIO

BLOCK_BITNUM = 64
TABLE_INTERVAL = 4

_MASK = (1 << 64) - 1
_WORD = struct.Struct("<Q")


def pop_count(x: int) -> int:
    """Number of set bits in the 64-bit word ``x``."""
    return (x & _MASK).bit_count()


def pop_count_mask(x: int, offset: int) -> int:
    """Number of set bits among the lowest ``offset`` bits of ``x``."""
    if offset == 0:
        return 0
    return pop_count(x & ((1 << offset) - 1))


def select_in_block(x: int, rank: int) -> int:
    """Position of the ``rank``-th (1-based) set bit of the 64-bit word ``x``."""
    if rank == 0:
        return 0
    remaining = rank
    x &= _MASK
    for pos in range(BLOCK_BITNUM):
        if (x >> pos) & 1:
            remaining -= 1
            if remaining == 0:
                return pos
    raise ValueError(f"word has fewer than {rank} set bits")


def get_bit_num(one_num: int, num: int, bit: int) -> int:
    """Count of ``bit`` values among ``num`` bits of which ``one_num`` are set."""
    return one_num if bit else num - one_num


class BitArray:
    """Fixed-length bit vector; call :meth:`build` before ranking or selecting."""

    def __init__(self, length: int = 0) -> None:
        self._length = length
        self._one_num = 0
        self._blocks = [0] * ((length + BLOCK_BITNUM - 1) // BLOCK_BITNUM)
        self._tables: list[int] = []

    @property
    def length(self) -> int:
        return self._length

    @property
    def one_num(self) -> int:
        return self._one_num

    def __len__(self) -> int:
        return self._length

    def clear(self) -> None:
        """Release all bits and reset to an empty array."""
        self._blocks = []
        self._tables = []
        self._length = 0
        self._one_num = 0

    def set_bit(self, bit: int, pos: int) -> None:
        """Set position ``pos`` if ``bit`` is true; a false ``bit`` does nothing."""
        if not bit:
            return
        self._blocks[pos // BLOCK_BITNUM] |= 1 << (pos % BLOCK_BITNUM)

    def build(self) -> None:
        """Compute the rank directory."""
        self._one_num = 0
        table_num = (len(self._blocks) + TABLE_INTERVAL - 1) // TABLE_INTERVAL + 1
        self._tables = [0] * table_num
        for index, block in enumerate(self._blocks):
            if index % TABLE_INTERVAL == 0:
                self._tables[index // TABLE_INTERVAL] = self._one_num
            self._one_num += pop_count(block)
        self._tables[-1] = self._one_num

    def _require_built(self) -> None:
        if not self._tables:
            raise RuntimeError("bit array has not been built")

    def _block(self, index: int) -> int:
        return self._blocks[index] if index < len(self._blocks) else 0

    def _rank_one(self, pos: int) -> int:
        self._require_built()
        block_ind = pos // BLOCK_BITNUM
        table_ind = block_ind // TABLE_INTERVAL
        rank = self._tables[table_ind]
        rank += sum(
            pop_count(b) for b in self._blocks[table_ind * TABLE_INTERVAL:block_ind]
        )
        rank += pop_count_mask(self._block(block_ind), pos % BLOCK_BITNUM)
        return rank

    def rank(self, bit: int, pos: int) -> int:
        """Number of ``bit`` values in positions ``[0, pos)``."""
        if pos < 0 or pos > self._length:
            raise IndexError(f"position {pos} is out of range 0..{self._length}")
        ones = self._rank_one(pos)
        return ones if bit else pos - ones

    def _select_out_block(self, bit: int, rank: int) -> tuple[int, int]:
        left, right = 0, len(self._tables)
        while left < right:
            mid = (left + right) // 2
            length = BLOCK_BITNUM * TABLE_INTERVAL * mid
            if get_bit_num(self._tables[mid], length, bit) < rank:
                left = mid + 1
            else:
                right = mid
        table_ind = left - 1 if left else 0
        block_pos = table_ind * TABLE_INTERVAL
        rank -= get_bit_num(self._tables[table_ind], block_pos * BLOCK_BITNUM, bit)
        while block_pos < len(self._blocks):
            rank_next = get_bit_num(
                pop_count(self._blocks[block_pos]), BLOCK_BITNUM, bit
            )
            if rank <= rank_next:
                break
            rank -= rank_next
            block_pos += 1
        return block_pos, rank

    def select(self, bit: int, rank: int) -> int:
        """Position of the ``rank``-th (1-based) occurrence of ``bit``."""
        self._require_built()
        available = self._one_num if bit else self._length - self._one_num
        if rank < 0 or rank > available:
            raise ValueError(f"rank {rank} exceeds the {available} available bits")
        block_pos, rest = self._select_out_block(bit, rank)
        block = self._block(block_pos)
        if not bit:
            block = ~block & _MASK
        return block_pos * BLOCK_BITNUM + select_in_block(block, rest)

    def lookup(self, pos: int) -> int:
        """The bit at position ``pos``."""
        return (self._blocks[pos // BLOCK_BITNUM] >> (pos % BLOCK_BITNUM)) & 1

    def debug_string(self) -> str:
        """Bits as ``0``/``1`` characters, a space after every eight."""
        parts = []
        for pos in range(self._length):
            parts.append("1" if self.lookup(pos) else "0")
            if (pos + 1) % 8 == 0:
                parts.append(" ")
        return "".join(parts)

    def save(self, stream: BinaryIO) -> None:
        """Write the length and the raw blocks as little-endian 64-bit words."""
        stream.write(_WORD.pack(self._length))
        stream.write(struct.pack(f"<{len(self._blocks)}Q", *self._blocks))

    @classmethod
    def load(cls, stream: BinaryIO) -> BitArray:
        """Read a bit array written by :meth:`save` and build it."""
        header = stream.read(_WORD.size)
        if len(header) != _WORD.size:
            raise ValueError("truncated bit array header")
        (length,) = _WORD.unpack(header)
        result = cls(length)
        count = len(result._blocks)
        data = stream.read(count * _WORD.size)
        if len(data) != count * _WORD.size:
            raise ValueError("truncated bit array data")
        result._blocks = list(struct.unpack(f"<{count}Q", data))
        result.build()
        return result