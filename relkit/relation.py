"""Column-store relations of unsigned 64-bit integers."""

from __future__ import annotations

import os
import struct
import sys
from array import array
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

_HEADER = struct.Struct("<QQ")
_WORD = 8


def _to_column(values: Iterable[int]) -> array:
    return values if isinstance(values, array) and values.typecode == "Q" else array("Q", values)


@dataclass
class Relation:
    """A relation of ``size`` tuples stored as a list of equally long columns."""

    size: int
    columns: list[array] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.columns = [_to_column(c) for c in self.columns]
        for index, column in enumerate(self.columns):
            if len(column) != self.size:
                raise ValueError(
                    f"column {index} has {len(column)} values, expected {self.size}"
                )

    @classmethod
    def from_file(cls, file_name: str | os.PathLike) -> Relation:
        """Load a relation from its binary file."""
        data = Path(file_name).read_bytes()
        if len(data) < _HEADER.size:
            raise ValueError(
                f"relation file {os.fspath(file_name)} does not contain a valid header"
            )
        size, num_columns = _HEADER.unpack_from(data)
        offset = _HEADER.size
        width = size * _WORD
        columns = []
        for _ in range(num_columns):
            chunk = data[offset:offset + width]
            if len(chunk) != width:
                raise ValueError(
                    f"relation file {os.fspath(file_name)} is truncated"
                )
            column = array("Q")
            column.frombytes(chunk)
            if sys.byteorder == "big":
                column.byteswap()
            columns.append(column)
            offset += width
        return cls(size, columns)

    def store(self, file_name: str | os.PathLike) -> None:
        """Store the relation in its binary format."""
        with open(file_name, "wb") as out:
            out.write(_HEADER.pack(self.size, len(self.columns)))
            for column in self.columns:
                if sys.byteorder == "big":
                    column = array("Q", column)
                    column.byteswap()
                out.write(column.tobytes())

    def _rows(self) -> Iterable[tuple[int, ...]]:
        if self.columns:
            return zip(*self.columns)
        return (() for _ in range(self.size))

    def store_csv(self, file_name: str | os.PathLike) -> None:
        """Store the relation as ``<file_name>.tbl`` with ``|``-terminated values."""
        with open(os.fspath(file_name) + ".tbl", "w", encoding="ascii") as out:
            for row in self._rows():
                out.write("".join(f"{value}|" for value in row))
                out.write("\n")

    def dump_sql(self, file_name: str | os.PathLike, relation_id: int) -> None:
        """Write ``<file_name>.sql`` that creates and loads the table (PostgreSQL)."""
        column_defs = ",".join(f"c{i} bigint" for i in range(len(self.columns)))
        with open(os.fspath(file_name) + ".sql", "w", encoding="ascii") as out:
            out.write(f"CREATE TABLE r{relation_id} ({column_defs});\n")
            out.write(
                f"copy r{relation_id} from 'r{relation_id}.tbl' delimiter '|';\n"
            )