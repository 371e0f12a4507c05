"""Helpers to create and store dummy relations."""

from __future__ import annotations

from typing import TextIO

from relkit.relation import Relation


def create_relation(size: int, num_columns: int) -> Relation:
    """Create a relation whose every column holds ``0, 1, ..., size - 1``."""
    return Relation(size, [range(size) for _ in range(num_columns)])


def store_relation(out: TextIO, relation: Relation, index: int) -> str:
    """Store ``relation`` as ``r<index>`` in binary, CSV and SQL form.

    The base name is printed and written as a line to ``out``; it is also returned.
    """
    base_name = f"r{index}"
    relation.store(base_name)
    relation.store_csv(base_name)
    relation.dump_sql(base_name, index)
    print(base_name)
    out.write(base_name + "\n")
    return base_name