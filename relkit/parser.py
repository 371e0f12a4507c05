"""Parsing and dumping of the textual join-query format.

A query has three parts separated by ``|``::

    <relation ids>|<predicates and filters>|<selections>

for example ``0 2 4|0.1=1.1&1.0>3|0.1 1.4``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum


class Comparison(Enum):
    """Comparison operator of a filter predicate."""

    LESS = "<"
    GREATER = ">"
    EQUAL = "="


# Order in which a raw predicate is probed for its comparison operator.
_COMPARISON_ORDER = (Comparison.LESS, Comparison.GREATER, Comparison.EQUAL)


def _split(line: str, delimiter: str) -> list[str]:
    """Split like repeated ``getline``: a single trailing empty token is dropped."""
    tokens = line.split(delimiter)
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def _parse_uint(token: str) -> int:
    try:
        value = int(token)
    except ValueError:
        raise ValueError(f"not an unsigned integer: {token!r}") from None
    if value < 0:
        raise ValueError(f"not an unsigned integer: {token!r}")
    return value


def _is_constant(raw: str) -> bool:
    return "." not in raw


def _wrap_relation_name(binding: int) -> str:
    return f'"{binding}"'


@dataclass(frozen=True)
class SelectInfo:
    """A column reference: relation binding in the query and column id."""

    binding: int
    col_id: int
    rel_id: int | None = None

    def __lt__(self, other: SelectInfo) -> bool:
        if not isinstance(other, SelectInfo):
            return NotImplemented
        return (self.binding, self.col_id) < (other.binding, other.col_id)

    def dump_text(self) -> str:
        return f"{self.binding}.{self.col_id}"

    def dump_sql(self, add_sum: bool = False) -> str:
        inner = f"{_wrap_relation_name(self.binding)}.c{self.col_id}"
        return f"SUM({inner})" if add_sum else inner


@dataclass(frozen=True)
class FilterInfo:
    """A comparison of a column against a constant."""

    filter_column: SelectInfo
    constant: int
    comparison: Comparison

    def dump_text(self) -> str:
        return f"{self.filter_column.dump_text()}{self.comparison.value}{self.constant}"

    def dump_sql(self) -> str:
        return f"{self.filter_column.dump_sql()}{self.comparison.value}{self.constant}"


@dataclass(frozen=True)
class PredicateInfo:
    """An equi-join predicate between two columns."""

    left: SelectInfo
    right: SelectInfo

    def dump_text(self) -> str:
        return f"{self.left.dump_text()}={self.right.dump_text()}"

    def dump_sql(self) -> str:
        return f"{self.left.dump_sql()}={self.right.dump_sql()}"


def _parse_rel_col_pair(raw: str) -> SelectInfo:
    ids = [_parse_uint(token) for token in _split(raw, ".")]
    if len(ids) < 2:
        raise ValueError(f"expected <binding>.<column>, got {raw!r}")
    return SelectInfo(binding=ids[0], col_id=ids[1], rel_id=0)


@dataclass
class QueryInfo:
    """A parsed query: relations, join predicates, filters and selections."""

    relation_ids: list[int] = field(default_factory=list)
    predicates: list[PredicateInfo] = field(default_factory=list)
    filters: list[FilterInfo] = field(default_factory=list)
    selections: list[SelectInfo] = field(default_factory=list)

    def __init__(self, raw_query: str | None = None) -> None:
        self.relation_ids = []
        self.predicates = []
        self.filters = []
        self.selections = []
        if raw_query is not None:
            self.parse_query(raw_query)

    def parse_relation_ids(self, raw_relations: str) -> None:
        """Parse ``<r1> <r2> ...`` and append the ids."""
        self.relation_ids.extend(_parse_uint(t) for t in _split(raw_relations, " "))

    def _parse_predicate(self, raw_predicate: str) -> None:
        parts: list[str] = []
        for comparison in _COMPARISON_ORDER:
            if comparison.value in raw_predicate:
                parts = _split(raw_predicate, comparison.value)
                break
        if len(parts) != 2:
            raise ValueError(f"malformed predicate: {raw_predicate!r}")
        left_raw, right_raw = parts
        if _is_constant(left_raw):
            raise ValueError(
                f"left side of a predicate must be a column: {raw_predicate!r}"
            )
        left = _parse_rel_col_pair(left_raw)
        if _is_constant(right_raw):
            comparison = Comparison(raw_predicate[len(left_raw)])
            self.filters.append(FilterInfo(left, _parse_uint(right_raw), comparison))
        else:
            self.predicates.append(PredicateInfo(left, _parse_rel_col_pair(right_raw)))

    def parse_predicates(self, raw_predicates: str) -> None:
        """Parse ``r1.a=r2.b&r1.b=3...`` into join predicates and filters."""
        for raw_predicate in _split(raw_predicates, "&"):
            self._parse_predicate(raw_predicate)

    def parse_selections(self, raw_selections: str) -> None:
        """Parse ``r1.a r1.b r3.c...`` into selections."""
        self.selections.extend(
            _parse_rel_col_pair(raw) for raw in _split(raw_selections, " ")
        )

    def _resolve(self, info: SelectInfo) -> SelectInfo:
        try:
            rel_id = self.relation_ids[info.binding]
        except IndexError:
            raise ValueError(f"unknown relation binding {info.binding}") from None
        return dataclasses.replace(info, rel_id=rel_id)

    def _resolve_relation_ids(self) -> None:
        self.selections = [self._resolve(s) for s in self.selections]
        self.predicates = [
            PredicateInfo(self._resolve(p.left), self._resolve(p.right))
            for p in self.predicates
        ]
        self.filters = [
            dataclasses.replace(f, filter_column=self._resolve(f.filter_column))
            for f in self.filters
        ]

    def parse_query(self, raw_query: str) -> None:
        """Parse ``[RELATIONS]|[PREDICATES]|[SELECTS]``, replacing current contents."""
        self.clear()
        parts = _split(raw_query, "|")
        if len(parts) != 3:
            raise ValueError(f"query must have three '|'-separated parts: {raw_query!r}")
        self.parse_relation_ids(parts[0])
        self.parse_predicates(parts[1])
        self.parse_selections(parts[2])
        self._resolve_relation_ids()

    def dump_text(self) -> str:
        relations = " ".join(str(r) for r in self.relation_ids)
        conditions = "&".join(
            [p.dump_text() for p in self.predicates]
            + [f.dump_text() for f in self.filters]
        )
        selections = " ".join(s.dump_text() for s in self.selections)
        return f"{relations}|{conditions}|{selections}"

    def dump_sql(self) -> str:
        selections = ", ".join(s.dump_sql(True) for s in self.selections)
        relations = ", ".join(
            f"r{rel_id} {_wrap_relation_name(binding)}"
            for binding, rel_id in enumerate(self.relation_ids)
        )
        conditions = " and ".join(
            [p.dump_sql() for p in self.predicates]
            + [f.dump_sql() for f in self.filters]
        )
        return f"SELECT {selections} FROM {relations} WHERE {conditions};"

    def clear(self) -> None:
        self.relation_ids.clear()
        self.predicates.clear()
        self.filters.clear()
        self.selections.clear()