"""Builds left-deep operator trees for queries and computes their checksums."""

from __future__ import annotations

import os
from collections import deque
from enum import Enum, auto

from relkit.operators import Checksum, FilterScan, Join, Operator, Scan, SelfJoin
from relkit.parser import PredicateInfo, QueryInfo, SelectInfo
from relkit.relation import Relation


class _Provides(Enum):
    LEFT = auto()
    RIGHT = auto()
    BOTH = auto()
    NONE = auto()


def _analyze_input_of_join(used: set[int], p_info: PredicateInfo) -> _Provides:
    used_left = p_info.left.binding in used
    used_right = p_info.right.binding in used
    if used_left and used_right:
        return _Provides.BOTH
    if used_left:
        return _Provides.LEFT
    if used_right:
        return _Provides.RIGHT
    return _Provides.NONE


class Joiner:
    """Holds the relations and answers join queries over them."""

    def __init__(self) -> None:
        self._relations: list[Relation] = []

    @property
    def relations(self) -> tuple[Relation, ...]:
        return tuple(self._relations)

    def add_relation(self, relation: Relation) -> None:
        self._relations.append(relation)

    def add_relation_file(self, file_name: str | os.PathLike) -> None:
        """Load a relation from its binary file and add it."""
        self.add_relation(Relation.from_file(file_name))

    def get_relation(self, relation_id: int) -> Relation:
        if not 0 <= relation_id < len(self._relations):
            raise IndexError(f"Relation with id: {relation_id} does not exist")
        return self._relations[relation_id]

    def _add_scan(
        self, used: set[int], info: SelectInfo, query: QueryInfo
    ) -> Operator:
        used.add(info.binding)
        filters = [f for f in query.filters if f.filter_column.binding == info.binding]
        relation = self.get_relation(info.rel_id)
        if filters:
            return FilterScan(relation, filters)
        return Scan(relation, info.binding)

    def join(self, query: QueryInfo) -> str:
        """Run ``query`` and return its checksums as one output line."""
        if not query.predicates:
            raise ValueError("a query needs at least one join predicate")
        used: set[int] = set()
        first, *rest = query.predicates
        left = self._add_scan(used, first.left, query)
        right = self._add_scan(used, first.right, query)
        root: Operator = Join(left, right, first)

        pending = deque(rest)
        deferred = 0
        while pending:
            p_info = pending.popleft()
            provides = _analyze_input_of_join(used, p_info)
            if provides is _Provides.NONE:
                # Not connected yet; retry once more of the graph is joined.
                pending.append(p_info)
                deferred += 1
                if deferred >= len(pending):
                    raise ValueError("query join graph is not connected")
                continue
            deferred = 0
            if provides is _Provides.LEFT:
                root = Join(root, self._add_scan(used, p_info.right, query), p_info)
            elif provides is _Provides.RIGHT:
                root = Join(self._add_scan(used, p_info.left, query), root, p_info)
            else:
                root = SelfJoin(root, p_info)

        checksum = Checksum(root, query.selections)
        checksum.run()
        values = (
            "NULL" if checksum.result_size == 0 else str(value)
            for value in checksum.check_sums
        )
        return " ".join(values) + "\n"