"""Physical operators of a simple query engine.

Every operator materialises its entire result. Columns are requested with
``require`` before ``run``; afterwards ``resolve`` maps a requested column to
its position in ``get_results()``.
"""

from __future__ import annotations

import operator
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Sequence
from itertools import islice

from relkit.parser import Comparison, FilterInfo, PredicateInfo, SelectInfo
from relkit.relation import Relation

_MASK = (1 << 64) - 1

_COMPARE = {
    Comparison.EQUAL: operator.eq,
    Comparison.GREATER: operator.gt,
    Comparison.LESS: operator.lt,
}


class Operator(ABC):
    """Base class of all operators."""

    def __init__(self) -> None:
        self._select_to_result_col_id: dict[SelectInfo, int] = {}
        self._tmp_results: list[list[int]] = []
        self.result_size = 0

    @abstractmethod
    def require(self, info: SelectInfo) -> bool:
        """Request a column; return whether this operator can provide it."""

    def resolve(self, info: SelectInfo) -> int:
        """Return the index of a requested column within ``get_results()``."""
        try:
            return self._select_to_result_col_id[info]
        except KeyError:
            raise KeyError(f"column {info.dump_text()} was not required") from None

    @abstractmethod
    def run(self) -> None:
        """Compute the result."""

    def get_results(self) -> list[Sequence[int]]:
        """Return the materialised result columns."""
        return list(self._tmp_results)


class Scan(Operator):
    """Hands out the columns of a relation unchanged."""

    def __init__(self, relation: Relation, binding: int) -> None:
        super().__init__()
        self.relation = relation
        self.binding = binding
        self._result_columns: list[Sequence[int]] = []

    def _column(self, col_id: int) -> Sequence[int]:
        if not 0 <= col_id < len(self.relation.columns):
            raise IndexError(
                f"column {col_id} does not exist in a relation with "
                f"{len(self.relation.columns)} columns"
            )
        return self.relation.columns[col_id]

    def require(self, info: SelectInfo) -> bool:
        if info.binding != self.binding:
            return False
        self._result_columns.append(self._column(info.col_id))
        self._select_to_result_col_id[info] = len(self._result_columns) - 1
        return True

    def run(self) -> None:
        self.result_size = self.relation.size

    def get_results(self) -> list[Sequence[int]]:
        return list(self._result_columns)


class FilterScan(Scan):
    """A scan that keeps only the tuples passing all of its filters."""

    def __init__(
        self, relation: Relation, filters: FilterInfo | Iterable[FilterInfo]
    ) -> None:
        filters = [filters] if isinstance(filters, FilterInfo) else list(filters)
        if not filters:
            raise ValueError("a filter scan needs at least one filter")
        super().__init__(relation, filters[0].filter_column.binding)
        self.filters = filters
        self._input_data: list[Sequence[int]] = []

    def require(self, info: SelectInfo) -> bool:
        if info.binding != self.binding:
            return False
        column = self._column(info.col_id)
        if info not in self._select_to_result_col_id:
            self._input_data.append(column)
            self._result_columns.append([])
            self._select_to_result_col_id[info] = len(self._result_columns) - 1
        return True

    def _passes(self, row: int, f: FilterInfo) -> bool:
        value = self.relation.columns[f.filter_column.col_id][row]
        return _COMPARE[f.comparison](value, f.constant)

    def run(self) -> None:
        for row in range(self.relation.size):
            if all(self._passes(row, f) for f in self.filters):
                for source, target in zip(self._input_data, self._result_columns):
                    target.append(source[row])
                self.result_size += 1


class Join(Operator):
    """Hash equi-join of two inputs; the smaller input builds the table."""

    def __init__(self, left: Operator, right: Operator, p_info: PredicateInfo) -> None:
        super().__init__()
        self._left = left
        self._right = right
        self._p_info = p_info
        self._requested: set[SelectInfo] = set()
        self._requested_left: list[SelectInfo] = []
        self._requested_right: list[SelectInfo] = []

    def require(self, info: SelectInfo) -> bool:
        if info in self._requested:
            return True
        if self._left.require(info):
            self._requested_left.append(info)
        elif self._right.require(info):
            self._requested_right.append(info)
        else:
            return False
        self._tmp_results.append([])
        self._requested.add(info)
        return True

    def run(self) -> None:
        self._left.require(self._p_info.left)
        self._right.require(self._p_info.right)
        self._left.run()
        self._right.run()

        if self._left.result_size > self._right.result_size:
            self._left, self._right = self._right, self._left
            self._p_info = PredicateInfo(self._p_info.right, self._p_info.left)
            self._requested_left, self._requested_right = (
                self._requested_right,
                self._requested_left,
            )

        left, right = self._left, self._right
        left_data = left.get_results()
        right_data = right.get_results()

        res_col_id = 0
        copy_left: list[Sequence[int]] = []
        for info in self._requested_left:
            copy_left.append(left_data[left.resolve(info)])
            self._select_to_result_col_id[info] = res_col_id
            res_col_id += 1
        copy_right: list[Sequence[int]] = []
        for info in self._requested_right:
            copy_right.append(right_data[right.resolve(info)])
            self._select_to_result_col_id[info] = res_col_id
            res_col_id += 1

        left_key = left_data[left.resolve(self._p_info.left)]
        right_key = right_data[right.resolve(self._p_info.right)]

        table: defaultdict[int, list[int]] = defaultdict(list)
        for row in range(left.result_size):
            table[left_key[row]].append(row)

        left_targets = self._tmp_results[: len(copy_left)]
        right_targets = self._tmp_results[len(copy_left):]
        for right_row in range(right.result_size):
            for left_row in table.get(right_key[right_row], ()):
                for source, target in zip(copy_left, left_targets):
                    target.append(source[left_row])
                for source, target in zip(copy_right, right_targets):
                    target.append(source[right_row])
                self.result_size += 1


class SelfJoin(Operator):
    """Keeps the input tuples whose two predicate columns are equal."""

    def __init__(self, input_op: Operator, p_info: PredicateInfo) -> None:
        super().__init__()
        self._input = input_op
        self._p_info = p_info
        self._required: dict[tuple[int, int], SelectInfo] = {}

    def require(self, info: SelectInfo) -> bool:
        key = (info.binding, info.col_id)
        if key in self._required:
            return True
        if self._input.require(info):
            self._tmp_results.append([])
            self._required[key] = info
            return True
        return False

    def run(self) -> None:
        source = self._input
        source.require(self._p_info.left)
        source.require(self._p_info.right)
        source.run()
        input_data = source.get_results()

        copy_data: list[Sequence[int]] = []
        for key in sorted(self._required):
            info = self._required[key]
            copy_data.append(input_data[source.resolve(info)])
            self._select_to_result_col_id.setdefault(info, len(copy_data) - 1)

        left_col = input_data[source.resolve(self._p_info.left)]
        right_col = input_data[source.resolve(self._p_info.right)]
        for row in range(source.result_size):
            if left_col[row] == right_col[row]:
                for column, target in zip(copy_data, self._tmp_results):
                    target.append(column[row])
                self.result_size += 1


class Checksum(Operator):
    """Root operator computing the 64-bit wrapping sum of each selected column."""

    def __init__(self, input_op: Operator, col_info: Iterable[SelectInfo]) -> None:
        super().__init__()
        self._input = input_op
        self._col_info = tuple(col_info)
        self.check_sums: list[int] = []

    def require(self, info: SelectInfo) -> bool:
        raise RuntimeError("checksum is always the root operator and provides no columns")

    def run(self) -> None:
        for info in self._col_info:
            self._input.require(info)
        self._input.run()
        results = self._input.get_results()
        for info in self._col_info:
            column = results[self._input.resolve(info)]
            self.result_size = self._input.result_size
            total = sum(islice(column, self._input.result_size))
            self.check_sums.append(total & _MASK)