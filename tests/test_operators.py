import pytest

from relkit.operators import Checksum, FilterScan, Join, Scan, SelfJoin
from relkit.parser import Comparison, FilterInfo, PredicateInfo, SelectInfo
from relkit.utils import create_relation


@pytest.fixture
def r1():
    return create_relation(5, 3)


@pytest.fixture
def r2():
    return create_relation(10, 5)


def test_scan(r1):
    binding = 5
    scan = Scan(r1, binding)
    assert scan.require(SelectInfo(binding, 0))
    assert scan.require(SelectInfo(binding, 2))
    scan.run()
    results = scan.get_results()
    assert len(results) == 2
    assert results[scan.resolve(SelectInfo(binding, 0))] is r1.columns[0]
    assert results[scan.resolve(SelectInfo(binding, 2))] is r1.columns[2]
    assert scan.result_size == r1.size


def test_scan_rejects_other_binding(r1):
    scan = Scan(r1, 5)
    assert scan.require(SelectInfo(4, 0)) is False
    assert scan.get_results() == []


def test_scan_rejects_missing_column(r1):
    scan = Scan(r1, 0)
    with pytest.raises(IndexError):
        scan.require(SelectInfo(0, 3))


def test_resolve_unknown_column(r1):
    scan = Scan(r1, 0)
    scan.run()
    with pytest.raises(KeyError):
        scan.resolve(SelectInfo(0, 1))


def test_scan_with_selection_nothing_required(r1):
    s_info = SelectInfo(1, 2, 0)
    filter_scan = FilterScan(r1, FilterInfo(s_info, 2, Comparison.EQUAL))
    filter_scan.run()
    assert len(filter_scan.get_results()) == 0


def test_scan_with_selection_equal(r1):
    binding, col_id, constant = 1, 2, 2
    s_info = SelectInfo(binding, col_id, 0)
    filter_scan = FilterScan(r1, FilterInfo(s_info, constant, Comparison.EQUAL))
    filter_scan.require(SelectInfo(binding, 0))
    filter_scan.require(SelectInfo(binding, 2))
    filter_scan.run()
    assert filter_scan.result_size == 1
    results = filter_scan.get_results()
    assert len(results) == 2
    assert results[filter_scan.resolve(SelectInfo(binding, col_id))][0] == constant


def test_scan_with_selection_greater(r1):
    binding, constant = 1, 2
    s_info = SelectInfo(binding, 2, 0)
    filter_scan = FilterScan(r1, FilterInfo(s_info, constant, Comparison.GREATER))
    filter_scan.require(SelectInfo(binding, 1))
    filter_scan.run()
    assert filter_scan.result_size == 2
    results = filter_scan.get_results()
    assert len(results) == 1
    column = results[filter_scan.resolve(SelectInfo(binding, 1))]
    assert all(value > constant for value in column[: filter_scan.result_size])


def test_filter_scan_requires_filters(r1):
    with pytest.raises(ValueError):
        FilterScan(r1, [])


def test_join_runs(r1, r2):
    p_info = PredicateInfo(SelectInfo(0, 1, 0), SelectInfo(1, 3, 1))
    join = Join(Scan(r1, 0), Scan(r2, 1), p_info)
    join.run()
    assert join.result_size == r1.size
    assert join.get_results() == []


def test_join_same_relation(r1):
    p_info = PredicateInfo(SelectInfo(0, 1, 0), SelectInfo(1, 2, 0))
    join = Join(Scan(r1, 0), Scan(r1, 1), p_info)
    join.require(SelectInfo(0, 0))
    join.run()
    assert join.result_size == r1.size
    results = join.get_results()
    assert len(results) == 1
    column = results[join.resolve(SelectInfo(0, 0))]
    assert list(column) == list(r1.columns[0][: join.result_size])


def test_join_two_relations(r1, r2):
    p_info = PredicateInfo(SelectInfo(1, 1, 1), SelectInfo(0, 2, 0))
    join = Join(Scan(r2, 1), Scan(r1, 0), p_info)
    assert join.require(SelectInfo(0, 1))
    assert join.require(SelectInfo(1, 3))
    assert join.require(SelectInfo(1, 3))
    join.run()
    assert join.result_size == r1.size
    results = join.get_results()
    assert len(results) == 2
    column = results[join.resolve(SelectInfo(1, 3))]
    assert list(column) == list(r1.columns[0][: join.result_size])


def test_join_require_unknown_binding(r1, r2):
    p_info = PredicateInfo(SelectInfo(0, 1, 0), SelectInfo(1, 3, 1))
    join = Join(Scan(r1, 0), Scan(r2, 1), p_info)
    assert join.require(SelectInfo(7, 0)) is False


def test_checksum_without_columns(r1):
    checksum = Checksum(Scan(r1, 5), [])
    checksum.run()
    assert checksum.check_sums == []


def test_checksum_columns(r1):
    binding = 5
    checksum = Checksum(
        Scan(r1, binding), [SelectInfo(binding, 0, 0), SelectInfo(binding, 2, 0)]
    )
    checksum.run()
    assert len(checksum.check_sums) == 2
    expected_sum = sum(r1.columns[0][: r1.size])
    assert checksum.check_sums == [expected_sum, expected_sum]


def test_checksum_over_filter(r1):
    binding, constant = 5, 3
    s_info = SelectInfo(binding, 2, 0)
    filter_scan = FilterScan(r1, FilterInfo(s_info, constant, Comparison.EQUAL))
    checksum = Checksum(filter_scan, [SelectInfo(binding, 2, 0)])
    checksum.run()
    assert checksum.check_sums == [constant]


def test_checksum_require_raises(r1):
    checksum = Checksum(Scan(r1, 0), [])
    with pytest.raises(RuntimeError):
        checksum.require(SelectInfo(0, 0))


def test_self_join_without_columns(r1):
    binding = 5
    p_info = PredicateInfo(SelectInfo(binding, 1, 1), SelectInfo(binding, 2, 1))
    self_join = SelfJoin(Scan(r1, binding), p_info)
    self_join.run()
    assert self_join.result_size == r1.size
    assert len(self_join.get_results()) == 0


def test_self_join_with_column(r1):
    binding = 5
    p_info = PredicateInfo(SelectInfo(binding, 1, 1), SelectInfo(binding, 2, 1))
    self_join = SelfJoin(Scan(r1, binding), p_info)
    assert self_join.require(SelectInfo(binding, 0))
    self_join.run()
    assert self_join.resolve(SelectInfo(binding, 0)) == 0
    assert self_join.result_size == r1.size
    assert len(self_join.get_results()) == 1