import io
import random
import struct

import pytest

from relkit.wavelet_tree import WaveletTree

SAMPLE = [3, 1, 4, 1, 5, 9, 2, 6]


def _random_array(seed, size, alphabet):
    rng = random.Random(seed)
    return [rng.randrange(alphabet) for _ in range(size)]


ARRAYS = [
    SAMPLE,
    [0],
    [0, 0, 0],
    [7],
    [1, 0, 1, 1, 0],
    _random_array(1, 150, 5),
    _random_array(2, 300, 64),
    _random_array(3, 200, 1000),
]


@pytest.mark.parametrize("data", ARRAYS)
def test_lookup_round_trip(data):
    tree = WaveletTree(data)
    assert [tree.lookup(i) for i in range(len(data))] == data
    assert len(tree) == len(data)
    assert tree.alphabet_num == max(data) + 1


def test_pinned_sample_values():
    tree = WaveletTree(SAMPLE)
    assert tree.rank(1, 4) == 2
    assert tree.select(1, 2) == 3


def test_lookup_out_of_range():
    tree = WaveletTree(SAMPLE)
    with pytest.raises(IndexError):
        tree.lookup(len(SAMPLE))
    with pytest.raises(IndexError):
        tree.lookup(-1)


@pytest.mark.parametrize("data", ARRAYS)
def test_frequencies_cover_length(data):
    tree = WaveletTree(data)
    freqs = [tree.freq(c) for c in range(tree.alphabet_num)]
    assert sum(freqs) == len(data)
    for c, f in enumerate(freqs):
        assert tree.rank(c, len(data)) == f
        assert tree.freq_sum(c, c + 1) == f
    assert tree.freq_sum(0, tree.alphabet_num) == len(data)


@pytest.mark.parametrize("data", ARRAYS)
def test_rank_all_partitions_prefix(data):
    tree = WaveletTree(data)
    for c in range(tree.alphabet_num):
        for pos in range(0, len(data) + 1, max(1, len(data) // 10)):
            result = tree.rank_all(c, pos)
            assert result.rank + result.less_than + result.more_than == pos
            assert tree.rank_less_than(c, pos) == result.less_than
            assert tree.rank_more_than(c, pos) == result.more_than


def test_rank_clamps_position():
    tree = WaveletTree(SAMPLE)
    for c in range(tree.alphabet_num):
        assert tree.rank(c, len(SAMPLE) + 10) == tree.rank(c, len(SAMPLE))


def test_rank_rejects_character_outside_alphabet():
    tree = WaveletTree(SAMPLE)
    with pytest.raises(ValueError):
        tree.rank(tree.alphabet_num, 3)
    with pytest.raises(ValueError):
        tree.rank_all(100, 0)


@pytest.mark.parametrize("data", ARRAYS)
def test_select_inverts_rank(data):
    tree = WaveletTree(data)
    for c in range(tree.alphabet_num):
        positions = [tree.select(c, k) for k in range(1, tree.freq(c) + 1)]
        assert positions == sorted(set(positions))
        for k, pos in enumerate(positions, start=1):
            assert tree.lookup(pos) == c
            assert tree.rank(c, pos) == k - 1


def test_select_errors():
    tree = WaveletTree(SAMPLE)
    with pytest.raises(ValueError):
        tree.select(1, tree.freq(1) + 1)
    with pytest.raises(ValueError):
        tree.select(0, 1)
    with pytest.raises(ValueError):
        tree.select(tree.alphabet_num, 1)
    with pytest.raises(ValueError):
        tree.select(1, 0)


@pytest.mark.parametrize("data", ARRAYS)
def test_freq_range_invariants(data):
    tree = WaveletTree(data)
    n = len(data)
    k = tree.alphabet_num
    assert tree.freq_range(0, k, 0, n) == n
    assert tree.freq_range(0, k + 5, 0, n) == n
    for c in range(k):
        assert tree.freq_range(c, c + 1, 0, n) == tree.freq(c)
    begin, end = n // 4, n - n // 4
    assert tree.freq_range(0, k, begin, end) == end - begin
    mid = k // 2
    if mid > 0:
        assert (
            tree.freq_range(0, mid, begin, end) + tree.freq_range(mid, k, begin, end)
            == end - begin
        )
    for c in range(k):
        assert tree.freq_range(0, c, 0, end) == tree.rank_less_than(c, end)


def test_freq_range_invalid_inputs_give_zero():
    tree = WaveletTree(SAMPLE)
    n = len(SAMPLE)
    assert tree.freq_range(tree.alphabet_num, tree.alphabet_num + 3, 0, n) == 0
    assert tree.freq_range(3, 3, 0, n) == 0
    assert tree.freq_range(4, 2, 0, n) == 0
    assert tree.freq_range(0, 5, 0, n + 1) == 0
    assert tree.freq_range(0, 5, 5, 2) == 0


def test_freq_and_freq_sum_errors():
    tree = WaveletTree(SAMPLE)
    with pytest.raises(ValueError):
        tree.freq(tree.alphabet_num)
    with pytest.raises(ValueError):
        tree.freq_sum(0, tree.alphabet_num + 1)
    with pytest.raises(ValueError):
        tree.freq_sum(5, 2)


def test_empty_tree():
    tree = WaveletTree([])
    assert len(tree) == 0
    assert tree.alphabet_num == 0
    assert tree.freq_sum(0, 0) == 0
    with pytest.raises(IndexError):
        tree.lookup(0)


def test_single_symbol_alphabet():
    tree = WaveletTree([0, 0, 0])
    assert tree.select(0, 3) == 2
    assert tree.rank(0, 2) == 2


def test_negative_values_rejected():
    with pytest.raises(ValueError):
        WaveletTree([1, -1])


def test_clear_resets():
    tree = WaveletTree(SAMPLE)
    tree.clear()
    assert len(tree) == 0
    assert tree.alphabet_num == 0
    assert tree.freq_sum(0, 0) == 0


@pytest.mark.parametrize("data", ARRAYS + [[]])
def test_save_load_round_trip(data):
    tree = WaveletTree(data)
    buffer = io.BytesIO()
    tree.save(buffer)
    saved = buffer.getvalue()
    assert saved[:16] == struct.pack("<QQ", tree.alphabet_num, len(data))

    loaded = WaveletTree.load(io.BytesIO(saved))
    assert len(loaded) == len(data)
    assert loaded.alphabet_num == tree.alphabet_num
    assert [loaded.lookup(i) for i in range(len(data))] == data
    for c in range(loaded.alphabet_num):
        assert loaded.freq(c) == tree.freq(c)

    again = io.BytesIO()
    loaded.save(again)
    assert again.getvalue() == saved


def test_load_truncated_header():
    with pytest.raises(ValueError):
        WaveletTree.load(io.BytesIO(b"\x01\x02"))