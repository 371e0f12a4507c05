# relkit

relkit is a small in-memory query engine for columnar relations of unsigned
64-bit integers. It also includes a few related tools.

- **Relations** (`relkit.relation.Relation`) have a `size` and a list of
  `columns`. `Relation.from_file` loads a relation from a binary file and
  `store` writes one. The file holds the tuple count and the column count as
  little-endian 64-bit words, followed by each column in turn.
  `store_csv(name)` writes `name.tbl`, with every value followed by `|`.
  `dump_sql(name, relation_id)` writes `name.sql`, which contains a PostgreSQL
  `CREATE TABLE` statement and a `copy` statement.
- **Dummy relations**: `relkit.utils.create_relation(size, num_columns)`
  builds a relation in which every column holds `0 .. size-1`.
  `store_relation(out, relation, index)` writes `r<index>` in all three
  formats and records that name in `out`.
- **Queries** (`relkit.parser.QueryInfo`) use the text format
  `RELATIONS|PREDICATES|SELECTIONS`, for example
  `0 1 4|0.0=1.1&1.2=2.0&1.1=4|1.0 2.2`.
  - Predicates between two columns become `PredicateInfo` join predicates.
  - Comparisons of a column with a constant (`=`, `<`, `>`) become
    `FilterInfo` filters.
  - `dump_text()` writes the query back in the text format, and `dump_sql()`
    translates it to a `SELECT SUM(...)` statement.
  - Malformed input raises `ValueError`.
- **Operators** (`relkit.operators`) all materialise their results:
  - `Scan` and `FilterScan` read a relation.
  - `Join` is a hash join that builds its table from the smaller input.
  - `SelfJoin` keeps the rows where two columns are equal.
  - `Checksum` computes 64-bit wrapping sums.

  `relkit.joiner.Joiner` combines these operators into left-deep plans. Each
  query gives one line with a sum for every selected column, or `NULL` for
  every column when the result is empty.
- **Succinct indexes**:
  - `relkit.bit_array.BitArray` supports `rank`, `select` and `lookup`.
    Call `build()` first.
  - `relkit.wavelet_tree.WaveletTree` supports `lookup`, `rank`, `rank_all`,
    `rank_less_than`, `rank_more_than`, `select`, `freq`, `freq_sum` and
    `freq_range` over arrays of unsigned integers.

  Both can `save` to a binary stream and `load` from one.
- **Hashing**: `relkit.murmur.murmur_hash64a(key, seed=0)` implements 64-bit
  MurmurHash64A. Strings are encoded as UTF-8.

## Installation

```
pip install .
pip install ".[test]"   # to run the tests
```

## Library use

```python
from relkit.joiner import Joiner
from relkit.parser import QueryInfo
from relkit.utils import create_relation

joiner = Joiner()
for _ in range(3):
    joiner.add_relation(create_relation(10, 3))

print(joiner.join(QueryInfo("0 1|0.0=1.1&0.0>1&0.0<3|1.0")), end="")  # "2"
```

```python
from relkit.wavelet_tree import WaveletTree

tree = WaveletTree([3, 1, 4, 1, 5])
tree.lookup(2)            # 4
tree.rank(1, 4)           # 2: occurrences of 1 in positions 0..3
tree.select(1, 2)         # 3: position of the second 1
tree.freq_range(1, 4, 0, 5)  # 3: values 1 <= v < 4 in the whole array
```

## Commands

- `relkit-driver` reads relation file names from standard input, one per line,
  until a line `Done`. It then reads queries and writes one result line for
  each query. A line `F` marks the end of a batch, and output is flushed there.
- `relkit-query2sql` prints a banner line. It then reads queries from standard
  input and prints the SQL for each one.
- `relkit-harness <init-file> <workload-file> <result-file> <test-executable> [--wait SECONDS]`
  runs a test executable against a workload:
  1. It starts the executable and sends it the contents of the init file,
     followed by `Done`.
  2. It waits `--wait` seconds (60 by default).
  3. It sends the workload batch by batch and compares each answer line with
     the result file.
  4. It stops once 100 mismatches have been recorded.

  On success it prints the elapsed query time in milliseconds and exits with
  status 0. Otherwise it prints the mismatches to standard error and exits
  with status 1.
- `relkit-wavelet <input-file> <index-file>` reads whitespace-separated
  unsigned integers from the input file. It builds a wavelet tree from them
  and saves the tree to the index file.

## Tests

```
pytest
```