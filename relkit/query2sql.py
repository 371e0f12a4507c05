"""Translate queries of the text format into SQL, one per input line."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable, Iterator

from relkit.parser import QueryInfo

BANNER = "Transforms our query format to SQL"


def translate(lines: Iterable[str]) -> Iterator[str]:
    """Yield the SQL statement for every query line."""
    query = QueryInfo()
    for line in lines:
        query.parse_query(line.rstrip("\n"))
        yield query.dump_sql()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=BANNER)
    parser.parse_args(argv)
    print(BANNER)
    for sql in translate(sys.stdin):
        print(sql)
    return 0


if __name__ == "__main__":
    sys.exit(main())