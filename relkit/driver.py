"""Query driver: loads relations, then answers queries line by line.

Input is a list of relation files ended by ``Done``, followed by queries in
batches, each batch ended by ``F``.
"""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from relkit.joiner import Joiner
from relkit.parser import QueryInfo


def run(instream: TextIO, outstream: TextIO) -> Joiner:
    """Process the driver protocol from ``instream``; return the loaded joiner."""
    joiner = Joiner()
    lines = (line.rstrip("\n") for line in instream)
    for line in lines:
        if line == "Done":
            break
        joiner.add_relation_file(line)

    query = QueryInfo()
    for line in lines:
        if line == "F":
            outstream.flush()
            continue
        query.parse_query(line)
        outstream.write(joiner.join(query))
    outstream.flush()
    return joiner


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Load relations from stdin, then answer join queries."
    )
    parser.parse_args(argv)
    run(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())