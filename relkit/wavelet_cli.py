"""Build a wavelet tree index from a text file of unsigned integers."""

from __future__ import annotations

import argparse
import os
import re
import sys

from relkit.wavelet_tree import WaveletTree

_NUMBER = re.compile(r"\+?\d+")


def read_array_from_file(file_name: str | os.PathLike) -> list[int]:
    """Read whitespace-separated unsigned integers, stopping at the first non-number."""
    with open(file_name, encoding="utf-8") as handle:
        text = handle.read()
    values: list[int] = []
    for token in text.split():
        match = _NUMBER.match(token)
        if not match:
            break
        values.append(int(match.group()))
        if match.end() != len(token):
            break
    return values


def build_index(
    input_file_name: str | os.PathLike, index_name: str | os.PathLike
) -> WaveletTree:
    """Build a wavelet tree from ``input_file_name`` and save it to ``index_name``."""
    tree = WaveletTree(read_array_from_file(input_file_name))
    with open(index_name, "wb") as out:
        tree.save(out)
    return tree


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wavelet",
        description="Build a wavelet tree index from a file of unsigned integers.",
    )
    parser.add_argument("input_file")
    parser.add_argument("index_file")
    args = parser.parse_args(argv)
    try:
        build_index(args.input_file, args.index_file)
    except OSError as exc:
        name = exc.filename if exc.filename is not None else exc
        print(f"Unable to open [{name}]", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())