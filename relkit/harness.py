"""Test harness: feeds a workload to a query program and checks its answers.

The program under test first receives the contents of the init file followed
by ``Done``. After a waiting period the workload is sent batch by batch; each
batch ends with a line ``F``. Every other line is a query whose answer line
is compared with the next line of the result file.
"""

from __future__ import annotations

import argparse
import contextlib
import os
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

MAX_FAILED_QUERIES = 100
WAITING_TIME_SECS = 60


@dataclass
class Batch:
    """The raw input of one batch and the answers expected for its queries."""

    input_text: str = ""
    expected: list[str] = field(default_factory=list)


def load_batches(
    workload_lines: Iterable[str], result_lines: Iterable[str]
) -> list[Batch]:
    """Split a workload into batches, pairing every query with a result line.

    A line that is empty or starts with ``F`` closes the current batch. Lines
    after the last closing line are dropped. A missing result line counts as
    an empty answer.
    """
    results = iter(result_lines)
    batches: list[Batch] = []
    current = Batch()
    for raw in workload_lines:
        line = raw.removesuffix("\n")
        current.input_text += line + "\n"
        if line and line[0] != "F":
            current.expected.append(next(results, "").removesuffix("\n"))
        else:
            batches.append(current)
            current = Batch()
    return batches


def _feed(pipe: BinaryIO, data: bytes) -> None:
    with contextlib.suppress(OSError):
        pipe.write(data)
        pipe.flush()


def _exchange(proc: subprocess.Popen, batch: Batch, number: int) -> list[str]:
    """Send one batch and collect as many output lines as it has queries."""
    writer = threading.Thread(
        target=_feed, args=(proc.stdin, batch.input_text.encode("utf-8")), daemon=True
    )
    writer.start()
    answers: list[str] = []
    try:
        for _ in batch.expected:
            line = proc.stdout.readline()
            if not line.endswith(b"\n"):
                raise RuntimeError(f"Incomplete batch output for batch {number}")
            answers.append(line[:-1].decode("utf-8", errors="replace"))
    finally:
        writer.join(timeout=None if answers or not batch.expected else 1)
    return answers


def _shutdown(proc: subprocess.Popen) -> None:
    with contextlib.suppress(OSError):
        proc.stdin.close()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
    with contextlib.suppress(OSError):
        proc.stdout.close()


def run_harness(
    init_file: str | os.PathLike,
    workload_file: str | os.PathLike,
    result_file: str | os.PathLike,
    executable: str | os.PathLike | Sequence[str],
    wait_seconds: float = WAITING_TIME_SECS,
) -> tuple[int, list[str]]:
    """Run the program on the workload.

    Returns the elapsed query time in milliseconds and the list of mismatch
    messages (at most ``MAX_FAILED_QUERIES``). Raises ``RuntimeError`` when the
    program stops answering in the middle of a batch.
    """
    with open(workload_file, encoding="utf-8", newline="") as work, open(
        result_file, encoding="utf-8", newline=""
    ) as results:
        batches = load_batches(work, results)
    init_data = Path(init_file).read_bytes()

    if isinstance(executable, (str, os.PathLike)):
        command = [os.fspath(executable)]
    else:
        command = list(executable)

    proc = subprocess.Popen(command, stdin=subprocess.PIPE, stdout=subprocess.PIPE)
    try:
        proc.stdin.write(init_data)
        proc.stdin.write(b"Done\n")
        proc.stdin.flush()

        print(f"Waiting for {wait_seconds} seconds", flush=True)
        time.sleep(wait_seconds)
        print("Issuing queries ...", flush=True)

        start = time.perf_counter()
        mismatches: list[str] = []
        query_no = 0
        for number, batch in enumerate(batches):
            if len(mismatches) >= MAX_FAILED_QUERIES:
                break
            answers = _exchange(proc, batch, number)
            for expected, actual in zip(batch.expected, answers):
                if len(mismatches) >= MAX_FAILED_QUERIES:
                    break
                if actual != expected:
                    mismatches.append(
                        f"Result mismatch for query {query_no}, expected: "
                        f"{expected}, actual: {actual}"
                    )
                query_no += 1
        elapsed_ms = int((time.perf_counter() - start) * 1000)
    finally:
        _shutdown(proc)
    return elapsed_ms, mismatches


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="harness",
        description="Feed a workload to a test executable and check its results.",
    )
    parser.add_argument("init_file")
    parser.add_argument("workload_file")
    parser.add_argument("result_file")
    parser.add_argument("test_executable")
    parser.add_argument(
        "--wait",
        type=float,
        default=WAITING_TIME_SECS,
        help="seconds to wait between initialisation and the queries",
    )
    args = parser.parse_args(argv)
    try:
        elapsed_ms, mismatches = run_harness(
            args.init_file,
            args.workload_file,
            args.result_file,
            args.test_executable,
            args.wait,
        )
    except (OSError, RuntimeError) as exc:
        print(exc, file=sys.stderr)
        return 1
    for message in mismatches:
        print(message, file=sys.stderr)
    if mismatches:
        return 1
    print(elapsed_ms)
    return 0


if __name__ == "__main__":
    sys.exit(main())