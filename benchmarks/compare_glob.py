from __future__ import annotations

import argparse
import glob as stdlib_glob
import json
import os
import statistics
import tempfile
import time
import tracemalloc
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from fsglob import MemoryFileSystem, glob_from, touch

PATTERN = "src/**/*_test.cpp"


@dataclass
class CaseResult:
    backend: str
    case: str
    matches: int
    seconds_mean: float
    seconds_min: float
    seconds_max: float
    peak_kib_mean: float


def _run_with_memory(fn: Callable[[], int]) -> tuple[int, float, float]:
    tracemalloc.start()
    start = time.perf_counter()
    count = fn()
    elapsed = time.perf_counter() - start
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return count, elapsed, peak / 1024.0


def _tree_files(width: int, depth: int) -> list[str]:
    files: list[str] = []
    dirs = ["src"]
    for level in range(depth):
        dirs = [f"{d}/d{level}_{i}" for d in dirs for i in range(width)]
    for d in dirs:
        files.extend([f"{d}/a.h", f"{d}/a.cpp", f"{d}/a_test.cpp"])
    # a large subtree the pattern prunes
    files.extend(f"build/obj/o{i:05d}.o" for i in range(width ** depth * 3))
    return files


def run_case(
    backend: str,
    case: str,
    fn: Callable[[], int],
    repeat: int,
    warmup: int,
) -> CaseResult:
    for _ in range(warmup):
        fn()

    counts: set[int] = set()
    elapsed_list: list[float] = []
    peak_list: list[float] = []
    for _ in range(repeat):
        count, elapsed, peak_kib = _run_with_memory(fn)
        counts.add(count)
        elapsed_list.append(elapsed)
        peak_list.append(peak_kib)
    if len(counts) != 1:
        raise RuntimeError(f"{backend} returned varying match counts: {sorted(counts)}")

    return CaseResult(
        backend=backend,
        case=case,
        matches=counts.pop(),
        seconds_mean=statistics.mean(elapsed_list),
        seconds_min=min(elapsed_list),
        seconds_max=max(elapsed_list),
        peak_kib_mean=statistics.mean(peak_list),
    )


def print_table(results: list[CaseResult]) -> None:
    print("| Case | Backend | matches | mean(ms) | min(ms) | max(ms) | peak KiB (mean) |")
    print("|---|---:|---:|---:|---:|---:|---:|")
    for r in results:
        print(
            f"| {r.case} | {r.backend} | {r.matches} | {r.seconds_mean * 1000:.2f} |"
            f" {r.seconds_min * 1000:.2f} | {r.seconds_max * 1000:.2f} | {r.peak_kib_mean:.1f} |"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Compare fsglob scans with the stdlib globbers")
    parser.add_argument("--width", type=int, default=4)
    parser.add_argument("--depth", type=int, default=4)
    parser.add_argument("--repeat", type=int, default=5)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    files = _tree_files(args.width, args.depth)
    results: list[CaseResult] = []

    mfs = MemoryFileSystem()
    mfs.import_tree({"/" + f: b"" for f in files})
    results.append(
        run_case(
            "fsglob(MemoryFileSystem)",
            "recursive_glob",
            lambda: len(glob_from("/", PATTERN, fs=mfs)),
            args.repeat,
            args.warmup,
        )
    )

    with tempfile.TemporaryDirectory() as td:
        touch(*(os.path.join(td, f) for f in files))
        results.append(
            run_case(
                "fsglob",
                "recursive_glob",
                lambda: len(glob_from(td, PATTERN)),
                args.repeat,
                args.warmup,
            )
        )
        results.append(
            run_case(
                "glob.glob",
                "recursive_glob",
                lambda: len(stdlib_glob.glob(PATTERN, root_dir=td, recursive=True)),
                args.repeat,
                args.warmup,
            )
        )
        results.append(
            run_case(
                "pathlib.rglob",
                "recursive_glob",
                lambda: sum(1 for _ in Path(td, "src").rglob("*_test.cpp")),
                args.repeat,
                args.warmup,
            )
        )

    if args.json:
        print(json.dumps([r.__dict__ for r in results], indent=2))
        return
    print_table(results)


if __name__ == "__main__":
    main()
