#!/usr/bin/env python3
"""Example: Cross-process counter — lockedfile

Several worker processes increment a shared counter file.  Every update
runs under an exclusive lock, so no increment is lost.

Usage:
    python examples/02_process_counter.py

Requirements:
    pip install lockedfile
"""
from __future__ import annotations

import multiprocessing
import tempfile
from pathlib import Path

import lockedfile

_WORKERS = 4
_INCREMENTS = 50


def _increment(old: bytes) -> bytes:
    return str(int(old or b"0") + 1).encode()


def worker(path: str) -> None:
    for _ in range(_INCREMENTS):
        lockedfile.transform(path, _increment)


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        counter = str(Path(tmp) / "counter.txt")
        processes = [
            multiprocessing.Process(target=worker, args=(counter,)) for _ in range(_WORKERS)
        ]
        for proc in processes:
            proc.start()
        for proc in processes:
            proc.join()

        total = int(lockedfile.read(counter))
        print(f"Counter: {total} (expected {_WORKERS * _INCREMENTS})")


if __name__ == "__main__":
    main()
