"""Benchmark: lock round-trip latency — per-call mean and p99.

Measures open-lock-close cycles for shared and exclusive handles, and the
whole-file ``write`` + ``read`` pair, on an uncontended local file.
"""
from __future__ import annotations

import json
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import lockedfile

_WARMUP: int = 200
_ITERATIONS: int = 5_000


def _measure(operation: str, fn: Callable[[], object]) -> dict[str, object]:
    for _ in range(_WARMUP):
        fn()

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        fn()
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": operation,
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_lock_latency] {operation}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> list[dict[str, object]]:
    """Entry point returning one result dict per measured operation."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "bench.bin"
        path.write_bytes(b"x" * 4096)

        def shared_cycle() -> None:
            lockedfile.open_read(path).close()

        def exclusive_cycle() -> None:
            lockedfile.edit(path).close()

        def write_read() -> None:
            lockedfile.write(path, b"y" * 4096)
            lockedfile.read(path)

        return [
            _measure("shared_open_close", shared_cycle),
            _measure("exclusive_open_close", exclusive_cycle),
            _measure("write_read_4k", write_read),
        ]


if __name__ == "__main__":
    results = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "lock_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
