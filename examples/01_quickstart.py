#!/usr/bin/env python3
"""Example: Quickstart — lockedfile

Write a file, read it back, and update it in place, each under an
advisory lock.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install lockedfile
"""
from __future__ import annotations

import json
import tempfile
from pathlib import Path

import lockedfile


def main() -> None:
    print(f"lockedfile version: {lockedfile.__version__}")

    with tempfile.TemporaryDirectory() as tmp:
        state = Path(tmp) / "state.json"

        # Step 1: Whole-file write and read
        lockedfile.write(state, json.dumps({"runs": 0}).encode())
        print(f"Initial state: {lockedfile.read(state).decode()}")

        # Step 2: Read-modify-write under a single exclusive lock
        def bump(old: bytes) -> bytes:
            data = json.loads(old)
            data["runs"] += 1
            return json.dumps(data).encode()

        lockedfile.transform(state, bump)
        print(f"After transform: {lockedfile.read(state).decode()}")

        # Step 3: Explicit handles
        with lockedfile.open_read(state) as f:
            print(f"Handle {f!r} holds a {f.mode.value} lock")

        f = lockedfile.edit(state)
        f.close()
        try:
            f.close()
        except lockedfile.FileAlreadyClosedError as exc:
            print(f"Second close: {exc}")


if __name__ == "__main__":
    main()
