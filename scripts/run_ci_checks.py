#!/usr/bin/env python3
# =============================================================================
# STOCKSHIELD v1.0.0 -- CI CHECKS RUNNER
# File:   scripts/run_ci_checks.py
# =============================================================================
#
# PURPOSE
# -------
# Runs the full CI gate in two sequential stages:
#   Stage 1: pytest (all unit tests)
#   Stage 2: golden vector gate (fee engine and auction arithmetic)
#
# Exit codes:
#   0 -- All stages passed.
#   1 -- Stage 1 (pytest) failed.
#   2 -- Stage 2 (vector gate) failed.
#
# Usage:
#   python scripts/run_ci_checks.py
#
# Deterministic: no random state, no side effects outside subprocess
# invocations and stdout/stderr writes.
# =============================================================================

from __future__ import annotations

import pathlib
import subprocess
import sys
from typing import List

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
_REPO_ROOT = pathlib.Path(__file__).parent.parent
_PYTHON    = sys.executable


def _separator(char: str = "=", width: int = 72) -> str:
    return char * width


def _run(cmd: List[str], label: str) -> int:
    """
    Run a subprocess command, stream stdout/stderr live, return exit code.
    """
    print(_separator())
    print(f"CI STAGE: {label}")
    print(f"CMD:      {' '.join(cmd)}")
    print(_separator("-"))
    sys.stdout.flush()

    proc = subprocess.run(cmd, cwd=str(_REPO_ROOT))
    return proc.returncode


def _fail(stage: str, rc: int, reason: str) -> None:
    print(_separator())
    print(f"CI RESULT: FAIL  [stage={stage}  exit_code={rc}]")
    print(f"Merge BLOCKED: {reason}")
    print(_separator())
    sys.stdout.flush()


def main() -> int:
    print(_separator())
    print("STOCKSHIELD CI GATE -- starting")
    print(_separator())
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 1: pytest
    # ------------------------------------------------------------------
    pytest_rc = _run([_PYTHON, "-m", "pytest"], "pytest (unit tests)")
    if pytest_rc != 0:
        _fail("pytest", pytest_rc, "pytest stage did not pass.")
        return 1

    print(_separator("-"))
    print("CI STAGE pytest: PASS")
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 2: golden vector gate
    # A non-zero exit code means a fee, MinBid, settlement or commit hash
    # output drifted from its pinned value.
    # ------------------------------------------------------------------
    vector_rc = _run(
        [_PYTHON, "-m", "stockshield.verification.ci_gate"],
        "golden vector gate",
    )
    if vector_rc != 0:
        _fail("vectors", vector_rc, "golden vector gate did not pass.")
        return 2

    print(_separator("-"))
    print("CI STAGE vectors: PASS")

    print(_separator())
    print("CI RESULT: PASS  [stages=pytest,vectors]")
    print("Merge permitted.")
    print(_separator())
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
