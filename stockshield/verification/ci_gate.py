#!/usr/bin/env python3
# =============================================================================
# STOCKSHIELD v1.0.0 -- GOLDEN VECTOR CI GATE
# File:   stockshield/verification/ci_gate.py
# =============================================================================
#
# PURPOSE
# -------
# CI enforcement script. Evaluates every golden vector and exits with code
# 0 (PASS) or 1 (FAIL / ERROR).
#
#   python -m stockshield.verification.ci_gate
#
# Exit codes:
#   0 -- every vector matches its pinned output.
#   1 -- at least one mismatch, or an exception: CI must block merge.
#
# No I/O beyond stdout/stderr. No network calls.
# =============================================================================

from __future__ import annotations

import sys

from stockshield.verification.vectors import run_vectors


def main() -> int:
    """
    Run all vectors and return the exit code.

    Returns:
        0 if every vector passes.
        1 on any mismatch or exception.
    """
    try:
        results = run_vectors()
    except Exception as exc:  # noqa: BLE001
        print(f"CI-VECTOR-GATE EXCEPTION: {exc}", file=sys.stderr)
        return 1

    failures = [r for r in results if not r.passed]
    for r in failures:
        print(
            f"CI-VECTOR-GATE MISMATCH: {r.vector_id} expected={r.expected!r} actual={r.actual!r}",
            file=sys.stderr,
        )

    if failures:
        print(f"CI-VECTOR-GATE: {len(failures)}/{len(results)} vectors failed. Merge BLOCKED.",
              file=sys.stderr)
        return 1
    print(f"CI-VECTOR-GATE: {len(results)} vectors PASS. Merge permitted.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
