# stockshield/verification/__init__.py
# Golden-vector verification for the fee engine and auction arithmetic.
#
# Not imported by any runtime module; a development and CI dependency only.
#
# CI GATE:
#   python -m stockshield.verification.ci_gate

from .vectors import GoldenVector, VectorResult, run_vectors

__all__ = [
    "GoldenVector",
    "VectorResult",
    "run_vectors",
]
