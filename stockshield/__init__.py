# stockshield/__init__.py
# StockShield -- LP protection control plane for tokenized-equity pools.
#
# Canonical import:
#   from stockshield import ControlPlane

__version__ = "1.0.0"

from stockshield.control_plane import AdmissionResult, ControlPlane

__all__ = [
    "__version__",
    "AdmissionResult",
    "ControlPlane",
]
