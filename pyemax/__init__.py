"""
PyEmax: precision of Emax dose-response fits and dose designs.

Fits the fixed-baseline hyperbolic Emax curve to noisy observations,
quantifies the uncertainty of the fit, and predicts the precision a
planned dose design would deliver before any data are collected.

Usage:
    from pyemax import doseresponse, design, simulate
"""

__version__ = "0.1.0"

from pyemax import simulate
from pyemax import doseresponse
from pyemax import design

__all__ = [
    "__version__",
    "simulate",
    "doseresponse",
    "design",
]
