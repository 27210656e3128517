"""
Random draws and simulated observations.

Box–Muller normals from an injectable uniform source, and noisy
responses generated from known Emax parameters.
"""

from pyemax.simulate._noise import NormalSource, UniformSource, default_source
from pyemax.simulate._data import simulate_response

__all__ = [
    "NormalSource",
    "UniformSource",
    "default_source",
    "simulate_response",
]
