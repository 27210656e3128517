"""Normal deviates via the Box–Muller transform.

The uniform source is injectable so tests can replay a fixed sequence.
A uniform source is any zero-argument callable returning floats in
``(0, 1]``; zero is excluded because Box–Muller takes ``log(u1)``.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

UniformSource = Callable[[], float]


class NormalSource:
    """Independent normal draws built from a uniform(0, 1] source.

    Parameters
    ----------
    uniform : callable
        Zero-argument callable returning floats in ``(0, 1]``.

    Examples
    --------
    >>> import itertools
    >>> src = NormalSource(itertools.cycle([math.exp(-0.5), 1.0]).__next__)
    >>> src.normal()
    1.0
    """

    def __init__(self, uniform: UniformSource) -> None:
        self._uniform = uniform

    def normal_pair(self) -> tuple[float, float]:
        """Both Box–Muller outputs (cosine and sine branch) of one uniform pair."""
        u1 = self._uniform()
        u2 = self._uniform()
        radius = math.sqrt(-2.0 * math.log(u1))
        angle = 2.0 * math.pi * u2
        return radius * math.cos(angle), radius * math.sin(angle)

    def normal(self, mean: float = 0.0, sd: float = 1.0) -> float:
        """One draw from N(mean, sd²)."""
        z, _ = self.normal_pair()
        return mean + sd * z

    def standard_normal(self, n: int) -> NDArray[np.floating]:
        """*n* independent N(0, 1) draws."""
        out = np.empty(n, dtype=np.float64)
        for i in range(n):
            out[i] = self.normal()
        return out

    def noisy(self, value, sd: float):
        """``value + N(0, sd²)``, elementwise for arrays."""
        if np.ndim(value) == 0:
            return float(value) + self.normal(0.0, sd)
        value = np.asarray(value, dtype=np.float64)
        return value + sd * self.standard_normal(value.size).reshape(value.shape)


def default_source(seed: int | None = None) -> NormalSource:
    """NormalSource backed by ``numpy.random.default_rng(seed)``."""
    rng = np.random.default_rng(seed)
    # rng.random() is in [0, 1); reflect it onto (0, 1]
    return NormalSource(lambda: 1.0 - float(rng.random()))
