"""Correlated draws of ``(max_effect, potency)`` from a bivariate normal."""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from pyemax.doseresponse._common import Covariance, EmaxParams
from pyemax.simulate._noise import NormalSource, default_source

logger = logging.getLogger(__name__)


def _cholesky_2x2(cov: Covariance) -> tuple[float, float, float] | None:
    """Lower-triangular factor ``(L11, L21, L22)``, or ``None`` if not positive definite."""
    with np.errstate(invalid="ignore", divide="ignore"):
        l11 = float(np.sqrt(cov.var_max_effect))
        l21 = cov.cov_max_effect_potency / l11 if l11 > 0 else math.nan
        l22 = float(np.sqrt(cov.var_potency - l21 * l21))
    if not (math.isfinite(l11) and l11 > 0 and math.isfinite(l22) and l22 > 0):
        return None
    return l11, l21, l22


def sample_bivariate_normal(
    mean: EmaxParams | NDArray[np.floating],
    covariance: Covariance,
    n: int,
    *,
    source: NormalSource | None = None,
) -> NDArray[np.floating]:
    """Draw *n* correlated ``[max_effect, potency]`` vectors.

    Uses the Cholesky factor of the 2×2 covariance::

        L11 = sqrt(var_a)
        L21 = cov_ab / L11
        L22 = sqrt(var_b - L21²)

    and one Box–Muller pair ``(z1, z2)`` per draw:
    ``a = mean_a + L11·z1``, ``b = mean_b + L21·z1 + L22·z2``.

    Parameters
    ----------
    mean : EmaxParams or array
        Centre, ``[max_effect, potency]``.
    covariance : Covariance
        Must be positive definite.
    n : int
        Number of draws.
    source : NormalSource or None
        Randomness; a fresh unseeded :func:`default_source` if ``None``.

    Returns
    -------
    NDArray
        Shape ``(n, 2)``.  Shape ``(0, 2)`` when the covariance is not
        positive definite (no band is available).
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")

    if isinstance(mean, EmaxParams):
        centre = mean.to_array()
    else:
        centre = np.asarray(mean, dtype=np.float64)

    factor = _cholesky_2x2(covariance)
    if factor is None:
        logger.warning("Covariance is not positive definite; no samples drawn")
        return np.empty((0, 2), dtype=np.float64)
    l11, l21, l22 = factor

    if source is None:
        source = default_source()

    out = np.empty((n, 2), dtype=np.float64)
    for i in range(n):
        z1, z2 = source.normal_pair()
        out[i, 0] = centre[0] + l11 * z1
        out[i, 1] = centre[1] + l21 * z1 + l22 * z2
    return out
