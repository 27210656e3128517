"""Residual sum of squares, the optimisation loss and goodness-of-fit summary."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyemax.doseresponse._models import emax


def rss(
    observed: NDArray[np.floating],
    predicted: NDArray[np.floating],
) -> float:
    """``sum((observed - predicted)**2)``.

    Raises
    ------
    ValueError
        If the two sequences differ in length.
    """
    observed = np.asarray(observed, dtype=np.float64)
    predicted = np.asarray(predicted, dtype=np.float64)
    if observed.shape != predicted.shape:
        raise ValueError(
            f"observed and predicted must have same shape, got {observed.shape} and {predicted.shape}"
        )
    return float(np.sum((observed - predicted) ** 2))


def _rss_at(
    theta: NDArray[np.floating],
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    baseline: float,
) -> float:
    """RSS for a ``[max_effect, potency]`` vector."""
    pred = emax(dose, baseline, theta[0], theta[1])
    return float(np.sum((response - pred) ** 2))
