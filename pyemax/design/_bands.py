"""Percentile prediction bands from sampled parameter vectors.

Parameter vectors are drawn around the estimate from its covariance, the
model is evaluated at each draw across a dose grid, and empirical
percentiles of the predictions at each grid point form the band.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from pyemax import _config
from pyemax.design._common import PredictionBand
from pyemax.design._sampler import sample_bivariate_normal
from pyemax.doseresponse._common import Covariance, EmaxParams
from pyemax.doseresponse._models import emax
from pyemax.simulate._noise import NormalSource

logger = logging.getLogger(__name__)


def dose_grid(
    dose: NDArray[np.floating] | None = None,
    *,
    n_points: int = _config.GRID_POINTS,
    min_max_dose: float = _config.GRID_MIN_MAX_DOSE,
) -> NDArray[np.floating]:
    """Evenly spaced plotting grid from 0 to ``max(max(dose), min_max_dose)``."""
    if n_points < 2:
        raise ValueError(f"n_points must be >= 2, got {n_points}")
    top = min_max_dose
    if dose is not None and np.size(dose) > 0:
        top = max(float(np.max(dose)), min_max_dose)
    return np.linspace(0.0, top, n_points)


def prediction_band(
    params: EmaxParams,
    covariance: Covariance | None,
    dose: NDArray[np.floating],
    *,
    n_samples: int = _config.N_BAND_SAMPLES,
    level: float = _config.BAND_LEVEL,
    clip: tuple[float, float] | None = _config.RESPONSE_RANGE,
    source: NormalSource | None = None,
) -> PredictionBand | None:
    """Prediction band for the Emax curve over a dose grid.

    For the default ``level=0.90`` the bounds are the 5th and 95th
    empirical percentiles: predictions are sorted and indexed at
    ``floor(0.05·n)`` and ``floor(0.95·n)``.

    Parameters
    ----------
    params : EmaxParams
        Estimate; the band is centred on its curve.
    covariance : Covariance or None
        Parameter covariance.  ``None`` (for example from a singular
        design) means no band.
    dose : array
        Grid of doses, see :func:`dose_grid`.
    n_samples : int
        Number of parameter draws.
    level : float
        Central coverage of the band, in (0, 1).
    clip : tuple or None
        ``(low, high)`` range the curve and band are clamped to.
    source : NormalSource or None
        Randomness for the parameter draws.

    Returns
    -------
    PredictionBand or None
        ``None`` when the covariance is missing or not positive definite.
    """
    if not (0.0 < level < 1.0):
        raise ValueError(f"level must be in (0, 1), got {level}")
    if n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {n_samples}")
    dose = np.asarray(dose, dtype=np.float64)
    if dose.ndim != 1:
        raise ValueError("dose must be a 1-D array")

    if covariance is None:
        return None

    draws = sample_bivariate_normal(params, covariance, n_samples, source=source)
    if len(draws) == 0:
        return None

    preds = np.empty((len(draws), dose.size), dtype=np.float64)
    for i, (max_effect, potency) in enumerate(draws):
        preds[i] = emax(dose, params.baseline, max_effect, potency)
    preds.sort(axis=0)

    tail = (1.0 - level) / 2.0
    lower_idx = math.floor(n_samples * tail)
    upper_idx = min(math.floor(n_samples * (1.0 - tail)), n_samples - 1)

    predicted = params.predict(dose)
    lower = preds[lower_idx]
    upper = preds[upper_idx]
    if clip is not None:
        predicted = np.clip(predicted, clip[0], clip[1])
        lower = np.clip(lower, clip[0], clip[1])
        upper = np.clip(upper, clip[0], clip[1])

    return PredictionBand(
        dose=dose,
        predicted=predicted,
        lower=lower,
        upper=upper,
        level=level,
        n_samples=n_samples,
    )
