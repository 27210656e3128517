"""Simulated dose-response observations."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyemax.doseresponse._common import EmaxParams
from pyemax.simulate._noise import NormalSource, default_source


def simulate_response(
    dose: NDArray[np.floating],
    params: EmaxParams,
    *,
    sd: float,
    source: NormalSource | None = None,
) -> NDArray[np.floating]:
    """Model response at each dose plus independent N(0, sd²) noise.

    Parameters
    ----------
    dose : array
        Non-negative dose levels.
    params : EmaxParams
        Generating parameters.
    sd : float
        Noise standard deviation (``sd = 0`` gives the noiseless curve).
    source : NormalSource or None
        Randomness; a fresh unseeded :func:`default_source` if ``None``.

    Returns
    -------
    NDArray
        Simulated responses, same shape as *dose*.
    """
    dose = np.asarray(dose, dtype=np.float64)
    if dose.ndim != 1:
        raise ValueError("dose must be a 1-D array")
    if dose.size == 0:
        raise ValueError("dose must not be empty")
    if not np.all(np.isfinite(dose)) or np.any(dose < 0):
        raise ValueError("dose values must be finite and non-negative")
    if not (np.isfinite(sd) and sd >= 0):
        raise ValueError(f"sd must be finite and non-negative, got {sd}")

    if source is None:
        source = default_source()
    return source.noisy(params.predict(dose), sd)
