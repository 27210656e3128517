"""Emax model function and its analytic derivatives.

The model is the hyperbolic (shape exponent 1) Emax curve, decreasing
from a fixed baseline:

.. math::
    f(x) = E_0 - \\frac{E_{max} \\cdot x}{ED_{50} + x}

with ``E_0 = baseline``, ``E_max = max_effect``, ``ED_50 = potency``.

The derivatives are taken with respect to ``log(max_effect)`` and
``log(potency)``; this is the scale on which Fisher information is
accumulated.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def emax(
    dose: NDArray[np.floating],
    baseline: float,
    max_effect: float,
    potency: float,
) -> NDArray[np.floating]:
    """Emax model with unit shape exponent.

    Parameters
    ----------
    dose : array
        Dose values, ``>= 0``.  May contain zeros.
    baseline : float
        Response at dose 0.
    max_effect : float
        Maximal drop from baseline as dose → ∞.
    potency : float
        Dose producing half the maximal effect (ED50), ``> 0``.

    Returns
    -------
    NDArray
        Predicted response values.  Where ``potency + dose == 0`` the
        response falls back to *baseline*.
    """
    dose = np.asarray(dose, dtype=np.float64)
    denom = potency + dose
    with np.errstate(divide="ignore", invalid="ignore"):
        frac = np.where(denom != 0, dose / denom, 0.0)
    return baseline - max_effect * frac


def emax_log(
    dose: NDArray[np.floating],
    baseline: float,
    log_max_effect: float,
    log_potency: float,
) -> NDArray[np.floating]:
    """Emax model parameterised by ``log(max_effect)`` and ``log(potency)``."""
    return emax(dose, baseline, np.exp(log_max_effect), np.exp(log_potency))


def emax_log_gradient(
    dose: NDArray[np.floating],
    max_effect: float,
    potency: float,
) -> NDArray[np.floating]:
    """Analytic partials of the response on the log-parameter scale.

    .. math::
        \\partial y / \\partial \\log E_{max} = -E_{max} \\, x / (ED_{50} + x)

        \\partial y / \\partial \\log ED_{50} = E_{max} \\, x \\, ED_{50} / (ED_{50} + x)^2

    The baseline is fixed and has no column.

    Returns
    -------
    NDArray
        Shape ``(n_dose, 2)``: columns are ``d/dlog(max_effect)`` and
        ``d/dlog(potency)``.
    """
    dose = np.asarray(dose, dtype=np.float64)
    denom = potency + dose
    with np.errstate(divide="ignore", invalid="ignore"):
        d_log_max = np.where(denom != 0, -(dose / denom) * max_effect, 0.0)
        d_log_pot = np.where(denom != 0, max_effect * dose * potency / denom**2, 0.0)
    return np.column_stack([d_log_max, d_log_pot])
