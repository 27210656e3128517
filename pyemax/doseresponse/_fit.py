"""Emax curve fitting with parameter uncertainty.

Point estimates come from the bounded gradient-descent optimizer; the
covariance from one of the interchangeable estimators in
:mod:`pyemax.doseresponse._uncertainty`.

Includes data-driven starting estimates so the caller never has to guess
initial parameter values.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyemax import _config
from pyemax.doseresponse._common import (
    DEFAULT_BOUNDS,
    EmaxParams,
    FitResult,
    ParameterBounds,
    _check_observations,
    _check_params,
)
from pyemax.doseresponse._optimize import optimize
from pyemax.doseresponse._uncertainty import VALID_METHODS, estimate_covariance

_N_PARAMS = 2


# ---------------------------------------------------------------------------
# Self-starting parameter estimation
# ---------------------------------------------------------------------------

def _interpolate_potency(
    dose_sorted: NDArray,
    drop_sorted: NDArray,
    midpoint: float,
) -> float:
    """Dose at which the drop from baseline crosses *midpoint*, by linear
    interpolation on the log-dose scale.
    """
    for i in range(len(drop_sorted) - 1):
        r1, r2 = drop_sorted[i], drop_sorted[i + 1]
        if (r1 - midpoint) * (r2 - midpoint) <= 0:
            d1 = np.log(dose_sorted[i])
            d2 = np.log(dose_sorted[i + 1])
            if abs(r2 - r1) < 1e-12:
                return float(np.exp((d1 + d2) / 2.0))
            frac = (midpoint - r1) / (r2 - r1)
            return float(np.exp(d1 + frac * (d2 - d1)))

    # No crossing: geometric mean of dose range
    return float(np.exp(np.mean(np.log(dose_sorted))))


def _initial_params(
    dose: NDArray,
    response: NDArray,
    baseline: float,
    bounds: ParameterBounds,
) -> EmaxParams:
    """Data-driven starting values.

    Algorithm
    ---------
    1.  Drop from baseline at each dose: ``baseline - response``.
    2.  max_effect from the mean drop in the highest-dose quarter.
    3.  potency where the drop crosses half of that, on log-dose scale.
    4.  Clamp both into *bounds*.
    """
    mask = dose > 0
    dose_pos = dose[mask]
    drop_pos = baseline - response[mask]

    if len(dose_pos) < 2:
        return EmaxParams(
            max_effect=_config.DEFAULT_MAX_EFFECT,
            potency=_config.DEFAULT_POTENCY,
            baseline=baseline,
        ).clip(bounds)

    order = np.argsort(dose_pos)
    d_sorted = dose_pos[order]
    r_sorted = drop_pos[order]

    n_edge = max(1, len(d_sorted) // 4)
    max_effect_est = float(np.mean(r_sorted[-n_edge:]))
    potency_est = _interpolate_potency(d_sorted, r_sorted, max_effect_est / 2.0)

    return EmaxParams(max_effect=max_effect_est, potency=potency_est, baseline=baseline).clip(bounds)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fit_emax(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    *,
    start: EmaxParams | None = None,
    baseline: float = _config.BASELINE,
    method: str = "hessian",
    iterations: int = _config.ITERATIONS,
    learning_rate: float = _config.LEARNING_RATE,
    bounds: ParameterBounds = DEFAULT_BOUNDS,
    covariance_options: dict | None = None,
) -> FitResult:
    """Fit the fixed-baseline Emax model to a single dataset.

    Parameters
    ----------
    dose : array
        Non-negative dose values.
    response : array
        Observed responses.
    start : EmaxParams or None
        Starting values.  If ``None``, uses self-starting estimates derived
        from the data.  A supplied start carries its own baseline.
    baseline : float
        Fixed baseline used when *start* is ``None``.
    method : str
        Covariance estimator: ``'hessian'`` (default), ``'bootstrap'`` or
        ``'fisher'``.
    iterations, learning_rate : int, float
        Optimizer budget.
    bounds : ParameterBounds
        Admissible box; estimates are clamped into it.
    covariance_options : dict or None
        Extra keyword arguments for the covariance estimator (for
        example ``{'n_boot': 50, 'source': default_source(1)}``).

    Returns
    -------
    FitResult

    Examples
    --------
    >>> import numpy as np
    >>> dose = np.array([0.5, 1, 2, 3, 4])
    >>> response = np.array([79.1, 68.2, 54.3, 51.0, 43.9])
    >>> result = fit_emax(dose, response)
    >>> result.rss < result.start_rss
    True
    """
    dose, response = _check_observations(dose, response, min_obs=_N_PARAMS + 1)
    if method not in VALID_METHODS:
        raise ValueError(f"method must be one of {VALID_METHODS}, got {method!r}")
    if iterations < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")
    if not learning_rate > 0:
        raise ValueError(f"learning_rate must be > 0, got {learning_rate}")

    if start is None:
        start = _initial_params(dose, response, baseline, bounds)
    _check_params(start)

    opt = optimize(
        dose, response, start,
        iterations=iterations, learning_rate=learning_rate, bounds=bounds,
    )

    covariance = estimate_covariance(
        dose, response, opt.params, method=method, **(covariance_options or {})
    )

    n_obs = len(dose)
    residuals = response - opt.params.predict(dose)
    with np.errstate(divide="ignore"):
        loglik_term = n_obs * np.log(opt.rss / n_obs)
    aic = float(loglik_term + 2 * _N_PARAMS)
    bic = float(loglik_term + _N_PARAMS * np.log(n_obs))

    return FitResult(
        params=opt.params,
        se=covariance.se,
        covariance=covariance,
        rss=opt.rss,
        start_rss=opt.start_rss,
        residuals=residuals,
        aic=aic,
        bic=bic,
        n_iter=opt.n_iter,
        method=method,
        dose=dose,
        response=response,
        n_obs=n_obs,
    )
