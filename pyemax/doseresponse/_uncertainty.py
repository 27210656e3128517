"""Parameter covariance for a fitted Emax curve.

Three interchangeable estimators, each returning a :class:`Covariance`
over ``(max_effect, potency)``:

``'hessian'`` (default)
    Asymptotic covariance ``s² · H⁻¹`` with ``s² = RSS / (n - 2)`` and
    ``H`` half the central finite-difference Hessian of RSS.
``'bootstrap'``
    Parametric bootstrap: resimulate from the point estimate with fixed
    noise, refit, and take the population variance of the refits.  The
    cross-covariance is reported as 0 unless ``full_covariance=True``.
``'fisher'``
    Observed-data Fisher information from the analytic log-scale
    Jacobian, delta-method transformed to the natural scale.

A singular curvature or information matrix is not an error: the
estimators fall back to a diagonal-only covariance flagged
``approximate=True``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from pyemax import _config
from pyemax.doseresponse._common import (
    DEFAULT_BOUNDS,
    Covariance,
    EmaxParams,
    ParameterBounds,
    _check_observations,
    _check_params,
)
from pyemax.doseresponse._models import emax_log_gradient
from pyemax.doseresponse._objective import _rss_at
from pyemax.doseresponse._optimize import optimize
from pyemax.simulate._noise import NormalSource, default_source

logger = logging.getLogger(__name__)

# det(A) <= _SINGULAR_RTOL * A11 * A22 counts as singular
_SINGULAR_RTOL = 1e-10


def _is_singular(a11: float, a22: float, a12: float) -> bool:
    det = a11 * a22 - a12 * a12
    return not (a11 > 0 and a22 > 0 and det > _SINGULAR_RTOL * a11 * a22)


def _diagonal_variance(scale: float, curvature: float) -> float:
    """``scale / curvature``, or inf when the direction carries no curvature."""
    return scale / curvature if curvature > 0 else math.inf


def _log_diagonal_variance(estimate: float, info: float) -> float:
    """Natural-scale variance ``estimate² / I_ii`` from a log-scale diagonal.

    inf when the direction carries no information, whatever the estimate.
    """
    if not info > 0:
        return math.inf
    return estimate**2 / info


# ---------------------------------------------------------------------------
# Log-scale information -> natural-scale covariance
# ---------------------------------------------------------------------------

def _log_information_to_covariance(
    info: NDArray[np.floating],
    max_effect: float,
    potency: float,
    method: str,
) -> Covariance | None:
    """Invert a log-scale information matrix and apply the delta method.

    ``var(x) = x² · var(log x)``, ``cov(x, y) = x · y · cov(log x, log y)``.
    Returns ``None`` when *info* is singular.
    """
    i11, i22, i12 = float(info[0, 0]), float(info[1, 1]), float(info[0, 1])
    if _is_singular(i11, i22, i12):
        return None

    det = i11 * i22 - i12 * i12
    var_log_max = i22 / det
    var_log_pot = i11 / det
    cov_log = -i12 / det

    return Covariance(
        var_max_effect=max_effect**2 * var_log_max,
        var_potency=potency**2 * var_log_pot,
        cov_max_effect_potency=max_effect * potency * cov_log,
        method=method,
    )


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _rss_hessian(
    theta: NDArray[np.floating],
    f0: float,
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    baseline: float,
    eps: float,
) -> NDArray[np.floating]:
    """Central finite-difference Hessian of RSS at *theta*."""

    def f(d_max: float, d_pot: float) -> float:
        return _rss_at(theta + np.array([d_max, d_pot]), dose, response, baseline)

    h11 = (f(eps, 0.0) - 2.0 * f0 + f(-eps, 0.0)) / eps**2
    h22 = (f(0.0, eps) - 2.0 * f0 + f(0.0, -eps)) / eps**2
    h12 = (f(eps, eps) - f(eps, -eps) - f(-eps, eps) + f(-eps, -eps)) / (4.0 * eps**2)
    return np.array([[h11, h12], [h12, h22]], dtype=np.float64)


def hessian_covariance(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    params: EmaxParams,
    *,
    fd_step: float = _config.FD_STEP,
) -> Covariance:
    """Asymptotic covariance from the curvature of RSS at the estimate.

    ``s² = RSS(θ̂) / (n - 2)``.  The RSS Hessian is halved to give the
    quadratic-loss Hessian of the normal equations, then
    ``cov = s² · H⁻¹``.  When ``H`` is not positive definite the result
    is diagonal-only (``s² / H_ii``, inf where ``H_ii <= 0``) with zero
    cross-covariance and ``approximate=True``.

    Parameters
    ----------
    dose, response : array
        Observations (at least 3).
    params : EmaxParams
        Point estimate.
    fd_step : float
        Finite-difference step.

    Returns
    -------
    Covariance
    """
    dose, response = _check_observations(dose, response)
    _check_params(params)

    theta = params.to_array()
    f0 = _rss_at(theta, dose, response, params.baseline)
    sigma2 = f0 / (len(dose) - 2)
    h = 0.5 * _rss_hessian(theta, f0, dose, response, params.baseline, fd_step)
    h11, h22, h12 = h[0, 0], h[1, 1], h[0, 1]

    if _is_singular(h11, h22, h12):
        logger.warning(
            "RSS Hessian is not positive definite (H11=%.4g, H22=%.4g, H12=%.4g); "
            "using diagonal-only covariance",
            h11, h22, h12,
        )
        return Covariance(
            var_max_effect=_diagonal_variance(sigma2, h11),
            var_potency=_diagonal_variance(sigma2, h22),
            cov_max_effect_potency=0.0,
            method="hessian",
            approximate=True,
        )

    det = h11 * h22 - h12 * h12
    return Covariance(
        var_max_effect=float(sigma2 * h22 / det),
        var_potency=float(sigma2 * h11 / det),
        cov_max_effect_potency=float(-sigma2 * h12 / det),
        method="hessian",
    )


def fisher_covariance(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    params: EmaxParams,
) -> Covariance:
    """Covariance from the observed-data Fisher information.

    ``I = J'J / s²`` with ``J`` the analytic log-scale Jacobian at the
    estimate and ``s² = RSS / (n - 2)``; inverted and delta-method
    transformed to the natural scale.  A singular ``I`` gives the
    diagonal-only fallback with ``approximate=True``.
    """
    dose, response = _check_observations(dose, response)
    _check_params(params)

    theta = params.to_array()
    sigma2 = _rss_at(theta, dose, response, params.baseline) / (len(dose) - 2)
    if sigma2 == 0:
        # exact fit
        return Covariance(0.0, 0.0, 0.0, method="fisher")

    jac = emax_log_gradient(dose, params.max_effect, params.potency)
    info = jac.T @ jac / sigma2

    cov = _log_information_to_covariance(info, params.max_effect, params.potency, "fisher")
    if cov is not None:
        return cov

    logger.warning("Fisher information is singular; using diagonal-only covariance")
    return Covariance(
        var_max_effect=_log_diagonal_variance(params.max_effect, float(info[0, 0])),
        var_potency=_log_diagonal_variance(params.potency, float(info[1, 1])),
        cov_max_effect_potency=0.0,
        method="fisher",
        approximate=True,
    )


def bootstrap_covariance(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    params: EmaxParams,
    *,
    n_boot: int = _config.N_BOOT,
    sd: float = _config.BOOT_SD,
    iterations: int = _config.BOOT_ITERATIONS,
    learning_rate: float = _config.BOOT_LEARNING_RATE,
    bounds: ParameterBounds = DEFAULT_BOUNDS,
    full_covariance: bool = False,
    source: NormalSource | None = None,
) -> Covariance:
    """Parametric-bootstrap covariance.

    Each replicate evaluates the model at the point estimate, adds fresh
    N(0, sd²) noise at the observed doses, and refits from the point
    estimate with a shorter, faster optimizer run.  Variances are the
    population variances (divide by ``n_boot``) of the refits.

    Parameters
    ----------
    dose, response : array
        Observations (at least 3).  Only the doses enter the replicates.
    params : EmaxParams
        Point estimate.
    n_boot : int
        Number of replicates (>= 2).
    sd : float
        Noise standard deviation for resimulation.
    iterations, learning_rate : int, float
        Optimizer budget per replicate.
    bounds : ParameterBounds
        Admissible box for the refits.
    full_covariance : bool
        If ``True``, also report the empirical cross-covariance of the
        refits.  By default it is 0 and the result is flagged
        ``approximate``.
    source : NormalSource or None
        Randomness; a fresh unseeded :func:`default_source` if ``None``.

    Returns
    -------
    Covariance
    """
    dose, response = _check_observations(dose, response)
    _check_params(params)
    if n_boot < 2:
        raise ValueError(f"n_boot must be >= 2, got {n_boot}")
    if not (math.isfinite(sd) and sd > 0):
        raise ValueError(f"sd must be finite and > 0, got {sd}")

    if source is None:
        source = default_source()

    expected = params.predict(dose)
    draws = np.empty((n_boot, 2), dtype=np.float64)
    for b in range(n_boot):
        replicate = source.noisy(expected, sd)
        refit = optimize(
            dose, replicate, params,
            iterations=iterations, learning_rate=learning_rate, bounds=bounds,
        )
        draws[b] = refit.params.to_array()

    var = draws.var(axis=0)
    if full_covariance:
        centred = draws - draws.mean(axis=0)
        cross = float(np.mean(centred[:, 0] * centred[:, 1]))
    else:
        cross = 0.0

    logger.debug("bootstrap: %d replicates, se = %s", n_boot, np.sqrt(var))

    return Covariance(
        var_max_effect=float(var[0]),
        var_potency=float(var[1]),
        cov_max_effect_potency=cross,
        method="bootstrap",
        approximate=not full_covariance,
    )


# ---------------------------------------------------------------------------
# Strategy registry
# ---------------------------------------------------------------------------

_COVARIANCE_METHODS: dict[str, Callable[..., Covariance]] = {
    "hessian": hessian_covariance,
    "bootstrap": bootstrap_covariance,
    "fisher": fisher_covariance,
}

VALID_METHODS = tuple(_COVARIANCE_METHODS.keys())


def estimate_covariance(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    params: EmaxParams,
    *,
    method: str = "hessian",
    **options,
) -> Covariance:
    """Dispatch to the covariance estimator named by *method*.

    Extra keyword *options* are passed through to the estimator.
    """
    if method not in _COVARIANCE_METHODS:
        raise ValueError(f"method must be one of {VALID_METHODS}, got {method!r}")
    return _COVARIANCE_METHODS[method](dose, response, params, **options)
