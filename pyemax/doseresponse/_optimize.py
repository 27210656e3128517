"""Bounded gradient descent for the two free Emax parameters.

Minimises RSS over ``[max_effect, potency]`` with the baseline held
fixed.  Each iteration:

1.  Forward finite-difference gradient of RSS (fixed step, natural units).
2.  Gradient step in box-scaled coordinates, i.e. each parameter's step is
    scaled by the squared width of its admissible range, so a single
    learning rate serves both parameters.
3.  Projection onto the admissible box (clamp, never reject).
4.  Step halving while the projected proposal raises RSS.

The learning rate is annealed by ``decay`` every ``decay_every``
iterations.  There is no early exit: the loop always runs ``iterations``
times, and the lowest-RSS parameters seen are returned, which need not be
the final iterate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pyemax import _config
from pyemax.doseresponse._common import DEFAULT_BOUNDS, EmaxParams, ParameterBounds
from pyemax.doseresponse._objective import _rss_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizeResult:
    """Outcome of :func:`optimize`."""

    params: EmaxParams  # lowest-RSS parameters seen
    rss: float
    start_rss: float  # RSS at the (clamped) starting point
    n_iter: int
    learning_rate: float  # annealed rate after the last iteration
    trace: NDArray[np.floating]  # RSS at the start of each iteration


def _fd_gradient(
    theta: NDArray[np.floating],
    f0: float,
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    baseline: float,
    eps: float,
) -> NDArray[np.floating]:
    """Forward-difference gradient ``(f(θ + ε·e_p) - f(θ)) / ε``."""
    grad = np.empty_like(theta)
    for p in range(theta.size):
        shifted = theta.copy()
        shifted[p] += eps
        grad[p] = (_rss_at(shifted, dose, response, baseline) - f0) / eps
    return grad


def optimize(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    start: EmaxParams,
    *,
    iterations: int = _config.ITERATIONS,
    learning_rate: float = _config.LEARNING_RATE,
    bounds: ParameterBounds = DEFAULT_BOUNDS,
    decay: float = _config.DECAY,
    decay_every: int = _config.DECAY_EVERY,
    fd_step: float = _config.FD_STEP,
    max_halvings: int = _config.MAX_HALVINGS,
) -> OptimizeResult:
    """Fit ``max_effect`` and ``potency`` by bounded gradient descent.

    No input validation is done here; :func:`fit_emax` and the covariance
    estimators reject ill-posed data before calling in.

    Parameters
    ----------
    dose, response : array
        Observations, same length.
    start : EmaxParams
        Initial parameters.  Its baseline is held fixed; the free
        parameters are clamped into *bounds* before the first iteration.
    iterations : int
        Number of iterations, always run in full.
    learning_rate : float
        Initial learning rate (box-scaled units).
    bounds : ParameterBounds
        Admissible box.
    decay, decay_every : float, int
        The learning rate is multiplied by *decay* every *decay_every*
        iterations.
    fd_step : float
        Finite-difference step for the gradient.
    max_halvings : int
        Maximum step halvings per iteration.  ``0`` gives plain projected
        descent in box-scaled coordinates.

    Returns
    -------
    OptimizeResult
    """
    dose = np.asarray(dose, dtype=np.float64)
    response = np.asarray(response, dtype=np.float64)
    baseline = start.baseline
    scale = (bounds.upper - bounds.lower) ** 2

    theta = bounds.clip(start.to_array())
    current = _rss_at(theta, dose, response, baseline)
    start_rss = current
    best_theta, best_rss = theta.copy(), current

    lr = learning_rate
    trace = np.empty(iterations, dtype=np.float64)

    for it in range(iterations):
        if it > 0 and it % decay_every == 0:
            lr *= decay
        trace[it] = current

        grad = _fd_gradient(theta, current, dose, response, baseline, fd_step)
        direction = scale * grad

        step = lr
        candidate = bounds.clip(theta - step * direction)
        cand_rss = _rss_at(candidate, dose, response, baseline)
        halvings = 0
        while cand_rss > current and halvings < max_halvings:
            step *= 0.5
            candidate = bounds.clip(theta - step * direction)
            cand_rss = _rss_at(candidate, dose, response, baseline)
            halvings += 1

        theta, current = candidate, cand_rss
        if current < best_rss:
            best_theta, best_rss = theta.copy(), current

    logger.debug(
        "optimize: %d iterations, RSS %.6g -> %.6g, final learning rate %.4g",
        iterations, start_rss, best_rss, lr,
    )

    return OptimizeResult(
        params=EmaxParams.from_array(best_theta, baseline),
        rss=best_rss,
        start_rss=start_rss,
        n_iter=iterations,
        learning_rate=lr,
        trace=trace,
    )
