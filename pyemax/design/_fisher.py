"""Expected Fisher information and design precision.

Evaluates a planned dose design before any data exist.  Information is
accumulated on the log-parameter scale from the analytic model
derivatives,

.. math::
    I_{ij} = \\frac{1}{\\sigma^2} \\sum_k
        \\frac{\\partial y_k}{\\partial \\theta_i}
        \\frac{\\partial y_k}{\\partial \\theta_j},
    \\qquad \\theta = (\\log E_{max}, \\log ED_{50}),

inverted, and carried to the natural scale with the delta method.  The
percent relative standard error of each parameter then decides whether
the design is adequate.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from pyemax import _config
from pyemax.design._common import DesignPrecision
from pyemax.doseresponse._common import EmaxParams, _check_params
from pyemax.doseresponse._models import emax_log_gradient
from pyemax.doseresponse._uncertainty import _log_information_to_covariance

logger = logging.getLogger(__name__)


def _check_doses(dose: NDArray[np.floating]) -> NDArray[np.floating]:
    dose = np.asarray(dose, dtype=np.float64)
    if dose.ndim != 1:
        raise ValueError("dose must be a 1-D array")
    if dose.size == 0:
        raise ValueError("dose must not be empty")
    if not np.all(np.isfinite(dose)) or np.any(dose < 0):
        raise ValueError("dose values must be finite and non-negative")
    return dose


def expected_information(
    dose: NDArray[np.floating],
    params: EmaxParams,
    *,
    sigma: float = _config.DESIGN_SIGMA,
) -> NDArray[np.floating]:
    """Expected Fisher information on the log-parameter scale.

    Parameters
    ----------
    dose : array
        Planned dose levels (repeats allowed).
    params : EmaxParams
        Hypothesised parameters.
    sigma : float
        Assumed residual standard deviation.

    Returns
    -------
    NDArray
        2×2 information matrix over ``(log max_effect, log potency)``.
    """
    dose = _check_doses(dose)
    _check_params(params)
    if not (math.isfinite(sigma) and sigma > 0):
        raise ValueError(f"sigma must be finite and > 0, got {sigma}")

    jac = emax_log_gradient(dose, params.max_effect, params.potency)
    return jac.T @ jac / sigma**2


def design_precision(
    dose: NDArray[np.floating],
    params: EmaxParams,
    *,
    sigma: float = _config.DESIGN_SIGMA,
    threshold: float = _config.RSE_THRESHOLD,
) -> DesignPrecision:
    """Predicted %RSE of ``max_effect`` and ``potency`` for a dose design.

    ``%RSE = 100 * sqrt(variance) / estimate``.  The design is flagged
    poor when either %RSE exceeds *threshold*, or when the expected
    information is singular (for example every dose identical, which
    carries no information separating potency from maximal effect).

    Parameters
    ----------
    dose : array
        Planned dose levels.
    params : EmaxParams
        Hypothesised parameters.
    sigma : float
        Assumed residual standard deviation.
    threshold : float
        %RSE above which the design is poor.

    Returns
    -------
    DesignPrecision

    Examples
    --------
    >>> design_precision([1, 1, 1, 1], EmaxParams(80, 1.5)).poor
    True
    """
    if not threshold > 0:
        raise ValueError(f"threshold must be > 0, got {threshold}")

    info = expected_information(dose, params, sigma=sigma)
    n_doses = int(np.asarray(dose).size)
    cov = _log_information_to_covariance(
        info, params.max_effect, params.potency, "expected-fisher"
    )

    if cov is None:
        logger.warning(
            "Expected information is singular for doses %s; design cannot identify both parameters",
            np.asarray(dose).tolist(),
        )
        return DesignPrecision(
            rse_max_effect=math.inf,
            rse_potency=math.inf,
            threshold=threshold,
            poor=True,
            covariance=None,
            sigma=sigma,
            n_doses=n_doses,
        )

    se_e, se_p = cov.se
    rse_e = float(100.0 * se_e / params.max_effect)
    rse_p = float(100.0 * se_p / params.potency)

    return DesignPrecision(
        rse_max_effect=rse_e,
        rse_potency=rse_p,
        threshold=threshold,
        poor=bool(rse_e > threshold or rse_p > threshold),
        covariance=cov,
        sigma=sigma,
        n_doses=n_doses,
    )
