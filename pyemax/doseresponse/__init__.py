"""
Emax dose-response fitting with parameter uncertainty.

Fixed-baseline hyperbolic Emax model, RSS objective, bounded
gradient-descent fitting, and interchangeable covariance estimators
(asymptotic Hessian, parametric bootstrap, observed Fisher information).
"""

from pyemax.doseresponse._common import (
    DEFAULT_BOUNDS,
    Covariance,
    EmaxParams,
    FitResult,
    ParameterBounds,
)
from pyemax.doseresponse._models import emax, emax_log, emax_log_gradient
from pyemax.doseresponse._objective import rss
from pyemax.doseresponse._optimize import OptimizeResult, optimize
from pyemax.doseresponse._uncertainty import (
    VALID_METHODS,
    bootstrap_covariance,
    estimate_covariance,
    fisher_covariance,
    hessian_covariance,
)
from pyemax.doseresponse._fit import fit_emax

__all__ = [
    "DEFAULT_BOUNDS",
    "Covariance",
    "EmaxParams",
    "FitResult",
    "ParameterBounds",
    "OptimizeResult",
    "VALID_METHODS",
    "emax",
    "emax_log",
    "emax_log_gradient",
    "rss",
    "optimize",
    "bootstrap_covariance",
    "estimate_covariance",
    "fisher_covariance",
    "hessian_covariance",
    "fit_emax",
]
