"""Shared parameter and result types for Emax fitting."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

from pyemax import _config


@dataclass(frozen=True)
class ParameterBounds:
    """Admissible box for ``[max_effect, potency]``.

    Parameters pushed outside the box are clamped onto it, never rejected.
    """

    max_effect: tuple[float, float] = _config.MAX_EFFECT_BOUNDS
    potency: tuple[float, float] = _config.POTENCY_BOUNDS

    def __post_init__(self) -> None:
        for name in ("max_effect", "potency"):
            lo, hi = getattr(self, name)
            if not lo <= hi:
                raise ValueError(f"{name} bounds must satisfy lower <= upper, got ({lo}, {hi})")
        if self.potency[0] <= 0:
            raise ValueError(f"potency lower bound must be > 0, got {self.potency[0]}")

    @property
    def lower(self) -> NDArray[np.floating]:
        return np.array([self.max_effect[0], self.potency[0]], dtype=np.float64)

    @property
    def upper(self) -> NDArray[np.floating]:
        return np.array([self.max_effect[1], self.potency[1]], dtype=np.float64)

    def clip(self, theta: NDArray[np.floating]) -> NDArray[np.floating]:
        """Project a ``[max_effect, potency]`` vector into the box."""
        return np.clip(np.asarray(theta, dtype=np.float64), self.lower, self.upper)


DEFAULT_BOUNDS = ParameterBounds()


@dataclass(frozen=True)
class EmaxParams:
    """Parameters of the Emax curve with unit shape exponent.

    ``response = baseline - max_effect * dose / (potency + dose)``
    """

    max_effect: float
    potency: float
    baseline: float = _config.BASELINE

    def predict(self, dose: NDArray[np.floating]) -> NDArray[np.floating]:
        """Predict response at given dose levels."""
        from pyemax.doseresponse._models import emax

        return emax(dose, self.baseline, self.max_effect, self.potency)

    def to_array(self) -> NDArray[np.floating]:
        """Free parameters as ``[max_effect, potency]``."""
        return np.array([self.max_effect, self.potency], dtype=np.float64)

    @staticmethod
    def from_array(theta: NDArray[np.floating], baseline: float = _config.BASELINE) -> EmaxParams:
        return EmaxParams(max_effect=float(theta[0]), potency=float(theta[1]), baseline=baseline)

    def clip(self, bounds: ParameterBounds = DEFAULT_BOUNDS) -> EmaxParams:
        """Copy with the free parameters clamped into *bounds*."""
        return EmaxParams.from_array(bounds.clip(self.to_array()), self.baseline)


@dataclass(frozen=True)
class Covariance:
    """Symmetric 2×2 covariance over ``(max_effect, potency)``."""

    var_max_effect: float
    var_potency: float
    cov_max_effect_potency: float
    method: str  # 'hessian', 'bootstrap', 'fisher' or 'expected-fisher'
    approximate: bool = False  # diagonal-only fallback

    @property
    def matrix(self) -> NDArray[np.floating]:
        return np.array(
            [
                [self.var_max_effect, self.cov_max_effect_potency],
                [self.cov_max_effect_potency, self.var_potency],
            ],
            dtype=np.float64,
        )

    @property
    def se(self) -> NDArray[np.floating]:
        """Marginal standard errors ``sqrt(variance)``; nan for a negative variance."""
        var = np.array([self.var_max_effect, self.var_potency], dtype=np.float64)
        with np.errstate(invalid="ignore"):
            return np.sqrt(var)

    @property
    def correlation(self) -> float:
        if not (self.var_max_effect > 0 and self.var_potency > 0):
            return float("nan")
        return self.cov_max_effect_potency / math.sqrt(self.var_max_effect * self.var_potency)

    @property
    def is_positive_definite(self) -> bool:
        a, b, c = self.var_max_effect, self.var_potency, self.cov_max_effect_potency
        if not all(math.isfinite(x) for x in (a, b, c)):
            return False
        return a > 0 and a * b - c * c > 0


@dataclass(frozen=True)
class FitResult:
    """Result of fitting the Emax curve to one dataset."""

    params: EmaxParams
    se: NDArray[np.floating]  # [se_max_effect, se_potency]
    covariance: Covariance
    rss: float
    start_rss: float  # RSS at the starting parameters
    residuals: NDArray[np.floating]
    aic: float
    bic: float
    n_iter: int
    method: str
    dose: NDArray[np.floating]
    response: NDArray[np.floating]
    n_obs: int

    def predict(self, dose: NDArray[np.floating] | None = None) -> NDArray[np.floating]:
        """Predict response.  If *dose* is ``None``, use the fitted dose."""
        if dose is None:
            dose = self.dose
        return self.params.predict(dose)

    def confint(self, conf_level: float = 0.95) -> dict[str, tuple[float, float]]:
        """Wald confidence intervals from the marginal standard errors.

        ``max_effect`` uses a symmetric interval.  ``potency`` is positive,
        so its interval is built on the log scale (delta method,
        ``se(log x) ≈ se(x)/x``) and back-transformed.
        """
        if not (0.0 < conf_level < 1.0):
            raise ValueError(f"conf_level must be in (0, 1), got {conf_level}")

        z = norm.ppf(1.0 - (1.0 - conf_level) / 2.0)
        se_e, se_p = (float(s) for s in self.se)
        e, p = self.params.max_effect, self.params.potency

        if math.isfinite(se_e):
            ci_e = (e - z * se_e, e + z * se_e)
        else:
            ci_e = (float("nan"), float("nan"))

        if p > 0 and math.isfinite(se_p) and se_p > 0:
            se_log = se_p / p
            ci_p = (float(np.exp(np.log(p) - z * se_log)), float(np.exp(np.log(p) + z * se_log)))
        else:
            ci_p = (float("nan"), float("nan"))

        return {"max_effect": ci_e, "potency": ci_p}

    def summary(self) -> str:
        """Human-readable summary of the fit."""
        lines = [
            f"Emax model (baseline fixed at {self.params.baseline:g}, shape = 1)",
            f"Covariance: {self.method}"
            + (" (approximate, diagonal only)" if self.covariance.approximate else ""),
            "",
            "Parameter estimates:",
        ]
        for name, val, se_val in (
            ("max_effect", self.params.max_effect, self.se[0]),
            ("potency", self.params.potency, self.se[1]),
        ):
            rse = 100.0 * se_val / val if val != 0 else float("nan")
            lines.append(f"  {name:>12s} = {val:>12.6f}  (SE = {se_val:.6f}, %RSE = {rse:.1f})")

        lines.append("")
        lines.append(f"  RSS        = {self.rss:.6f}  (start: {self.start_rss:.6f})")
        lines.append(f"  AIC        = {self.aic:.2f}")
        lines.append(f"  BIC        = {self.bic:.2f}")
        lines.append(f"  n          = {self.n_obs}")
        lines.append(f"  iterations = {self.n_iter}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Shared validation
# ---------------------------------------------------------------------------

def _check_observations(
    dose: NDArray[np.floating],
    response: NDArray[np.floating],
    *,
    min_obs: int = 3,
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """Validate an observed dataset and return it as float arrays.

    Raises
    ------
    ValueError
        If the arrays are not 1-D, differ in shape, hold fewer than
        *min_obs* observations, contain non-finite values, or contain a
        negative dose.
    """
    dose = np.asarray(dose, dtype=np.float64)
    response = np.asarray(response, dtype=np.float64)

    if dose.ndim != 1 or response.ndim != 1:
        raise ValueError("dose and response must be 1-D arrays")
    if dose.shape != response.shape:
        raise ValueError(
            f"dose and response must have same shape, got {dose.shape} and {response.shape}"
        )
    if len(dose) < min_obs:
        raise ValueError(f"Need at least {min_obs} observations, got {len(dose)}")
    if not (np.all(np.isfinite(dose)) and np.all(np.isfinite(response))):
        raise ValueError("dose and response must be finite")
    if np.any(dose < 0):
        raise ValueError("dose values must be non-negative")
    return dose, response


def _check_params(params: EmaxParams) -> None:
    """Reject a non-finite parameter vector, a negative max_effect or a non-positive potency."""
    values = (params.baseline, params.max_effect, params.potency)
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"parameters must be finite, got {params}")
    if params.max_effect < 0:
        raise ValueError(f"max_effect must be >= 0, got {params.max_effect}")
    if params.potency <= 0:
        raise ValueError(f"potency must be > 0, got {params.potency}")
