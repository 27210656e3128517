"""Shared result types for design evaluation and prediction bands."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pyemax.doseresponse._common import Covariance


@dataclass(frozen=True)
class DesignPrecision:
    """Expected precision of a planned dose design.

    ``covariance`` is ``None`` when the expected information matrix is
    singular; both %RSE values are then infinite and ``poor`` is ``True``.
    """

    rse_max_effect: float  # percent
    rse_potency: float  # percent
    threshold: float  # percent
    poor: bool
    covariance: Covariance | None
    sigma: float
    n_doses: int

    def summary(self) -> str:
        """Human-readable precision report."""
        lines = ["Expected precision of dose design", ""]
        lines.append(f"        n doses = {self.n_doses}")
        lines.append(f"          sigma = {self.sigma:g}")
        lines.append(f"  %RSE(max_eff) = {self.rse_max_effect:.2f}")
        lines.append(f"  %RSE(potency) = {self.rse_potency:.2f}")
        lines.append(f"      threshold = {self.threshold:g}%")
        if self.covariance is None:
            lines.append("")
            lines.append("NOTE: expected information is singular; the design cannot identify both parameters.")
        if self.poor:
            lines.append("")
            lines.append(f"Poor design: %RSE > {self.threshold:g}%")
        return "\n".join(lines)


@dataclass(frozen=True)
class PredictionBand:
    """Percentile prediction band over a dose grid.

    Each array has the length of the grid.
    """

    dose: NDArray[np.floating]
    predicted: NDArray[np.floating]
    lower: NDArray[np.floating]
    upper: NDArray[np.floating]
    level: float
    n_samples: int

    def to_records(self) -> list[dict[str, float]]:
        """One ``{dose, predicted, lower, upper}`` dict per grid point."""
        return [
            {"dose": float(d), "predicted": float(p), "lower": float(lo), "upper": float(hi)}
            for d, p, lo, hi in zip(self.dose, self.predicted, self.lower, self.upper)
        ]
