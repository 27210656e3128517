"""
Dose design evaluation and prediction bands.

Before any data exist: how precisely would a planned set of doses pin
down maximal effect and potency?  Expected Fisher information gives the
%RSE of each parameter and a pass/fail verdict; correlated parameter
draws give the band of plausible curves to plot.
"""

from pyemax.design._common import DesignPrecision, PredictionBand
from pyemax.design._fisher import design_precision, expected_information
from pyemax.design._sampler import sample_bivariate_normal
from pyemax.design._bands import dose_grid, prediction_band

__all__ = [
    "DesignPrecision",
    "PredictionBand",
    "design_precision",
    "expected_information",
    "sample_bivariate_normal",
    "dose_grid",
    "prediction_band",
]
