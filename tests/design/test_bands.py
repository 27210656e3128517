"""Tests for dose grids and percentile prediction bands."""

import numpy as np
import pytest

from pyemax.design import design_precision, dose_grid, prediction_band
from pyemax.doseresponse import Covariance, EmaxParams
from pyemax.simulate import default_source

PARAMS = EmaxParams(max_effect=80.0, potency=1.5)
DOSES = np.array([0.5, 1.0, 2.0, 3.0, 4.0])


class TestDoseGrid:

    def test_default_grid(self):
        g = dose_grid()
        assert g.shape == (201,)
        assert g[0] == 0.0
        assert g[-1] == 5.0

    def test_extends_to_largest_dose(self):
        assert dose_grid([1.0, 8.0])[-1] == 8.0

    def test_small_doses_use_minimum_span(self):
        assert dose_grid([0.5, 1.0])[-1] == 5.0

    def test_n_points(self):
        assert dose_grid(DOSES, n_points=11).shape == (11,)
        with pytest.raises(ValueError, match="n_points"):
            dose_grid(DOSES, n_points=1)


class TestPredictionBand:

    @pytest.fixture
    def band(self):
        cov = design_precision(DOSES, PARAMS, sigma=3.0).covariance
        return prediction_band(PARAMS, cov, dose_grid(DOSES), source=default_source(4))

    def test_shapes(self, band):
        assert band.dose.shape == (201,)
        assert band.lower.shape == band.upper.shape == band.predicted.shape == (201,)
        assert band.n_samples == 200
        assert band.level == pytest.approx(0.90)

    def test_ordered(self, band):
        assert np.all(band.lower <= band.upper)
        assert np.all(band.lower <= band.predicted + 1e-9)
        assert np.all(band.predicted <= band.upper + 1e-9)

    def test_clipped_to_range(self, band):
        for arr in (band.lower, band.upper, band.predicted):
            assert np.all(arr >= 0.0)
            assert np.all(arr <= 120.0)

    def test_dose_zero_has_no_spread(self, band):
        assert band.lower[0] == band.upper[0] == pytest.approx(100.0)

    def test_wider_for_noisier_assay(self):
        grid = dose_grid(DOSES)
        narrow = prediction_band(
            PARAMS, design_precision(DOSES, PARAMS, sigma=1.0).covariance, grid,
            source=default_source(6),
        )
        wide = prediction_band(
            PARAMS, design_precision(DOSES, PARAMS, sigma=7.0).covariance, grid,
            source=default_source(6),
        )
        assert np.mean(wide.upper - wide.lower) > np.mean(narrow.upper - narrow.lower)

    def test_records(self, band):
        recs = band.to_records()
        assert len(recs) == 201
        assert set(recs[0]) == {"dose", "predicted", "lower", "upper"}

    def test_no_covariance_no_band(self):
        assert prediction_band(PARAMS, None, dose_grid()) is None

    def test_singular_design_no_band(self):
        cov = design_precision([1, 1, 1, 1], PARAMS).covariance
        assert prediction_band(PARAMS, cov, dose_grid()) is None

    def test_not_positive_definite_no_band(self):
        cov = Covariance(1.0, 1.0, 5.0, method="hessian")
        assert prediction_band(PARAMS, cov, dose_grid()) is None

    def test_level_validated(self):
        cov = Covariance(1.0, 0.01, 0.0, method="hessian")
        with pytest.raises(ValueError, match="level"):
            prediction_band(PARAMS, cov, dose_grid(), level=1.0)
