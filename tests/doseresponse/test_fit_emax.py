"""Tests for fit_emax (point estimate plus uncertainty)."""

import numpy as np
import pytest

from pyemax.doseresponse import DEFAULT_BOUNDS, EmaxParams, fit_emax, rss
from pyemax.doseresponse._fit import _initial_params
from pyemax.simulate import default_source, simulate_response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def emax_data():
    """Emax data with known parameters + small noise."""
    dose = np.array([0.0, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0])
    true = EmaxParams(max_effect=80.0, potency=1.5)
    response = simulate_response(dose, true, sd=2.0, source=default_source(42))
    return dose, response, true


# ---------------------------------------------------------------------------
# Fitting
# ---------------------------------------------------------------------------

class TestFitEmax:
    """Default fit with Hessian covariance."""

    def test_recovers_parameters(self, emax_data):
        dose, response, true = emax_data
        r = fit_emax(dose, response)
        assert r.params.max_effect == pytest.approx(true.max_effect, rel=0.2)
        assert r.params.potency == pytest.approx(true.potency, rel=0.2)

    def test_improves_on_start(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response, start=EmaxParams(60.0, 2.0))
        assert r.rss < r.start_rss

    def test_se_positive(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        assert np.all(r.se > 0)
        np.testing.assert_allclose(r.se, r.covariance.se)

    def test_residuals(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        assert r.residuals.shape == (len(dose),)
        assert np.sum(r.residuals**2) == pytest.approx(r.rss)
        assert r.rss == pytest.approx(rss(response, r.predict()))

    def test_predict_at_new_doses(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        assert r.predict(np.array([0.5, 5.0, 50.0])).shape == (3,)

    def test_information_criteria(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        n = len(dose)
        assert r.aic == pytest.approx(n * np.log(r.rss / n) + 4)
        assert r.bic == pytest.approx(n * np.log(r.rss / n) + 2 * np.log(n))

    def test_custom_baseline(self):
        dose = np.array([0.5, 1.0, 2.0, 4.0, 8.0])
        true = EmaxParams(max_effect=40.0, potency=1.0, baseline=50.0)
        response = simulate_response(dose, true, sd=0.5, source=default_source(8))
        r = fit_emax(dose, response, baseline=50.0)
        assert r.params.baseline == 50.0
        assert r.params.max_effect == pytest.approx(40.0, rel=0.2)


class TestFitEmaxMethods:
    """Choice of covariance estimator."""

    def test_bootstrap(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(
            dose, response, method="bootstrap",
            covariance_options={"n_boot": 20, "iterations": 100, "source": default_source(0)},
        )
        assert r.method == "bootstrap"
        assert r.covariance.cov_max_effect_potency == 0.0
        assert np.all(r.se > 0)

    def test_fisher(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response, method="fisher")
        assert r.covariance.method == "fisher"
        assert r.covariance.is_positive_definite

    def test_fisher_flat_data(self):
        """No effect: max_effect clamps to 0 and the variances are inf, not nan."""
        dose = np.array([0.5, 1.0, 2.0, 3.0, 4.0])
        response = np.array([101.0, 102.0, 100.5, 103.0, 101.5])
        r = fit_emax(dose, response, method="fisher")
        assert r.params.max_effect == 0.0
        assert r.covariance.approximate
        assert np.isinf(r.covariance.var_max_effect)
        assert not np.any(np.isnan(r.covariance.matrix))
        assert not np.any(np.isnan(r.se))


class TestFitEmaxSummary:

    def test_summary_contains_fields(self, emax_data):
        dose, response, _ = emax_data
        s = fit_emax(dose, response).summary()
        for field in ("max_effect", "potency", "RSS", "AIC", "%RSE", "hessian"):
            assert field in s

    def test_confint_contains_estimate(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        ci = r.confint()
        lo, hi = ci["max_effect"]
        assert lo < r.params.max_effect < hi
        lo, hi = ci["potency"]
        assert 0 < lo < r.params.potency < hi

    def test_confint_wider_at_higher_level(self, emax_data):
        dose, response, _ = emax_data
        r = fit_emax(dose, response)
        w90 = np.diff(r.confint(0.90)["max_effect"])[0]
        w99 = np.diff(r.confint(0.99)["max_effect"])[0]
        assert w99 > w90

    def test_confint_level_validated(self, emax_data):
        dose, response, _ = emax_data
        with pytest.raises(ValueError, match="conf_level"):
            fit_emax(dose, response).confint(1.5)


class TestSelfStart:
    """Data-driven starting values."""

    def test_start_inside_box(self, emax_data):
        dose, response, _ = emax_data
        start = _initial_params(dose, response, 100.0, DEFAULT_BOUNDS)
        assert 0.0 <= start.max_effect <= 100.0
        assert 0.01 <= start.potency <= 10.0

    def test_start_near_truth(self, emax_data):
        dose, response, _ = emax_data
        start = _initial_params(dose, response, 100.0, DEFAULT_BOUNDS)
        assert start.potency == pytest.approx(1.5, rel=1.0)

    def test_too_few_positive_doses(self):
        start = _initial_params(np.array([0.0, 0.0, 1.0]), np.array([100.0, 99.0, 60.0]), 100.0, DEFAULT_BOUNDS)
        assert start == EmaxParams(100.0, 0.5)


class TestFitEmaxValidation:
    """Input validation."""

    def test_mismatched_shapes(self):
        with pytest.raises(ValueError, match="same shape"):
            fit_emax(np.array([1.0, 2.0, 3.0]), np.array([1.0, 2.0, 3.0, 4.0]))

    def test_too_few_observations(self):
        with pytest.raises(ValueError, match="at least"):
            fit_emax(np.array([1.0, 2.0]), np.array([60.0, 50.0]))

    def test_empty(self):
        with pytest.raises(ValueError, match="at least"):
            fit_emax(np.array([]), np.array([]))

    def test_not_1d(self):
        with pytest.raises(ValueError, match="1-D"):
            fit_emax(np.ones((2, 2)), np.ones((2, 2)))

    def test_non_finite(self):
        with pytest.raises(ValueError, match="finite"):
            fit_emax(np.array([1.0, 2.0, 3.0]), np.array([60.0, np.nan, 40.0]))

    def test_negative_dose(self):
        with pytest.raises(ValueError, match="non-negative"):
            fit_emax(np.array([-1.0, 2.0, 3.0]), np.array([60.0, 50.0, 40.0]))

    def test_non_positive_start_potency(self, emax_data):
        dose, response, _ = emax_data
        with pytest.raises(ValueError, match="potency"):
            fit_emax(dose, response, start=EmaxParams(60.0, -1.0))

    def test_invalid_method(self, emax_data):
        dose, response, _ = emax_data
        with pytest.raises(ValueError, match="method"):
            fit_emax(dose, response, method="profile")
