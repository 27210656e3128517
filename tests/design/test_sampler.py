"""Tests for the Cholesky-based bivariate normal sampler."""

import itertools
import math

import numpy as np
import pytest

from pyemax.design import sample_bivariate_normal
from pyemax.doseresponse import Covariance, EmaxParams
from pyemax.simulate import NormalSource, default_source


class TestSampleBivariateNormal:

    def test_shape(self):
        cov = Covariance(4.0, 0.25, 0.6, method="hessian")
        out = sample_bivariate_normal([80.0, 1.5], cov, 50, source=default_source(0))
        assert out.shape == (50, 2)

    def test_empirical_moments(self):
        cov = Covariance(4.0, 0.25, 0.6, method="hessian")
        out = sample_bivariate_normal(EmaxParams(80.0, 1.5), cov, 5000, source=default_source(12))
        np.testing.assert_allclose(out.mean(axis=0), [80.0, 1.5], atol=0.1)
        emp = np.cov(out.T)
        assert emp[0, 0] == pytest.approx(4.0, abs=0.3)
        assert emp[1, 1] == pytest.approx(0.25, abs=0.03)
        assert emp[0, 1] == pytest.approx(0.6, abs=0.07)

    def test_not_positive_definite_is_empty(self):
        cov = Covariance(1.0, 1.0, 5.0, method="hessian")
        out = sample_bivariate_normal([80.0, 1.5], cov, 100, source=default_source(0))
        assert out.shape == (0, 2)

    def test_negative_variance_is_empty(self):
        cov = Covariance(-1.0, 1.0, 0.0, method="hessian")
        assert len(sample_bivariate_normal([0.0, 0.0], cov, 10)) == 0

    def test_infinite_variance_is_empty(self):
        cov = Covariance(math.inf, 1.0, 0.0, method="hessian", approximate=True)
        assert len(sample_bivariate_normal([0.0, 0.0], cov, 10)) == 0

    def test_cholesky_transform(self):
        """Fixed uniforms: z1 = 0, z2 = 1 (quarter turn at unit radius)."""
        src = NormalSource(itertools.cycle([math.exp(-0.5), 0.25]).__next__)
        cov = Covariance(4.0, 2.0, 2.0, method="hessian")  # L11=2, L21=1, L22=1
        out = sample_bivariate_normal([10.0, 20.0], cov, 1, source=src)
        assert out[0, 0] == pytest.approx(10.0)
        assert out[0, 1] == pytest.approx(21.0)

    def test_negative_n(self):
        with pytest.raises(ValueError, match="n must be"):
            sample_bivariate_normal([0.0, 0.0], Covariance(1.0, 1.0, 0.0, method="hessian"), -1)
