"""
Tests for the weighted local linear fit.
"""

import pytest
import numpy as np

from pyloess.exceptions import NegativeWeightError, NumericalError, SingularSystemError
from pyloess.local_regression import LocalEstimate, design_matrix, solve_local_regression


def affine(coords, intercept, slope):
    return intercept + coords @ slope


class TestAffineReproduction:
    """Affine fields are reproduced exactly for any positive weights."""

    @pytest.mark.parametrize("ndims", [1, 2, 3])
    def test_random_weights(self, rng, ndims):
        slope = rng.normal(size=ndims)
        X = rng.uniform(0.0, 1.0, size=(12, ndims))
        z = affine(X, 1.7, slope)
        for _ in range(5):
            w = rng.uniform(0.1, 10.0, size=12)
            x = rng.uniform(-0.5, 1.5, size=ndims)
            estimate = solve_local_regression(X, z, w, x)
            assert estimate.mean == pytest.approx(affine(x, 1.7, slope), abs=1e-10)

    def test_minimal_neighbor_set(self):
        """d + 1 affinely independent neighbors suffice."""
        X = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        z = affine(X, -2.0, np.array([4.0, 0.5]))
        estimate = solve_local_regression(X, z, [1.0, 0.2, 3.0], [0.25, 0.25])
        assert estimate.mean == pytest.approx(-2.0 + 1.0 + 0.125)

    def test_extrapolation(self):
        X = np.array([[0.0], [1.0], [2.0]])
        z = 2.0 * X[:, 0] - 1.0
        estimate = solve_local_regression(X, z, [1.0, 1.0, 1.0], [10.0])
        assert estimate.mean == pytest.approx(19.0)

    def test_large_coordinates(self):
        """Projected coordinates in meters do not degrade the fit."""
        X = np.array([[500000.0, 4100000.0], [500900.0, 4100100.0],
                      [500200.0, 4100800.0], [501000.0, 4101000.0]])
        z = affine(X, 10.0, np.array([1e-3, -2e-3]))
        x = np.array([500500.0, 4100500.0])
        estimate = solve_local_regression(X, z, [0.9, 0.5, 0.7, 0.3], x)
        assert estimate.mean == pytest.approx(affine(x, 10.0, np.array([1e-3, -2e-3])))


class TestConstantField:
    """A constant field is estimated exactly."""

    @pytest.mark.parametrize("k", [3, 5, 8])
    def test_constant(self, rng, k):
        X = rng.uniform(0.0, 1.0, size=(k, 2))
        z = np.full(k, 7.25)
        w = rng.uniform(0.01, 1.0, size=k)
        estimate = solve_local_regression(X, z, w, [0.5, 0.5])
        assert estimate.mean == pytest.approx(7.25)


class TestUncertainty:
    """Test the influence vector and its norm."""

    def test_non_negative(self, rng):
        X = rng.uniform(0.0, 1.0, size=(10, 2))
        z = rng.normal(size=10)
        for _ in range(10):
            estimate = solve_local_regression(X, z, rng.uniform(0.1, 1.0, 10), rng.uniform(0, 1, 2))
            assert estimate.uncertainty >= 0.0
            assert np.isfinite(estimate.uncertainty)

    def test_mean_is_linear_combination(self, rng):
        """The influence vector reproduces the mean: mean == r @ z."""
        X = rng.uniform(0.0, 1.0, size=(9, 2))
        z = rng.normal(size=9)
        w = rng.uniform(0.1, 1.0, size=9)
        estimate = solve_local_regression(X, z, w, [0.3, 0.7])
        assert estimate.mean == pytest.approx(estimate.influence @ z)
        assert estimate.uncertainty == pytest.approx(np.linalg.norm(estimate.influence))

    def test_influence_sums_to_one(self, rng):
        """Influence weights sum to one since constants are reproduced."""
        X = rng.uniform(0.0, 1.0, size=(6, 2))
        estimate = solve_local_regression(X, np.zeros(6), rng.uniform(0.1, 1.0, 6), [0.5, 0.5])
        assert estimate.influence.sum() == pytest.approx(1.0)

    def test_exact_fit_uncertainty(self):
        """With d + 1 neighbors the fit interpolates and r is the barycentric weights."""
        X = np.array([[0.0], [2.0]])
        estimate = solve_local_regression(X, [0.0, 2.0], [1.0, 1.0], [0.5])
        np.testing.assert_allclose(estimate.influence, [0.75, 0.25])
        assert estimate.uncertainty == pytest.approx(np.sqrt(0.75 ** 2 + 0.25 ** 2))

    def test_result_type(self):
        estimate = solve_local_regression([[0.0], [1.0]], [0.0, 1.0], [1.0, 1.0], [0.5])
        assert isinstance(estimate, LocalEstimate)
        assert isinstance(estimate.mean, float)
        assert estimate.coefficients.shape == (2,)


class TestNumericalFailures:
    """Singular systems and invalid weights are reported explicitly."""

    def test_too_few_neighbors(self):
        with pytest.raises(SingularSystemError):
            solve_local_regression([[1.0, 1.0], [2.0, 0.0]], [1.0, 2.0], [1.0, 1.0], [0.0, 0.0])

    def test_single_neighbor(self):
        with pytest.raises(SingularSystemError):
            solve_local_regression([[1.0]], [3.0], [1.0], [0.0])

    def test_collinear_neighbors(self):
        X = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])
        with pytest.raises(SingularSystemError):
            solve_local_regression(X, [0.0, 1.0, 2.0, 3.0], np.ones(4), [1.5, 0.5])

    def test_zero_weights(self):
        X = np.array([[0.0], [1.0], [2.0]])
        with pytest.raises(SingularSystemError):
            solve_local_regression(X, [0.0, 1.0, 2.0], np.zeros(3), [1.0])

    def test_singular_error_is_numerical_and_linalg_error(self):
        with pytest.raises(NumericalError):
            solve_local_regression([[1.0]], [3.0], [1.0], [0.0])
        with pytest.raises(np.linalg.LinAlgError):
            solve_local_regression([[1.0]], [3.0], [1.0], [0.0])

    def test_negative_weights(self):
        X = np.array([[0.0], [1.0], [2.0]])
        with pytest.raises(NegativeWeightError):
            solve_local_regression(X, [0.0, 1.0, 2.0], [1.0, -0.5, 1.0], [1.0])

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="matching lengths"):
            solve_local_regression([[0.0], [1.0]], [0.0, 1.0, 2.0], [1.0, 1.0], [0.5])


def test_design_matrix():
    A = design_matrix(np.array([[1.0, 2.0], [3.0, 5.0]]), np.array([1.0, 1.0]))
    np.testing.assert_allclose(A, [[1.0, 0.0, 1.0], [1.0, 2.0, 4.0]])
