"""
Weighted least-squares fit of a local linear model.

For a query location ``x`` with neighbors ``X`` (k, d), values ``z`` (k,) and
weights ``w`` (k,), the local model is fitted by solving the weighted normal
equations

    (A^T W A) theta = A^T W z,    A = [1 | X - x]

Coordinates are centred on the query location, so the mean estimate is the
intercept ``theta[0]``. The influence vector

    r = W A (A^T W A)^{-1} e_1

holds the linear weight each neighbor value receives in the estimate
(``mean == r @ z``); its Euclidean norm is reported as the uncertainty.
Centring does not change the fitted hyperplane or ``r``; it only improves the
conditioning of the normal matrix.
"""

from dataclasses import dataclass

import numpy as np
from scipy.linalg import LinAlgError, lu_factor, lu_solve

from .exceptions import NegativeWeightError, SingularSystemError

# Upper bound on the condition number of the diagonally scaled normal matrix
MAX_CONDITION_NUMBER = 1e12


@dataclass(frozen=True)
class LocalEstimate:
    """Result of one local regression."""

    mean: float
    uncertainty: float
    coefficients: np.ndarray
    influence: np.ndarray


def design_matrix(X: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Intercept column followed by neighbor coordinates centred on ``x``."""
    X = np.asarray(X, dtype=float)
    return np.column_stack([np.ones(X.shape[0]), X - x])


def _check_conditioning(normal: np.ndarray, k: int):
    """
    Reject singular or ill-conditioned normal matrices.

    The condition number is measured after symmetric diagonal scaling, which
    makes it independent of the units of each coordinate.
    """
    diag = np.diag(normal)
    if not np.all(np.isfinite(normal)) or np.any(diag <= 0):
        raise SingularSystemError(
            f"Weighted normal matrix is singular: {k} neighbors with zero weight "
            f"or no spread along some coordinate"
        )
    scale = 1.0 / np.sqrt(diag)
    cond = np.linalg.cond(normal * np.outer(scale, scale))
    if not np.isfinite(cond) or cond > MAX_CONDITION_NUMBER:
        raise SingularSystemError(
            f"Weighted normal matrix is singular or ill-conditioned "
            f"(scaled condition number {cond:.3g}, {k} neighbors in {normal.shape[0] - 1} dimensions)"
        )


def solve_local_regression(X, z, w, x) -> LocalEstimate:
    """
    Fit a weighted local linear model and evaluate it at the query location.

    Parameters
    ----------
    X : array-like
        Neighbor coordinates of shape (k, d)
    z : array-like
        Neighbor values of shape (k,)
    w : array-like
        Non-negative neighbor weights of shape (k,)
    x : array-like
        Query location of shape (d,)

    Returns
    -------
    LocalEstimate
        Mean, uncertainty, fitted coefficients (intercept first, slopes with
        respect to centred coordinates) and influence vector

    Raises
    ------
    NegativeWeightError
        If any weight is negative
    SingularSystemError
        If the weighted normal matrix is singular or ill-conditioned
    """
    x = np.asarray(x, dtype=float).ravel()
    X = np.asarray(X, dtype=float).reshape(-1, x.size)
    z = np.asarray(z, dtype=float).ravel()
    w = np.asarray(w, dtype=float).ravel()

    k = X.shape[0]
    if z.shape[0] != k or w.shape[0] != k:
        raise ValueError(
            f"X, z and w must have matching lengths, got {k}, {z.shape[0]} and {w.shape[0]}"
        )
    if np.any(w < 0):
        raise NegativeWeightError(
            f"Kernel weights must be non-negative, got minimum {w.min():.6g}"
        )

    A = design_matrix(X, x)
    WA = w[:, np.newaxis] * A
    normal = A.T @ WA

    _check_conditioning(normal, k)

    try:
        factor = lu_factor(normal, check_finite=True)
    except (LinAlgError, ValueError) as err:
        raise SingularSystemError(f"Failed to factor weighted normal matrix: {err}") from err

    theta = lu_solve(factor, WA.T @ z)

    x_aug = np.zeros(x.size + 1)
    x_aug[0] = 1.0
    influence = WA @ lu_solve(factor, x_aug)

    return LocalEstimate(
        mean=float(theta @ x_aug),
        uncertainty=float(np.linalg.norm(influence)),
        coefficients=theta,
        influence=influence,
    )
