"""
Utilities for empirical Gramian computation.

Small helpers for perturbation directions and cheap matrix inversion.
"""

import numpy as np
import warnings


def unit_vector(index: int, size: int, value: float = 1.0) -> np.ndarray:
    """Dense vector of length ``size`` holding ``value`` at ``index`` and zeros elsewhere."""
    e = np.zeros(size)
    e[index] = value
    return e


def safe_reciprocal(x: np.ndarray, eps: float = 0.0) -> np.ndarray:
    """Elementwise reciprocal, mapping entries with ``|x| <= eps`` to zero."""
    x = np.asarray(x, dtype=float)
    singular = np.abs(x) <= eps
    with np.errstate(divide='ignore', invalid='ignore'):
        result = 1.0 / x
    result[singular] = 0.0
    return result


def approximate_inverse(m: np.ndarray) -> np.ndarray:
    """
    Approximate inverse of a diagonally dominant matrix.

    With D = diag(m), the first order expansion
    m^-1 ~ D^-1 - D^-1 (m - D) D^-1
    is evaluated at quadratic cost, so that X_ij = -m_ij / (m_ii m_jj) off the
    diagonal and X_ii = 1 / m_ii. The result is exact for diagonal matrices
    and only an approximation otherwise.

    Parameters
    ----------
    m : ndarray, shape (n, n)
        Square matrix with non-vanishing diagonal

    Returns
    -------
    x : ndarray, shape (n, n)
        Approximate inverse
    """
    m = np.asarray(m, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise ValueError(f"Approximate inverse requires a square matrix, got shape {m.shape}")

    diagonal = np.diag(m)
    if np.any(diagonal == 0):
        warnings.warn(f"Matrix has {np.sum(diagonal == 0)} zero diagonal entries; "
                      f"their reciprocals are set to zero.")
    d = safe_reciprocal(diagonal)

    x = -(d[:, None] * m * d[None, :])
    np.fill_diagonal(x, d)
    return x
