"""
Diagnostics for empirical Gramians.

Spectra and projection bases for model reduction, system invariants and
sanity checks of computed Gramians.
"""

import numpy as np
import warnings
from dataclasses import dataclass
from scipy.linalg import eigvals, svd, svdvals
from typing import Any, Dict

from .config import GramianType
from .errors import ConfigurationError
from .results import GramianResult, ParameterGramian


@dataclass
class GramianSpectrum:
    """Singular value decomposition of a Gramian, ordered by decreasing energy."""
    singular_values: np.ndarray
    basis: np.ndarray
    energy: np.ndarray


def symmetric_part(W: np.ndarray) -> np.ndarray:
    """Symmetric part 0.5 (W + W^T)."""
    W = np.asarray(W, dtype=float)
    return 0.5 * (W + W.T)


def gramian_spectrum(W: np.ndarray) -> GramianSpectrum:
    """
    Spectrum of a state Gramian for projection-based reduction.

    Parameters
    ----------
    W : ndarray, shape (n, m)
        Controllability, observability or (square part of a) cross Gramian

    Returns
    -------
    GramianSpectrum
        Singular values (descending), left singular vectors as columns and
        the cumulative fraction of the singular value sum captured by the
        leading vectors
    """
    W = np.atleast_2d(np.asarray(W, dtype=float))
    U, values, _ = svd(W)
    total = np.sum(values)
    energy = np.cumsum(values) / total if total > 0 else np.ones_like(values)
    return GramianSpectrum(singular_values=values, basis=U[:, :values.size], energy=energy)


def reduction_order(singular_values: np.ndarray, tolerance: float = 1e-6) -> int:
    """
    Smallest order whose truncated tail holds at most ``tolerance`` of the total.

    Returns 0 for an all-zero spectrum.
    """
    if not 0 <= tolerance < 1:
        raise ConfigurationError(f"Reduction tolerance must be in [0, 1), got {tolerance}")
    values = np.sort(np.abs(np.asarray(singular_values, dtype=float)))[::-1]
    total = np.sum(values)
    if total == 0:
        return 0
    # tail[r] is the sum of values[r:]
    tail = np.concatenate([np.cumsum(values[::-1])[::-1], [0.0]])
    return int(np.flatnonzero(tail <= tolerance * total)[0])


def projection_basis(W: np.ndarray, order: int) -> np.ndarray:
    """Orthonormal N x order basis of the dominant subspace of a Gramian."""
    spectrum = gramian_spectrum(W)
    if not 0 <= order <= spectrum.basis.shape[1]:
        raise ConfigurationError(f"Reduced order must be between 0 and {spectrum.basis.shape[1]}, "
                                 f"got {order}")
    return spectrum.basis[:, :order]


def hankel_singular_values(Wc: np.ndarray, Wo: np.ndarray) -> np.ndarray:
    """Hankel singular values sqrt(eig(Wc Wo)), sorted descending."""
    Wo = np.asarray(Wo, dtype=float)
    n = np.asarray(Wc).shape[0]
    values = np.real(eigvals(np.asarray(Wc, dtype=float) @ Wo[:n, :n]))
    return np.sort(np.sqrt(np.maximum(values, 0)))[::-1]


def cross_gramian_singular_values(Wx: np.ndarray) -> np.ndarray:
    """Singular values of the (square part of the) cross Gramian, sorted descending."""
    Wx = np.asarray(Wx, dtype=float)
    n = Wx.shape[0]
    return svdvals(Wx[:, :n])


def validate_gramian(result: GramianResult, tolerance: float = 1e-10) -> Dict[str, Any]:
    """
    Validate a Gramian result and provide diagnostics.

    Controllability and observability Gramians (including the state parts of
    sensitivity and identifiability Gramians) are checked for symmetry and
    positive semidefiniteness, every matrix for finiteness, and the
    sensitivity diagonal for non-negativity. An averaged sensitivity diagonal
    (``parameter_variant = 1``) is mean-centered and exempt from the sign and
    definiteness checks.

    Returns
    -------
    validation_info : dict
        ``valid``, ``warnings``, ``errors`` and ``summary``
    """
    validation = {
        'valid': True,
        'warnings': [],
        'errors': [],
        'summary': {}
    }

    symmetric_kinds = (GramianType.CONTROLLABILITY, GramianType.OBSERVABILITY,
                       GramianType.SENSITIVITY, GramianType.IDENTIFIABILITY)
    names = ('state', 'parameter') if isinstance(result, ParameterGramian) else ('matrix',)
    averaged = (result.kind == GramianType.SENSITIVITY and result.config is not None
                and result.config.parameter_variant == 1)

    for name, W in zip(names, result.matrices):
        W = np.atleast_2d(np.asarray(W, dtype=float))

        if not np.all(np.isfinite(W)):
            validation['errors'].append(f"{result.kind.name} {name} has non-finite entries")
            validation['valid'] = False
            continue

        if averaged and name == 'parameter':
            continue

        if result.kind in symmetric_kinds and W.shape[0] == W.shape[1] and W.size > 0:
            scale = max(np.max(np.abs(W)), 1.0)
            symmetry_error = np.max(np.abs(W - W.T))
            if symmetry_error > tolerance * scale:
                validation['warnings'].append(
                    f"{result.kind.name} {name} not symmetric (error: {symmetry_error:.2e})")

            min_eigenval = np.min(np.real(eigvals(symmetric_part(W))))
            if min_eigenval < -tolerance * scale:
                validation['warnings'].append(
                    f"{result.kind.name} {name} not PSD (min λ: {min_eigenval:.2e})")

    if result.kind == GramianType.SENSITIVITY and not averaged:
        diagonal = np.diag(np.atleast_2d(result.parameter))
        if np.any(diagonal < 0):
            validation['errors'].append(f"Sensitivity diagonal has negative entries: {diagonal.tolist()}")
            validation['valid'] = False

    for message in validation['warnings']:
        warnings.warn(message)

    validation['summary'] = {
        'kind': result.kind.name,
        'shapes': [np.shape(W) for W in result.matrices],
        'total_warnings': len(validation['warnings']),
        'total_errors': len(validation['errors'])
    }

    return validation
