"""
Perturbation scale generation.

Input, state and parameter perturbation magnitudes. Scales are returned as
matrices with one row per perturbed component and one column per scale set.
"""

import numpy as np
from typing import Tuple, Union

from .config import ScaleSpacing, Rotation, ParameterCentering
from .errors import ConfigurationError


SCALE_SEQUENCES = {
    ScaleSpacing.SINGLE: np.array([1.0]),
    ScaleSpacing.LINEAR: np.array([0.25, 0.50, 0.75, 1.0]),
    ScaleSpacing.GEOMETRIC: np.array([0.125, 0.25, 0.5, 1.0]),
    ScaleSpacing.LOGARITHMIC: np.array([0.001, 0.01, 0.1, 1.0]),
    ScaleSpacing.SPARSE: np.array([0.01, 0.50, 0.99, 1.0]),
}


def scales(base: Union[float, np.ndarray], spacing: ScaleSpacing = ScaleSpacing.SINGLE,
           rotation: Rotation = Rotation.UNSIGNED) -> np.ndarray:
    """
    Generate perturbation scales from a base vector.

    Parameters
    ----------
    base : float or ndarray, shape (n,)
        Maximal perturbation magnitude per component
    spacing : ScaleSpacing
        Relative magnitude sequence
    rotation : Rotation
        UNSIGNED prepends the negated sequence, SINGLE keeps it one-sided

    Returns
    -------
    s : ndarray, shape (n, count)
        Outer product of base and sequence; count is 1 or 4, doubled when unsigned
    """
    base = np.atleast_1d(np.asarray(base, dtype=float)).ravel()
    sequence = SCALE_SEQUENCES[ScaleSpacing(spacing)]

    if Rotation(rotation) == Rotation.UNSIGNED:
        sequence = np.concatenate([-sequence, sequence])

    return np.outer(base, sequence)


def parameter_scales(bracket: np.ndarray,
                     centering: ParameterCentering = ParameterCentering.NONE,
                     count: int = 2) -> Tuple[np.ndarray, np.ndarray]:
    """
    Derive nominal parameter and parameter perturbation scales from a bracket.

    Parameters
    ----------
    bracket : ndarray, shape (P, K)
        Parameter samples with K >= 2; the row-wise minimum and maximum span
        the admissible range of each parameter
    centering : ParameterCentering
        NONE: nominal is the minimum, scales spread linearly up to the maximum.
        LINEAR: nominal is the midpoint, scales spread symmetrically around it.
        LOGARITHMIC: nominal is the geometric midpoint, scales spread
        logarithmically (requires positive bounds).
    count : int
        Number of scale columns; a single column reaches the maximum

    Returns
    -------
    nominal : ndarray, shape (P,)
        Nominal parameter
    pm : ndarray, shape (P, count)
        Parameter perturbation scales relative to the nominal parameter
    """
    bracket = np.asarray(bracket, dtype=float)
    if bracket.ndim != 2 or bracket.shape[1] < 2:
        raise ConfigurationError(
            f"Parameter Gramians need a [min, max] parameter bracket with at least two "
            f"columns, got shape {bracket.shape}")
    if count < 1:
        raise ConfigurationError(f"Number of parameter scales must be positive, got {count}")

    pmin = bracket.min(axis=1)
    pmax = bracket.max(axis=1)
    # A single scale column spans the full bracket
    ramp = np.linspace(0.0, 1.0, count) if count > 1 else np.ones(1)

    centering = ParameterCentering(centering)
    if centering == ParameterCentering.LINEAR:
        nominal = 0.5 * (pmax + pmin)
        pm = np.outer(pmax - pmin, ramp) + (pmin - nominal)[:, None]

    elif centering == ParameterCentering.LOGARITHMIC:
        if np.any(pmin <= 0):
            raise ConfigurationError("Logarithmic parameter centering requires positive parameter bounds, "
                                     f"got minimum {pmin.tolist()}")
        lmin = np.log(pmin)
        lmax = np.log(pmax)
        nominal = np.exp(0.5 * (lmax + lmin))
        pm = np.exp(np.outer(lmax - lmin, ramp) + lmin[:, None]) - nominal[:, None]

    else:
        nominal = pmin
        pm = np.outer(pmax - pmin, ramp)

    return nominal, pm
