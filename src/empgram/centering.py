"""
Trajectory centering.

Baselines removed from simulated trajectories so that only the
perturbation-induced deviation enters the Gramian.
"""

import numpy as np
from typing import Optional

from .config import Centering
from .errors import ConfigurationError


def center_trajectory(trajectory: np.ndarray, mode: Centering = Centering.NONE,
                      steady: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Compute the baseline of a trajectory.

    Parameters
    ----------
    trajectory : ndarray, shape (n, L)
        State or output trajectory, one column per time sample
    mode : Centering
        NONE (zeros), STEADY (the given steady value), FINAL (last sample),
        MEAN (temporal mean of absolute values), RMS (temporal root-mean-square)
        or MIDRANGE (half the peak-to-peak spread)
    steady : ndarray, shape (n,), optional
        Steady state or steady output, required for STEADY

    Returns
    -------
    baseline : ndarray, shape (n, 1)
        Baseline, broadcastable against the trajectory
    """
    mode = Centering(mode)
    n = trajectory.shape[0]

    if mode == Centering.STEADY:
        if steady is None:
            raise ConfigurationError("Steady centering requires a steady value")
        baseline = np.asarray(steady, dtype=float).reshape(-1)
    elif mode == Centering.FINAL:
        baseline = trajectory[:, -1]
    elif mode == Centering.MEAN:
        baseline = np.mean(np.abs(trajectory), axis=1)
    elif mode == Centering.RMS:
        baseline = np.sqrt(np.mean(trajectory * trajectory, axis=1))
    elif mode == Centering.MIDRANGE:
        baseline = 0.5 * (trajectory.max(axis=1) - trajectory.min(axis=1))
    else:
        baseline = np.zeros(n)

    return baseline.reshape(n, 1)
