"""
Excitation inputs for Gramian simulations.

Every excitation is a callable ``u(t) -> ndarray, shape (M,)``. Built-in
choices are selected by scalar shorthands: ``0`` for pseudorandom binary
forcing, ``inf`` for an exponential chirp, any other scalar for a delta
impulse of that area.
"""

import numpy as np
from typing import Callable, Optional, Union

from .config import TimeGrid
from .errors import ConfigurationError


InputFunction = Callable[[float], np.ndarray]


def impulse_input(n_inputs: int, step: float, area: float = 1.0) -> InputFunction:
    """Discretized delta impulse: height ``area / step`` during the first time step."""
    height = np.full(n_inputs, area / step)
    zero = np.zeros(n_inputs)

    def u(t: float) -> np.ndarray:
        return height if t < step else zero

    return u


def chirp_input(n_inputs: int, step: float, horizon: float) -> InputFunction:
    """
    Exponential chirp sweeping from low to high frequency over the horizon.

    The instantaneous frequency grows geometrically from ``1 / horizon`` to
    ``0.1 / step``; the signal ``0.5 cos(phase) + 0.5`` stays in [0, 1].
    """
    duration = horizon if horizon > 0 else step
    f0 = 1.0 / duration
    f1 = max(0.1 / step, f0)
    rate = np.log(f1 / f0) / duration
    ones = np.ones(n_inputs)

    def u(t: float) -> np.ndarray:
        if rate > 0:
            phase = 2.0 * np.pi * f0 * np.expm1(rate * t) / rate
        else:
            phase = 2.0 * np.pi * f0 * t
        return (0.5 * np.cos(phase) + 0.5) * ones

    return u


def sampled_input(samples: np.ndarray, step: float) -> InputFunction:
    """Piecewise-constant input from an (M, L) array of per-sample values."""
    samples = np.asarray(samples, dtype=float)
    last = samples.shape[1] - 1

    def u(t: float) -> np.ndarray:
        return samples[:, min(max(int(np.floor(t / step)), 0), last)]

    return u


def prbs_input(n_inputs: int, time: TimeGrid,
               rng: Optional[Union[int, np.random.Generator]] = None) -> InputFunction:
    """
    Pseudorandom binary input.

    One Bernoulli(0.5) draw per input channel and time sample, drawn once when
    the input is built. Pass a seed or ``numpy.random.Generator`` for
    reproducible draws.
    """
    rng = np.random.default_rng(rng)
    table = rng.integers(0, 2, size=(n_inputs, time.n_samples)).astype(float)
    return sampled_input(table, time.step)


def build_input(source: Union[float, np.ndarray, InputFunction], n_inputs: int, time: TimeGrid,
                rng: Optional[Union[int, np.random.Generator]] = None) -> InputFunction:
    """
    Resolve an excitation specification into an input function.

    Parameters
    ----------
    source : float, ndarray or callable
        Scalar shorthand (0: pseudorandom binary, inf: chirp, a: impulse of
        area a), an (M, L) array of samples (the last column is held beyond
        its end), or a callable ``t -> (M,)``
    n_inputs : int
        Number of input channels M
    time : TimeGrid
        Time discretization
    rng : int or Generator, optional
        Randomness source for the pseudorandom binary input

    Returns
    -------
    u : callable
        Input function ``u(t) -> ndarray, shape (M,)``
    """
    if callable(source):
        probe = np.atleast_1d(np.asarray(source(0.0), dtype=float)).ravel()
        if probe.size not in (1, n_inputs):
            raise ConfigurationError(f"Input function returns {probe.size} values, expected {n_inputs}")
        ones = np.ones(n_inputs)

        def u(t: float) -> np.ndarray:
            return ones * np.asarray(source(t), dtype=float).reshape(-1)

        return u

    values = np.asarray(source, dtype=float)
    if values.ndim == 0 or values.size == 1:
        value = float(values.reshape(-1)[0])
        if value == 0.0:
            return prbs_input(n_inputs, time, rng)
        if np.isinf(value):
            return chirp_input(n_inputs, time.step, time.horizon)
        return impulse_input(n_inputs, time.step, value)

    if values.ndim == 1:
        values = values.reshape(-1, 1)
    if values.shape[0] != n_inputs:
        raise ConfigurationError(f"Input samples have {values.shape[0]} rows, expected {n_inputs}")
    return sampled_input(values, time.step)
