"""
Argument normalization for empirical Gramian computation.

Turns loosely specified user arguments (scalars, vectors, flag vectors, type
codes) into a fully shaped ``GramianProblem`` that the assembler and the
composition layer consume without further checks.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from .config import GramianConfig, GramianType, SystemDims, TimeGrid
from .errors import ConfigurationError
from .excitation import InputFunction, build_input
from .integrators import identity_output
from .scales import scales


InnerProduct = Callable[[np.ndarray, np.ndarray], Any]


@dataclass
class GramianProblem:
    """Fully shaped arguments of one Gramian computation."""

    f: Callable
    g: Callable
    kind: GramianType
    dims: SystemDims
    time: TimeGrid
    parameters: np.ndarray                   # (P, K)
    config: GramianConfig
    input_fn: InputFunction                  # t -> (M,)
    steady_input: np.ndarray                 # (M,)
    steady_state: np.ndarray                 # (N + A,)
    input_scales: np.ndarray                 # (M, C)
    state_scales: np.ndarray                 # (N + A, D), (Q, D) for the linear cross Gramian
    inner_product: InnerProduct = np.matmul
    dual_input_fn: Optional[InputFunction] = None   # t -> (Q,), linear cross Gramian only


def _is_lazy_output(g) -> bool:
    if g is None:
        return True
    return not callable(g) and np.isscalar(g) and g == 1


def _broadcast_vector(value, size: int, name: str) -> np.ndarray:
    """Broadcast a scalar to a vector of given size, or check a vector's size."""
    v = np.atleast_1d(np.asarray(value, dtype=float)).ravel()
    if v.size == 1:
        return np.full(size, v[0])
    if v.size != size:
        raise ConfigurationError(f"{name} has {v.size} entries, expected {size}")
    return v


def _expand_scales(value, size: int, spacing, rotation, name: str) -> np.ndarray:
    """Expand scalar or vector scales through the scale generator; matrices are used as given."""
    s = np.asarray(value, dtype=float)
    if s.ndim == 2:
        if s.shape[0] != size:
            raise ConfigurationError(f"{name} matrix has {s.shape[0]} rows, expected {size}")
        return s
    if s.ndim > 2:
        raise ConfigurationError(f"{name} must be a scalar, vector or matrix, got {s.ndim} dimensions")
    return scales(_broadcast_vector(s, size, name), spacing, rotation)


def _parameter_matrix(parameters) -> np.ndarray:
    pr = np.asarray(parameters, dtype=float)
    if pr.ndim == 0:
        return pr.reshape(1, 1)
    if pr.ndim == 1:
        return pr.reshape(-1, 1)
    if pr.ndim == 2:
        return pr
    raise ConfigurationError(f"Parameters must be a scalar, vector or matrix, got {pr.ndim} dimensions")


def normalize_arguments(f: Callable, g, dims: Union[SystemDims, Sequence[int]],
                        time: Union[TimeGrid, Sequence[float]], kind: Union[str, GramianType],
                        parameters=0.0, config: Optional[Union[GramianConfig, Sequence[int]]] = None,
                        input_fn=1.0, steady_input=0.0, steady_state=0.0,
                        input_scales=1.0, state_scales=1.0,
                        inner_product: Optional[InnerProduct] = None,
                        rng: Optional[Union[int, np.random.Generator]] = None) -> GramianProblem:
    """
    Validate and shape the arguments of a Gramian computation.

    Parameters
    ----------
    f : callable
        Vector field ``f(x, u, p, t)``; for the linear cross Gramian ``g`` is
        the adjoint vector field
    g : callable or None
        Output function ``g(x, u, p, t)``; None (or 1) requests the identity
        output with Q = N
    dims : SystemDims or sequence
        ``[M, N]``, ``[M, N, Q]`` or ``[M, N, Q, A]``
    time : TimeGrid or sequence
        ``[step, horizon]``
    kind : str or GramianType
        Gramian type code
    parameters : float or ndarray, shape (P,) or (P, K)
        Parameter sets, one per column
    config : GramianConfig or flag sequence, optional
        Options; flag vectors are zero padded to twelve entries
    input_fn : float, ndarray or callable
        Excitation (see ``excitation.build_input``)
    steady_input, steady_state : float or ndarray
        Steady input (M,) and steady / initial state (N + A,)
    input_scales, state_scales : float, ndarray (n,) or ndarray (n, count)
        Perturbation scales; scalars and vectors go through the scale generator
    inner_product : callable, optional
        Accumulation kernel ``(A, B) -> matrix or scalar``, default matrix product
    rng : int or Generator, optional
        Randomness source of the pseudorandom binary excitation

    Returns
    -------
    GramianProblem
        Fully shaped problem
    """
    kind = GramianType.parse(kind)
    dims = SystemDims.from_sequence(dims)
    time = TimeGrid.from_sequence(time)
    if config is None or not isinstance(config, GramianConfig):
        config = GramianConfig.from_flags(config)

    if not callable(f):
        raise ConfigurationError("Vector field f must be callable")

    if _is_lazy_output(g):
        if kind == GramianType.LINEAR_CROSS:
            raise ConfigurationError("Linear cross Gramian requires the adjoint vector field as g")
        g = identity_output
        dims = SystemDims(dims.inputs, dims.states, dims.states, dims.augmented)
    elif not callable(g):
        raise ConfigurationError("Output function g must be callable, None or 1")

    if kind.is_parameter_gramian and dims.augmented > 0:
        raise ConfigurationError(f"Parameter Gramians augment the state themselves; "
                                 f"got {dims.augmented} augmented parameter-states")

    M, Q = dims.inputs, dims.outputs
    total = dims.total_states
    pr = _parameter_matrix(parameters)

    u = build_input(input_fn, M, time, rng)
    dual_u = None
    if kind == GramianType.LINEAR_CROSS:
        if Q == M:
            dual_u = u
        elif not callable(input_fn) and np.size(input_fn) == 1:
            dual_u = build_input(input_fn, Q, time, rng)
        else:
            raise ConfigurationError(f"Non-square linear cross Gramian ({M} inputs, {Q} outputs) "
                                     f"needs a scalar excitation shorthand")

    us = _broadcast_vector(steady_input, M, "Steady input")
    xs = _broadcast_vector(steady_state, total, "Steady state")

    um = _expand_scales(input_scales, M, config.input_spacing, config.input_rotation,
                        "Input scales")
    xm_rows = Q if kind == GramianType.LINEAR_CROSS else total
    xm = _expand_scales(state_scales, xm_rows, config.state_spacing, config.state_rotation,
                        "State scales")

    return GramianProblem(
        f=f, g=g, kind=kind, dims=dims, time=time, parameters=pr, config=config,
        input_fn=u, steady_input=us, steady_state=xs, input_scales=um, state_scales=xm,
        inner_product=inner_product if inner_product is not None else np.matmul,
        dual_input_fn=dual_u
    )
