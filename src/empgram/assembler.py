"""
Empirical Gramian assembly for state-space Gramian types.

Implements the controllability, observability, cross and linear cross
Gramians. Each algorithm loops over parameter sets, scale sets and
perturbation directions, simulates one trajectory per tuple, centers it,
divides it by the perturbation magnitude and accumulates an inner product.
"""

import numpy as np
import warnings
from dataclasses import replace
from typing import Callable, Dict, List, Tuple

from .centering import center_trajectory
from .config import Centering, GramianType, Normalization
from .errors import ConfigurationError, StructuralError
from .integrators import IntegratorBase, identity_output
from .normalizer import GramianProblem
from .utils_gramian import unit_vector


STATE_GRAMIANS = (GramianType.CONTROLLABILITY, GramianType.OBSERVABILITY,
                  GramianType.CROSS, GramianType.LINEAR_CROSS)


def compute_state_gramian(problem: GramianProblem, integrator: IntegratorBase):
    """
    Compute a controllability, observability, cross or linear cross Gramian.

    Parameters
    ----------
    problem : GramianProblem
        Normalized problem with a state-space Gramian type
    integrator : IntegratorBase
        Trajectory simulator

    Returns
    -------
    W : ndarray
        N x N for controllability and linear cross, (N+A) x (N+A) for
        observability, N x cols for cross (cols = N + A, or the partition
        width). Custom inner products may produce scalars instead.
    """
    kind = problem.kind
    dims = problem.dims
    if kind not in STATE_GRAMIANS:
        raise ConfigurationError(f"{kind.name} is not a state-space Gramian type")

    if kind in (GramianType.CROSS, GramianType.LINEAR_CROSS):
        if dims.inputs != dims.outputs and not problem.config.nonsymmetric_cross:
            raise StructuralError(
                f"{kind.name} Gramian requires a square system, got {dims.inputs} inputs and "
                f"{dims.outputs} outputs; enable nonsymmetric_cross to override")

    _check_scales(problem)

    if kind == GramianType.CROSS and len(partition_columns(problem)) == 0:
        return np.zeros((dims.states, 0))

    if problem.config.normalization != Normalization.NONE:
        problem = _normalize_state_space(problem, integrator)

    algorithms = {
        GramianType.CONTROLLABILITY: _controllability,
        GramianType.OBSERVABILITY: _observability,
        GramianType.CROSS: _cross,
        GramianType.LINEAR_CROSS: _linear_cross,
    }
    return algorithms[kind](problem, integrator)


def partition_columns(problem: GramianProblem) -> range:
    """State columns perturbed by a (possibly partitioned) cross Gramian call."""
    total = problem.dims.total_states
    size = problem.config.partition_size
    if size == 0:
        return range(total)
    start = problem.config.partition_index * size
    return range(min(start, total), min(start + size, total))


def assemble_partitions(blocks: List[np.ndarray]) -> np.ndarray:
    """Join cross Gramian partition blocks, ordered by partition index, into one matrix."""
    return np.hstack([np.asarray(b) for b in blocks])


def _check_scales(problem: GramianProblem):
    kind = problem.kind
    if kind != GramianType.OBSERVABILITY and not np.any(problem.input_scales):
        raise ConfigurationError("Input perturbation scales are all zero")
    if kind != GramianType.CONTROLLABILITY and not np.any(problem.state_scales):
        raise ConfigurationError("State perturbation scales are all zero")


# Closures over the caller's system

def _forced_input(steady: np.ndarray, excitation: Callable, direction: np.ndarray) -> Callable:
    def u(t: float) -> np.ndarray:
        return steady + excitation(t) * direction
    return u


def _observation_input(problem: GramianProblem) -> Callable:
    """Input of observability-side simulations: steady, or steady plus excitation."""
    us = problem.steady_input
    if problem.config.extra_input:
        return _forced_input(us, problem.input_fn, np.ones_like(us))

    def u(t: float) -> np.ndarray:
        return us
    return u


def _scaled_system(f: Callable, g: Callable, tx: np.ndarray, adjoint: bool) -> Tuple[Callable, Callable]:
    """System in coordinates z = x / tx."""
    def f_z(z, u, p, t):
        return np.asarray(f(tx * z, u, p, t), dtype=float) / tx

    if adjoint:
        def g_z(z, u, p, t):
            return tx * np.asarray(g(z / tx, u, p, t), dtype=float)
    else:
        def g_z(z, u, p, t):
            return g(tx * z, u, p, t)

    return f_z, g_z


def _normalize_state_space(problem: GramianProblem, integrator: IntegratorBase) -> GramianProblem:
    """
    Precondition the state space before assembly.

    JACOBI scales each state by the square root of the matching diagonal
    entry of an unnormalized pre-run of the same Gramian; STEADY_STATE
    scales by the steady state. Vanishing scales are replaced by one.
    """
    N = problem.dims.states
    config = problem.config

    if config.normalization == Normalization.JACOBI:
        plain = replace(problem, inner_product=np.matmul,
                        config=replace(config, normalization=Normalization.NONE,
                                       partition_size=0, partition_index=0))
        wt = compute_state_gramian(plain, integrator)
        tx = np.sqrt(np.abs(np.diag(wt)))[:N]
    else:
        tx = np.array(problem.steady_state[:N], dtype=float)

    vanishing = np.abs(tx) < np.sqrt(np.finfo(float).eps)
    if config.normalization == Normalization.JACOBI and np.any(vanishing):
        warnings.warn(f"Jacobi preconditioning found {np.sum(vanishing)} vanishing diagonal "
                      f"entries; those states are left unscaled.")
    tx[vanishing] = 1.0

    f_z, g_z = _scaled_system(problem.f, problem.g, tx,
                              adjoint=problem.kind == GramianType.LINEAR_CROSS)
    xs = problem.steady_state.copy()
    xs[:N] = xs[:N] / tx

    return replace(problem, f=f_z, g=g_z, steady_state=xs,
                   config=replace(config, normalization=Normalization.NONE))


def _split_state(xx: np.ndarray, n_states: int, augmented: int, p: np.ndarray):
    """Initial state and parameter of a (possibly parameter-augmented) state vector."""
    if augmented > 0:
        return xx[:n_states], xx[n_states:]
    return xx, p


def _steady_output(problem: GramianProblem, p: np.ndarray):
    if problem.config.centering != Centering.STEADY:
        return None
    x0, pp = _split_state(problem.steady_state, problem.dims.states, problem.dims.augmented, p)
    return np.asarray(problem.g(x0, problem.steady_input, pp, 0.0), dtype=float).reshape(-1)


def _check_output(y: np.ndarray, expected: int):
    if y.shape[0] != expected:
        raise ConfigurationError(f"Output function returned {y.shape[0]} values, expected {expected}")


def _input_responses(problem: GramianProblem, integrator: IntegratorBase,
                     p: np.ndarray) -> List[Tuple[int, np.ndarray]]:
    """Centered, scaled state responses to every nonzero input perturbation."""
    N = problem.dims.states
    M = problem.dims.inputs
    xs = problem.steady_state[:N]
    um = problem.input_scales
    mode = problem.config.centering

    responses = []
    for c in range(um.shape[1]):
        for m in np.flatnonzero(um[:, c]):
            s = um[m, c]
            u = _forced_input(problem.steady_input, problem.input_fn, unit_vector(m, M, s))
            x = integrator.simulate(problem.f, identity_output, problem.time, xs, u, p)
            x = (x - center_trajectory(x, mode, xs)) / s
            responses.append((m, x))
    return responses


def _state_responses(problem: GramianProblem, integrator: IntegratorBase, p: np.ndarray,
                     d: int, columns) -> Dict[int, np.ndarray]:
    """Centered, scaled output responses to every nonzero state perturbation of scale set d."""
    N = problem.dims.states
    A = problem.dims.augmented
    Q = problem.dims.outputs
    xs = problem.steady_state
    xm = problem.state_scales
    mode = problem.config.centering
    up = _observation_input(problem)
    ybar = _steady_output(problem, p)

    responses = {}
    for j, n in enumerate(columns):
        s = xm[n, d]
        if s == 0:
            continue
        x0, pp = _split_state(xs + unit_vector(n, xs.size, s), N, A, p)
        y = integrator.simulate(problem.f, problem.g, problem.time, x0, up, pp)
        _check_output(y, Q)
        responses[j] = (y - center_trajectory(y, mode, ybar)) / s
    return responses


def _controllability(problem: GramianProblem, integrator: IntegratorBase):
    """Controllability Gramian: W = h / (C K) sum x x^T over input perturbations."""
    dp = problem.inner_product
    C = problem.input_scales.shape[1]
    K = problem.parameters.shape[1]

    W = 0.0
    for k in range(K):
        for _, x in _input_responses(problem, integrator, problem.parameters[:, k]):
            W = W + dp(x, x.T)

    return W * (problem.time.step / (C * K))


def _observability(problem: GramianProblem, integrator: IntegratorBase):
    """Observability Gramian: W = h / (D K) sum O^T O over stacked output responses."""
    dp = problem.inner_product
    total = problem.dims.total_states
    Q = problem.dims.outputs
    L = problem.time.n_samples
    D = problem.state_scales.shape[1]
    K = problem.parameters.shape[1]

    W = 0.0
    for k in range(K):
        p = problem.parameters[:, k]
        for d in range(D):
            o = np.zeros((Q * L, total))
            for n, y in _state_responses(problem, integrator, p, d, range(total)).items():
                o[:, n] = y.reshape(-1)
            W = W + dp(o.T, o)

    return W * (problem.time.step / (D * K))


def _cross(problem: GramianProblem, integrator: IntegratorBase):
    """
    Cross Gramian: W = h / (C D K) sum x_m o_m over input channels m.

    The state responses of scale set d form an L x cols x Q tensor o; input
    channel m pairs with output slice m, or with the sum over all outputs for
    the non-symmetric cross Gramian.
    """
    dp = problem.inner_product
    Q = problem.dims.outputs
    L = problem.time.n_samples
    C = problem.input_scales.shape[1]
    D = problem.state_scales.shape[1]
    K = problem.parameters.shape[1]
    columns = partition_columns(problem)
    nonsymmetric = problem.config.nonsymmetric_cross

    W = 0.0
    for k in range(K):
        p = problem.parameters[:, k]
        inputs = _input_responses(problem, integrator, p)
        for d in range(D):
            o = np.zeros((L, len(columns), Q))
            for j, y in _state_responses(problem, integrator, p, d, columns).items():
                o[:, j, :] = y.T
            if nonsymmetric:
                o_sum = o.sum(axis=2)
            for m, x in inputs:
                W = W + dp(x, o_sum if nonsymmetric else o[:, :, m])

    return W * (problem.time.step / (C * D * K))


def _linear_cross(problem: GramianProblem, integrator: IntegratorBase):
    """
    Linear cross Gramian: W = h / (C D K) sum x_m z_m^T.

    ``problem.g`` is the adjoint vector field; z_q is the adjoint state
    response to a perturbation of dual input channel q.
    """
    dp = problem.inner_product
    N = problem.dims.states
    M = problem.dims.inputs
    Q = problem.dims.outputs
    xs = problem.steady_state[:N]
    xm = problem.state_scales
    C = problem.input_scales.shape[1]
    D = xm.shape[1]
    K = problem.parameters.shape[1]
    mode = problem.config.centering
    nonsymmetric = problem.config.nonsymmetric_cross
    dual_steady = problem.steady_input if Q == M else np.zeros(Q)

    W = 0.0
    for k in range(K):
        p = problem.parameters[:, k]
        inputs = _input_responses(problem, integrator, p)
        for d in range(D):
            duals = {}
            for q in np.flatnonzero(xm[:, d]):
                s = xm[q, d]
                v = _forced_input(dual_steady, problem.dual_input_fn, unit_vector(q, Q, s))
                z = integrator.simulate(problem.g, identity_output, problem.time, xs, v, p)
                duals[q] = (z - center_trajectory(z, mode, xs)) / s
            if not duals:
                continue
            if nonsymmetric:
                z_sum = sum(duals.values())
            for m, x in inputs:
                if nonsymmetric:
                    W = W + dp(x, z_sum.T)
                elif m in duals:
                    W = W + dp(x, duals[m].T)

    return W * (problem.time.step / (C * D * K))
