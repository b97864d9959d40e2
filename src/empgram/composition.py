"""
Parameter Gramians built on top of the state-space Gramians.

The sensitivity Gramian folds each parameter into an extra input channel,
the identifiability and joint Gramians augment the state with the
parameters. Each computes one level of state-space Gramians and splits the
result into a state block and a parameter block.
"""

import numpy as np
from dataclasses import replace
from scipy import linalg
from typing import Callable, Tuple

from .assembler import compute_state_gramian
from .config import GramianType, SystemDims
from .errors import ConfigurationError, StructuralError
from .excitation import impulse_input
from .integrators import IntegratorBase
from .normalizer import GramianProblem
from .scales import parameter_scales
from .utils_gramian import approximate_inverse


def compute_parameter_gramian(problem: GramianProblem,
                              integrator: IntegratorBase) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute a sensitivity, identifiability or joint Gramian.

    Parameters
    ----------
    problem : GramianProblem
        Normalized problem with a parameter Gramian type; ``problem.parameters``
        is a P x K bracket with K >= 2
    integrator : IntegratorBase
        Trajectory simulator

    Returns
    -------
    state : ndarray
        Controllability, observability or cross Gramian (N x N)
    parameter : ndarray
        Sensitivity (diagonal), identifiability or cross-identifiability
        Gramian (P x P)
    """
    algorithms = {
        GramianType.SENSITIVITY: _sensitivity,
        GramianType.IDENTIFIABILITY: _identifiability,
        GramianType.JOINT: _joint,
    }
    if problem.kind not in algorithms:
        raise ConfigurationError(f"{problem.kind.name} is not a parameter Gramian type")
    return algorithms[problem.kind](problem, integrator)


def split_joint_gramian(v: np.ndarray, n_states: int, exact: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split an augmented cross Gramian into cross and cross-identifiability Gramians.

    Parameters
    ----------
    v : ndarray, shape (N, N + P)
        Cross Gramian of the parameter-augmented system, e.g. assembled from
        partitions with ``assemble_partitions``
    n_states : int
        Number of states N
    exact : bool, default=False
        Use an exact solve instead of the approximate inverse for the Schur
        complement of the symmetric part

    Returns
    -------
    wx : ndarray, shape (N, N)
        Cross Gramian
    wi : ndarray, shape (P, P)
        Cross-identifiability Gramian -0.5 WM^T (W + W^T)^-1 WM
    """
    v = np.asarray(v, dtype=float)
    wx = v[:, :n_states]
    wm = v[:, n_states:]
    symmetric = wx + wx.T

    if exact:
        wi = -0.5 * wm.T @ linalg.solve(symmetric, wm)
    else:
        wi = -0.5 * wm.T @ approximate_inverse(symmetric) @ wm

    return wx, wi


def _check_variant(variant: int, kind: GramianType):
    if variant not in (0, 1):
        raise ConfigurationError(f"parameter_variant {variant} is only defined for the sensitivity Gramian; "
                                 f"{kind.name} accepts 0 or 1")


def _nominal_problem(problem: GramianProblem, kind: GramianType, nominal: np.ndarray) -> GramianProblem:
    return replace(problem, kind=kind, parameters=nominal.reshape(-1, 1))


def _augmented_problem(problem: GramianProblem, kind: GramianType, nominal: np.ndarray,
                       pm: np.ndarray) -> GramianProblem:
    """Problem over the state augmented with the parameters as constant states."""
    dims = problem.dims
    return replace(problem, kind=kind,
                   dims=SystemDims(dims.inputs, dims.states, dims.outputs, nominal.size),
                   parameters=nominal.reshape(-1, 1),
                   steady_state=np.concatenate([problem.steady_state, nominal]),
                   state_scales=np.vstack([problem.state_scales, pm]))


def _parameter_input_system(f: Callable, g: Callable, steady_input: np.ndarray,
                            nominal: np.ndarray) -> Tuple[Callable, Callable]:
    """System whose single input channel perturbs the parameter direction passed as p."""
    def f_p(x, u, e, t):
        return f(x, steady_input, nominal + e * u[0], t)

    def g_p(x, u, e, t):
        return g(x, steady_input, nominal + e * u[0], t)

    return f_p, g_p


def _sensitivity(problem: GramianProblem, integrator: IntegratorBase):
    """
    Sensitivity Gramian.

    Every parameter is treated as an additional input: one single-input
    controllability Gramian V_p per parameter, perturbed by that parameter's
    scales, is reduced to its trace, or to trace(V_p Wo) for the input-output
    variant (``parameter_variant = 2``). The averaged variant
    (``parameter_variant = 1``) subtracts the mean of the diagonal.

    The state part is the controllability Gramian plus every V_p, the
    controllability Gramian of the system with parameters as inputs.
    """
    config = problem.config
    N = problem.dims.states
    C = problem.input_scales.shape[1]
    nominal, pm = parameter_scales(problem.parameters, config.parameter_centering, C)
    P = nominal.size

    wc = compute_state_gramian(_nominal_problem(problem, GramianType.CONTROLLABILITY, nominal),
                               integrator)

    wo = None
    if config.parameter_variant == 2:
        wo = compute_state_gramian(
            replace(_nominal_problem(problem, GramianType.OBSERVABILITY, nominal),
                    inner_product=np.matmul),
            integrator)
        wo = np.asarray(wo)[:N, :N]

    f_p, g_p = _parameter_input_system(problem.f, problem.g, problem.steady_input, nominal)
    ws = np.zeros(P)
    vsum = np.zeros((N, N))
    for p in range(P):
        if not np.any(pm[p]):
            raise ConfigurationError(f"Parameter {p} has an empty bracket; its perturbation scales are all zero")
        direction = np.zeros((P, 1))
        direction[p] = 1.0
        sub = replace(problem, f=f_p, g=g_p, kind=GramianType.CONTROLLABILITY,
                      dims=SystemDims(1, N, problem.dims.outputs),
                      parameters=direction,
                      input_fn=impulse_input(1, problem.time.step),
                      steady_input=np.zeros(1),
                      input_scales=pm[p:p + 1, :],
                      inner_product=np.matmul)
        vp = np.asarray(compute_state_gramian(sub, integrator))
        ws[p] = np.trace(vp @ wo) if wo is not None else np.trace(vp)
        vsum = vsum + vp

    if config.parameter_variant == 1:
        ws = ws - ws.mean()

    # Custom inner products may reduce the state part to a non-matrix value
    if np.shape(wc) == (N, N):
        wc = wc + vsum

    return wc, np.diag(ws)


def _identifiability(problem: GramianProblem, integrator: IntegratorBase):
    """
    Identifiability Gramian from the observability Gramian of the augmented system.

    With ``parameter_variant = 1`` the parameter block is replaced by its
    approximate Schur complement against the state block.
    """
    config = problem.config
    _check_variant(config.parameter_variant, GramianType.IDENTIFIABILITY)
    N = problem.dims.states
    D = problem.state_scales.shape[1]
    nominal, pm = parameter_scales(problem.parameters, config.parameter_centering, D)

    v = np.asarray(compute_state_gramian(
        _augmented_problem(problem, GramianType.OBSERVABILITY, nominal, pm), integrator))
    wo = v[:N, :N]
    wi = v[N:, N:]

    if config.parameter_variant == 1:
        wi = wi - v[N:, :N] @ approximate_inverse(wo) @ v[:N, N:]

    return wo, wi


def _joint(problem: GramianProblem, integrator: IntegratorBase):
    """Joint Gramian from the cross Gramian of the augmented system."""
    config = problem.config
    _check_variant(config.parameter_variant, GramianType.JOINT)
    dims = problem.dims
    if dims.inputs != dims.outputs and not config.nonsymmetric_cross:
        raise StructuralError(
            f"JOINT Gramian requires a square system, got {dims.inputs} inputs and "
            f"{dims.outputs} outputs; enable nonsymmetric_cross to override")
    if config.partition_size > 0:
        raise ConfigurationError("Joint Gramian cannot be partitioned; compute partitioned "
                                 "augmented cross Gramians and apply split_joint_gramian")

    D = problem.state_scales.shape[1]
    nominal, pm = parameter_scales(problem.parameters, config.parameter_centering, D)

    v = compute_state_gramian(_augmented_problem(problem, GramianType.CROSS, nominal, pm), integrator)
    return split_joint_gramian(v, dims.states, exact=config.parameter_variant == 1)
