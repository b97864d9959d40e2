"""
Empirical Gramian analyzer.

Entry point that normalizes arguments, dispatches to the state-space
assembler or the parameter composition layer and wraps the result.
"""

import numpy as np
from typing import Callable, Optional, Sequence, Union

from .assembler import compute_state_gramian
from .composition import compute_parameter_gramian
from .config import GramianConfig, GramianType, SystemDims, TimeGrid
from .integrators import IntegratorBase, SSPRK2Integrator
from .normalizer import InnerProduct, normalize_arguments
from .results import GramianResult, ParameterGramian, StateGramian


class GramianAnalyzer:
    """
    Empirical Gramian analyzer.

    Holds the options, the integrator and the inner product shared by all
    computations run through it.

    Parameters
    ----------
    config : GramianConfig or flag sequence, optional
        Options, default all zero
    integrator : IntegratorBase, optional
        Trajectory simulator, default ``SSPRK2Integrator(stages=3)``
    inner_product : callable, optional
        Accumulation kernel, default matrix product
    """

    def __init__(self, config: Optional[Union[GramianConfig, Sequence[int]]] = None,
                 integrator: Optional[IntegratorBase] = None,
                 inner_product: Optional[InnerProduct] = None):
        if not isinstance(config, GramianConfig):
            config = GramianConfig.from_flags(config)
        self.config = config
        self.integrator = integrator if integrator is not None else SSPRK2Integrator(stages=3)
        self.inner_product = inner_product

    def compute(self, f: Callable, g, dims: Union[SystemDims, Sequence[int]],
                time: Union[TimeGrid, Sequence[float]], kind: Union[str, GramianType],
                parameters=0.0, input_fn=1.0, steady_input=0.0, steady_state=0.0,
                input_scales=1.0, state_scales=1.0,
                rng: Optional[Union[int, np.random.Generator]] = None) -> GramianResult:
        """
        Compute one empirical Gramian.

        Parameters
        ----------
        f : callable
            Vector field ``f(x, u, p, t)``
        g : callable or None
            Output function ``g(x, u, p, t)``, None for the identity; the
            adjoint vector field for the linear cross Gramian
        dims : SystemDims or sequence
            ``[M, N]``, ``[M, N, Q]`` or ``[M, N, Q, A]``
        time : TimeGrid or sequence
            ``[step, horizon]``
        kind : str or GramianType
            'c', 'o', 'x', 'y', 's', 'i' or 'j'
        parameters : float or ndarray
            Parameter (P,) or parameter sets (P, K); a [min, max] bracket for
            parameter Gramians
        input_fn : float, ndarray or callable
            Excitation; 1 is a unit impulse
        steady_input, steady_state : float or ndarray
            Operating point
        input_scales, state_scales : float or ndarray
            Perturbation scales
        rng : int or Generator, optional
            Randomness of the pseudorandom binary excitation

        Returns
        -------
        GramianResult
            ``StateGramian`` for c/o/x/y, ``ParameterGramian`` for s/i/j
        """
        problem = normalize_arguments(
            f, g, dims, time, kind, parameters=parameters, config=self.config,
            input_fn=input_fn, steady_input=steady_input, steady_state=steady_state,
            input_scales=input_scales, state_scales=state_scales,
            inner_product=self.inner_product, rng=rng)

        if problem.kind.is_parameter_gramian:
            state, parameter = compute_parameter_gramian(problem, self.integrator)
            return ParameterGramian(problem.kind, state, parameter, config=self.config)

        matrix = compute_state_gramian(problem, self.integrator)
        return StateGramian(problem.kind, matrix, config=self.config)


def empirical_gramian(f: Callable, g, dims: Union[SystemDims, Sequence[int]],
                      time: Union[TimeGrid, Sequence[float]], kind: Union[str, GramianType],
                      parameters=0.0, options: Optional[Union[GramianConfig, Sequence[int]]] = None,
                      input_fn=1.0, steady_input=0.0, steady_state=0.0,
                      input_scales=1.0, state_scales=1.0,
                      inner_product: Optional[InnerProduct] = None,
                      integrator: Optional[IntegratorBase] = None,
                      rng: Optional[Union[int, np.random.Generator]] = None) -> GramianResult:
    """
    Convenience function computing one empirical Gramian.

    Examples
    --------
    >>> A = np.array([[-1.0, 0.0], [0.0, -2.0]])
    >>> f = lambda x, u, p, t: A @ x + u[0]
    >>> g = lambda x, u, p, t: np.array([x.sum()])
    >>> result = empirical_gramian(f, g, [1, 2, 1], [0.01, 10.0], 'c')
    >>> result.matrix.shape
    (2, 2)
    """
    analyzer = GramianAnalyzer(options, integrator=integrator, inner_product=inner_product)
    return analyzer.compute(f, g, dims, time, kind, parameters=parameters, input_fn=input_fn,
                            steady_input=steady_input, steady_state=steady_state,
                            input_scales=input_scales, state_scales=state_scales, rng=rng)
