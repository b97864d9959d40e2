"""
Trajectory simulators for empirical Gramians.

All integrators share one contract,

    simulate(f, g, time, x0, u, p) -> ndarray, shape (out_dim, L)

where ``f(x, u, p, t)`` is the vector field, ``g(x, u, p, t)`` the output
function, ``u(t)`` the input function and L the number of samples of the
time grid including the initial one. The Gramian assembler only relies on
this contract, so any integrator can be injected.
"""

import numpy as np
from abc import ABC, abstractmethod
from scipy.integrate import solve_ivp
from typing import Any, Callable, Dict

from .config import TimeGrid
from .errors import ConfigurationError


VectorField = Callable[[np.ndarray, np.ndarray, np.ndarray, float], np.ndarray]


def identity_output(x: np.ndarray, u: np.ndarray, p: np.ndarray, t: float) -> np.ndarray:
    """Output function returning the state itself."""
    return x


class IntegratorBase(ABC):
    """
    Abstract base class for trajectory simulators.

    Subclasses implement ``simulate`` and count vector field evaluations
    through ``_evaluate``.
    """

    def __init__(self):
        self._stats = {'simulations': 0, 'function_evaluations': 0}

    @abstractmethod
    def simulate(self, f: VectorField, g: VectorField, time: TimeGrid, x0: np.ndarray,
                 u: Callable[[float], np.ndarray], p: np.ndarray) -> np.ndarray:
        """
        Simulate the system and return the output trajectory.

        Parameters
        ----------
        f : callable
            Vector field ``f(x, u, p, t)``
        g : callable
            Output function ``g(x, u, p, t)``
        time : TimeGrid
            Time discretization
        x0 : ndarray, shape (N,)
            Initial state
        u : callable
            Input function ``u(t)``
        p : ndarray, shape (P,)
            Parameter

        Returns
        -------
        y : ndarray, shape (out_dim, L)
            Output trajectory, first column is the output at t = 0
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Integrator name."""

    def _evaluate(self, f: VectorField, x: np.ndarray, u: np.ndarray, p: np.ndarray,
                  t: float) -> np.ndarray:
        self._stats['function_evaluations'] += 1
        return np.asarray(f(x, u, p, t), dtype=float).reshape(-1)

    def get_stats(self) -> Dict[str, Any]:
        """Number of simulations and vector field evaluations so far."""
        return dict(self._stats)

    def reset_stats(self):
        for key in self._stats:
            self._stats[key] = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class SSPRK2Integrator(IntegratorBase):
    """
    Low-storage second order strong stability preserving Runge-Kutta method.

    SSP(S,2): each step takes S-1 forward Euler sub-steps of width h/(S-1),
    then blends the result with the state at the beginning of the step,

        x_{k+1} = ((S-1) x_{S-1} + x_k + h f(x_{S-1})) / S,

    so only two state buffers are needed. The input is sampled once per step
    at its midpoint and held over the sub-stages.

    Parameters
    ----------
    stages : int, default=3
        Number of stages S >= 2
    """

    def __init__(self, stages: int = 3):
        super().__init__()
        if int(stages) != stages or stages < 2:
            raise ConfigurationError(f"SSP Runge-Kutta needs at least 2 stages, got {stages!r}")
        self.stages = int(stages)

    @property
    def name(self) -> str:
        return f"ssprk2-{self.stages}"

    def simulate(self, f: VectorField, g: VectorField, time: TimeGrid, x0: np.ndarray,
                 u: Callable[[float], np.ndarray], p: np.ndarray) -> np.ndarray:
        h = time.step
        L = time.n_samples
        S = self.stages
        sub = h / (S - 1)

        x = np.array(x0, dtype=float).reshape(-1)
        y0 = np.asarray(g(x, u(0.0), p, 0.0), dtype=float).reshape(-1)
        y = np.zeros((y0.size, L))
        y[:, 0] = y0

        for k in range(1, L):
            t0 = (k - 1) * h
            uk = u(t0 + 0.5 * h)

            xs = x
            for s in range(S - 1):
                xs = xs + sub * self._evaluate(f, xs, uk, p, t0 + s * sub)
            x = ((S - 1) * xs + x + h * self._evaluate(f, xs, uk, p, t0 + h)) / S

            y[:, k] = np.asarray(g(x, uk, p, k * h), dtype=float).reshape(-1)

        self._stats['simulations'] += 1
        return y


class ScipyIntegrator(IntegratorBase):
    """
    Adaptive integrator using scipy.integrate.solve_ivp.

    The input is held piecewise constant per time step (sampled at the step
    midpoint, as in the fixed-step scheme) and the step size is bounded by
    the grid width so impulses are not stepped over.

    Parameters
    ----------
    method : str, default='RK45'
        Any solve_ivp method ('RK45', 'RK23', 'DOP853', 'Radau', 'BDF', 'LSODA')
    rtol : float, default=1e-6
        Relative tolerance
    atol : float, default=1e-9
        Absolute tolerance
    """

    def __init__(self, method: str = 'RK45', rtol: float = 1e-6, atol: float = 1e-9):
        super().__init__()
        self.method = method
        self.rtol = rtol
        self.atol = atol

    @property
    def name(self) -> str:
        return f"scipy-{self.method}"

    def simulate(self, f: VectorField, g: VectorField, time: TimeGrid, x0: np.ndarray,
                 u: Callable[[float], np.ndarray], p: np.ndarray) -> np.ndarray:
        h = time.step
        L = time.n_samples
        times = time.times

        def held_input(t: float) -> np.ndarray:
            k = min(int(np.floor(t / h)), max(L - 2, 0))
            return u((k + 0.5) * h)

        def ode_func(t, x):
            return self._evaluate(f, x, held_input(t), p, t)

        x0 = np.array(x0, dtype=float).reshape(-1)
        if L > 1:
            sol = solve_ivp(ode_func, (times[0], times[-1]), x0, method=self.method,
                            t_eval=times, rtol=self.rtol, atol=self.atol, max_step=h)
            if not sol.success:
                raise RuntimeError(f"Integration with {self.name} failed: {sol.message}")
            states = sol.y
        else:
            states = x0.reshape(-1, 1)

        y0 = np.asarray(g(states[:, 0], u(0.0), p, 0.0), dtype=float).reshape(-1)
        y = np.zeros((y0.size, L))
        y[:, 0] = y0
        for k in range(1, L):
            uk = u((k - 0.5) * h)
            y[:, k] = np.asarray(g(states[:, k], uk, p, times[k]), dtype=float).reshape(-1)

        self._stats['simulations'] += 1
        return y


def create_integrator(method: str = 'ssprk2', **kwargs) -> IntegratorBase:
    """
    Quick factory for integrators.

    Parameters
    ----------
    method : str
        'ssprk2' or 'scipy'
    **kwargs
        Forwarded to the integrator constructor (``stages`` for 'ssprk2';
        ``method``, ``rtol``, ``atol`` for 'scipy' via ``solver``)

    Examples
    --------
    >>> integrator = create_integrator('ssprk2', stages=4)
    >>> integrator = create_integrator('scipy', solver='LSODA', rtol=1e-8)
    """
    if method == 'scipy' and 'solver' in kwargs:
        kwargs['method'] = kwargs.pop('solver')

    method_map = {
        'ssprk2': SSPRK2Integrator,
        'scipy': ScipyIntegrator,
    }

    if method not in method_map:
        raise ConfigurationError(f"Unknown integrator '{method}'. Choose from: {list(method_map.keys())}")

    return method_map[method](**kwargs)
