"""
Results of empirical Gramian computations.

State-space Gramians produce one matrix, parameter Gramians a pair of a state
Gramian and a parameter Gramian. Both carry their type and the options they
were computed with.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .config import GramianConfig, GramianType


@dataclass
class GramianResult:
    """Common base of Gramian results."""
    kind: GramianType

    @property
    def matrices(self) -> Tuple:
        raise NotImplementedError


@dataclass
class StateGramian(GramianResult):
    """Controllability, observability, cross or linear cross Gramian."""
    matrix: Union[np.ndarray, float] = None
    config: Optional[GramianConfig] = None

    @property
    def matrices(self) -> Tuple:
        return (self.matrix,)


@dataclass
class ParameterGramian(GramianResult):
    """
    Sensitivity, identifiability or joint Gramian.

    Attributes
    ----------
    state : ndarray, shape (N, N)
        Controllability (sensitivity), observability (identifiability) or
        cross Gramian (joint)
    parameter : ndarray, shape (P, P)
        Diagonal sensitivity, identifiability or cross-identifiability Gramian
    """
    state: np.ndarray = None
    parameter: np.ndarray = None
    config: Optional[GramianConfig] = None

    @property
    def matrices(self) -> Tuple:
        return (self.state, self.parameter)
