"""
empgram: Empirical Gramian computation.

This package provides tools for estimating controllability, observability,
cross and parameter Gramians of nonlinear input-output systems by forced
simulation, for model order and parameter reduction.
"""

from .empgram import (GramianAnalyzer, GramianConfig, GramianType, empirical_gramian,
                      StateGramian, ParameterGramian, ConfigurationError, StructuralError)

__version__ = "0.1.0"

__all__ = [
    'GramianAnalyzer', 'GramianConfig', 'GramianType', 'empirical_gramian',
    'StateGramian', 'ParameterGramian', 'ConfigurationError', 'StructuralError'
]
