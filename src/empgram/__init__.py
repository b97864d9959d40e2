"""
Empirical Gramian package.

This package computes empirical controllability, observability, cross,
linear cross, sensitivity, identifiability and joint Gramians of nonlinear
parametric input-output systems from simulated trajectories, and provides
diagnostics for the resulting matrices.
"""

from .errors import ConfigurationError, StructuralError
from .config import (GramianType, GramianConfig, Centering, ScaleSpacing, Rotation,
                     Normalization, ParameterCentering, SystemDims, TimeGrid)
from .scales import scales, parameter_scales
from .centering import center_trajectory
from .excitation import build_input, impulse_input, chirp_input, prbs_input
from .integrators import (IntegratorBase, SSPRK2Integrator, ScipyIntegrator,
                          create_integrator)
from .normalizer import GramianProblem, normalize_arguments
from .assembler import compute_state_gramian, assemble_partitions
from .composition import compute_parameter_gramian, split_joint_gramian
from .utils_gramian import approximate_inverse
from .results import GramianResult, StateGramian, ParameterGramian
from .gramian import GramianAnalyzer, empirical_gramian
from .diagnostics import (GramianSpectrum, gramian_spectrum, reduction_order,
                          projection_basis, hankel_singular_values,
                          cross_gramian_singular_values, validate_gramian,
                          symmetric_part)

__version__ = "0.1.0"

__all__ = [
    'ConfigurationError', 'StructuralError',
    'GramianType', 'GramianConfig', 'Centering', 'ScaleSpacing', 'Rotation',
    'Normalization', 'ParameterCentering', 'SystemDims', 'TimeGrid',
    'scales', 'parameter_scales', 'center_trajectory',
    'build_input', 'impulse_input', 'chirp_input', 'prbs_input',
    'IntegratorBase', 'SSPRK2Integrator', 'ScipyIntegrator', 'create_integrator',
    'GramianProblem', 'normalize_arguments',
    'compute_state_gramian', 'assemble_partitions',
    'compute_parameter_gramian', 'split_joint_gramian', 'approximate_inverse',
    'GramianResult', 'StateGramian', 'ParameterGramian',
    'GramianAnalyzer', 'empirical_gramian',
    'GramianSpectrum', 'gramian_spectrum', 'reduction_order', 'projection_basis',
    'hankel_singular_values', 'cross_gramian_singular_values', 'validate_gramian',
    'symmetric_part'
]
