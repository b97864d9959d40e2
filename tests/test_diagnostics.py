"""
Test suite for Gramian diagnostics.
"""

import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from empgram.config import GramianConfig, GramianType
from empgram.diagnostics import (GramianSpectrum, gramian_spectrum, reduction_order,
                                 projection_basis, hankel_singular_values, cross_gramian_singular_values,
                                 validate_gramian, symmetric_part)
from empgram.errors import ConfigurationError
from empgram.gramian import empirical_gramian
from empgram.results import StateGramian, ParameterGramian


def create_stable_system():
    """Create vector field and output function of a stable two-state SISO system."""
    A = np.diag([-1.0, -2.0])

    def f(x, u, p, t):
        return A @ x + u[0]

    def g(x, u, p, t):
        return np.array([x.sum()])

    return f, g


class TestSpectrum:
    """Test Gramian spectra and projection bases."""

    def test_diagonal_spectrum(self):
        """Test singular values, basis and energy of a diagonal Gramian."""
        spectrum = gramian_spectrum(np.diag([1.0, 3.0]))

        assert isinstance(spectrum, GramianSpectrum)
        assert np.allclose(spectrum.singular_values, [3.0, 1.0])
        assert np.allclose(np.abs(spectrum.basis[:, 0]), [0.0, 1.0])
        assert np.allclose(spectrum.energy, [0.75, 1.0])

    def test_zero_spectrum(self):
        """Test an all-zero Gramian has full energy and order zero."""
        spectrum = gramian_spectrum(np.zeros((2, 2)))
        assert np.allclose(spectrum.energy, [1.0, 1.0])
        assert reduction_order(spectrum.singular_values) == 0

    def test_reduction_order(self):
        """Test the order keeps every value above the tail tolerance."""
        values = np.array([10.0, 1.0, 1e-8])

        assert reduction_order(values, 1e-6) == 2
        assert reduction_order(values, 0.1) == 1
        assert reduction_order(values, 0.0) == 3

    def test_reduction_order_rejects_tolerance(self):
        """Test tolerances outside [0, 1) raise."""
        with pytest.raises(ConfigurationError):
            reduction_order(np.ones(2), 1.5)

    def test_projection_basis(self):
        """Test the projection basis spans the dominant direction of a rank one Gramian."""
        V = projection_basis(np.ones((2, 2)), 1)

        assert V.shape == (2, 1)
        assert np.allclose(np.abs(V[:, 0]), np.sqrt(0.5) * np.ones(2))

    def test_projection_basis_rejects_order(self):
        """Test orders beyond the state dimension raise."""
        with pytest.raises(ConfigurationError):
            projection_basis(np.eye(2), 3)

    def test_empirical_reduction(self):
        """Test a dominant single state is detected from an empirical controllability Gramian."""
        A = np.diag([-1.0, -50.0])

        def f(x, u, p, t):
            return A @ x + np.array([u[0], 0.01 * u[0]])

        def g(x, u, p, t):
            return x

        wc = empirical_gramian(f, g, [1, 2], [0.01, 5.0], 'c').matrix
        order = reduction_order(gramian_spectrum(wc).singular_values, 1e-3)
        assert order == 1

    def test_symmetric_part(self):
        """Test the symmetric part of a non-symmetric matrix."""
        W = np.array([[1.0, 2.0], [0.0, 1.0]])
        assert np.allclose(symmetric_part(W), [[1.0, 1.0], [1.0, 1.0]])


class TestSystemInvariants:
    """Test Hankel and cross Gramian singular values."""

    def test_hankel_singular_values(self):
        """Test Hankel singular values of balanced diagonal Gramians."""
        hsv = hankel_singular_values(np.diag([1.0, 4.0]), np.diag([1.0, 1.0]))
        assert np.allclose(hsv, [2.0, 1.0])

    def test_cross_gramian_singular_values(self):
        """Test singular values of the square part of a cross Gramian."""
        Wx = np.array([[0.0, 3.0, 7.0], [-2.0, 0.0, 7.0]])
        assert np.allclose(cross_gramian_singular_values(Wx), [3.0, 2.0])

    def test_empirical_hankel_values(self):
        """Test the leading empirical Hankel value matches the cross Gramian of a symmetric system."""
        f, g = create_stable_system()
        wc = empirical_gramian(f, g, [1, 2, 1], [0.01, 10.0], 'c').matrix
        wo = empirical_gramian(f, g, [1, 2, 1], [0.01, 10.0], 'o').matrix
        wx = empirical_gramian(f, g, [1, 2, 1], [0.01, 10.0], 'x').matrix

        hsv = hankel_singular_values(wc, wo)
        assert hsv.shape == (2,)
        assert np.isclose(hsv[0], cross_gramian_singular_values(wx)[0], rtol=0.05)


class TestValidation:
    """Test Gramian validation."""

    def test_valid_controllability(self):
        """Test a computed controllability Gramian validates cleanly."""
        f, g = create_stable_system()
        result = empirical_gramian(f, g, [1, 2, 1], [0.05, 5.0], 'c')

        validation = validate_gramian(result)
        assert validation['valid']
        assert validation['warnings'] == []
        assert validation['summary']['kind'] == 'CONTROLLABILITY'
        assert validation['summary']['shapes'] == [(2, 2)]

    def test_asymmetric_warns(self):
        """Test asymmetric and indefinite matrices raise warnings."""
        result = StateGramian(GramianType.OBSERVABILITY, np.array([[1.0, 2.0], [0.0, -1.0]]))

        with pytest.warns(UserWarning):
            validation = validate_gramian(result)
        assert validation['valid']
        assert validation['summary']['total_warnings'] == 2

    def test_cross_not_checked_for_symmetry(self):
        """Test cross Gramians are not required to be symmetric."""
        result = StateGramian(GramianType.CROSS, np.array([[1.0, 2.0], [0.0, 1.0]]))
        validation = validate_gramian(result)
        assert validation['warnings'] == []

    def test_non_finite_error(self):
        """Test non-finite entries invalidate the result."""
        result = StateGramian(GramianType.CONTROLLABILITY, np.array([[np.nan, 0.0], [0.0, 1.0]]))
        validation = validate_gramian(result)
        assert not validation['valid']
        assert len(validation['errors']) == 1

    def test_negative_sensitivity_error(self):
        """Test negative sensitivity entries invalidate the result."""
        result = ParameterGramian(GramianType.SENSITIVITY, np.eye(2), np.diag([1.0, -1.0]))
        with pytest.warns(UserWarning):
            validation = validate_gramian(result)
        assert not validation['valid']
        assert any('Sensitivity' in e for e in validation['errors'])

    def test_averaged_sensitivity_exempt(self):
        """Test a mean-centered sensitivity diagonal is not flagged."""
        result = ParameterGramian(GramianType.SENSITIVITY, np.eye(2), np.diag([1.0, -1.0]),
                                  config=GramianConfig(parameter_variant=1))
        validation = validate_gramian(result)
        assert validation['valid']
        assert validation['warnings'] == []
