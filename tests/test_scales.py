"""
Test suite for perturbation scales, trajectory centering, excitation inputs
and matrix utilities.
"""

import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from empgram.config import Centering, ScaleSpacing, Rotation, ParameterCentering, TimeGrid
from empgram.errors import ConfigurationError
from empgram.scales import scales, parameter_scales
from empgram.centering import center_trajectory
from empgram.excitation import build_input, impulse_input, chirp_input, prbs_input
from empgram.utils_gramian import approximate_inverse, safe_reciprocal, unit_vector


class TestScales:
    """Test perturbation scale generation."""

    def test_default_scales(self):
        """Test single signed scales give one negative and one positive column."""
        s = scales(np.array([1.0, 2.0]))
        assert s.shape == (2, 2)
        assert np.allclose(s, [[-1.0, 1.0], [-2.0, 2.0]])

    def test_column_counts(self):
        """Test column counts per spacing and rotation."""
        base = np.ones(3)
        assert scales(base, ScaleSpacing.LINEAR, Rotation.UNSIGNED).shape == (3, 8)
        assert scales(base, ScaleSpacing.LOGARITHMIC, Rotation.SINGLE).shape == (3, 4)
        assert scales(base, ScaleSpacing.SINGLE, Rotation.SINGLE).shape == (3, 1)

    def test_linear_sequence(self):
        """Test linear spacing values."""
        s = scales(2.0, ScaleSpacing.LINEAR, Rotation.SINGLE)
        assert np.allclose(s, [[0.5, 1.0, 1.5, 2.0]])

    def test_deterministic(self):
        """Test identical arguments give identical scales."""
        a = scales(np.array([0.3, 0.7]), ScaleSpacing.SPARSE, Rotation.UNSIGNED)
        b = scales(np.array([0.3, 0.7]), ScaleSpacing.SPARSE, Rotation.UNSIGNED)
        assert np.array_equal(a, b)


class TestParameterScales:
    """Test nominal parameter and parameter scale derivation."""

    def test_no_centering(self):
        """Test the minimum is nominal and scales ramp to the maximum."""
        nominal, pm = parameter_scales(np.array([[1.0, 3.0]]))
        assert np.allclose(nominal, [1.0])
        assert np.allclose(pm, [[0.0, 2.0]])

    def test_linear_centering(self):
        """Test the midpoint is nominal and scales are symmetric."""
        nominal, pm = parameter_scales(np.array([[1.0, 3.0], [0.0, 4.0]]), ParameterCentering.LINEAR)
        assert np.allclose(nominal, [2.0, 2.0])
        assert np.allclose(pm, [[-1.0, 1.0], [-2.0, 2.0]])

    def test_logarithmic_centering(self):
        """Test the geometric midpoint is nominal."""
        nominal, pm = parameter_scales(np.array([[1.0, 100.0]]), ParameterCentering.LOGARITHMIC)
        assert np.allclose(nominal, [10.0])
        assert np.allclose(pm, [[-9.0, 90.0]])

    def test_scale_count(self):
        """Test the number of scale columns follows the count."""
        nominal, pm = parameter_scales(np.array([[0.0, 1.0]]), count=4)
        assert pm.shape == (1, 4)
        assert np.allclose(pm[0], np.linspace(0.0, 1.0, 4))

    def test_single_scale_reaches_maximum(self):
        """Test a single scale column perturbs to the bracket maximum."""
        nominal, pm = parameter_scales(np.array([[0.5, 1.5]]), count=1)
        assert np.allclose(nominal, [0.5])
        assert np.allclose(pm, [[1.0]])

        nominal, pm = parameter_scales(np.array([[1.0, 3.0]]), ParameterCentering.LINEAR, count=1)
        assert np.allclose(pm, [[1.0]])

    def test_invalid_bracket(self):
        """Test single column brackets and non-positive log bounds are rejected."""
        with pytest.raises(ConfigurationError, match="bracket"):
            parameter_scales(np.array([[1.0]]))
        with pytest.raises(ConfigurationError, match="positive"):
            parameter_scales(np.array([[0.0, 1.0]]), ParameterCentering.LOGARITHMIC)


class TestCentering:
    """Test trajectory centering modes."""

    def test_modes(self):
        """Test baselines of every centering mode."""
        x = np.array([[1.0, -3.0, 2.0]])
        assert np.allclose(center_trajectory(x, Centering.NONE), [[0.0]])
        assert np.allclose(center_trajectory(x, Centering.STEADY, np.array([5.0])), [[5.0]])
        assert np.allclose(center_trajectory(x, Centering.FINAL), [[2.0]])
        assert np.allclose(center_trajectory(x, Centering.MEAN), [[2.0]])
        assert np.allclose(center_trajectory(x, Centering.RMS), [[np.sqrt(14.0 / 3.0)]])
        assert np.allclose(center_trajectory(x, Centering.MIDRANGE), [[2.5]])

    def test_baseline_shape(self):
        """Test the baseline broadcasts against the trajectory."""
        x = np.random.randn(3, 10)
        assert center_trajectory(x, Centering.MEAN).shape == (3, 1)

    def test_steady_requires_value(self):
        """Test steady centering without a steady value raises."""
        with pytest.raises(ConfigurationError):
            center_trajectory(np.zeros((1, 4)), Centering.STEADY)


class TestExcitation:
    """Test excitation inputs."""

    def test_impulse(self):
        """Test the impulse holds area/step during the first step only."""
        u = impulse_input(2, 0.1, area=2.0)
        assert np.allclose(u(0.05), [20.0, 20.0])
        assert np.allclose(u(0.15), [0.0, 0.0])

    def test_chirp_bounds(self):
        """Test the chirp stays within [0, 1] and starts at 1."""
        u = chirp_input(1, 0.01, 5.0)
        values = np.array([u(t)[0] for t in np.linspace(0.0, 5.0, 200)])
        assert np.isclose(values[0], 1.0)
        assert np.all(values >= 0.0) and np.all(values <= 1.0)

    def test_prbs_reproducible(self):
        """Test seeded pseudorandom binary inputs are reproducible and binary."""
        time = TimeGrid(0.1, 2.0)
        u1 = prbs_input(3, time, rng=7)
        u2 = prbs_input(3, time, rng=7)
        for t in time.times:
            assert np.array_equal(u1(t), u2(t))
            assert set(np.unique(u1(t))) <= {0.0, 1.0}

    def test_build_input_shorthands(self):
        """Test scalar shorthands select the built-in inputs."""
        time = TimeGrid(0.1, 1.0)
        assert np.allclose(build_input(1.0, 2, time)(0.05), [10.0, 10.0])
        assert np.allclose(build_input(np.inf, 2, time)(0.0), [1.0, 1.0])
        assert build_input(0.0, 2, time, rng=1)(0.5).shape == (2,)

    def test_build_input_samples(self):
        """Test sample arrays are held piecewise constant."""
        time = TimeGrid(0.1, 0.3)
        u = build_input(np.array([[1.0, 2.0, 3.0]]), 1, time)
        assert np.allclose(u(0.15), [2.0])
        assert np.allclose(u(10.0), [3.0])
        with pytest.raises(ConfigurationError):
            build_input(np.ones((2, 3)), 1, time)

    def test_build_input_callable(self):
        """Test callables are broadcast and checked for size."""
        time = TimeGrid(0.1, 1.0)
        u = build_input(lambda t: np.sin(t), 3, time)
        assert u(1.0).shape == (3,)
        with pytest.raises(ConfigurationError, match="returns 2 values"):
            build_input(lambda t: np.zeros(2), 3, time)


class TestUtilities:
    """Test matrix utilities."""

    def test_unit_vector(self):
        """Test unit vector construction."""
        assert np.array_equal(unit_vector(1, 3, 2.5), [0.0, 2.5, 0.0])

    def test_safe_reciprocal(self):
        """Test zeros map to zero reciprocals."""
        assert np.allclose(safe_reciprocal(np.array([2.0, 0.0, -4.0])), [0.5, 0.0, -0.25])

    def test_approximate_inverse_diagonal(self):
        """Test the approximate inverse is exact for diagonal matrices."""
        m = np.diag([2.0, 4.0, 0.5])
        assert np.allclose(approximate_inverse(m), np.linalg.inv(m))

    def test_approximate_inverse_off_diagonal(self):
        """Test the first order off-diagonal correction."""
        m = np.array([[2.0, 0.1], [0.1, 4.0]])
        x = approximate_inverse(m)
        assert np.isclose(x[0, 1], -0.1 / 8.0)
        assert np.allclose(x, np.linalg.inv(m), atol=1e-3)

    def test_approximate_inverse_zero_diagonal(self):
        """Test zero diagonal entries warn and give zero reciprocals."""
        with pytest.warns(UserWarning, match="zero diagonal"):
            x = approximate_inverse(np.array([[0.0, 1.0], [1.0, 2.0]]))
        assert x[0, 0] == 0.0

    def test_approximate_inverse_non_square(self):
        """Test non-square input raises."""
        with pytest.raises(ValueError):
            approximate_inverse(np.ones((2, 3)))
