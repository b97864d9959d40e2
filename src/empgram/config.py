"""
Configuration of empirical Gramian computations.

Gramian types, option enumerations, the validated option set that replaces
the positional twelve-slot flag vector, and the system dimension and time
discretization descriptors shared by every simulation of a call.
"""

import numpy as np
from typing import List, Optional, Sequence, Union
from dataclasses import dataclass, fields
from enum import Enum

from .errors import ConfigurationError


NUM_FLAGS = 12


def _strip_separators(name: str) -> str:
    for separator in ("_", "-", " "):
        name = name.replace(separator, "")
    return name


class GramianType(Enum):
    """Empirical Gramian types and their single letter codes."""
    CONTROLLABILITY = "c"
    OBSERVABILITY = "o"
    CROSS = "x"
    LINEAR_CROSS = "y"
    SENSITIVITY = "s"
    IDENTIFIABILITY = "i"
    JOINT = "j"

    @classmethod
    def parse(cls, code: Union[str, "GramianType"]) -> "GramianType":
        """
        Resolve a type code.

        Accepts a member, a single letter code or a member name, case-folded
        (``"C"``, ``"controllability"``, ``"linear_cross"``, ``"linearCross"``).
        Separators (underscore, hyphen, space) are ignored in names.
        """
        if isinstance(code, cls):
            return code
        if not isinstance(code, str):
            raise ConfigurationError(f"Gramian type must be a string, got {type(code).__name__}")

        key = code.strip().casefold()
        for member in cls:
            if key == member.value:
                return member
        key = _strip_separators(key)
        for member in cls:
            if key == _strip_separators(member.name.casefold()):
                return member

        valid = ", ".join(f"'{m.value}'" for m in cls)
        raise ConfigurationError(f"Unknown Gramian type '{code}'. Choose from: {valid}")

    @property
    def is_parameter_gramian(self) -> bool:
        return self in (GramianType.SENSITIVITY, GramianType.IDENTIFIABILITY, GramianType.JOINT)

    @property
    def requires_square_system(self) -> bool:
        return self in (GramianType.CROSS, GramianType.LINEAR_CROSS, GramianType.JOINT)


class Centering(Enum):
    """Baseline subtracted from each trajectory before accumulation."""
    NONE = 0
    STEADY = 1
    FINAL = 2
    MEAN = 3
    RMS = 4
    MIDRANGE = 5


class ScaleSpacing(Enum):
    """Relative magnitude sequence of perturbation scales."""
    SINGLE = 0
    LINEAR = 1
    GEOMETRIC = 2
    LOGARITHMIC = 3
    SPARSE = 4


class Rotation(Enum):
    """Perturbation directions: unsigned (both signs, default) or single (positive only)."""
    UNSIGNED = 0
    SINGLE = 1


class Normalization(Enum):
    """State-space preconditioning applied before assembly."""
    NONE = 0
    JACOBI = 1
    STEADY_STATE = 2


class ParameterCentering(Enum):
    """Derivation of nominal parameter and parameter scales from a bracket."""
    NONE = 0
    LINEAR = 1
    LOGARITHMIC = 2


def _coerce(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(int(value))
    except (TypeError, ValueError):
        valid = ", ".join(f"{m.name}({m.value})" for m in enum_cls)
        raise ConfigurationError(f"Invalid {name} option {value!r}. Choose from: {valid}") from None


@dataclass
class GramianConfig:
    """
    Options for empirical Gramian computation.

    Each field corresponds to one slot of the classic twelve-slot flag vector,
    in order.

    Attributes
    ----------
    centering : Centering
        Trajectory baseline (slot 1)
    input_spacing, state_spacing : ScaleSpacing
        Input and state perturbation scale sequences (slots 2, 3)
    input_rotation, state_rotation : Rotation
        Unsigned (both directions) or single-sided perturbations (slots 4, 5)
    normalization : Normalization
        None, Jacobi-type or steady-state preconditioning (slot 6)
    nonsymmetric_cross : bool
        Non-symmetric cross Gramian; also lifts the square system requirement
        of the cross, linear cross and joint Gramians (slot 7)
    extra_input : bool
        Force observability-side simulations with the excitation on top of
        the steady input (slot 8)
    parameter_centering : ParameterCentering
        Nominal parameter derivation for parameter Gramians (slot 9)
    parameter_variant : int
        Type specific exclusive option (slot 10): sensitivity input-state (0),
        averaged (1, mean-centered diagonal) or input-output (2);
        identifiability uncorrected (0) or Schur-corrected (1); joint
        approximate (0) or exact (1) Schur complement
    partition_size : int
        Number of state columns per cross Gramian partition, 0 for none (slot 11)
    partition_index : int
        Zero-based cross Gramian partition number (slot 12)
    """
    centering: Centering = Centering.NONE
    input_spacing: ScaleSpacing = ScaleSpacing.SINGLE
    state_spacing: ScaleSpacing = ScaleSpacing.SINGLE
    input_rotation: Rotation = Rotation.UNSIGNED
    state_rotation: Rotation = Rotation.UNSIGNED
    normalization: Normalization = Normalization.NONE
    nonsymmetric_cross: bool = False
    extra_input: bool = False
    parameter_centering: ParameterCentering = ParameterCentering.NONE
    parameter_variant: int = 0
    partition_size: int = 0
    partition_index: int = 0

    def __post_init__(self):
        self.centering = _coerce(Centering, self.centering, "centering")
        self.input_spacing = _coerce(ScaleSpacing, self.input_spacing, "input_spacing")
        self.state_spacing = _coerce(ScaleSpacing, self.state_spacing, "state_spacing")
        self.input_rotation = _coerce(Rotation, self.input_rotation, "input_rotation")
        self.state_rotation = _coerce(Rotation, self.state_rotation, "state_rotation")
        self.normalization = _coerce(Normalization, self.normalization, "normalization")
        self.parameter_centering = _coerce(ParameterCentering, self.parameter_centering,
                                           "parameter_centering")
        self.nonsymmetric_cross = bool(self.nonsymmetric_cross)
        self.extra_input = bool(self.extra_input)

        if self.parameter_variant not in (0, 1, 2):
            raise ConfigurationError(f"parameter_variant must be 0, 1 or 2, got {self.parameter_variant!r}")
        if int(self.partition_size) != self.partition_size or self.partition_size < 0:
            raise ConfigurationError(f"partition_size must be a non-negative integer, "
                                     f"got {self.partition_size!r}")
        if int(self.partition_index) != self.partition_index or self.partition_index < 0:
            raise ConfigurationError(f"partition_index must be a non-negative integer, "
                                     f"got {self.partition_index!r}")
        self.parameter_variant = int(self.parameter_variant)
        self.partition_size = int(self.partition_size)
        self.partition_index = int(self.partition_index)

    @classmethod
    def from_flags(cls, flags: Optional[Union[int, Sequence[float]]] = None) -> "GramianConfig":
        """Build a configuration from a (possibly short) flag vector, zero padded to 12."""
        if flags is None:
            return cls()
        values = np.atleast_1d(np.asarray(flags, dtype=float)).ravel()
        if values.size > NUM_FLAGS:
            raise ConfigurationError(f"Option vector has {values.size} entries, at most {NUM_FLAGS} allowed")
        if np.any(values != np.round(values)):
            raise ConfigurationError(f"Option vector entries must be integers, got {values.tolist()}")
        padded = np.zeros(NUM_FLAGS, dtype=int)
        padded[:values.size] = values.astype(int)
        return cls(*padded.tolist())

    def to_flags(self) -> List[int]:
        """Return the equivalent twelve-slot flag vector."""
        flags = []
        for f in fields(self):
            value = getattr(self, f.name)
            flags.append(int(value.value) if isinstance(value, Enum) else int(value))
        return flags


@dataclass(frozen=True)
class SystemDims:
    """System dimensions: inputs M, states N, outputs Q, augmented parameter-states A."""
    inputs: int
    states: int
    outputs: int
    augmented: int = 0

    def __post_init__(self):
        for name in ("inputs", "states", "outputs"):
            value = getattr(self, name)
            if not np.isfinite(value) or int(value) != value or value < 1:
                raise ConfigurationError(f"Number of {name} must be a positive integer, got {value!r}")
        if int(self.augmented) != self.augmented or self.augmented < 0:
            raise ConfigurationError(f"Number of augmented parameter-states must be a non-negative "
                                     f"integer, got {self.augmented!r}")
        for name in ("inputs", "states", "outputs", "augmented"):
            object.__setattr__(self, name, int(getattr(self, name)))

    @classmethod
    def from_sequence(cls, dims: Union["SystemDims", Sequence[int]]) -> "SystemDims":
        """Build from ``[M, N]``, ``[M, N, Q]`` or ``[M, N, Q, A]``; ``[M, N]`` means Q = N."""
        if isinstance(dims, cls):
            return dims
        values = [v for v in np.atleast_1d(np.asarray(dims)).ravel().tolist()]
        if not 2 <= len(values) <= 4:
            raise ConfigurationError(f"System dimensions need 2 to 4 entries [M, N, Q, A], got {len(values)}")
        if len(values) == 2:
            values.append(values[1])
        return cls(*values)

    @property
    def total_states(self) -> int:
        """States including augmented parameter-states."""
        return self.states + self.augmented


@dataclass(frozen=True)
class TimeGrid:
    """Uniform time discretization with step width and horizon."""
    step: float
    horizon: float

    def __post_init__(self):
        if not np.isfinite(self.step) or self.step <= 0:
            raise ConfigurationError(f"Time step must be positive and finite, got {self.step!r}")
        if not np.isfinite(self.horizon) or self.horizon < 0:
            raise ConfigurationError(f"Time horizon must be non-negative and finite, got {self.horizon!r}")

    @classmethod
    def from_sequence(cls, time: Union["TimeGrid", Sequence[float]]) -> "TimeGrid":
        """Build from ``[step, horizon]``."""
        if isinstance(time, cls):
            return time
        values = np.atleast_1d(np.asarray(time, dtype=float)).ravel()
        if values.size != 2:
            raise ConfigurationError(f"Time discretization needs [step, horizon], got {values.size} entries")
        return cls(float(values[0]), float(values[1]))

    @property
    def n_samples(self) -> int:
        """Number of samples L including the initial one."""
        return int(np.floor(self.horizon / self.step + 1e-9)) + 1

    @property
    def times(self) -> np.ndarray:
        return self.step * np.arange(self.n_samples)
