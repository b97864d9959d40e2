"""
Exceptions raised by the empirical Gramian engine.
"""


class ConfigurationError(ValueError):
    """Malformed dimensions, options, scales, parameter bracket or Gramian type."""


class StructuralError(ValueError):
    """System structure incompatible with the requested Gramian type."""
