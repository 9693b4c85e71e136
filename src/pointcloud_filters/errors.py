"""
Exception types raised by the point cloud filters.

All of them derive from the built-in exceptions so callers that already catch
``ValueError`` / ``RuntimeError`` keep working.
"""


class InvalidParameterError(ValueError):
    """A filter parameter is incompatible with the input cloud (e.g. axis out of range)."""


class DescriptorLabelMismatchError(ValueError):
    """Descriptor label spans do not add up to the descriptor row count."""


class DensityEqualizationError(RuntimeError):
    """No per-bin cap reaches the requested retention ratio."""
