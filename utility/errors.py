class KNNError(ValueError):
    """Base class for caller contract violations in the kNN engine."""


class ShapeMismatch(KNNError):
    """Feature dimensions differ (or a square matrix was required)."""


class InvalidK(KNNError):
    """k is negative or not an integer."""


class NonFiniteInput(KNNError):
    """NaN or Inf found in the input points."""


class EmptyInput(KNNError):
    """A point set with zero rows where rows are required."""
