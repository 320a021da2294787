class ShapeMismatchError(ValueError):
    """Raised when a feature matrix, label array or vector has the wrong shape or range."""


class NotFittedError(RuntimeError):
    """Raised when feature means are needed before any training call has computed them."""


class EmptyBatchError(ValueError):
    """Raised when a training or evaluation set has no examples."""
