import numpy as np

from .errors import EmptyBatchError, NotFittedError, ShapeMismatchError


def as_feature_matrix(features, input_size):
    """
    Validate and convert a set of feature vectors to a float matrix.
    ---
    Args:
        features : array-like
            Rectangular set of integer feature vectors
        input_size : int
            Expected length of every feature vector
    ---
    Returns:
        numpy.ndarray of shape (n_examples, input_size)
    """
    try:
        matrix = np.asarray(features, dtype=np.float64)
    except ValueError as exc:
        raise ShapeMismatchError(f"Feature set is not rectangular: {exc}") from exc

    if matrix.ndim != 2:
        if matrix.size == 0:
            raise EmptyBatchError("Feature set contains no examples")
        raise ShapeMismatchError(f"Feature set must be 2-dimensional, got {matrix.ndim} dimensions")
    if matrix.shape[0] == 0:
        raise EmptyBatchError("Feature set contains no examples")
    if matrix.shape[1] != input_size:
        raise ShapeMismatchError(
            f"Feature vectors have length {matrix.shape[1]}, network expects {input_size}")

    return matrix


class FeatureNormalizer:
    """
    Centers features on the means of the training set.

    Means are computed by `compute_means` and reused by every later
    `normalize` call until the next `compute_means`.
    """

    def __init__(self, input_size):
        self.input_size = input_size
        self.means = None

    @property
    def fitted(self):
        return self.means is not None

    def compute_means(self, training_set):
        matrix = as_feature_matrix(training_set, self.input_size)
        self.means = matrix.mean(axis=0)
        return self.means

    def normalize(self, feature_set):
        if not self.fitted:
            raise NotFittedError("Feature means have not been computed; call train() first")

        matrix = as_feature_matrix(feature_set, self.input_size)
        return matrix - self.means
