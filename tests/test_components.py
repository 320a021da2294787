import numpy as np
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from batchnet.codec import LabelCodec
from batchnet.errors import EmptyBatchError, NotFittedError, ShapeMismatchError
from batchnet.layers import BiasUnit, Gradient, Topology, WeightMatrix, flat_index, init_weights
from batchnet.normalizer import FeatureNormalizer


def test_topology_widths():
    topology = Topology(4, [5, 3], 2)

    assert topology.layer_count == 3
    assert [topology.previous_width(layer) for layer in range(3)] == [4, 6, 4]
    assert [topology.current_width(layer) for layer in range(3)] == [5, 3, 2]
    assert not topology.has_bias_input(0) and topology.has_bias_input(2)


def test_weight_matrix_flat_indexing():
    values = np.arange(12, dtype=float).reshape(3, 4)
    weights = WeightMatrix(values, has_bias_input=True)

    for node in range(3):
        for previous in range(4):
            assert weights.flat[flat_index(node, previous, 4)] == values[node, previous]
            assert weights.weight(node, previous) == values[node, previous]

    assert weights.non_bias_columns == 3
    assert weights.bias_column_mask()[:, -1].all() and not weights.bias_column_mask()[:, :-1].any()


def test_propagate_ignores_bias_column():
    weights = WeightMatrix(np.array([[1.0, 2.0, 100.0], [3.0, 4.0, 100.0]]), has_bias_input=True)

    pulled = weights.propagate(np.array([1.0, 0.5]))

    np.testing.assert_allclose(pulled, [2.5, 4.0])


def test_init_weights_uses_generator():
    topology = Topology(2, [3], 2)
    first = init_weights(topology, np.random.default_rng(0))
    second = init_weights(topology, np.random.default_rng(0))

    assert [w.shape for w in first] == [(3, 2), (2, 4)]
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a.values, b.values)


def test_gradient_starts_at_zero_and_accumulates():
    gradient = Gradient(Topology(2, [1], 2))
    assert all(not layer.any() for layer in gradient.layers)

    gradient.add(1, np.array([1.0, -2.0]), np.array([0.5, BiasUnit.ACTIVATION]))
    gradient.add(1, np.array([1.0, -2.0]), np.array([0.5, BiasUnit.ACTIVATION]))

    np.testing.assert_allclose(gradient[1], [[1.0, 2.0], [-2.0, -4.0]])


def test_mean_centering_round_trip():
    training_set = np.random.default_rng(1).integers(-20, 50, size=(30, 4))
    normalizer = FeatureNormalizer(4)

    normalizer.compute_means(training_set)
    centered = normalizer.normalize(training_set)

    np.testing.assert_allclose(centered.mean(axis=0), 0.0, atol=1e-12)


def test_normalize_reuses_stored_means():
    normalizer = FeatureNormalizer(2)
    normalizer.compute_means([[0, 10], [2, 20]])

    np.testing.assert_allclose(normalizer.normalize([[1, 15], [5, 0]]), [[0, 0], [4, -15]])

    normalizer.compute_means([[4, 4]])
    np.testing.assert_allclose(normalizer.means, [4, 4])


def test_normalizer_errors():
    normalizer = FeatureNormalizer(2)

    with pytest.raises(NotFittedError):
        normalizer.normalize([[1, 2]])
    with pytest.raises(EmptyBatchError):
        normalizer.compute_means([])
    with pytest.raises(ShapeMismatchError):
        normalizer.compute_means([[1, 2, 3]])
    with pytest.raises(ShapeMismatchError):
        normalizer.compute_means([[1, 2], [3]])
    assert not normalizer.fitted


def test_encode_decode():
    codec = LabelCodec(4)

    np.testing.assert_array_equal(codec.encode(2), [0, 0, 1, 0])
    for class_index in range(4):
        assert codec.decode(codec.encode(class_index).astype(float)) == class_index


def test_decode_first_index_wins_ties():
    codec = LabelCodec(3)
    assert codec.decode([0.2, 0.7, 0.7]) == 1
    assert codec.decode([0.5, 0.5, 0.5]) == 0


def test_codec_errors():
    codec = LabelCodec(3)

    with pytest.raises(ShapeMismatchError):
        codec.encode(3)
    with pytest.raises(ShapeMismatchError):
        codec.encode(-1)
    with pytest.raises(ShapeMismatchError):
        codec.decode([0.1, 0.9])
