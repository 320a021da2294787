import numpy as np


class BiasUnit:
    """
    Constant pseudo-node appended to every hidden layer's activation vector.

    It always outputs 1.0, carries no delta, and lets the weights of the next
    layer learn an additive offset. The input and output layers never get one.
    """
    ACTIVATION = 1.0
    SLOTS = 1


class Topology:
    """
    Layer widths of the network: input width, hidden widths, classifier count.
    ---
    Args:
        input_size : int
            Number of input features
        hidden_sizes : list of int
            Width of each hidden layer, may be empty
        num_classes : int
            Number of output nodes (classes)
    """

    def __init__(self, input_size, hidden_sizes, num_classes):
        hidden_sizes = list(hidden_sizes)

        if input_size < 1:
            raise ValueError(f"Input size must be positive, got {input_size}")
        if num_classes < 1:
            raise ValueError(f"Number of classes must be positive, got {num_classes}")
        if any(size < 0 for size in hidden_sizes):
            raise ValueError(f"Hidden layer sizes must be non-negative, got {hidden_sizes}")

        self.input_size = input_size
        self.hidden_sizes = hidden_sizes
        self.num_classes = num_classes

    @property
    def layer_count(self):
        """Number of weight layers (hidden layers + 1)."""
        return len(self.hidden_sizes) + 1

    def is_output(self, layer):
        return layer == self.layer_count - 1

    def current_width(self, layer):
        """Non-bias nodes produced by weight layer `layer`."""
        if self.is_output(layer):
            return self.num_classes
        return self.hidden_sizes[layer]

    def previous_width(self, layer):
        """Length of the activation vector feeding `layer`, bias slot included."""
        if layer == 0:
            return self.input_size
        return self.hidden_sizes[layer - 1] + BiasUnit.SLOTS

    def has_bias_input(self, layer):
        return layer > 0

    def shape(self, layer):
        return (self.current_width(layer), self.previous_width(layer))

    def __repr__(self):
        return f"Topology({[self.input_size] + self.hidden_sizes + [self.num_classes]})"


def flat_index(node, previous_node, previous_width):
    """Row-major position of weight (node, previous_node) in a flattened layer."""
    return node * previous_width + previous_node


class WeightMatrix:
    """
    Weights of one layer: row = current node, column = previous node.

    When the previous layer is hidden, the last column holds the weights
    coming from its bias unit.
    """

    def __init__(self, values, has_bias_input):
        self.values = np.asarray(values, dtype=np.float64)
        self.has_bias_input = has_bias_input

    @classmethod
    def uniform(cls, shape, has_bias_input, rng, low=-1.0, high=1.0):
        return cls(rng.uniform(low, high, size=shape), has_bias_input)

    @property
    def shape(self):
        return self.values.shape

    @property
    def current_width(self):
        return self.values.shape[0]

    @property
    def previous_width(self):
        return self.values.shape[1]

    @property
    def flat(self):
        """Row-major flat view, indexed with `flat_index`."""
        return self.values.reshape(-1)

    def weight(self, node, previous_node):
        return self.flat[flat_index(node, previous_node, self.previous_width)]

    def activate(self, previous_activations):
        """Weighted sums for every node, one row of weights per node."""
        return self.values @ previous_activations

    def propagate(self, deltas):
        """
        Pull deltas of this layer back onto the non-bias nodes feeding it.

        Returns, for each previous node p, sum over nodes n of weight(n, p) * delta(n).
        """
        return self.values[:, :self.non_bias_columns].T @ deltas

    @property
    def non_bias_columns(self):
        return self.previous_width - (BiasUnit.SLOTS if self.has_bias_input else 0)

    def bias_column_mask(self):
        """Boolean mask, True for weights coming from the bias unit."""
        mask = np.zeros(self.shape, dtype=bool)
        if self.has_bias_input:
            mask[:, -1] = True
        return mask

    def copy(self):
        return WeightMatrix(self.values.copy(), self.has_bias_input)

    def __repr__(self):
        return f"WeightMatrix(shape={self.shape}, has_bias_input={self.has_bias_input})"


class Gradient:
    """
    Summed gradient for every weight layer over one batch.

    Built by the accumulate phase and handed, complete, to the update phase.
    """

    def __init__(self, topology):
        self.layers = [np.zeros(topology.shape(layer)) for layer in range(topology.layer_count)]

    def add(self, layer, deltas, previous_activations):
        self.layers[layer] += np.outer(deltas, previous_activations)

    def __getitem__(self, layer):
        return self.layers[layer]

    def __len__(self):
        return len(self.layers)


def init_weights(topology, rng):
    """
    One weight matrix per layer, every entry uniform in [-1.0, 1.0].
    ---
    Args:
        topology : Topology
        rng : numpy.random.Generator
            Seeded generator owned by the network
    ---
    Returns:
        list of WeightMatrix
    """
    return [
        WeightMatrix.uniform(topology.shape(layer), topology.has_bias_input(layer), rng)
        for layer in range(topology.layer_count)
    ]
