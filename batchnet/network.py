import numpy as np

from config.logging_config import logger
from .codec import LabelCodec
from .errors import ShapeMismatchError
from .layers import BiasUnit, Gradient, Topology, init_weights
from .normalizer import FeatureNormalizer, as_feature_matrix

ITERATION_MODES = ('full', 'legacy')


class NeuralNetwork:
    """
    Feedforward sigmoid classifier trained with full-batch backpropagation.

    Every training iteration runs three phases over the normalized training set:
    1. Evaluate: forward pass for each example (`predict`)
    2. Accumulate: backpropagate its deltas and sum delta * activation into a
       `Gradient` (`accumulate_gradient`)
    3. Apply: update every weight once with an L2-regularized step (`apply_update`)

    Regularization is applied to every weight except those on the first
    (input-facing) layer and those coming from a bias unit.

    Architecture:
    Input Layer -> Hidden Layers (Sigmoid + bias unit) -> Output Layer (Sigmoid)
    """

    def __init__(self, input_size, hidden_sizes, num_classes, learning_rate=0.3,
                 regularization_rate=10.0, seed=None, iteration_mode='full', progress=None):
        """
        Args:
            input_size : int
                Number of input features
            hidden_sizes : list of int
                Width of each hidden layer, empty for a direct input -> output network
            num_classes : int
                Number of output nodes (classes)
            learning_rate : float, default=0.3
            regularization_rate : float, default=10.0
            seed : int or None
                Seed of the generator used for weight initialization
            iteration_mode : str, default='full'
                'full' uses every example; 'legacy' skips the last training example
                and the first and last evaluation examples
            progress : callable or None
                Called as progress(iteration, iterations) after each training iteration
        """
        if iteration_mode not in ITERATION_MODES:
            raise ValueError(f"Unknown iteration mode '{iteration_mode}', expected one of {ITERATION_MODES}")

        self.topology = Topology(input_size, hidden_sizes, num_classes)
        self.rng = np.random.default_rng(seed)
        self._weights = init_weights(self.topology, self.rng)

        self._learning_rate = float(learning_rate)
        self._regularization_rate = float(regularization_rate)
        self.iteration_mode = iteration_mode
        self.progress = progress

        self.normalizer = FeatureNormalizer(input_size)
        self.codec = LabelCodec(num_classes)

        logger.info(f"Created network {self.topology} | learning rate {self._learning_rate} | "
                    f"regularization rate {self._regularization_rate} | mode {iteration_mode}")

    @property
    def weights(self):
        return tuple(self._weights)

    @property
    def learning_rate(self):
        return self._learning_rate

    @property
    def regularization_rate(self):
        return self._regularization_rate

    @property
    def feature_means(self):
        return self.normalizer.means

    # ===== Evaluate =====

    def predict(self, input_vector):
        """
        Forward pass for one (already normalized) input vector.
        ---
        Args:
            input_vector : numpy.ndarray
                Feature vector of length input_size
        ---
        Returns:
            activations : list of numpy.ndarray
                One vector per weight layer. Hidden vectors end with the bias
                unit's activation (1.0); the last vector is the network output.
        """
        previous = np.asarray(input_vector, dtype=np.float64)
        if previous.shape != (self.topology.input_size,):
            raise ShapeMismatchError(
                f"Input vector has shape {previous.shape}, expected ({self.topology.input_size},)")

        activations = []
        for layer, weights in enumerate(self._weights):
            current = self._sigmoid(weights.activate(previous))

            if not self.topology.is_output(layer):
                current = np.append(current, BiasUnit.ACTIVATION)

            activations.append(current)
            previous = current

        return activations

    # ===== Accumulate =====

    def backward(self, activations, label):
        """
        Deltas of every layer for one example, computed from output to input.
        ---
        Args:
            activations : list of numpy.ndarray
                Result of `predict` for the example
            label : int
                True class of the example
        ---
        Returns:
            deltas : list of numpy.ndarray
                One vector per weight layer, covering non-bias nodes only
        """
        deltas = [None] * self.topology.layer_count

        # Output layer: (prediction - target) * sigmoid'(prediction)
        output = activations[-1]
        target = self.codec.encode(label)
        deltas[-1] = (output - target) * self._sigmoid_prime(output)

        # Hidden layers: deltas of the next layer pulled back through its weights
        for layer in range(self.topology.layer_count - 2, -1, -1):
            hidden = activations[layer][:self.topology.current_width(layer)]
            pulled = self._weights[layer + 1].propagate(deltas[layer + 1])
            deltas[layer] = pulled * self._sigmoid_prime(hidden)

        return deltas

    def accumulate_gradient(self, examples, labels):
        """
        Sum delta * previous activation for every weight over a batch.

        Reads the weights only; nothing is updated here.
        ---
        Args:
            examples : numpy.ndarray
                Normalized feature matrix
            labels : numpy.ndarray
                Validated class labels
        ---
        Returns:
            gradient : Gradient
        """
        gradient = Gradient(self.topology)

        for example, label in zip(examples, labels):
            activations = self.predict(example)
            deltas = self.backward(activations, label)

            for layer in range(self.topology.layer_count):
                # Hidden activation vectors already carry the bias unit's 1.0
                previous = example if layer == 0 else activations[layer - 1]
                gradient.add(layer, deltas[layer], previous)

        return gradient

    # ===== Apply =====

    def regularized_mask(self, layer):
        """Boolean mask of the weights in `layer` that receive the L2 term."""
        weights = self._weights[layer]
        if layer == 0:
            return np.zeros(weights.shape, dtype=bool)
        return ~weights.bias_column_mask()

    def apply_update(self, gradient, batch_size):
        """
        One gradient-descent step for every weight, using a complete gradient.
        ---
        Args:
            gradient : Gradient
                Summed gradient of the batch
            batch_size : int
                Divisor applied to the learning and regularization rates
        """
        step = self._learning_rate / batch_size
        decay = 1 - self._learning_rate * self._regularization_rate / batch_size

        for layer, weights in enumerate(self._weights):
            mask = self.regularized_mask(layer)
            descent = gradient[layer] * step
            weights.values = np.where(mask,
                                      weights.values * decay - descent,
                                      weights.values - descent)

    # ===== Training and evaluation =====

    def train(self, examples, labels, iterations):
        """
        Center the training set, then run `iterations` full-batch steps on it.
        ---
        Args:
            examples : array-like
                Integer feature matrix of shape (n_examples, input_size)
            labels : array-like
                Class index of each example
            iterations : int
                Number of full-batch gradient descent steps
        """
        if iterations < 0:
            raise ValueError(f"Iterations must be non-negative, got {iterations}")

        # Validate everything before the means are overwritten
        matrix = as_feature_matrix(examples, self.topology.input_size)
        labels = self._as_labels(labels, len(matrix))

        self.normalizer.compute_means(matrix)
        normalized = self.normalizer.normalize(matrix)

        batch_size = len(normalized)
        if self.iteration_mode == 'legacy':
            normalized, labels = normalized[:-1], labels[:-1]

        for iteration in range(iterations):
            gradient = self.accumulate_gradient(normalized, labels)
            self.apply_update(gradient, batch_size)

            logger.info(f"Training iteration {iteration + 1} of {iterations}")
            if self.progress is not None:
                self.progress(iteration + 1, iterations)

    def accuracy(self, examples, labels):
        """
        Fraction of examples whose decoded prediction equals the label.

        Uses the feature means stored by the last `train` call.
        """
        normalized = self.normalizer.normalize(examples)
        labels = self._as_labels(labels, len(normalized))

        total = len(normalized)
        indices = range(total)
        if self.iteration_mode == 'legacy':
            indices = range(1, total - 1)

        correct = 0
        for index in indices:
            output = self.predict(normalized[index])[-1]
            if self.codec.decode(output) == labels[index]:
                correct += 1

        return correct / total

    def predict_proba(self, examples):
        """
        Output-layer activations for each example.
        ---
        Returns:
            numpy.ndarray of shape (n_examples, num_classes)
        """
        normalized = self.normalizer.normalize(examples)
        return np.array([self.predict(example)[-1] for example in normalized])

    def predict_classes(self, examples):
        return np.array([self.codec.decode(output) for output in self.predict_proba(examples)])

    def loss(self, examples, labels):
        """
        Mean squared-error objective: 1/n * sum of 0.5 * ||prediction - target||^2
        """
        probabilities = self.predict_proba(examples)
        labels = self._as_labels(labels, len(probabilities))
        targets = np.array([self.codec.encode(label) for label in labels])
        return float(np.mean(0.5 * np.sum((probabilities - targets) ** 2, axis=1)))

    def _as_labels(self, labels, num_examples):
        labels = np.asarray(labels)

        if labels.ndim != 1 or len(labels) != num_examples:
            raise ShapeMismatchError(
                f"Expected {num_examples} labels, got array of shape {labels.shape}")
        if not np.all(np.equal(np.mod(labels, 1), 0)):
            raise ShapeMismatchError("Labels must be integer class indices")

        labels = labels.astype(int)
        for label in labels:
            self.codec.check(label)

        return labels

    def _sigmoid(self, z):
        """
        Sigmoid activation function: sigma(z) = 1 / (1 + exp(-z))
        """
        # Clip z to prevent overflow in exp
        z = np.clip(z, -500, 500)
        return 1 / (1 + np.exp(-z))

    def _sigmoid_prime(self, activation):
        """
        Derivative of the sigmoid written in terms of its output: a * (1 - a)
        """
        return activation * (1 - activation)
