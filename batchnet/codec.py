import numpy as np

from .errors import ShapeMismatchError


class LabelCodec:
    """One-hot encoding of class indices and argmax decoding of output vectors."""

    def __init__(self, num_classes):
        self.num_classes = num_classes

    def check(self, class_index):
        if not 0 <= class_index < self.num_classes:
            raise ShapeMismatchError(
                f"Label {class_index} is outside [0, {self.num_classes})")

    def encode(self, class_index):
        self.check(class_index)
        target = np.zeros(self.num_classes)
        target[class_index] = 1.0
        return target

    def decode(self, output_vector):
        output_vector = np.asarray(output_vector)
        if output_vector.shape != (self.num_classes,):
            raise ShapeMismatchError(
                f"Output vector has shape {output_vector.shape}, expected ({self.num_classes},)")

        # argmax keeps the first index on ties
        return int(np.argmax(output_vector))
