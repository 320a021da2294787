from .codec import LabelCodec
from .data_pipeline import DataPipeline
from .errors import EmptyBatchError, NotFittedError, ShapeMismatchError
from .layers import BiasUnit, Gradient, Topology, WeightMatrix
from .model_pipeline import ModelPipeline, load_config
from .network import NeuralNetwork
from .normalizer import FeatureNormalizer
