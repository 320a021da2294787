import matplotlib.pyplot as plt
import pandas as pd
import yaml
from sklearn.metrics import confusion_matrix
from typing import Any, Dict, List, Optional

from config.logging_config import logger
from .data_pipeline import DataPipeline
from .network import NeuralNetwork


def load_config(path) -> Dict[str, Any]:
    """
    Reads a YAML configuration file into a dictionary
    """
    with open(path) as file:
        config = yaml.safe_load(file)

    if not isinstance(config, dict):
        raise ValueError(f"Configuration file {path} does not contain a mapping")
    return config


class ModelPipeline:
    """
    Trains a NeuralNetwork on a CSV dataset described by a configuration dict.

    Training runs in rounds of `eval_every` iterations; after each round the
    train/test accuracy and loss are recorded so they can be logged and plotted.
    """
    def __init__(self, config, model_name, data_pipeline=None) -> None:
        """
        Args:
            config (Dict[str, Any]): Configuration dictionary
            model_name (str): Name for the model
            data_pipeline (DataPipeline, optional): Already loaded data
        """
        self.config = config
        self.model_name = model_name
        self.data_pipeline = data_pipeline if data_pipeline is not None else DataPipeline(config)

        self.input_features = config.get('input_features') or self.data_pipeline.features.shape[1]

        self.model = None
        self.history = {
            'iteration': [],
            'train_loss': [],
            'train_accuracy': [],
            'test_accuracy': []
        }

    def configure_model(self) -> NeuralNetwork:
        """
        Builds the network from the configuration
        ---
        Returns:
            self.model (NeuralNetwork)
        """
        logger.info(f"======= {self.model_name} =======")

        hidden_sizes = self.config['hidden_sizes']
        num_classes = self.config['num_classes']
        logger.info(f"Layer size: {[self.input_features] + hidden_sizes + [num_classes]}")

        self.model = NeuralNetwork(
            input_size=self.input_features,
            hidden_sizes=hidden_sizes,
            num_classes=num_classes,
            learning_rate=self.config.get('learning_rate', 0.3),
            regularization_rate=self.config.get('regularization_rate', 10),
            seed=self.config.get('seed'),
            iteration_mode=self.config.get('iteration_mode', 'full')
        )
        return self.model

    def train_and_evaluate(self, iterations=None) -> Dict[str, List[float]]:
        """
        Trains the model and records metrics after every round
        ---
        Args:
            iterations (int): Total training iterations (default: config['iterations'])
        ---
        Returns:
            self.history (Dict[str, List[float]])
        """
        if self.model is None:
            self.configure_model()

        if iterations is None:
            iterations = self.config['iterations']
        eval_every = self.config.get('eval_every') or iterations

        X_train, y_train = self.data_pipeline.train_set
        X_test, y_test = self.data_pipeline.test_set

        logger.info("Beginning training and evaluation.")

        # Feature means are needed by report() even when no iteration runs
        self.model.train(X_train, y_train, 0)

        done = 0
        while done < iterations:
            # Means are recomputed from the same training set each round, so
            # training in rounds matches one long train() call
            rounds = min(eval_every, iterations - done)
            self.model.train(X_train, y_train, rounds)
            done += rounds

            train_loss = self.model.loss(X_train, y_train)
            train_accuracy = self.model.accuracy(X_train, y_train)
            test_accuracy = self.model.accuracy(X_test, y_test)

            self.history['iteration'].append(done)
            self.history['train_loss'].append(train_loss)
            self.history['train_accuracy'].append(train_accuracy)
            self.history['test_accuracy'].append(test_accuracy)

            logger.info(f"Iteration {done}/{iterations} completed. "
                        f"Train Loss: {train_loss:.4f} | Train Accuracy: {train_accuracy:.4f} | "
                        f"Test Accuracy: {test_accuracy:.4f}")

        self.report(X_test, y_test)

        if self.config.get('plot_path'):
            self.plot_graphs(self.config['plot_path'])

        return self.history

    def report(self, X, y) -> pd.DataFrame:
        """
        Logs the confusion matrix of the model on a labeled set
        """
        y_pred = self.model.predict_classes(X)
        classes = list(range(self.config['num_classes']))
        conf_matrix = confusion_matrix(y, y_pred, labels=classes)

        df_cm = pd.DataFrame(conf_matrix,
                             index=[f"Actual {c}" for c in classes],
                             columns=[f"Predicted {c}" for c in classes])
        logger.info("==== Confusion Matrix ====")
        logger.info(f"\n{df_cm}")
        logger.info(f"Total samples: {len(y)}")
        return df_cm

    def plot_graphs(self, path: Optional[str] = None) -> None:
        """
        Plots loss and accuracy against training iterations and saves the figure
        """
        iterations = self.history['iteration']
        fig, axes = plt.subplots(2, 1, figsize=(10, 10))

        axes[0].plot(iterations, self.history['train_loss'], 'b-', label='Training Loss', linewidth=2)
        axes[0].set_xlabel('Iteration')
        axes[0].set_ylabel('Loss')
        axes[0].set_title('Training Loss')
        axes[0].legend()
        axes[0].grid(True, alpha=0.3)

        axes[1].plot(iterations, self.history['train_accuracy'], 'b-', label='Train Accuracy', linewidth=2, marker='o')
        axes[1].plot(iterations, self.history['test_accuracy'], 'r-', label='Test Accuracy', linewidth=2, marker='s')
        axes[1].set_xlabel('Iteration')
        axes[1].set_ylabel('Accuracy')
        axes[1].set_title('Accuracy Over Training')
        axes[1].legend()
        axes[1].grid(True, alpha=0.3)
        axes[1].set_ylim([0, 1])

        plt.tight_layout()
        if path:
            fig.savefig(path)
            logger.info(f"Saved training plot to {path}")
        plt.close(fig)
