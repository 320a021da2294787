import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from config.logging_config import logger
from .errors import EmptyBatchError, ShapeMismatchError


class DataPipeline():
    def __init__(self, config):
        self.config = config
        self.features = None
        self.labels = None
        self.train_set = None
        self.test_set = None

        # Automatically load and split data
        self.preprocess_data()
        self.split_data()

    def preprocess_data(self):
        """
        Reads the CSV, drops the target column and keeps integer features
        ---
        Returns:
            Number of feature columns
        """
        df = pd.read_csv(self.config['data_path'])

        if self.config['target'] not in df.columns:
            raise ValueError(f"Target column '{self.config['target']}' not found in {self.config['data_path']}")
        if df.empty:
            raise EmptyBatchError(f"No examples in {self.config['data_path']}")

        X = df.drop(columns=[self.config['target']])
        y = df[self.config['target']]

        non_integer = [column for column in X.columns if not pd.api.types.is_integer_dtype(X[column])]
        if non_integer:
            raise ShapeMismatchError(f"Feature columns must hold integers: {non_integer}")

        self.features = X.values.astype(np.int64)
        self.labels = y.values.astype(np.int64)

        logger.info(f"Loaded {len(df)} examples with {self.features.shape[1]} features from {self.config['data_path']}")
        return self.features.shape[1]

    def split_data(self):
        """
        Splits features and labels into a training and a testing set
        """
        train_size = self.config.get('train_size', 1.0)

        if train_size >= 1.0:
            self.train_set = (self.features, self.labels)
            self.test_set = (self.features, self.labels)
            logger.info("No test split requested, evaluating on the training set")
            return

        X_train, X_test, y_train, y_test = train_test_split(
            self.features, self.labels,
            train_size=train_size,
            random_state=self.config.get('random_state')
        )
        self.train_set = (X_train, y_train)
        self.test_set = (X_test, y_test)

        logger.info(f"Data split - Train: {len(y_train)}, Test: {len(y_test)}")

    def transform(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Whole dataset for the network
        ---
        Returns:
            X_array, y_array (tuple): numpy arrays
        """
        return self.features, self.labels
