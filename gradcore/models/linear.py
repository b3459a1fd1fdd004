"""
Generalized linear models trained with the gradient core.

A GeneralizedLinearAlgorithm pairs a Gradient with an Updater and an
OptimizerConfig. run() optionally appends the intercept feature, sizes the
initial weights, runs the driver and wraps the result in a model.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Union

import torch

from ..constants import (
    DTYPE,
    LBFGS_CONVERGENCE_TOL,
    LBFGS_NUM_CORRECTIONS,
    LOGISTIC_THRESHOLD,
    SVM_THRESHOLD,
)
from ..errors import DimensionMismatchError
from ..gradients import Gradient, HingeGradient, LeastSquaresGradient, LogisticGradient
from ..history import LossHistory
from ..linalg import DenseVector, Vector, Vectors, append_bias
from ..optimizers import SimpleUpdater, SquaredL2Updater, Updater, make_optimizer
from ..partitions import PartitionedDataset
from ..types import LabeledPoint, NonPivotClass, OptimizerConfig, OptimizerKind, class_blocks

Dataset = Union[PartitionedDataset, Sequence[LabeledPoint]]


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------


class GeneralizedLinearModel(ABC):
    """Weights and intercept of a trained linear model."""

    def __init__(self, weights: DenseVector, intercept: float = 0.0):
        self.weights = weights
        self.intercept = intercept
        self.loss_history: Optional[LossHistory] = None

    def margin(self, features: Vector) -> float:
        return self.weights.dot(features) + self.intercept

    @abstractmethod
    def predict(self, features: Vector) -> float:
        pass

    def predict_all(self, features: Iterable[Vector]) -> List[float]:
        return [self.predict(f) for f in features]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(weights={self.weights.values.tolist()}, intercept={self.intercept})"


class LinearRegressionModel(GeneralizedLinearModel):
    def predict(self, features: Vector) -> float:
        return self.margin(features)


class SVMModel(GeneralizedLinearModel):
    """Predicts 1.0 when the margin exceeds the threshold; raw margin if threshold is None."""

    def __init__(self, weights, intercept=0.0, threshold: Optional[float] = SVM_THRESHOLD):
        super().__init__(weights, intercept)
        self.threshold = threshold

    def predict(self, features: Vector) -> float:
        margin = self.margin(features)
        if self.threshold is None:
            return margin
        return 1.0 if margin > self.threshold else 0.0


class LogisticRegressionModel(GeneralizedLinearModel):
    """
    Binary: sigmoid(w^T x + b) against `threshold` (probability if threshold is None).

    Multinomial (num_classes > 2): the weights hold K-1 coefficient blocks, the
    pivot class 0 has margin 0, and the class with the largest margin wins
    (ties go to the lower class index).
    """

    def __init__(
        self,
        weights,
        intercept=0.0,
        num_classes: int = 2,
        threshold: Optional[float] = LOGISTIC_THRESHOLD,
        add_bias: bool = False,
    ):
        super().__init__(weights, intercept)
        if num_classes < 2:
            raise ValueError(f"num_classes must be >= 2, got {num_classes}")
        if weights.size % (num_classes - 1) != 0:
            raise DimensionMismatchError(
                f"weights size {weights.size} is not divisible into {num_classes - 1} class blocks"
            )
        self.num_classes = num_classes
        self.threshold = threshold
        self.add_bias = add_bias

    def predict(self, features: Vector) -> float:
        if self.num_classes == 2:
            score = float(torch.sigmoid(torch.tensor(self.margin(features), dtype=DTYPE)))
            if self.threshold is None:
                return score
            return 1.0 if score > self.threshold else 0.0

        if self.add_bias:
            features = append_bias(features)
        dim = self.weights.size // (self.num_classes - 1)
        if features.size != dim:
            raise DimensionMismatchError(
                f"features size {features.size} does not match class block size {dim}"
            )

        x = features.to_tensor()
        w = self.weights.to_tensor()
        best_class, best_margin = 0, 0.0
        for tag in class_blocks(self.num_classes, dim):
            if isinstance(tag, NonPivotClass):
                margin = float(torch.dot(w[tag.block], x))
                if margin > best_margin:
                    best_class, best_margin = tag.index, margin
        return float(best_class)


# -----------------------------------------------------------------------------
# Algorithms
# -----------------------------------------------------------------------------


def _validate_class_labels(data: PartitionedDataset, num_classes: int) -> None:
    for point in data.collect():
        label = point.label
        if label != int(label) or not 0 <= label < num_classes:
            raise ValueError(
                f"Classification labels should be in {{0, ..., {num_classes - 1}}}, got {label}"
            )


class GeneralizedLinearAlgorithm(ABC):
    """Trains a GeneralizedLinearModel with a configurable driver."""

    validate_labels = False

    def __init__(
        self,
        gradient: Gradient,
        updater: Updater,
        config: OptimizerConfig,
        add_intercept: bool = False,
        num_classes: int = 2,
        num_partitions: int = 2,
        debug: bool = False,
    ):
        """
        Args:
            gradient: Per-example loss gradient
            updater: Update rule (SGD) / regularizer kind (LBFGS)
            config: Optimizer kind and hyperparameters
            add_intercept: Append a constant 1.0 feature and learn its weight
            num_classes: Number of classes; > 2 trains K-1 weight blocks
            num_partitions: Partitions used when run() receives a plain sequence
            debug: Print diagnostics and show progress bars
        """
        self.gradient = gradient
        self.updater = updater
        self.config = config
        self.add_intercept = add_intercept
        self.num_classes = num_classes
        self.num_partitions = num_partitions
        self.debug = debug

    @abstractmethod
    def create_model(self, weights: DenseVector, intercept: float) -> GeneralizedLinearModel:
        pass

    def _initial_weights(
        self, initial_weights: Optional[Vector], num_features: int
    ) -> DenseVector:
        num_blocks = self.num_classes - 1
        dim = num_features + (1 if self.add_intercept else 0)
        if initial_weights is None:
            return Vectors.zeros(num_blocks * dim)

        w = initial_weights.to_tensor()
        if w.shape[0] == num_blocks * dim:
            return DenseVector(w.clone())
        if self.add_intercept and w.shape[0] == num_blocks * num_features:
            # Zero intercept appended to every class block
            blocks = w.view(num_blocks, num_features)
            padded = torch.cat([blocks, torch.zeros(num_blocks, 1, dtype=w.dtype)], dim=1)
            return DenseVector(padded.flatten())
        raise DimensionMismatchError(
            f"initial weights of size {w.shape[0]} do not fit {num_blocks} block(s) "
            f"of {num_features} features (intercept={self.add_intercept})"
        )

    def run(
        self, data: Dataset, initial_weights: Optional[Vector] = None
    ) -> GeneralizedLinearModel:
        if not isinstance(data, PartitionedDataset):
            data = PartitionedDataset(data, num_partitions=self.num_partitions)
        if data.count() == 0:
            raise ValueError("Cannot train on an empty dataset")
        if self.validate_labels:
            _validate_class_labels(data, self.num_classes)

        num_features = data.first().features.size
        weights = self._initial_weights(initial_weights, num_features)

        if self.add_intercept:
            data = data.map(lambda p: LabeledPoint(p.label, append_bias(p.features)))

        if self.debug:
            print(
                f"Training {type(self).__name__}: {data.count()} examples, "
                f"{num_features} features, {self.config.name}"
            )

        optimizer = make_optimizer(self.config, self.gradient, self.updater, debug=self.debug)
        weights, history = optimizer.run(data, weights)

        intercept = 0.0
        if self.add_intercept and self.num_classes == 2:
            intercept = weights[weights.size - 1]
            weights = DenseVector(weights.values[:-1].clone())

        model = self.create_model(weights, intercept)
        model.loss_history = history
        return model


class LogisticRegressionWithSGD(GeneralizedLinearAlgorithm):
    validate_labels = True

    def __init__(
        self,
        step_size: float = 1.0,
        num_iterations: int = 100,
        reg_param: float = 0.0,
        mini_batch_fraction: float = 1.0,
        add_intercept: bool = False,
        num_classes: int = 2,
        updater: Optional[Updater] = None,
        num_partitions: int = 2,
        debug: bool = False,
    ):
        config = OptimizerConfig.with_params(
            OptimizerKind.SGD,
            step_size=step_size,
            num_iterations=num_iterations,
            reg_param=reg_param,
            mini_batch_fraction=mini_batch_fraction,
        )
        super().__init__(
            LogisticGradient(),
            updater or SimpleUpdater(),
            config,
            add_intercept=add_intercept,
            num_classes=num_classes,
            num_partitions=num_partitions,
            debug=debug,
        )

    def create_model(self, weights, intercept):
        return LogisticRegressionModel(
            weights,
            intercept,
            num_classes=self.num_classes,
            add_bias=self.add_intercept and self.num_classes > 2,
        )


class LogisticRegressionWithLBFGS(GeneralizedLinearAlgorithm):
    validate_labels = True

    def __init__(
        self,
        num_iterations: int = 100,
        reg_param: float = 0.0,
        num_corrections: int = LBFGS_NUM_CORRECTIONS,
        convergence_tol: float = LBFGS_CONVERGENCE_TOL,
        add_intercept: bool = False,
        num_classes: int = 2,
        num_partitions: int = 2,
        debug: bool = False,
    ):
        config = OptimizerConfig.with_params(
            OptimizerKind.LBFGS,
            num_iterations=num_iterations,
            reg_param=reg_param,
            num_corrections=num_corrections,
            convergence_tol=convergence_tol,
        )
        super().__init__(
            LogisticGradient(),
            SquaredL2Updater(),
            config,
            add_intercept=add_intercept,
            num_classes=num_classes,
            num_partitions=num_partitions,
            debug=debug,
        )

    def create_model(self, weights, intercept):
        return LogisticRegressionModel(
            weights,
            intercept,
            num_classes=self.num_classes,
            add_bias=self.add_intercept and self.num_classes > 2,
        )


class LinearRegressionWithSGD(GeneralizedLinearAlgorithm):
    def __init__(
        self,
        step_size: float = 1.0,
        num_iterations: int = 100,
        reg_param: float = 0.0,
        mini_batch_fraction: float = 1.0,
        add_intercept: bool = False,
        updater: Optional[Updater] = None,
        num_partitions: int = 2,
        debug: bool = False,
    ):
        config = OptimizerConfig.with_params(
            OptimizerKind.SGD,
            step_size=step_size,
            num_iterations=num_iterations,
            reg_param=reg_param,
            mini_batch_fraction=mini_batch_fraction,
        )
        super().__init__(
            LeastSquaresGradient(),
            updater or SimpleUpdater(),
            config,
            add_intercept=add_intercept,
            num_partitions=num_partitions,
            debug=debug,
        )

    def create_model(self, weights, intercept):
        return LinearRegressionModel(weights, intercept)


class SVMWithSGD(GeneralizedLinearAlgorithm):
    validate_labels = True

    def __init__(
        self,
        step_size: float = 1.0,
        num_iterations: int = 100,
        reg_param: float = 0.01,
        mini_batch_fraction: float = 1.0,
        add_intercept: bool = False,
        updater: Optional[Updater] = None,
        num_partitions: int = 2,
        debug: bool = False,
    ):
        config = OptimizerConfig.with_params(
            OptimizerKind.SGD,
            step_size=step_size,
            num_iterations=num_iterations,
            reg_param=reg_param,
            mini_batch_fraction=mini_batch_fraction,
        )
        super().__init__(
            HingeGradient(),
            updater or SquaredL2Updater(),
            config,
            add_intercept=add_intercept,
            num_partitions=num_partitions,
            debug=debug,
        )

    def create_model(self, weights, intercept):
        return SVMModel(weights, intercept)
