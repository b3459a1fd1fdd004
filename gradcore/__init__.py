"""Gradient computation and optimization core for linear models and feed-forward networks"""

# Errors
from .errors import DimensionMismatchError, TopologyError

# Vectors
from .linalg import (
    Vector,
    DenseVector,
    SparseVector,
    Vectors,
    axpy,
    scal,
    append_bias,
)

# Core types
from .types import (
    DatasetSplit,
    LabeledPoint,
    PivotClass,
    NonPivotClass,
    OptimizerKind,
    Hyperparam,
    OptimizerConfig,
)

# Gradients
from .gradients import (
    Gradient,
    LeastSquaresGradient,
    HingeGradient,
    LogisticGradient,
)

# Data
from .partitions import PartitionedDataset
from .data import (
    generate_logistic_input,
    generate_linear_input,
    generate_gaussian_blobs,
    make_xor_dataset,
    split_train_test,
)

# History
from .history import LossHistory

# Optimizers
from .optimizers import (
    SimpleUpdater,
    SquaredL2Updater,
    L1Updater,
    GradientDescent,
    LBFGS,
    make_optimizer,
)

# Models
from .models import (
    LogisticRegressionWithSGD,
    LogisticRegressionWithLBFGS,
    LinearRegressionWithSGD,
    SVMWithSGD,
)

# Networks
from .ann import (
    FeedForwardTopology,
    FeedForwardGradient,
    FeedForwardModel,
    multi_layer_perceptron,
    train_network,
)

# Metrics
from .metrics import get_accuracy, get_error_rate, get_mean_squared_error

__all__ = [
    # Errors
    "DimensionMismatchError",
    "TopologyError",
    # Vectors
    "Vector",
    "DenseVector",
    "SparseVector",
    "Vectors",
    "axpy",
    "scal",
    "append_bias",
    # Types
    "DatasetSplit",
    "LabeledPoint",
    "PivotClass",
    "NonPivotClass",
    "OptimizerKind",
    "Hyperparam",
    "OptimizerConfig",
    # Gradients
    "Gradient",
    "LeastSquaresGradient",
    "HingeGradient",
    "LogisticGradient",
    # Data
    "PartitionedDataset",
    "generate_logistic_input",
    "generate_linear_input",
    "generate_gaussian_blobs",
    "make_xor_dataset",
    "split_train_test",
    # History
    "LossHistory",
    # Optimizers
    "SimpleUpdater",
    "SquaredL2Updater",
    "L1Updater",
    "GradientDescent",
    "LBFGS",
    "make_optimizer",
    # Models
    "LogisticRegressionWithSGD",
    "LogisticRegressionWithLBFGS",
    "LinearRegressionWithSGD",
    "SVMWithSGD",
    # Networks
    "FeedForwardTopology",
    "FeedForwardGradient",
    "FeedForwardModel",
    "multi_layer_perceptron",
    "train_network",
    # Metrics
    "get_accuracy",
    "get_error_rate",
    "get_mean_squared_error",
]
