from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..gradients import Gradient
from ..history import LossHistory
from ..linalg import DenseVector, Vector
from ..partitions import PartitionedDataset
from ..types import Hyperparam, OptimizerConfig, OptimizerKind
from ..constants import LBFGS_CONVERGENCE_TOL, LBFGS_NUM_CORRECTIONS
from .updaters import L1Updater, SimpleUpdater, Updater

# -----------------------------------------------------------------------------
# Optimizer Base Class
# -----------------------------------------------------------------------------


class Optimizer(ABC):
    """
    Base class for drivers that minimize the average per-example loss of a
    Gradient over a PartitionedDataset.
    """

    def __init__(self, gradient: Gradient, debug: bool = False):
        """
        Args:
            gradient: Shared, stateless per-example gradient
            debug: Print diagnostics and show progress bars
        """
        self.gradient = gradient
        self.debug = debug

    @abstractmethod
    def run(
        self, data: PartitionedDataset, initial_weights: Vector
    ) -> Tuple[DenseVector, LossHistory]:
        """Optimize and return (weights, loss history)."""
        pass

    def optimize(self, data: PartitionedDataset, initial_weights: Vector) -> DenseVector:
        weights, _ = self.run(data, initial_weights)
        return weights


# -----------------------------------------------------------------------------
# Factory Functions
# -----------------------------------------------------------------------------


def make_optimizer(
    config: OptimizerConfig,
    gradient: Gradient,
    updater: Optional[Updater] = None,
    debug: bool = False,
) -> Optimizer:
    """
    Build the driver described by an OptimizerConfig.

    Args:
        config: Optimizer kind and hyperparameters
        gradient: Per-example gradient to minimize
        updater: Update rule for SGD (defaults to SimpleUpdater)
        debug: Print diagnostics and show progress bars

    Example:
        >>> config = OptimizerConfig.with_params(
        ...     OptimizerKind.SGD, step_size=1.0, num_iterations=100
        ... )
        >>> opt = make_optimizer(config, LogisticGradient())
    """
    from .gradient_descent import GradientDescent
    from .lbfgs import LBFGS

    reg_param = config.get(Hyperparam.RegParam, 0.0)

    if config.optimizer == OptimizerKind.SGD:
        return GradientDescent(
            gradient,
            updater or SimpleUpdater(),
            step_size=config.require(Hyperparam.StepSize),
            num_iterations=config.num_iterations,
            reg_param=reg_param,
            mini_batch_fraction=config.get(Hyperparam.MiniBatchFraction, 1.0),
            debug=debug,
        )
    if config.optimizer == OptimizerKind.LBFGS:
        if isinstance(updater, L1Updater):
            raise NotImplementedError("LBFGS only supports squared L2 regularization")
        return LBFGS(
            gradient,
            max_num_iterations=config.num_iterations,
            reg_param=reg_param,
            num_corrections=int(config.get(Hyperparam.NumCorrections, LBFGS_NUM_CORRECTIONS)),
            convergence_tol=config.get(Hyperparam.ConvergenceTol, LBFGS_CONVERGENCE_TOL),
            debug=debug,
        )
    raise NotImplementedError(f"Unknown optimizer kind {config.optimizer}")
