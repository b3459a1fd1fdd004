from typing import Tuple

from tqdm import tqdm

from ..constants import SAMPLING_SEED
from ..gradients import Gradient
from ..history import LossHistory
from ..linalg import DenseVector, Vector, Vectors, axpy, scal
from ..partitions import PartitionedDataset
from .base import Optimizer
from .updaters import Updater

# -----------------------------------------------------------------------------
# Mini-batch Stochastic Gradient Descent
# -----------------------------------------------------------------------------
# Each iteration samples a mini-batch from every partition, sums per-example
# gradients into per-partition buffers with Gradient.compute_into, merges the
# buffers and applies the Updater to the averaged gradient.


def _merge(a, b):
    """Sum two (gradient_sum, loss_sum, count) accumulators into the first."""
    axpy(1.0, b[0], a[0])
    return a[0], a[1] + b[1], a[2] + b[2]


def run_minibatch_sgd(
    data: PartitionedDataset,
    gradient: Gradient,
    updater: Updater,
    step_size: float,
    num_iterations: int,
    reg_param: float,
    mini_batch_fraction: float,
    initial_weights: Vector,
    seed: int = SAMPLING_SEED,
    debug: bool = False,
) -> Tuple[DenseVector, LossHistory]:
    """
    Run mini-batch SGD.

    Args:
        data: Partitioned LabeledPoint examples
        gradient: Per-example gradient, shared across partition tasks
        updater: Update rule applied to the averaged gradient
        step_size: Initial step size (decayed by the updater)
        num_iterations: Number of iterations
        reg_param: Regularization strength passed to the updater
        mini_batch_fraction: Fraction of examples sampled per iteration, in (0, 1]
        initial_weights: Starting weights, never mutated
        seed: Iteration i samples with seed + i
        debug: Show progress bar and print diagnostics

    Returns:
        (final weights, loss history)
    """
    if num_iterations < 0:
        raise ValueError(f"num_iterations must be >= 0, got {num_iterations}")
    if not 0.0 < mini_batch_fraction <= 1.0:
        raise ValueError(
            f"mini_batch_fraction must be in (0, 1], got {mini_batch_fraction}"
        )

    history = LossHistory(
        metadata={
            "optimizer": "SGD",
            "step_size": step_size,
            "num_iterations": num_iterations,
            "reg_param": reg_param,
            "mini_batch_fraction": mini_batch_fraction,
        }
    )

    num_examples = data.count()
    if debug and num_examples * mini_batch_fraction < 1:
        print(
            f"Warning: mini_batch_fraction {mini_batch_fraction} is too small "
            f"for {num_examples} examples"
        )

    weights = initial_weights.to_dense()
    n = weights.size

    # Regularization value of the initial weights (zero gradient, zero step)
    _, reg_val = updater.compute(weights, Vectors.zeros(n), 0.0, 1, reg_param)

    def zero():
        return Vectors.zeros(n), 0.0, 0

    iterator = (
        tqdm(range(1, num_iterations + 1), desc="SGD")
        if debug
        else range(1, num_iterations + 1)
    )

    for i in iterator:

        def seq_op(acc, point, w=weights):
            grad_sum, loss_sum, count = acc
            loss = gradient.compute_into(point.features, point.label, w, grad_sum)
            return grad_sum, loss_sum + loss, count + 1

        grad_sum, loss_sum, count = data.tree_aggregate(
            zero, seq_op, _merge, fraction=mini_batch_fraction, seed=seed + i
        )

        if count > 0:
            history.record(loss_sum / count + reg_val)
            scal(1.0 / count, grad_sum)
            weights, reg_val = updater.compute(weights, grad_sum, step_size, i, reg_param)
        elif debug:
            print(f"Warning: iteration {i} sampled an empty mini-batch, weights unchanged")

    if debug and len(history) > 0:
        tail = ", ".join(f"{v:.6f}" for v in list(history)[-10:])
        print(f"SGD finished. Last losses: {tail}")

    return weights, history


class GradientDescent(Optimizer):
    """Mini-batch SGD driver over a partitioned dataset."""

    def __init__(
        self,
        gradient: Gradient,
        updater: Updater,
        step_size: float = 1.0,
        num_iterations: int = 100,
        reg_param: float = 0.0,
        mini_batch_fraction: float = 1.0,
        seed: int = SAMPLING_SEED,
        debug: bool = False,
    ):
        super().__init__(gradient, debug)
        self.updater = updater
        self.step_size = step_size
        self.num_iterations = num_iterations
        self.reg_param = reg_param
        self.mini_batch_fraction = mini_batch_fraction
        self.seed = seed

    def run(self, data, initial_weights):
        return run_minibatch_sgd(
            data,
            self.gradient,
            self.updater,
            step_size=self.step_size,
            num_iterations=self.num_iterations,
            reg_param=self.reg_param,
            mini_batch_fraction=self.mini_batch_fraction,
            initial_weights=initial_weights,
            seed=self.seed,
            debug=self.debug,
        )
