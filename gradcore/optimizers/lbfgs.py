from typing import Tuple

import torch

from ..constants import DTYPE, LBFGS_CONVERGENCE_TOL, LBFGS_NUM_CORRECTIONS
from ..gradients import Gradient
from ..history import LossHistory
from ..linalg import DenseVector, Vector, Vectors
from ..partitions import PartitionedDataset
from .base import Optimizer
from .gradient_descent import _merge


def run_lbfgs(
    data: PartitionedDataset,
    gradient: Gradient,
    num_corrections: int,
    convergence_tol: float,
    max_num_iterations: int,
    reg_param: float,
    initial_weights: Vector,
    debug: bool = False,
) -> Tuple[DenseVector, LossHistory]:
    """
    Minimize the mean per-example loss plus reg/2 * ||w||^2 with L-BFGS.

    The objective is evaluated by aggregating Gradient.compute_into over all
    partitions; torch.optim.LBFGS only supplies the search directions and the
    strong-Wolfe line search.

    Args:
        data: Partitioned LabeledPoint examples
        gradient: Per-example gradient, shared across partition tasks
        num_corrections: History size of the inverse Hessian approximation
        convergence_tol: Stop when loss or step changes less than this
        max_num_iterations: Maximum L-BFGS iterations
        reg_param: Squared L2 regularization strength
        initial_weights: Starting weights, never mutated
        debug: Print diagnostics

    Returns:
        (final weights, loss history with one entry per objective evaluation)
    """
    num_examples = data.count()
    if num_examples == 0:
        raise ValueError("LBFGS requires a non-empty dataset")

    history = LossHistory(
        metadata={
            "optimizer": "LBFGS",
            "num_corrections": num_corrections,
            "convergence_tol": convergence_tol,
            "max_num_iterations": max_num_iterations,
            "reg_param": reg_param,
        }
    )

    param = torch.nn.Parameter(initial_weights.to_tensor().clone().to(DTYPE))
    n = param.shape[0]

    optimizer = torch.optim.LBFGS(
        [param],
        lr=1.0,
        max_iter=max_num_iterations,
        tolerance_change=convergence_tol,
        history_size=num_corrections,
        line_search_fn="strong_wolfe",
    )

    def zero():
        return Vectors.zeros(n), 0.0, 0

    def closure():
        # Shares storage with param; the gradient only reads it
        weights = DenseVector(param.detach())

        def seq_op(acc, point):
            grad_sum, loss_sum, count = acc
            loss = gradient.compute_into(point.features, point.label, weights, grad_sum)
            return grad_sum, loss_sum + loss, count + 1

        grad_sum, loss_sum, count = data.tree_aggregate(zero, seq_op, _merge)

        grad = grad_sum.values / count
        loss = loss_sum / count
        if reg_param > 0:
            w = param.detach()
            loss += 0.5 * reg_param * float(torch.dot(w, w))
            grad.add_(w, alpha=reg_param)

        param.grad = grad
        history.record(loss)
        return torch.tensor(loss, dtype=DTYPE)

    optimizer.step(closure)

    if debug:
        print(
            f"LBFGS finished after {len(history)} evaluations, final loss {history.last:.6e}"
        )

    return DenseVector(param.detach().clone()), history


class LBFGS(Optimizer):
    """Full-batch L-BFGS driver over a partitioned dataset."""

    def __init__(
        self,
        gradient: Gradient,
        max_num_iterations: int = 100,
        reg_param: float = 0.0,
        num_corrections: int = LBFGS_NUM_CORRECTIONS,
        convergence_tol: float = LBFGS_CONVERGENCE_TOL,
        debug: bool = False,
    ):
        super().__init__(gradient, debug)
        self.max_num_iterations = max_num_iterations
        self.reg_param = reg_param
        self.num_corrections = num_corrections
        self.convergence_tol = convergence_tol

    def run(self, data, initial_weights):
        return run_lbfgs(
            data,
            self.gradient,
            num_corrections=self.num_corrections,
            convergence_tol=self.convergence_tol,
            max_num_iterations=self.max_num_iterations,
            reg_param=self.reg_param,
            initial_weights=initial_weights,
            debug=self.debug,
        )
