"""
Weight update rules applied by the drivers after each aggregated step.

Every updater decays the step size as step_size / sqrt(iteration) and returns
the new weights together with the regularization value at those weights.
"""

import math
from abc import ABC, abstractmethod
from typing import Tuple

import torch

from ..linalg import DenseVector, Vector, axpy, scal


class Updater(ABC):
    """Abstract base for update rules. Stateless, like the gradients."""

    __slots__ = ()

    @abstractmethod
    def compute(
        self,
        weights_old: Vector,
        gradient: Vector,
        step_size: float,
        iteration: int,
        reg_param: float,
    ) -> Tuple[DenseVector, float]:
        """
        Args:
            weights_old: Weights before the step, never mutated
            gradient: Averaged mini-batch gradient
            step_size: Initial step size
            iteration: 1-based iteration number
            reg_param: Regularization strength

        Returns:
            (new_weights, regularization value at new_weights)
        """
        pass


def _iter_step(step_size: float, iteration: int) -> float:
    return step_size / math.sqrt(iteration)


class SimpleUpdater(Updater):
    """Plain gradient step, no regularization: w = w - step * g"""

    __slots__ = ()

    def compute(self, weights_old, gradient, step_size, iteration, reg_param):
        weights = weights_old.to_dense()
        axpy(-_iter_step(step_size, iteration), gradient, weights)
        return weights, 0.0


class SquaredL2Updater(Updater):
    """
    Step for R(w) = reg/2 * ||w||^2:

        w = w * (1 - step * reg) - step * g
    """

    __slots__ = ()

    def compute(self, weights_old, gradient, step_size, iteration, reg_param):
        this_step = _iter_step(step_size, iteration)
        weights = weights_old.to_dense()
        scal(1.0 - this_step * reg_param, weights)
        axpy(-this_step, gradient, weights)
        norm = weights.norm()
        return weights, 0.5 * reg_param * norm * norm


class L1Updater(Updater):
    """
    Proximal step for R(w) = reg * ||w||_1: a gradient step followed by
    soft-thresholding every coordinate by reg * step.
    """

    __slots__ = ()

    def compute(self, weights_old, gradient, step_size, iteration, reg_param):
        this_step = _iter_step(step_size, iteration)
        weights = weights_old.to_dense()
        axpy(-this_step, gradient, weights)

        shrinkage = reg_param * this_step
        w = weights.values
        w.copy_(torch.sign(w) * torch.clamp(w.abs() - shrinkage, min=0.0))

        return weights, reg_param * weights.norm(1.0)
