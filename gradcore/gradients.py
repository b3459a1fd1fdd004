"""
Per-example gradient and loss computations.

All gradients support two interfaces:
1. compute_into(features, label, weights, cum_gradient) -> loss
   adds the gradient into a caller-owned buffer (the hot path of every driver)
2. compute(features, label, weights) -> (gradient, loss)
   allocates a zero buffer and delegates to compute_into

Strategies hold no instance state, so one instance can be shared by every
worker. The accumulation buffer is the only thing written, and only at the
positions of active (nonzero) feature entries.
"""

import math
from abc import ABC, abstractmethod
from typing import Tuple

import torch

from .errors import DimensionMismatchError
from .linalg import DenseVector, Vector, Vectors, axpy
from .types import NonPivotClass, class_tag


def round_label(label: float) -> int:
    """Round half up to the nearest class index."""
    return int(math.floor(label + 0.5))


def _check_same_size(features: Vector, weights: Vector, cum_gradient: Vector) -> None:
    if not (features.size == weights.size == cum_gradient.size):
        raise DimensionMismatchError(
            f"features ({features.size}), weights ({weights.size}) and "
            f"cum_gradient ({cum_gradient.size}) must have the same size"
        )


class Gradient(ABC):
    """Abstract base for per-example loss gradients."""

    __slots__ = ()

    def compute(self, features: Vector, label, weights: Vector) -> Tuple[DenseVector, float]:
        """
        Compute gradient and loss for one example into a freshly allocated vector.

        Args:
            features: Feature vector of the example
            label: Label of the example
            weights: Current weights, never mutated

        Returns:
            (gradient, loss) with the gradient sized like the weights
        """
        gradient = Vectors.zeros(weights.size)
        loss = self.compute_into(features, label, weights, gradient)
        return gradient, loss

    @abstractmethod
    def compute_into(
        self, features: Vector, label, weights: Vector, cum_gradient: DenseVector
    ) -> float:
        """
        Add the gradient of one example into `cum_gradient` and return its loss.

        Existing contents of `cum_gradient` are preserved and added to.

        Args:
            features: Feature vector of the example
            label: Label of the example
            weights: Current weights, never mutated
            cum_gradient: Accumulation buffer owned by the caller

        Returns:
            Loss of the example
        """
        pass


class LeastSquaresGradient(Gradient):
    """
    Squared error: L = (w^T x - y)^2

    Gradient: 2 (w^T x - y) x
    """

    __slots__ = ()

    def compute_into(self, features, label, weights, cum_gradient) -> float:
        _check_same_size(features, weights, cum_gradient)
        diff = weights.dot(features) - label
        axpy(2.0 * diff, features, cum_gradient)
        return diff * diff


class HingeGradient(Gradient):
    """
    Hinge loss for {0, 1} labels: L = max(0, 1 - (2y - 1) w^T x)

    Subgradient: -(2y - 1) x when the margin is violated, 0 otherwise.
    A margin of exactly 1 falls in the zero-loss branch.
    """

    __slots__ = ()

    def compute_into(self, features, label, weights, cum_gradient) -> float:
        _check_same_size(features, weights, cum_gradient)
        dot_product = weights.dot(features)
        label_scaled = 2.0 * label - 1.0

        if 1.0 > label_scaled * dot_product:
            axpy(-label_scaled, features, cum_gradient)
            return 1.0 - label_scaled * dot_product
        return 0.0


class LogisticGradient(Gradient):
    """
    Multinomial logistic loss with class 0 as pivot.

    With d features and K classes the weights hold K-1 flattened blocks of d
    coefficients; the pivot block is implicitly zero. K = 2 is ordinary binary
    logistic regression.

    For non-pivot class i (block i-1) with margin m_i = w_i^T x:
        p_i  = exp(m_i) / (1 + sum_k exp(m_k))
        dL/dw_i = (p_i - 1[label == i]) x
        L = -log p_label   (p_0 = 1 / (1 + sum_k exp(m_k)))

    Numerical stability:
    - Margins are shifted by M = max(0, max_i m_i) before exp(), so the pivot
      term becomes exp(-M). Probabilities and loss are unchanged for moderate
      margins and stay finite for large ones.
    - Loss is evaluated as log(denominator) + M - m_label.
    """

    __slots__ = ()

    def compute_into(self, features, label, weights, cum_gradient) -> float:
        dim = features.size
        if dim == 0 or weights.size == 0 or weights.size % dim != 0:
            raise DimensionMismatchError(
                f"weights size {weights.size} must be a positive multiple of "
                f"features size {dim}"
            )
        if cum_gradient.size != weights.size:
            raise DimensionMismatchError(
                f"cum_gradient size {cum_gradient.size} must equal weights size {weights.size}"
            )

        num_blocks = weights.size // dim
        num_classes = num_blocks + 1
        tag = class_tag(round_label(label), num_classes, dim)

        # 1. Active entries only (explicit zeros are skipped)
        indices, values = features.active()

        # 2. Margins of every non-pivot class: (K-1, |active|) @ (|active|,)
        coefficients = weights.to_tensor().view(num_blocks, dim)
        margins = coefficients[:, indices] @ values

        # 3. Shifted softmax; the leading pivot term is exp(0 - M)
        max_margin = torch.clamp(margins.max(), min=0.0)
        numerators = torch.exp(margins - max_margin)
        denominator = torch.exp(-max_margin) + numerators.sum()

        # 4. Per-class multiplier p_i - 1[label == i]
        multipliers = numerators / denominator
        if isinstance(tag, NonPivotClass):
            multipliers[tag.index - 1] -= 1.0

        # 5. Accumulate outer(multipliers, x_active) into the active columns only
        gradient_blocks = cum_gradient.values.view(num_blocks, dim)
        gradient_blocks.index_add_(1, indices, torch.outer(multipliers, values))

        # 6. Negative log-likelihood of the true class
        log_normalizer = torch.log(denominator) + max_margin
        if isinstance(tag, NonPivotClass):
            return float(log_normalizer - margins[tag.index - 1])
        return float(log_normalizer)
