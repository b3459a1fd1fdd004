from typing import Dict, List, Optional, Sequence

import numpy as np

from .linalg import Vectors
from .types import DatasetSplit, LabeledPoint


def generate_logistic_input(
    offset: float,
    scale: float,
    n_points: int,
    seed: int,
) -> List[LabeledPoint]:
    """Single-feature binary logistic data.

    Args:
        offset: True intercept
        scale: True weight
        n_points: Number of examples
        seed: Seed for numpy.random.default_rng

    Returns:
        Points with x ~ N(0, 1) and label 1.0 with probability sigmoid(offset + scale * x)
    """
    rng = np.random.default_rng(seed)
    x = rng.standard_normal(n_points)
    p = 1.0 / (1.0 + np.exp(-(offset + scale * x)))
    y = (rng.random(n_points) < p).astype(np.float64)
    return [LabeledPoint(float(y[i]), Vectors.dense([x[i]])) for i in range(n_points)]


def generate_linear_input(
    intercept: float,
    weights: Sequence[float],
    n_points: int,
    seed: int,
    eps: float = 0.1,
) -> List[LabeledPoint]:
    """Linear regression data: y = w^T x + intercept + eps * N(0, 1), x ~ U(-1, 1)."""
    rng = np.random.default_rng(seed)
    w = np.asarray(weights, dtype=np.float64)
    X = rng.uniform(-1.0, 1.0, size=(n_points, w.shape[0]))
    y = X @ w + intercept + eps * rng.standard_normal(n_points)
    return [LabeledPoint(float(y[i]), Vectors.dense(X[i])) for i in range(n_points)]


def generate_gaussian_blobs(
    centers: Sequence[Sequence[float]],
    std: float,
    n_per_class: int,
    seed: int,
) -> List[LabeledPoint]:
    """Isotropic Gaussian clusters, class k drawn around centers[k], shuffled.

    Args:
        centers: One center per class, all of the same dimension
        std: Standard deviation of every cluster
        n_per_class: Examples per class
        seed: Seed for numpy.random.default_rng

    Returns:
        Points labeled 0.0, ..., len(centers) - 1
    """
    rng = np.random.default_rng(seed)
    C = np.asarray(centers, dtype=np.float64)
    num_classes, d = C.shape

    X = np.vstack(
        [C[k][None, :] + std * rng.standard_normal((n_per_class, d)) for k in range(num_classes)]
    )
    y = np.repeat(np.arange(num_classes, dtype=np.float64), n_per_class)

    idx = rng.permutation(X.shape[0])
    return [LabeledPoint(float(y[i]), Vectors.dense(X[i])) for i in idx]


def make_xor_dataset() -> List[LabeledPoint]:
    """The XOR truth table as (input, target) vector pairs."""
    inputs = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    targets = [[0.0], [1.0], [1.0], [0.0]]
    return [
        LabeledPoint(Vectors.dense(t), Vectors.dense(x)) for x, t in zip(inputs, targets)
    ]


def split_train_test(
    points: Sequence[LabeledPoint],
    test_size: float | int = 0.2,
    rng: Optional[np.random.Generator] = None,
    random_state: Optional[int] = None,
) -> Dict[DatasetSplit, List[LabeledPoint]]:
    """
    Shuffle and split examples into train and test lists.

    random_state seeds a fresh generator when rng is None.
    """
    if rng is None:
        rng = np.random.default_rng(random_state)

    n = len(points)
    if isinstance(test_size, float):
        if not 0.0 < test_size < 1.0:
            raise ValueError(f"test_size must be in (0, 1), got {test_size}")
        n_test = int(n * test_size)
    else:
        if not 0 < test_size < n:
            raise ValueError(f"test_size {test_size} must be > 0 and < {n}")
        n_test = test_size

    perm = rng.permutation(n)
    return {
        DatasetSplit.Train: [points[i] for i in perm[n_test:]],
        DatasetSplit.Test: [points[i] for i in perm[:n_test]],
    }
