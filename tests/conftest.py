import pytest
import torch

from gradcore import LabeledPoint, Vectors
from gradcore.constants import DTYPE


def tensor(values):
    return torch.tensor(values, dtype=DTYPE)


@pytest.fixture
def rng():
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def regression_points():
    """Ten noiseless examples of y = 2 x0 - x1 + 0.5 x2."""
    g = torch.Generator().manual_seed(7)
    X = torch.randn(10, 3, generator=g, dtype=DTYPE)
    w = tensor([2.0, -1.0, 0.5])
    y = X @ w
    return [LabeledPoint(float(y[i]), Vectors.dense(X[i])) for i in range(10)]


@pytest.fixture
def sparse_points():
    """Binary examples mixing dense and sparse feature vectors of size 4."""
    return [
        LabeledPoint(1.0, Vectors.sparse(4, [0, 2], [1.0, -0.5])),
        LabeledPoint(0.0, Vectors.dense([0.3, 0.0, 1.2, -0.7])),
        LabeledPoint(1.0, Vectors.sparse(4, [1, 3], [2.0, 0.25])),
        LabeledPoint(0.0, Vectors.sparse(4, [3], [-1.5])),
        LabeledPoint(1.0, Vectors.dense([-0.4, 1.1, 0.0, 0.9])),
    ]
