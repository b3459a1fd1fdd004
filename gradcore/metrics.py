from typing import Sequence

import torch

from .constants import DTYPE
from .types import LabeledPoint

# -----------------------------------------------------------------------------
# Classification Metrics
# -----------------------------------------------------------------------------


def validate_categorical_prediction(model, points: Sequence[LabeledPoint]) -> int:
    """
    Count examples whose predicted class differs from the label.

    Args:
        model: Anything with predict(features) -> float
        points: Labeled examples

    Returns:
        Number of misclassified examples
    """
    return sum(
        1 for p in points if abs(model.predict(p.features) - p.label) > 0.5
    )


def get_error_rate(model, points: Sequence[LabeledPoint]) -> float:
    """
    Fraction of misclassified examples.

    Args:
        model: Classifier with predict(features) -> float
        points: Labeled examples (non-empty)

    Returns:
        Error rate in [0, 1]
    """
    if len(points) == 0:
        raise ValueError("Cannot compute an error rate over zero examples")
    return validate_categorical_prediction(model, points) / len(points)


def get_accuracy(model, points: Sequence[LabeledPoint]) -> float:
    return 1.0 - get_error_rate(model, points)


# -----------------------------------------------------------------------------
# Regression Metrics
# -----------------------------------------------------------------------------


def get_mean_squared_error(model, points: Sequence[LabeledPoint]) -> float:
    """
    Mean of (prediction - label)^2.

    Args:
        model: Regressor with predict(features) -> float
        points: Labeled examples (non-empty)

    Returns:
        Mean squared error
    """
    if len(points) == 0:
        raise ValueError("Cannot compute a mean squared error over zero examples")
    predictions = torch.tensor([model.predict(p.features) for p in points], dtype=DTYPE)
    labels = torch.tensor([p.label for p in points], dtype=DTYPE)
    return float(torch.mean((predictions - labels) ** 2))
