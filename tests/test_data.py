import numpy as np
import pytest

from gradcore import (
    DatasetSplit,
    LabeledPoint,
    Vectors,
    generate_gaussian_blobs,
    generate_linear_input,
    generate_logistic_input,
    make_xor_dataset,
    split_train_test,
)
from gradcore.history import LossHistory
from gradcore.metrics import (
    get_accuracy,
    get_error_rate,
    get_mean_squared_error,
    validate_categorical_prediction,
)


class ConstantModel:
    def __init__(self, value):
        self.value = value

    def predict(self, features):
        return self.value


def test_logistic_input_is_reproducible_and_binary():
    first = generate_logistic_input(2.0, -1.5, 100, 42)
    second = generate_logistic_input(2.0, -1.5, 100, 42)
    assert [p.label for p in first] == [p.label for p in second]
    assert {p.label for p in first} <= {0.0, 1.0}
    assert all(p.features.size == 1 for p in first)


def test_linear_input_shapes():
    points = generate_linear_input(3.0, [10.0, 10.0, -1.0], 20, 1)
    assert len(points) == 20
    assert all(p.features.size == 3 for p in points)
    assert all(-1.0 <= p.features[i] <= 1.0 for p in points for i in range(3))


def test_gaussian_blobs_labels_and_balance():
    points = generate_gaussian_blobs([[0.0, 0.0], [5.0, 5.0], [-5.0, 5.0]], 0.5, 30, 0)
    labels = [p.label for p in points]
    assert len(points) == 90
    assert sorted(set(labels)) == [0.0, 1.0, 2.0]
    assert labels.count(1.0) == 30
    # Shuffled, not grouped by class
    assert labels != sorted(labels)


def test_xor_dataset():
    data = make_xor_dataset()
    assert len(data) == 4
    for point in data:
        x0, x1 = point.features[0], point.features[1]
        assert point.label[0] == float(int(x0) ^ int(x1))


def test_split_train_test_by_fraction_and_count():
    points = generate_logistic_input(0.0, 1.0, 50, 5)

    splits = split_train_test(points, test_size=0.2, random_state=0)
    assert len(splits[DatasetSplit.Train]) == 40
    assert len(splits[DatasetSplit.Test]) == 10

    splits = split_train_test(points, test_size=7, rng=np.random.default_rng(1))
    assert len(splits[DatasetSplit.Test]) == 7
    assert len(splits[DatasetSplit.Train]) + 7 == 50


@pytest.mark.parametrize("test_size", [0.0, 1.0, 0, 50])
def test_split_train_test_rejects_degenerate_sizes(test_size):
    points = generate_logistic_input(0.0, 1.0, 50, 5)
    with pytest.raises(ValueError):
        split_train_test(points, test_size=test_size)


def test_classification_metrics():
    points = [LabeledPoint(float(i % 2), Vectors.dense([0.0])) for i in range(10)]
    assert validate_categorical_prediction(ConstantModel(1.0), points) == 5
    assert get_error_rate(ConstantModel(1.0), points) == pytest.approx(0.5)
    assert get_accuracy(ConstantModel(0.0), points) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        get_error_rate(ConstantModel(0.0), [])


def test_mean_squared_error():
    points = [LabeledPoint(1.0, Vectors.dense([0.0])), LabeledPoint(3.0, Vectors.dense([0.0]))]
    assert get_mean_squared_error(ConstantModel(2.0), points) == pytest.approx(1.0)


def test_loss_history():
    history = LossHistory(metadata={"optimizer": "SGD"})
    assert history.last is None
    for loss in [3.0, 2.0, 1.5]:
        history.record(loss)

    assert len(history) == 3
    assert history.get_steps() == [1, 2, 3]
    assert history.last == 1.5
    arrays = history.to_dict()
    np.testing.assert_array_equal(arrays["step"], [1, 2, 3])
    np.testing.assert_allclose(arrays["loss"], [3.0, 2.0, 1.5])
    assert history.metadata["optimizer"] == "SGD"
