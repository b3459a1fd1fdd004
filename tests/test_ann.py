import numpy as np
import pytest
import torch

from gradcore import (
    DimensionMismatchError,
    FeedForwardGradient,
    FeedForwardTopology,
    LabeledPoint,
    OptimizerKind,
    TopologyError,
    Vectors,
    make_xor_dataset,
    multi_layer_perceptron,
    train_network,
)
from gradcore.ann import FeedForwardModel, forward, random_weights

XOR_SEED = 0x111

# -----------------------------------------------------------------------------
# Topology
# -----------------------------------------------------------------------------


def test_topology_from_data():
    topology = multi_layer_perceptron(make_xor_dataset(), [5, 4])
    assert topology.layer_sizes == (2, 5, 4, 1)
    assert topology.num_weights == (2 + 1) * 5 + (5 + 1) * 4 + (4 + 1) * 1


def test_topology_accepts_numpy_integer_widths():
    topology = multi_layer_perceptron(make_xor_dataset(), np.array([5, 4]))
    assert topology.layer_sizes == (2, 5, 4, 1)
    assert all(type(width) is int for width in topology.layer_sizes)

    topology = FeedForwardTopology((np.int32(3), np.int64(2)))
    assert topology.num_weights == (3 + 1) * 2


def test_layer_slices_tile_the_weight_vector():
    topology = FeedForwardTopology((3, 4, 2))
    slices = topology.layer_slices()
    assert [(s.in_size, s.out_size) for s in slices] == [(3, 4), (4, 2)]
    assert slices[0].weight == slice(0, 12)
    assert slices[0].bias == slice(12, 16)
    assert slices[1].weight == slice(16, 24)
    assert slices[1].bias == slice(24, 26)
    assert topology.num_weights == 26


def test_topology_rejects_empty_data():
    with pytest.raises(TopologyError):
        multi_layer_perceptron([], [3])


@pytest.mark.parametrize("hidden", [[0], [-2], [3, 0], [2.5], [True]])
def test_topology_rejects_bad_hidden_widths(hidden):
    with pytest.raises(TopologyError):
        multi_layer_perceptron(make_xor_dataset(), hidden)


def test_topology_rejects_mismatched_examples():
    data = make_xor_dataset() + [LabeledPoint(Vectors.dense([1.0]), Vectors.dense([1.0, 0.0, 1.0]))]
    with pytest.raises(TopologyError):
        multi_layer_perceptron(data, [3])

    data = [LabeledPoint(1.0, Vectors.dense([1.0, 0.0]))]
    with pytest.raises(TopologyError):
        multi_layer_perceptron(data, [3])


def test_training_validates_examples_before_starting():
    topology = FeedForwardTopology((2, 3, 1))
    bad = make_xor_dataset() + [LabeledPoint(Vectors.dense([1.0, 1.0]), Vectors.dense([1.0, 0.0]))]
    with pytest.raises(TopologyError):
        train_network(bad, topology)


def test_topology_error_is_a_value_error():
    assert issubclass(TopologyError, ValueError)
    assert issubclass(DimensionMismatchError, ValueError)


# -----------------------------------------------------------------------------
# Weights and gradient
# -----------------------------------------------------------------------------


def test_random_weights_are_reproducible():
    topology = FeedForwardTopology((2, 5, 4, 1))
    first = random_weights(topology, XOR_SEED)
    second = random_weights(topology, XOR_SEED)
    other = random_weights(topology, XOR_SEED + 1)

    assert first.size == topology.num_weights
    torch.testing.assert_close(first.values, second.values)
    assert not torch.equal(first.values, other.values)


def test_forward_output_shape_and_range():
    topology = FeedForwardTopology((3, 4, 2))
    weights = random_weights(topology, 1)
    activations = forward(topology, weights, Vectors.dense([0.5, -1.0, 2.0]))
    assert [a.shape[0] for a in activations] == [3, 4, 2]
    assert bool(((activations[-1] > 0) & (activations[-1] < 1)).all())


def test_forward_rejects_wrong_sizes():
    topology = FeedForwardTopology((3, 2))
    with pytest.raises(DimensionMismatchError):
        forward(topology, Vectors.zeros(topology.num_weights), Vectors.dense([1.0, 2.0]))
    with pytest.raises(DimensionMismatchError):
        forward(topology, Vectors.zeros(5), Vectors.dense([1.0, 2.0, 3.0]))


@pytest.mark.parametrize(
    "features",
    [
        Vectors.dense([0.5, -1.0, 2.0]),
        Vectors.sparse(3, [0, 2], [0.7, -0.3]),
    ],
)
def test_network_gradient_matches_finite_differences(features):
    topology = FeedForwardTopology((3, 4, 2))
    weights = random_weights(topology, 7).values
    target = Vectors.dense([0.2, 0.9])
    grad_fn = FeedForwardGradient(topology)

    gradient, loss = grad_fn.compute(features, target, Vectors.dense(weights))

    h = 1e-6
    numeric = torch.zeros_like(weights)
    for i in range(weights.shape[0]):
        plus, minus = weights.clone(), weights.clone()
        plus[i] += h
        minus[i] -= h
        _, loss_plus = grad_fn.compute(features, target, Vectors.dense(plus))
        _, loss_minus = grad_fn.compute(features, target, Vectors.dense(minus))
        numeric[i] = (loss_plus - loss_minus) / (2 * h)

    assert loss > 0
    torch.testing.assert_close(gradient.values, numeric, atol=1e-7, rtol=1e-5)


def test_network_gradient_accumulates():
    topology = FeedForwardTopology((2, 3, 1))
    weights = random_weights(topology, 3)
    grad_fn = FeedForwardGradient(topology)
    x, t = Vectors.dense([1.0, 0.0]), Vectors.dense([1.0])

    single, _ = grad_fn.compute(x, t, weights)
    buffer = Vectors.dense(torch.ones(topology.num_weights, dtype=torch.float64))
    grad_fn.compute_into(x, t, weights, buffer)

    torch.testing.assert_close(buffer.values, single.values + 1.0)


def test_network_gradient_rejects_wrong_target_size():
    topology = FeedForwardTopology((2, 3, 1))
    with pytest.raises(DimensionMismatchError):
        FeedForwardGradient(topology).compute(
            Vectors.dense([1.0, 0.0]), Vectors.dense([1.0, 0.0]), random_weights(topology, 0)
        )


# -----------------------------------------------------------------------------
# Training
# -----------------------------------------------------------------------------


def test_xor_is_learned_with_lbfgs():
    data = make_xor_dataset()
    topology = multi_layer_perceptron(data, [5, 4])

    model = train_network(data, topology, num_iterations=200, seed=XOR_SEED)

    for point in data:
        prediction = model.predict(point.features)
        assert prediction.size == 1
        assert abs(prediction[0] - point.label[0]) < 0.5
    assert model.loss_history.last < model.loss_history[0]


def test_sgd_training_reduces_loss():
    data = make_xor_dataset()
    topology = multi_layer_perceptron(data, [4])

    model = train_network(
        data,
        topology,
        num_iterations=50,
        num_passes=2,
        optimizer=OptimizerKind.SGD,
        step_size=2.0,
        seed=XOR_SEED,
    )

    assert len(model.loss_history) == 100
    assert model.loss_history.last < model.loss_history[0]


def test_training_from_initial_weights_does_not_mutate_them():
    data = make_xor_dataset()
    topology = multi_layer_perceptron(data, [3])
    initial = random_weights(topology, 9)
    before = initial.values.clone()

    train_network(data, topology, initial_weights=initial, num_iterations=5)

    torch.testing.assert_close(initial.values, before)


def test_training_rejects_wrong_initial_weight_size():
    data = make_xor_dataset()
    topology = multi_layer_perceptron(data, [3])
    with pytest.raises(DimensionMismatchError):
        train_network(data, topology, initial_weights=Vectors.zeros(3))


def test_model_rejects_wrong_weight_size():
    with pytest.raises(DimensionMismatchError):
        FeedForwardModel(FeedForwardTopology((2, 1)), Vectors.zeros(2))
