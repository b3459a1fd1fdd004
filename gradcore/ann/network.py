"""
Feed-forward network with sigmoid units and squared-error loss.

The network's parameters are one flat weight vector (see FeedForwardTopology),
so its per-example gradient plugs into the same drivers as the linear models.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import torch
from tqdm import tqdm

from ..constants import DTYPE
from ..errors import DimensionMismatchError
from ..gradients import Gradient
from ..history import LossHistory
from ..linalg import DenseVector, Vector
from ..optimizers import make_optimizer
from ..partitions import PartitionedDataset
from ..types import LabeledPoint, OptimizerConfig, OptimizerKind
from .topology import FeedForwardTopology


def random_weights(topology: FeedForwardTopology, seed: int) -> DenseVector:
    """
    Uniform Glorot-range initialization, reproducible for a given seed.

    Args:
        topology: Network layer widths
        seed: Seed of the torch.Generator used for every layer

    Returns:
        Flat weight vector of size topology.num_weights
    """
    generator = torch.Generator().manual_seed(seed)
    weights = torch.empty(topology.num_weights, dtype=DTYPE)
    for layer in topology.layer_slices():
        limit = math.sqrt(6.0 / (layer.in_size + layer.out_size))
        weights[layer.weight].uniform_(-limit, limit, generator=generator)
        weights[layer.bias].uniform_(-limit, limit, generator=generator)
    return DenseVector(weights)


def _unroll(
    topology: FeedForwardTopology, flat: torch.Tensor
) -> List[Tuple[torch.Tensor, torch.Tensor]]:
    """Views of (matrix, bias) per layer into a flat parameter tensor."""
    return [
        (flat[layer.weight].view(layer.out_size, layer.in_size), flat[layer.bias])
        for layer in topology.layer_slices()
    ]


def forward(
    topology: FeedForwardTopology, weights: Vector, features: Vector
) -> List[torch.Tensor]:
    """
    Activations of every layer, input first.

    Args:
        topology: Network layer widths
        weights: Flat weight vector, never mutated
        features: Input vector

    Returns:
        [input, hidden_1, ..., output] as float64 tensors
    """
    if weights.size != topology.num_weights:
        raise DimensionMismatchError(
            f"weights size {weights.size} does not match topology ({topology.num_weights})"
        )
    if features.size != topology.input_size:
        raise DimensionMismatchError(
            f"features size {features.size} does not match input layer {topology.input_size}"
        )

    activations = [features.to_tensor()]
    for matrix, bias in _unroll(topology, weights.to_tensor()):
        activations.append(torch.sigmoid(torch.addmv(bias, matrix, activations[-1])))
    return activations


class FeedForwardGradient(Gradient):
    """
    Squared error of the network output: L = 1/2 ||f(x) - t||^2

    Backward pass, with a_l the activations and W_l the layer matrices:
        delta_L = (a_L - t) * a_L * (1 - a_L)
        dL/dW_l = delta_l a_{l-1}^T,  dL/db_l = delta_l
        delta_{l-1} = (W_l^T delta_l) * a_{l-1} * (1 - a_{l-1})

    The label of each example is its target Vector.
    """

    __slots__ = ("topology",)

    def __init__(self, topology: FeedForwardTopology):
        self.topology = topology

    def compute_into(self, features, label, weights, cum_gradient) -> float:
        if cum_gradient.size != weights.size:
            raise DimensionMismatchError(
                f"cum_gradient size {cum_gradient.size} must equal weights size {weights.size}"
            )
        if label.size != self.topology.output_size:
            raise DimensionMismatchError(
                f"target size {label.size} does not match output layer {self.topology.output_size}"
            )

        # 1. Forward
        activations = forward(self.topology, weights, features)
        output = activations[-1]

        # 2. Loss and output error
        error = output - label.to_tensor()
        loss = 0.5 * float(torch.dot(error, error))
        delta = error * output * (1.0 - output)

        # 3. Backward
        params = _unroll(self.topology, weights.to_tensor())
        grads = _unroll(self.topology, cum_gradient.values)

        for layer in range(self.topology.num_layers - 1, -1, -1):
            grad_matrix, grad_bias = grads[layer]
            grad_bias.add_(delta)
            if layer == 0:
                # Input layer: only the active input columns
                indices, values = features.active()
                grad_matrix.index_add_(1, indices, torch.outer(delta, values))
            else:
                a_prev = activations[layer]
                grad_matrix.add_(torch.outer(delta, a_prev))
                matrix, _ = params[layer]
                delta = (matrix.T @ delta) * a_prev * (1.0 - a_prev)

        return loss


class FeedForwardModel:
    """A trained network. predict() is a pure forward pass."""

    def __init__(self, topology: FeedForwardTopology, weights: DenseVector):
        if weights.size != topology.num_weights:
            raise DimensionMismatchError(
                f"weights size {weights.size} does not match topology ({topology.num_weights})"
            )
        self.topology = topology
        self.weights = weights
        self.loss_history: Optional[LossHistory] = None

    def predict(self, features: Vector) -> DenseVector:
        return DenseVector(forward(self.topology, self.weights, features)[-1].clone())

    def predict_all(self, features: Iterable[Vector]) -> List[DenseVector]:
        return [self.predict(f) for f in features]


def train_network(
    data: Union[PartitionedDataset, Sequence[LabeledPoint]],
    topology: FeedForwardTopology,
    initial_weights: Optional[Vector] = None,
    num_passes: int = 1,
    num_iterations: int = 200,
    optimizer: OptimizerKind = OptimizerKind.LBFGS,
    step_size: float = 1.0,
    seed: int = 0,
    num_partitions: int = 2,
    debug: bool = False,
) -> FeedForwardModel:
    """
    Train a feed-forward network.

    Args:
        data: Examples whose labels are target Vectors
        topology: Network layer widths
        initial_weights: Starting weights (random_weights(topology, seed) if None)
        num_passes: Number of times the driver is restarted over the data
        num_iterations: Driver iterations per pass
        optimizer: OptimizerKind.LBFGS or OptimizerKind.SGD
        step_size: SGD step size (ignored by LBFGS)
        seed: Seed for the random initial weights
        num_partitions: Partitions used when data is a plain sequence
        debug: Print diagnostics and show progress bars

    Returns:
        FeedForwardModel with the final weights and concatenated loss history
    """
    if not isinstance(data, PartitionedDataset):
        data = PartitionedDataset(data, num_partitions=num_partitions)
    if data.count() == 0:
        raise ValueError("Cannot train on an empty dataset")
    topology.validate_data(data.collect())
    if num_passes < 1 or num_iterations < 1:
        raise ValueError(
            f"num_passes and num_iterations must be >= 1, got {num_passes}, {num_iterations}"
        )

    weights = (
        initial_weights.to_dense()
        if initial_weights is not None
        else random_weights(topology, seed)
    )
    if weights.size != topology.num_weights:
        raise DimensionMismatchError(
            f"initial weights size {weights.size} does not match topology ({topology.num_weights})"
        )

    if optimizer == OptimizerKind.LBFGS:
        config = OptimizerConfig.with_params(optimizer, num_iterations=num_iterations)
    else:
        config = OptimizerConfig.with_params(
            optimizer, step_size=step_size, num_iterations=num_iterations
        )
    driver = make_optimizer(config, FeedForwardGradient(topology), debug=debug)

    if debug:
        print(
            f"Training network {topology.layer_sizes}: {topology.num_weights} weights, "
            f"{num_passes} pass(es) of {config.name}"
        )

    history = LossHistory(
        metadata={"topology": topology.layer_sizes, "optimizer": config.name, "num_passes": num_passes}
    )
    passes = tqdm(range(num_passes), desc="passes") if debug else range(num_passes)
    for _ in passes:
        weights, pass_history = driver.run(data, weights)
        for loss in pass_history:
            history.record(loss)

    model = FeedForwardModel(topology, weights)
    model.loss_history = history
    return model
