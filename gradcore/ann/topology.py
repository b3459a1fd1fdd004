from dataclasses import dataclass
from numbers import Integral
from typing import Iterable, List, Sequence, Tuple, Union

from ..errors import TopologyError
from ..linalg import Vector
from ..partitions import PartitionedDataset
from ..types import LabeledPoint


@dataclass(frozen=True)
class LayerSlice:
    """Where one layer's parameters live inside the flat weight vector."""

    in_size: int
    out_size: int
    weight: slice  # (out_size x in_size), row-major
    bias: slice  # (out_size,)


@dataclass(frozen=True)
class FeedForwardTopology:
    """
    Layer widths of a fully connected network: (input, hidden..., output).

    Flat weight layout, layer by layer: the (out x in) matrix followed by the
    out-sized bias.
    """

    layer_sizes: Tuple[int, ...]

    def __post_init__(self):
        if len(self.layer_sizes) < 2:
            raise TopologyError(
                f"A network needs at least an input and an output layer, got {self.layer_sizes}"
            )
        for width in self.layer_sizes:
            if isinstance(width, bool) or not isinstance(width, Integral) or width <= 0:
                raise TopologyError(
                    f"Layer widths must be positive integers, got {self.layer_sizes}"
                )
        # numpy integer widths become plain ints
        object.__setattr__(self, "layer_sizes", tuple(int(w) for w in self.layer_sizes))

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    @property
    def num_layers(self) -> int:
        """Number of weight layers."""
        return len(self.layer_sizes) - 1

    @property
    def num_weights(self) -> int:
        return sum(
            (n_in + 1) * n_out
            for n_in, n_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:])
        )

    def layer_slices(self) -> List[LayerSlice]:
        slices = []
        offset = 0
        for n_in, n_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            weight = slice(offset, offset + n_in * n_out)
            offset += n_in * n_out
            bias = slice(offset, offset + n_out)
            offset += n_out
            slices.append(LayerSlice(n_in, n_out, weight, bias))
        return slices

    def validate_data(self, points: Iterable[LabeledPoint]) -> None:
        """Check every example matches the input and output widths."""
        for point in points:
            if not isinstance(point.label, Vector):
                raise TopologyError("Network targets must be Vectors")
            if point.features.size != self.input_size:
                raise TopologyError(
                    f"Input of size {point.features.size} does not match input layer {self.input_size}"
                )
            if point.label.size != self.output_size:
                raise TopologyError(
                    f"Target of size {point.label.size} does not match output layer {self.output_size}"
                )


def multi_layer_perceptron(
    data: Union[PartitionedDataset, Sequence[LabeledPoint]],
    hidden_layers: Sequence[int],
) -> FeedForwardTopology:
    """
    Build a topology whose input and output widths come from the first example.

    Args:
        data: Examples with Vector features and Vector targets (LabeledPoint.label)
        hidden_layers: Widths of the hidden layers, in order

    Returns:
        FeedForwardTopology (input, *hidden_layers, output)
    """
    points = data.collect() if isinstance(data, PartitionedDataset) else list(data)
    if not points:
        raise TopologyError("Cannot infer a topology from an empty dataset")

    first = points[0]
    if not isinstance(first.label, Vector):
        raise TopologyError("Network targets must be Vectors")

    topology = FeedForwardTopology(
        (first.features.size, *tuple(hidden_layers), first.label.size)
    )
    topology.validate_data(points)
    return topology
