from .network import (
    FeedForwardGradient,
    FeedForwardModel,
    forward,
    random_weights,
    train_network,
)
from .topology import FeedForwardTopology, LayerSlice, multi_layer_perceptron

__all__ = [
    "FeedForwardTopology",
    "LayerSlice",
    "multi_layer_perceptron",
    "FeedForwardGradient",
    "FeedForwardModel",
    "forward",
    "random_weights",
    "train_network",
]
