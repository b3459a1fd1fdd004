"""Precondition failures raised by the gradient core and the network trainer."""


class DimensionMismatchError(ValueError):
    """Weights, features, gradient buffer or label do not agree in size."""


class TopologyError(ValueError):
    """A network layer configuration is malformed."""
