"""Default configuration parameters for running experiments.

This module centralizes the presets used by run.py.
"""

from typing import Any, Dict, Sequence

from .types import OptimizerConfig, OptimizerKind

# ============================================================================
# Datasets
# ============================================================================


def default_logistic_dataset(
    offset: float = 2.0,
    scale: float = -1.5,
    n_points: int = 10000,
    seed: int = 42,
    **kwargs,
) -> Dict[str, Any]:
    """Returns parameters for generate_logistic_input.

    Args:
        offset: True intercept
        scale: True weight
        n_points: Number of examples
        seed: RNG seed
        **kwargs: Additional parameters

    Returns:
        Dictionary with dataset parameters
    """
    params = {"offset": offset, "scale": scale, "n_points": n_points, "seed": seed}
    params.update(kwargs)
    return params


def default_linear_dataset(
    intercept: float = 3.0,
    weights: Sequence[float] = (10.0, 10.0),
    n_points: int = 1000,
    seed: int = 42,
    eps: float = 0.1,
    **kwargs,
) -> Dict[str, Any]:
    """Returns parameters for generate_linear_input."""
    params = {
        "intercept": intercept,
        "weights": list(weights),
        "n_points": n_points,
        "seed": seed,
        "eps": eps,
    }
    params.update(kwargs)
    return params


def default_blobs_dataset(
    centers: Sequence[Sequence[float]] = ((0.0, 0.0), (4.0, 0.0), (0.0, 4.0)),
    std: float = 1.0,
    n_per_class: int = 200,
    seed: int = 42,
    **kwargs,
) -> Dict[str, Any]:
    """Returns parameters for generate_gaussian_blobs (three classes by default)."""
    params = {
        "centers": [list(c) for c in centers],
        "std": std,
        "n_per_class": n_per_class,
        "seed": seed,
    }
    params.update(kwargs)
    return params


# ============================================================================
# Optimizers
# ============================================================================


def default_sgd_config(
    step_size: float = 1.0,
    num_iterations: int = 100,
    reg_param: float = 0.0,
    mini_batch_fraction: float = 1.0,
) -> OptimizerConfig:
    return OptimizerConfig.with_params(
        OptimizerKind.SGD,
        step_size=step_size,
        num_iterations=num_iterations,
        reg_param=reg_param,
        mini_batch_fraction=mini_batch_fraction,
    )


def default_lbfgs_config(
    num_iterations: int = 100,
    reg_param: float = 0.0,
) -> OptimizerConfig:
    return OptimizerConfig.with_params(
        OptimizerKind.LBFGS,
        num_iterations=num_iterations,
        reg_param=reg_param,
    )


# ============================================================================
# Network
# ============================================================================


def default_network_params(
    hidden_layers: Sequence[int] = (5, 4),
    seed: int = 0x111,
    num_iterations: int = 200,
    **kwargs,
) -> Dict[str, Any]:
    """Returns XOR network parameters (topology 2-5-4-1 by default).

    Args:
        hidden_layers: Hidden layer widths
        seed: Seed for the initial weights
        num_iterations: Driver iterations
        **kwargs: Additional parameters

    Returns:
        Dictionary with network parameters
    """
    params = {
        "hidden_layers": list(hidden_layers),
        "seed": seed,
        "num_iterations": num_iterations,
    }
    params.update(kwargs)
    return params


# ============================================================================
# Plotting
# ============================================================================


def default_plot_options(log_scale: bool = True, save_npz: bool = True, **kwargs) -> Dict[str, Any]:
    params = {"log_scale": log_scale, "save_npz": save_npz}
    params.update(kwargs)
    return params
