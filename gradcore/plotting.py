from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

import matplotlib.pyplot as plt
import numpy as np

from .history import LossHistory

# Keyed by run name, e.g. OptimizerConfig.name
ResultsType = Mapping[str, LossHistory]


def make_output_dir(experiment_name: Optional[str], output_dir: Optional[Path] = None) -> Path:
    """experiments/<experiment_name>/<timestamp>, unless output_dir is given."""
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    if output_dir:
        base_dir = Path(output_dir)
    elif experiment_name:
        base_dir = Path("experiments") / experiment_name / timestamp
    else:
        base_dir = Path("experiments") / "test_plots" / timestamp
    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir


def plot_loss_histories(
    results: ResultsType,
    experiment_name: Optional[str] = None,
    output_dir: Optional[Path] = None,
    log_scale: bool = True,
    save_npz: bool = True,
) -> Path:
    """
    Plot every run's loss history on one axis and one file per run.

    Args:
        results: Run name -> LossHistory
        experiment_name: Name for the experiment directory
        output_dir: Custom output directory (overrides experiment_name-based path)
        log_scale: Log-scale the loss axis (only when every loss is positive)
        save_npz: Also write results.npz with the raw histories

    Returns:
        Directory the figures were written to
    """
    base_dir = make_output_dir(experiment_name, output_dir)

    if save_npz:
        save_results_npz(results, base_dir / "results.npz")

    non_empty = {name: h for name, h in results.items() if len(h) > 0}
    if not non_empty:
        print("Warning: No loss history to plot.")
        return base_dir

    use_log = log_scale and all(min(h) > 0 for h in non_empty.values())

    # Combined
    fig, ax = plt.subplots(figsize=(8, 6))
    for name, history in non_empty.items():
        ax.plot(history.get_steps(), list(history), label=name, alpha=0.8)
    _configure_axis(ax, use_log)
    ax.legend(fontsize=8)
    fig.suptitle("Loss")
    plt.tight_layout()
    plt.savefig(base_dir / "loss.png", dpi=150, bbox_inches="tight")
    plt.close()

    # Separate
    separate_dir = base_dir / "separate"
    separate_dir.mkdir(parents=True, exist_ok=True)
    for name, history in non_empty.items():
        fig, ax = plt.subplots(figsize=(8, 6))
        ax.plot(history.get_steps(), list(history), linewidth=2.0)
        _configure_axis(ax, use_log)
        fig.suptitle(f"Loss: {name}")
        plt.tight_layout()
        plt.savefig(separate_dir / f"{_safe_name(name)}.png", dpi=150, bbox_inches="tight")
        plt.close()

    return base_dir


def _configure_axis(ax, use_log: bool) -> None:
    ax.set_xlabel("Steps")
    ax.set_ylabel("Loss")
    if use_log:
        ax.set_yscale("log")
    ax.grid(True, alpha=0.3)


def _safe_name(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_=." else "_" for c in name)


def save_results_npz(results: ResultsType, filepath: Path) -> None:
    """Save histories as NPZ, keys '<run name>_<field>'."""
    data: Dict[str, np.ndarray] = {}
    for name, history in results.items():
        for key, values in history.to_dict().items():
            data[f"{name}_{key}"] = values
    np.savez(filepath, **data)  # type: ignore[call-arg]
