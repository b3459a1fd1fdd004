from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .errors import DimensionMismatchError
from .linalg import Vector


class DatasetSplit(Enum):
    Train = auto()
    Test = auto()


@dataclass(frozen=True)
class LabeledPoint:
    """
    A single training example.

    The label is a float for the linear models and a target Vector for the
    feed-forward network.
    """

    label: Union[float, Vector]
    features: Vector


# -----------------------------------------------------------------------------
# Class tags for multinomial weight layouts
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PivotClass:
    """Reference class 0. Its coefficients are implicitly zero and never stored."""

    index: int = 0


@dataclass(frozen=True)
class NonPivotClass:
    """
    Class `index` (>= 1) whose coefficient block lives in the flattened weights
    at positions [offset, offset + size).
    """

    index: int
    offset: int
    size: int

    @property
    def block(self) -> slice:
        return slice(self.offset, self.offset + self.size)


ClassTag = Union[PivotClass, NonPivotClass]


def class_blocks(num_classes: int, dim: int) -> Iterator[ClassTag]:
    """Enumerate the class tags of a K-class model over `dim` features."""
    yield PivotClass()
    for k in range(1, num_classes):
        yield NonPivotClass(index=k, offset=(k - 1) * dim, size=dim)


def class_tag(label_index: int, num_classes: int, dim: int) -> ClassTag:
    """Tag for a single class index."""
    if not 0 <= label_index < num_classes:
        raise DimensionMismatchError(
            f"class label {label_index} outside [0, {num_classes - 1}]"
        )
    if label_index == 0:
        return PivotClass()
    return NonPivotClass(index=label_index, offset=(label_index - 1) * dim, size=dim)


# -----------------------------------------------------------------------------
# Optimizer configuration
# -----------------------------------------------------------------------------


class OptimizerKind(Enum):
    SGD = auto()
    LBFGS = auto()


class Hyperparam(Enum):
    """Names for optimizer hyperparameters."""

    StepSize = "step_size"
    NumIterations = "num_iterations"
    RegParam = "reg_param"
    MiniBatchFraction = "mini_batch_fraction"
    NumCorrections = "num_corrections"
    ConvergenceTol = "convergence_tol"


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Immutable, hashable optimizer configuration.

    Provides self-documenting names for logs and plots. Hyperparameters use
    Hyperparam enum keys.
    """

    optimizer: OptimizerKind
    hyperparams: Tuple[Tuple[Hyperparam, float], ...] = ()

    @property
    def name(self) -> str:
        """Human-readable name for plots/logs (e.g., 'SGD(step_size=1.0,num_iterations=100)')."""
        if not self.hyperparams:
            return self.optimizer.name
        params = ",".join(f"{hp.value}={v}" for hp, v in self.hyperparams)
        return f"{self.optimizer.name}({params})"

    @property
    def dir_name(self) -> str:
        """Directory-safe name (e.g., 'SGD--step_size=1.0_num_iterations=100')."""
        if not self.hyperparams:
            return self.optimizer.name
        params = "_".join(f"{hp.value}={v}" for hp, v in self.hyperparams)
        return f"{self.optimizer.name}--{params}"

    @property
    def num_iterations(self) -> int:
        """Get iteration count (required hyperparameter)."""
        return int(self.require(Hyperparam.NumIterations))

    def require(self, key: Hyperparam) -> float:
        value = self.get(key)
        if value is None:
            raise ValueError(
                f"OptimizerConfig {self.optimizer.name} missing required {key.name}"
            )
        return value

    def get(self, key: Hyperparam, default: Optional[float] = None) -> Optional[float]:
        """Get a hyperparameter value by Hyperparam enum."""
        for hp, v in self.hyperparams:
            if hp == key:
                return v
        return default

    def as_kwargs(self) -> Dict[str, float]:
        """Hyperparameters keyed by their string names."""
        return {hp.value: v for hp, v in self.hyperparams}

    def replace(self, **kwargs: float) -> "OptimizerConfig":
        """Copy with some hyperparameters overridden (string keys)."""
        merged: dict[Hyperparam, Any] = dict(self.hyperparams)
        for k, v in kwargs.items():
            merged[Hyperparam(k)] = v
        return OptimizerConfig(optimizer=self.optimizer, hyperparams=tuple(merged.items()))

    @classmethod
    def with_params(cls, optimizer: OptimizerKind, **kwargs: float) -> "OptimizerConfig":
        """Convenience constructor - converts string keys to Hyperparam enums."""
        hyperparams = tuple((Hyperparam(k), v) for k, v in kwargs.items())
        return cls(optimizer=optimizer, hyperparams=hyperparams)
