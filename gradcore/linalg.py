"""
Vector types consumed by the gradient core.

Two backings share one interface:
1. DenseVector  - a 1-D float64 tensor
2. SparseVector - (size, indices, values) with strictly increasing indices

Gradient code only relies on len(), indexed reads, dot(), active() and axpy(),
so it never needs to know which backing it was handed.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Sequence, Tuple, Union

import torch

from .constants import DTYPE
from .errors import DimensionMismatchError

TensorLike = Union[torch.Tensor, Sequence[float]]


class Vector(ABC):
    """Abstract numeric vector of fixed dimension."""

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    def __len__(self) -> int:
        return self.size

    @abstractmethod
    def __getitem__(self, i: int) -> float:
        pass

    @abstractmethod
    def active(self) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Return (indices, values) of the explicitly stored nonzero entries.

        Explicit zeros are dropped, so they are never treated as active.
        """
        pass

    @abstractmethod
    def to_tensor(self) -> torch.Tensor:
        """Dense float64 tensor with the vector's contents (a fresh tensor for sparse)."""
        pass

    def iter_active(self) -> Iterator[Tuple[int, float]]:
        indices, values = self.active()
        for i, v in zip(indices.tolist(), values.tolist()):
            yield i, v

    def to_dense(self) -> "DenseVector":
        return DenseVector(self.to_tensor().clone())

    def dot(self, other: "Vector") -> float:
        if self.size != other.size:
            raise DimensionMismatchError(
                f"Cannot take dot product of vectors of size {self.size} and {other.size}"
            )
        indices, values = self.active()
        if isinstance(other, DenseVector):
            return float(torch.dot(values, other.values[indices]))
        return float(torch.dot(values, other.to_tensor()[indices]))

    def norm(self, p: float = 2.0) -> float:
        _, values = self.active()
        return float(torch.linalg.vector_norm(values, ord=p))


class DenseVector(Vector):
    """Vector backed by a contiguous 1-D float64 tensor."""

    def __init__(self, values: TensorLike):
        values = torch.as_tensor(values, dtype=DTYPE)
        if values.dim() != 1:
            raise ValueError(f"DenseVector expects a 1-D tensor, got shape {tuple(values.shape)}")
        self.values = values

    @property
    def size(self) -> int:
        return self.values.shape[0]

    def __getitem__(self, i: int) -> float:
        return float(self.values[i])

    def active(self) -> Tuple[torch.Tensor, torch.Tensor]:
        indices = torch.nonzero(self.values).flatten()
        return indices, self.values[indices]

    def to_tensor(self) -> torch.Tensor:
        return self.values

    def dot(self, other: Vector) -> float:
        if isinstance(other, DenseVector):
            if self.size != other.size:
                raise DimensionMismatchError(
                    f"Cannot take dot product of vectors of size {self.size} and {other.size}"
                )
            return float(torch.dot(self.values, other.values))
        return other.dot(self)

    def copy(self) -> "DenseVector":
        return DenseVector(self.values.clone())

    def __repr__(self) -> str:
        return f"DenseVector({self.values.tolist()})"


class SparseVector(Vector):
    """Vector storing only (index, value) pairs; unlisted positions are zero."""

    def __init__(self, size: int, indices: TensorLike, values: TensorLike):
        indices = torch.as_tensor(indices, dtype=torch.long).flatten()
        values = torch.as_tensor(values, dtype=DTYPE).flatten()
        if indices.shape[0] != values.shape[0]:
            raise ValueError(
                f"SparseVector got {indices.shape[0]} indices but {values.shape[0]} values"
            )
        if indices.numel() > 0:
            if int(indices[0]) < 0 or int(indices[-1]) >= size:
                raise ValueError(f"SparseVector indices must lie in [0, {size})")
            if indices.numel() > 1 and not bool((indices[1:] > indices[:-1]).all()):
                raise ValueError("SparseVector indices must be strictly increasing")
        self._size = int(size)
        self.indices = indices
        self.values = values

    @property
    def size(self) -> int:
        return self._size

    def __getitem__(self, i: int) -> float:
        if i < 0:
            i += self._size
        if not 0 <= i < self._size:
            raise IndexError(f"index {i} out of range for SparseVector of size {self._size}")
        pos = int(torch.searchsorted(self.indices, i))
        if pos < self.indices.shape[0] and int(self.indices[pos]) == i:
            return float(self.values[pos])
        return 0.0

    def active(self) -> Tuple[torch.Tensor, torch.Tensor]:
        mask = self.values != 0.0
        if bool(mask.all()):
            return self.indices, self.values
        return self.indices[mask], self.values[mask]

    def to_tensor(self) -> torch.Tensor:
        dense = torch.zeros(self._size, dtype=DTYPE)
        dense[self.indices] = self.values
        return dense

    def copy(self) -> "SparseVector":
        return SparseVector(self._size, self.indices.clone(), self.values.clone())

    def __repr__(self) -> str:
        return f"SparseVector({self._size}, {self.indices.tolist()}, {self.values.tolist()})"


class Vectors:
    """Factory helpers for building vectors."""

    @staticmethod
    def dense(values: TensorLike) -> DenseVector:
        return DenseVector(values)

    @staticmethod
    def sparse(size: int, indices: TensorLike, values: TensorLike) -> SparseVector:
        return SparseVector(size, indices, values)

    @staticmethod
    def zeros(size: int) -> DenseVector:
        return DenseVector(torch.zeros(size, dtype=DTYPE))


def axpy(a: float, x: Vector, y: DenseVector) -> None:
    """
    In place y += a * x.

    Only the active positions of a sparse x are written, so accumulating
    examples with disjoint sparsity never disturbs other entries of y.
    """
    if not isinstance(y, DenseVector):
        raise TypeError("axpy accumulates into a DenseVector")
    if x.size != y.size:
        raise DimensionMismatchError(f"axpy size mismatch: x has {x.size}, y has {y.size}")
    if isinstance(x, DenseVector):
        y.values.add_(x.values, alpha=a)
    else:
        indices, values = x.active()
        y.values.index_add_(0, indices, values, alpha=a)


def scal(a: float, x: DenseVector) -> None:
    """In place x *= a."""
    x.values.mul_(a)


def append_bias(vector: Vector) -> Vector:
    """Return a copy of the vector with a trailing 1.0 (the intercept feature)."""
    if isinstance(vector, SparseVector):
        return SparseVector(
            vector.size + 1,
            torch.cat([vector.indices, torch.tensor([vector.size], dtype=torch.long)]),
            torch.cat([vector.values, torch.ones(1, dtype=DTYPE)]),
        )
    return DenseVector(torch.cat([vector.to_tensor(), torch.ones(1, dtype=DTYPE)]))
