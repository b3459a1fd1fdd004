"""
Local partitioned execution for gradient aggregation.

A PartitionedDataset splits examples into contiguous partitions. Each
partition task folds its examples into a private accumulator created by
`zero()`, and the partial results are summed pairwise afterwards. Merging
happens in partition order, so results do not depend on worker scheduling.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generic, Iterator, List, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")


class PartitionedDataset(Generic[T]):
    def __init__(
        self,
        points: Sequence[T],
        num_partitions: int = 2,
        num_workers: int = 1,
    ):
        """
        Args:
            points: Examples to distribute
            num_partitions: Number of contiguous partitions (>= 1)
            num_workers: Threads used to run partition tasks (1 = sequential)
        """
        if num_partitions < 1:
            raise ValueError(f"num_partitions must be >= 1, got {num_partitions}")
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")
        points = list(points)
        n = len(points)
        self._partitions: List[List[T]] = [
            points[(i * n) // num_partitions : ((i + 1) * n) // num_partitions]
            for i in range(num_partitions)
        ]
        self.num_workers = num_workers

    @classmethod
    def from_partitions(cls, partitions: Sequence[Sequence[T]], num_workers: int = 1):
        dataset = cls([], num_partitions=1, num_workers=num_workers)
        dataset._partitions = [list(p) for p in partitions]
        return dataset

    @property
    def partitions(self) -> List[List[T]]:
        return self._partitions

    @property
    def num_partitions(self) -> int:
        return len(self._partitions)

    def count(self) -> int:
        return sum(len(p) for p in self._partitions)

    def collect(self) -> List[T]:
        return [point for partition in self._partitions for point in partition]

    def first(self) -> T:
        for partition in self._partitions:
            if partition:
                return partition[0]
        raise ValueError("first() called on an empty dataset")

    def map(self, fn: Callable[[T], U]) -> "PartitionedDataset[U]":
        """Apply fn to every example, keeping the partition layout."""
        return PartitionedDataset.from_partitions(
            [[fn(point) for point in partition] for partition in self._partitions],
            num_workers=self.num_workers,
        )

    def _iter_partition(
        self, index: int, fraction: float, seed: Optional[int]
    ) -> Iterator[T]:
        partition = self._partitions[index]
        if fraction >= 1.0:
            yield from partition
            return
        # Bernoulli sampling without replacement; each partition gets its own stream
        rng = np.random.default_rng(None if seed is None else [seed, index])
        keep = rng.random(len(partition)) < fraction
        for point, kept in zip(partition, keep):
            if kept:
                yield point

    def tree_aggregate(
        self,
        zero: Callable[[], A],
        seq_op: Callable[[A, T], A],
        comb_op: Callable[[A, A], A],
        fraction: float = 1.0,
        seed: Optional[int] = None,
    ) -> A:
        """
        Fold every partition into its own accumulator, then merge pairwise.

        Args:
            zero: Factory for a fresh accumulator; called once per partition
            seq_op: Folds one example into an accumulator
            comb_op: Merges two accumulators (associative and commutative)
            fraction: Bernoulli sampling probability in (0, 1]
            seed: Sampling seed (partition index is mixed in)

        Returns:
            The merged accumulator
        """
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")

        def run_partition(index: int) -> A:
            acc = zero()
            for point in self._iter_partition(index, fraction, seed):
                acc = seq_op(acc, point)
            return acc

        indices = range(len(self._partitions))
        if self.num_workers > 1 and len(self._partitions) > 1:
            with ThreadPoolExecutor(max_workers=self.num_workers) as pool:
                partials = list(pool.map(run_partition, indices))
        else:
            partials = [run_partition(i) for i in indices]

        while len(partials) > 1:
            merged = [
                comb_op(partials[i], partials[i + 1])
                for i in range(0, len(partials) - 1, 2)
            ]
            if len(partials) % 2 == 1:
                merged.append(partials[-1])
            partials = merged

        return partials[0]
