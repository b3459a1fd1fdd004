from typing import Any, Dict, Iterator, List, Optional

import numpy as np


class LossHistory:
    """
    Per-iteration training loss recorded by an optimizer.

    Step t (1-based) holds the mean mini-batch loss plus the regularization
    value in effect during that step.
    """

    def __init__(self, metadata: Optional[Dict[str, Any]] = None):
        self._losses: List[float] = []
        self.metadata: Dict[str, Any] = dict(metadata or {})

    def record(self, loss: float) -> None:
        self._losses.append(float(loss))

    def __len__(self) -> int:
        return len(self._losses)

    def __getitem__(self, i: int) -> float:
        return self._losses[i]

    def __iter__(self) -> Iterator[float]:
        return iter(self._losses)

    @property
    def last(self) -> Optional[float]:
        return self._losses[-1] if self._losses else None

    def get_steps(self) -> List[int]:
        return list(range(1, len(self._losses) + 1))

    def to_dict(self) -> Dict[str, np.ndarray]:
        return {
            "step": np.asarray(self.get_steps(), dtype=np.int64),
            "loss": np.asarray(self._losses, dtype=np.float64),
        }

    def __repr__(self) -> str:
        return f"LossHistory(steps={len(self)}, last={self.last})"
