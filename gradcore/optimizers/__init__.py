from .updaters import (
    Updater,
    SimpleUpdater,
    SquaredL2Updater,
    L1Updater,
)
from .base import (
    Optimizer,
    make_optimizer,
)
from .gradient_descent import (
    GradientDescent,
    run_minibatch_sgd,
)
from .lbfgs import (
    LBFGS,
    run_lbfgs,
)

__all__ = [
    "Updater",
    "SimpleUpdater",
    "SquaredL2Updater",
    "L1Updater",
    "Optimizer",
    "make_optimizer",
    "GradientDescent",
    "run_minibatch_sgd",
    "LBFGS",
    "run_lbfgs",
]
