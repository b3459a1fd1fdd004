"""
Central location for numerical constants.

These constants are used consistently across gradients, optimizers and metrics.
"""

import torch

# Every vector and weight buffer is double precision
DTYPE = torch.float64

# Default seed offset for mini-batch sampling; iteration i samples with SEED + i
SAMPLING_SEED = 42

# Decision thresholds used by the classification models
LOGISTIC_THRESHOLD = 0.5
SVM_THRESHOLD = 0.0

# L-BFGS defaults
LBFGS_NUM_CORRECTIONS = 10
LBFGS_CONVERGENCE_TOL = 1e-9
