from .linear import (
    GeneralizedLinearModel,
    GeneralizedLinearAlgorithm,
    LogisticRegressionModel,
    LinearRegressionModel,
    SVMModel,
    LogisticRegressionWithSGD,
    LogisticRegressionWithLBFGS,
    LinearRegressionWithSGD,
    SVMWithSGD,
)

__all__ = [
    "GeneralizedLinearModel",
    "GeneralizedLinearAlgorithm",
    "LogisticRegressionModel",
    "LinearRegressionModel",
    "SVMModel",
    "LogisticRegressionWithSGD",
    "LogisticRegressionWithLBFGS",
    "LinearRegressionWithSGD",
    "SVMWithSGD",
]
