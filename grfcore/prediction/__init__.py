# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

""" Prediction strategies that turn forest neighbor weights or leaf values into point predictions,
debiased variance estimates and debiased error estimates, and a driver evaluating them on many
query points.

References
----------
.. [grf] Athey, Susan, Julie Tibshirani, and Stefan Wager. "Generalized random forests."
    The Annals of Statistics 47.2 (2019): 1148-1178
    https://arxiv.org/pdf/1610.01271.pdf
"""

from ._observations import OUTCOME, TREATMENT, INSTRUMENT, Observations
from ._base import BasePredictionStrategy
from ._local_linear import LocalLinearPredictionStrategy, select_lambda
from ._regression import RegressionPredictionStrategy
from ._variance import objective_bayes_debiasing, grouped_variance
from ._debiasing import debiased_error
from ._predictor import Prediction, PREDICTION_STRATEGIES, make_prediction_strategy, ForestPredictor

__all__ = ["OUTCOME",
           "TREATMENT",
           "INSTRUMENT",
           "Observations",
           "BasePredictionStrategy",
           "LocalLinearPredictionStrategy",
           "select_lambda",
           "RegressionPredictionStrategy",
           "objective_bayes_debiasing",
           "grouped_variance",
           "debiased_error",
           "Prediction",
           "PREDICTION_STRATEGIES",
           "make_prediction_strategy",
           "ForestPredictor"]
