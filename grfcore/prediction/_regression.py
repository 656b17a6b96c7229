# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import logging
import numpy as np
from ._base import BasePredictionStrategy
from ._debiasing import debiased_error
from ._observations import OUTCOME
from ._variance import grouped_variance, objective_bayes_debiasing
from ..exceptions import InsufficientDataError
from ..utilities import as_leaf_array, check_ci_group_size

__all__ = ["RegressionPredictionStrategy"]

LOGGER = logging.getLogger(__name__)


class RegressionPredictionStrategy(BasePredictionStrategy):
    """
    Local constant forest prediction from per-tree leaf values.

    The prediction at a query point is the average over trees of the mean outcome of the
    query's leaf in each tree. Trees where the query falls in an empty leaf are skipped.

    Parameters
    ----------
    verbose : int, default 0
    logger : logging.Logger or None, default None
    """

    def __init__(self, *, verbose=0, logger=None):
        super().__init__(verbose=verbose, logger=logger if logger is not None else LOGGER)

    def prediction_length(self):
        return 1

    def requires_leaf_sampleIDs(self):
        return False

    def predict(self, sample_id, leaf_values, observations=None):
        """ Average of the non-empty leaf values, or NaN if all leaves are empty. """
        leaf_values = as_leaf_array(leaf_values)
        populated = leaf_values[~np.isnan(leaf_values)]
        if populated.shape[0] == 0:
            self._debug("Query %s: every leaf is empty", sample_id)
            return np.array([np.nan])
        return np.array([np.mean(populated)])

    def compute_variance(self, sample_id, leaf_values, observations, ci_group_size,
                         debias=objective_bayes_debiasing):
        """ Grouped jackknife variance of the averaged leaf values.

        Parameters
        ----------
        sample_id : int
        leaf_values : sequence of float or None
            The mean outcome of the query's leaf in every tree, None or NaN for empty leaves.
        observations : Observations or None
            Unused; part of the common signature.
        ci_group_size : int
        debias : callable, default objective_bayes_debiasing

        Returns
        -------
        variance : ndarray of shape (1,)
        """
        ci_group_size = check_ci_group_size(ci_group_size)
        leaf_values = as_leaf_array(leaf_values)
        if np.all(np.isnan(leaf_values)):
            raise InsufficientDataError("Every leaf is empty; the variance is undefined.")
        average = np.nanmean(leaf_values)
        return np.array([grouped_variance(leaf_values - average, ci_group_size, debias=debias)])

    def compute_debiased_error(self, sample_id, leaf_values, observations):
        """ Debiased squared out-of-bag error at training sample `sample_id`.

        The error of the forest average against the observed outcome is corrected for the
        Monte Carlo noise of averaging over a finite number of trees.

        Returns
        -------
        error : ndarray of shape (1,)
            NaN if fewer than two leaves are non-empty.
        """
        leaf_values = as_leaf_array(leaf_values)
        if np.sum(~np.isnan(leaf_values)) <= 1:
            return np.array([np.nan])
        average = np.nanmean(leaf_values)
        error = average - observations.get(OUTCOME, sample_id)
        return np.array([debiased_error(error, leaf_values - average)])
