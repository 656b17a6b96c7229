# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numpy as np
from ..utilities import as_leaf_array

__all__ = ["debiased_error"]


def debiased_error(outcome, leaf_statistics):
    """
    Debiased squared error of a forest prediction.

    The squared error of the average over a finite number of trees overstates the error of
    the infinite forest by the Monte Carlo variance of the average, estimated as
    ``sum(statistic^2) / (T * (T - 1))`` over the ``T`` non-empty trees.

    Parameters
    ----------
    outcome : float
        The error of the forest prediction (or the quantity whose square is debiased).
    leaf_statistics : sequence of float or None
        One statistic per tree, centered at the forest average; empty leaves are None or NaN
        and are skipped.

    Returns
    -------
    error : float
        ``outcome^2 - bias``, or NaN when fewer than two trees are non-empty.
    """
    statistics = as_leaf_array(leaf_statistics)
    statistics = statistics[~np.isnan(statistics)]
    num_trees = statistics.shape[0]
    if num_trees <= 1:
        return np.nan
    bias = np.sum(statistics**2) / (num_trees * (num_trees - 1))
    return float(outcome**2 - bias)
