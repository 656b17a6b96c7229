# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numpy as np
from scipy.special import log_ndtr
from ..exceptions import InsufficientDataError
from ..utilities import check_ci_group_size

__all__ = ["objective_bayes_debiasing", "grouped_variance"]


def objective_bayes_debiasing(var_between, group_noise, num_good_groups):
    """
    Debias the between-group variance of a grouped jackknife by the within-group noise.

    The naive estimate ``var_between - group_noise`` can be negative in small samples. Instead
    we treat it as ``N(S, se^2)`` around the true variance ``S``, with
    ``se = max(var_between, group_noise) * sqrt(2 / num_good_groups)``, put a flat prior on
    ``S >= 0`` and return the posterior mean::

        naive + se * phi(naive / se) / Phi(naive / se)

    Parameters
    ----------
    var_between : float
        The variance of the group means.
    group_noise : float
        The part of `var_between` explained by the noise of the trees within a group.
    num_good_groups : int
        The number of groups the estimates were computed on.

    Returns
    -------
    variance : float
        A non-negative variance estimate.
    """
    naive_estimate = var_between - group_noise
    se = max(var_between, group_noise) * np.sqrt(2.0 / num_good_groups)
    if not se > 0:
        return max(naive_estimate, 0.0)
    zstat = naive_estimate / se
    # phi(z) / Phi(z) in log space, stable for very negative z
    mills = np.exp(-zstat**2 / 2 - 0.5 * np.log(2.0 * np.pi) - log_ndtr(zstat))
    return max(float(naive_estimate + se * mills), 0.0)


def grouped_variance(tree_statistics, ci_group_size, debias=objective_bayes_debiasing):
    """
    Grouped jackknife variance of the average of per-tree statistics.

    Trees are partitioned into contiguous groups of `ci_group_size`; trailing trees that do not
    fill a group are ignored. A group is usable only if none of its trees is empty.

    Parameters
    ----------
    tree_statistics : array_like of shape (n_trees,)
        The statistic of every tree, NaN for trees with no relevant samples.
    ci_group_size : int
        The number of trees in a group, at least 2.
    debias : callable, default objective_bayes_debiasing
        Called as ``debias(var_between, group_noise, num_good_groups)``; must return a
        non-negative variance.

    Returns
    -------
    variance : float
    """
    ci_group_size = check_ci_group_size(ci_group_size)
    tree_statistics = np.asarray(tree_statistics, dtype=np.float64)
    n_groups = tree_statistics.shape[0] // ci_group_size
    grouped = tree_statistics[:n_groups * ci_group_size].reshape((n_groups, ci_group_size))
    good_groups = grouped[~np.any(np.isnan(grouped), axis=1)]
    num_good_groups = good_groups.shape[0]
    if num_good_groups == 0:
        raise InsufficientDataError("No group of {} trees has all its trees populated; "
                                    "the variance is undefined.".format(ci_group_size))

    group_means = np.mean(good_groups, axis=1)
    grand_mean = np.mean(group_means)
    var_between = np.mean(group_means**2) - grand_mean**2
    var_total = np.mean(good_groups**2) - grand_mean**2
    # Within-group noise, taken out of var_between by the debiasing step
    group_noise = (var_total - var_between) / (ci_group_size - 1)
    return float(debias(var_between, group_noise, num_good_groups))
