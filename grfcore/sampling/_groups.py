# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numbers
from collections import namedtuple
from ..exceptions import InvalidArgumentError
from ..utilities import check_sample_fraction

__all__ = ["TreeSamples", "draw_tree_samples"]


TreeSamples = namedtuple("TreeSamples", ["structure", "estimation"])
TreeSamples.__doc__ = """ Row ids of one tree: those used to grow its structure and those used to
populate its leaves. Without honesty both fields hold the same ids. """


def draw_tree_samples(sampler, num_rows, sample_fraction, num_trees, *,
                      ci_group_size=1, honesty=False, honesty_fraction=0.5):
    """
    Generate the subsample of every tree of a forest.

    When ``ci_group_size > 1`` the trees are drawn in contiguous groups: each group first
    draws a half-sample of the units (clusters, or rows when clustering is disabled) and every
    tree of the group subsamples ``2 * sample_fraction`` of that half-sample, so that the
    variance between groups can later be separated from the noise within groups.

    Parameters
    ----------
    sampler : RandomSampler
        The sampler providing the randomness and the clustering configuration.
    num_rows : int
        The number of rows in the training data.
    sample_fraction : float in (0, 1]
        The fraction of the units used by each tree. Must be at most .5 if ``ci_group_size > 1``.
    num_trees : int
        The number of trees. Must be divisible by `ci_group_size`.
    ci_group_size : int, default 1
        The number of trees sharing a half-sample.
    honesty : bool, default False
        Whether to split the units of every tree into disjoint structure and estimation parts.
    honesty_fraction : float in (0, 1), default .5
        The fraction of a tree's units used to grow its structure when `honesty=True`.

    Returns
    -------
    trees : list of TreeSamples
        The row ids of each tree, in tree order.
    """
    if not isinstance(num_trees, numbers.Integral) or num_trees < 1:
        raise InvalidArgumentError("Parameter `num_trees` must be a positive integer, "
                                   "but got value {}".format(num_trees))
    if not isinstance(ci_group_size, numbers.Integral) or ci_group_size < 1:
        raise InvalidArgumentError("Parameter `ci_group_size` must be a positive integer, "
                                   "but got value {}".format(ci_group_size))
    if num_trees % ci_group_size != 0:
        raise InvalidArgumentError("The number of trees must be divisible by the `ci_group_size` parameter. "
                                   "Asked to build `num_trees={}` with `ci_group_size={}`."
                                   .format(num_trees, ci_group_size))
    if ci_group_size > 1:
        sample_fraction = check_sample_fraction(sample_fraction, upper=.5)
    else:
        sample_fraction = check_sample_fraction(sample_fraction)
    if honesty and not (0 < honesty_fraction < 1):
        raise InvalidArgumentError("Parameter `honesty_fraction` must be in (0, 1), "
                                   "but got value {}".format(honesty_fraction))

    trees = []
    if ci_group_size == 1:
        for _ in range(num_trees):
            units = sampler.sample_clusters(num_rows, sample_fraction)
            trees.append(_split_tree_units(sampler, units, honesty, honesty_fraction))
    else:
        for _ in range(num_trees // ci_group_size):
            half_sample = sampler.sample_clusters(num_rows, .5)
            for _ in range(ci_group_size):
                units = sampler.subsample(half_sample, 2 * sample_fraction)
                trees.append(_split_tree_units(sampler, units, honesty, honesty_fraction))
    return trees


def _split_tree_units(sampler, units, honesty, honesty_fraction):
    if honesty:
        structure_units, estimation_units = sampler.subsample_with_oob(units, honesty_fraction)
        return TreeSamples(sampler.sample_from_clusters(structure_units),
                           sampler.sample_from_clusters(estimation_units))
    samples = sampler.sample_from_clusters(units)
    return TreeSamples(samples, samples)
