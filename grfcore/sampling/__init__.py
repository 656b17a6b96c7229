# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

""" Seeded samplers drawing subsets of sample or cluster ids without replacement, used for
bagging, confidence-interval tree groups and honest splitting. """

from ._options import SamplingOptions
from ._sampler import RandomSampler
from ._groups import TreeSamples, draw_tree_samples

__all__ = ["SamplingOptions",
           "RandomSampler",
           "TreeSamples",
           "draw_tree_samples"]
