# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numbers
import numpy as np
from ..exceptions import InvalidArgumentError
from ..utilities import check_weights

__all__ = ["SamplingOptions"]


class SamplingOptions:
    """
    Read-only sampling configuration shared by every sampler of a training run.

    Parameters
    ----------
    samples_per_cluster : int or None, default None
        The number of rows drawn from each sampled cluster. If None, the size of the
        smallest cluster is used. Ignored when clustering is disabled.
    clusters : array_like of shape (n_rows,) or None, default None
        The cluster label of every row. Labels can be any hashable values and are mapped
        to dense cluster ids ``0..n_clusters-1`` in order of first appearance. If None or
        empty, clustering is disabled.
    sample_weights : array_like of shape (n_rows,) or None, default None
        Non-negative sampling weights of every row. If None, rows are drawn uniformly.
        Not supported together with `clusters`.
    """

    def __init__(self, samples_per_cluster=None, clusters=None, sample_weights=None):
        self._cluster_map = {}
        if clusters is not None and len(clusters) > 0:
            for sample, cluster in enumerate(clusters):
                self._cluster_map.setdefault(cluster, []).append(sample)
            # Relabel in order of first appearance
            self._cluster_map = {cluster_id: np.array(members, dtype=np.int64)
                                 for cluster_id, members in enumerate(self._cluster_map.values())}

        if self.clustering_enabled:
            smallest = min(len(members) for members in self._cluster_map.values())
            if samples_per_cluster is None:
                samples_per_cluster = smallest
            if not isinstance(samples_per_cluster, numbers.Integral) or samples_per_cluster < 1:
                raise InvalidArgumentError("Parameter `samples_per_cluster` must be a positive integer, "
                                           "but got value {}".format(samples_per_cluster))
            if samples_per_cluster > smallest:
                raise InvalidArgumentError("Parameter `samples_per_cluster` must not exceed the size of the "
                                           "smallest cluster ({}), but got value {}"
                                           .format(smallest, samples_per_cluster))
        self._samples_per_cluster = samples_per_cluster

        if sample_weights is not None:
            if self.clustering_enabled:
                raise InvalidArgumentError("`sample_weights` cannot be combined with `clusters`: clusters "
                                           "are drawn uniformly.")
            sample_weights = np.array(check_weights(sample_weights, name="sample_weights"), copy=True)
            sample_weights.setflags(write=False)
        self._sample_weights = sample_weights

    @property
    def clustering_enabled(self):
        return len(self._cluster_map) > 0

    @property
    def num_clusters(self):
        return len(self._cluster_map)

    @property
    def cluster_map(self):
        """ Mapping from dense cluster id to the array of member row ids. """
        return self._cluster_map

    @property
    def samples_per_cluster(self):
        return self._samples_per_cluster

    @property
    def sample_weights(self):
        return self._sample_weights

    def __repr__(self):
        return ("SamplingOptions(num_clusters={}, samples_per_cluster={}, weighted={})"
                .format(self.num_clusters, self.samples_per_cluster, self.sample_weights is not None))
