# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numbers
import numpy as np
from sklearn.utils import check_random_state
from ._options import SamplingOptions
from ..exceptions import InvalidArgumentError
from ..utilities import check_sample_fraction, check_weights

__all__ = ["RandomSampler"]


def _shift_past(value, skip):
    # skip is sorted ascending, so a single pass maps value into [0, max) \ skip
    for skip_value in skip:
        if value >= skip_value:
            value += 1
    return value


class RandomSampler:
    """
    Draws subsets of sample (or cluster) ids without replacement, for bagging and for
    the honest splitting of the samples of each tree.

    A sampler owns a private pseudo-random generator seeded once at construction and is
    meant to be created once per worker and reused across many draws. It is stateful and
    must not be shared across threads without external synchronization.

    Parameters
    ----------
    seed : int, RandomState instance or None, default None
        Seed of the private generator, in any form accepted by
        :func:`sklearn.utils.check_random_state`.
    options : SamplingOptions or None, default None
        The sampling configuration. If None, no clustering and no sample weights.
    """

    def __init__(self, seed=None, options=None):
        self.options = options if options is not None else SamplingOptions()
        self._random_state = check_random_state(seed)

    def clustering_enabled(self):
        return self.options.clustering_enabled

    def sample_clusters(self, num_rows, sample_fraction):
        """ Sample a fraction of the cluster ids if clustering is enabled, else of the row ids.

        Parameters
        ----------
        num_rows : int
            The number of rows in the training data.
        sample_fraction : float in (0, 1]
            The fraction of the units to draw.

        Returns
        -------
        ids : ndarray of int
            The sampled cluster ids, or row ids when clustering is disabled.
        """
        if self.options.clustering_enabled:
            return self.sample(self.options.num_clusters, sample_fraction)
        return self.sample(num_rows, sample_fraction)

    def sample(self, num_samples, sample_fraction):
        """ Draw ``floor(num_samples * sample_fraction)`` distinct ids in ``[0, num_samples)``.

        Ids are drawn uniformly unless the options carry sample weights, in which case they
        are drawn from the categorical distribution given by the weights.
        """
        sample_fraction = check_sample_fraction(sample_fraction)
        num_samples = self._check_count(num_samples, "num_samples")
        num_samples_inbag = int(np.floor(num_samples * sample_fraction))
        if self.options.sample_weights is None:
            return self._shuffle_and_split(num_samples, num_samples_inbag)
        return self.draw_weighted(num_samples, num_samples_inbag, self.options.sample_weights)

    def subsample(self, samples, sample_fraction):
        """ Return the first ``ceil(len(samples) * sample_fraction)`` ids of a shuffled copy of `samples`. """
        subsamples, _ = self.subsample_with_oob(samples, sample_fraction)
        return subsamples

    def subsample_with_oob(self, samples, sample_fraction):
        """ Split a shuffled copy of `samples` into a subsample and its out-of-bag complement.

        Parameters
        ----------
        samples : array_like of int
            The ids to split. The input is not modified.
        sample_fraction : float in (0, 1]
            The fraction of ids that go into the subsample, rounded up.

        Returns
        -------
        subsamples : ndarray of int
            ``ceil(len(samples) * sample_fraction)`` ids.
        oob_samples : ndarray of int
            The remaining ids. Together with `subsamples` they partition `samples`.
        """
        sample_fraction = check_sample_fraction(sample_fraction)
        samples = np.asarray(samples, dtype=np.int64)
        subsample_size = int(np.ceil(samples.shape[0] * sample_fraction))
        return self._split(samples, subsample_size)

    def sample_from_clusters(self, cluster_ids):
        """ Expand sampled clusters into rows, drawing `samples_per_cluster` rows from each.

        When clustering is disabled the ids already are row ids and are returned unchanged.
        """
        cluster_ids = np.asarray(cluster_ids, dtype=np.int64)
        if not self.options.clustering_enabled:
            return cluster_ids.copy()
        cluster_map = self.options.cluster_map
        samples = []
        for cluster_id in cluster_ids:
            if cluster_id not in cluster_map:
                raise InvalidArgumentError("Unknown cluster id {}".format(cluster_id))
            cluster_obs_subsample, _ = self._split(cluster_map[cluster_id], self.options.samples_per_cluster)
            samples.append(cluster_obs_subsample)
        if len(samples) == 0:
            return np.empty(0, dtype=np.int64)
        return np.concatenate(samples)

    def draw(self, max, skip, num_samples):
        """ Draw `num_samples` distinct ids in ``[0, max)`` that are not in `skip`.

        Every subset of size `num_samples` of the allowed ids is equally likely. Small
        draws use rejection sampling (:meth:`draw_simple`), large ones use selection sampling
        (:meth:`draw_knuth`).
        """
        if num_samples < max / 2:
            return self.draw_simple(max, skip, num_samples)
        return self.draw_knuth(max, skip, num_samples)

    def draw_simple(self, max, skip, num_samples):
        """ Rejection sampling: draw uniformly among the allowed ids and retry on collision.

        Efficient only while `num_samples` is much smaller than `max`.
        """
        skip = self._check_draw(max, skip, num_samples)
        selected = np.zeros(max, dtype=bool)
        result = np.empty(num_samples, dtype=np.int64)
        for i in range(num_samples):
            while True:
                draw = _shift_past(self._random_state.randint(max - skip.shape[0]), skip)
                if not selected[draw]:
                    break
            selected[draw] = True
            result[i] = draw
        return result

    def draw_knuth(self, max, skip, num_samples):
        """ Selection sampling (Knuth's Algorithm S), in O(max) time.

        Scans the allowed ids in order and accepts the j-th of the ``n`` candidates with
        probability ``(num_samples - i) / (n - j)``, where ``i`` ids were accepted so far.
        The result is sorted ascending.
        """
        skip = self._check_draw(max, skip, num_samples)
        size_no_skip = max - skip.shape[0]
        result = np.empty(num_samples, dtype=np.int64)
        i = 0
        j = 0
        while i < num_samples:
            u = self._random_state.uniform(0.0, 1.0)
            if (size_no_skip - j) * u >= num_samples - i:
                j += 1
            else:
                result[i] = _shift_past(j, skip)
                j += 1
                i += 1
        return result

    def draw_weighted(self, max, num_samples, weights):
        """ Draw `num_samples` distinct ids in ``[0, max)`` with probability proportional to `weights`.

        Duplicates are rejected, so the result is a draw without replacement from the
        successively renormalized categorical distribution.

        Parameters
        ----------
        max : int
            The number of candidate ids.
        num_samples : int
            The number of ids to draw. Must not exceed the number of positive weights.
        weights : array_like of shape (max,)
            Unnormalized, non-negative weights.
        """
        max = self._check_count(max, "max")
        num_samples = self._check_count(num_samples, "num_samples")
        weights = check_weights(weights, length=max)
        if num_samples > np.count_nonzero(weights):
            raise InvalidArgumentError("Cannot draw {} distinct ids from {} ids with positive weight"
                                       .format(num_samples, np.count_nonzero(weights)))
        cumulative = np.cumsum(weights)
        total = cumulative[-1]
        selected = np.zeros(max, dtype=bool)
        result = np.empty(num_samples, dtype=np.int64)
        for i in range(num_samples):
            while True:
                draw = int(np.searchsorted(cumulative, self._random_state.uniform(0.0, 1.0) * total, side='right'))
                draw = min(draw, max - 1)
                if not selected[draw]:
                    break
            selected[draw] = True
            result[i] = draw
        return result

    def sample_poisson(self, mean):
        """ Draw a Poisson distributed count with the given mean. """
        if not isinstance(mean, numbers.Real) or not np.isfinite(mean) or mean < 0:
            raise InvalidArgumentError("The Poisson mean must be finite and non-negative, but got {}".format(mean))
        return int(self._random_state.poisson(mean))

    def _shuffle_and_split(self, n_all, size):
        samples = np.arange(n_all, dtype=np.int64)
        self._random_state.shuffle(samples)
        return samples[:size]

    def _split(self, samples, size):
        shuffled_sample = np.array(samples, dtype=np.int64)
        self._random_state.shuffle(shuffled_sample)
        return shuffled_sample[:size], shuffled_sample[size:]

    @staticmethod
    def _check_count(value, name):
        if not isinstance(value, numbers.Integral) or value < 0:
            raise InvalidArgumentError("`{}` must be a non-negative integer, but got {}".format(name, value))
        return int(value)

    def _check_draw(self, max, skip, num_samples):
        max = self._check_count(max, "max")
        num_samples = self._check_count(num_samples, "num_samples")
        skip = np.unique(np.asarray(list(skip), dtype=np.int64))
        if skip.shape[0] > 0 and (skip[0] < 0 or skip[-1] >= max):
            raise InvalidArgumentError("Skipped ids must lie in [0, {}), but got {}".format(max, skip.tolist()))
        if num_samples > max - skip.shape[0]:
            raise InvalidArgumentError("Cannot draw {} distinct ids from {} allowed ids"
                                       .format(num_samples, max - skip.shape[0]))
        return skip
