# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import unittest
import numpy as np
import pytest
from grfcore.exceptions import InvalidArgumentError
from grfcore.sampling import RandomSampler, SamplingOptions, draw_tree_samples


class TestRandomSampler(unittest.TestCase):

    def test_sample_unweighted(self):
        sampler = RandomSampler(123)
        for n in [0, 1, 7, 10, 100, 1001]:
            for fraction in [.1, .25, .5, .9, 1.0]:
                samples = sampler.sample(n, fraction)
                assert samples.shape[0] == int(np.floor(n * fraction))
                assert np.unique(samples).shape[0] == samples.shape[0]
                assert np.all((samples >= 0) & (samples < n))

    def test_sample_is_uniform_permutation_prefix(self):
        sampler = RandomSampler(0)
        counts = np.zeros(10)
        for _ in range(3000):
            counts[sampler.sample(10, .3)] += 1
        np.testing.assert_allclose(counts / 3000, .3, atol=.04)

    def test_sample_weighted(self):
        weights = np.array([0., 1., 0., 2., 3., 0.])
        sampler = RandomSampler(123, SamplingOptions(sample_weights=weights))
        for _ in range(50):
            samples = sampler.sample(6, .5)
            assert samples.shape[0] == 3
            np.testing.assert_array_equal(np.sort(samples), [1, 3, 4])
        # the last index is a valid candidate
        sampler = RandomSampler(123, SamplingOptions(sample_weights=[0., 0., 0., 0., 1.]))
        np.testing.assert_array_equal(sampler.sample(5, .2), [4])

    def test_sample_invalid_arguments(self):
        sampler = RandomSampler(123)
        for fraction in [0, -.1, np.nan, np.inf, 1.5, "half"]:
            with pytest.raises(InvalidArgumentError):
                sampler.sample(10, fraction)
        with pytest.raises(InvalidArgumentError):
            SamplingOptions(sample_weights=np.zeros(5))
        with pytest.raises(InvalidArgumentError):
            SamplingOptions(sample_weights=[1., -1., 2.])
        sampler = RandomSampler(123, SamplingOptions(sample_weights=[1., 0., 0., 0.]))
        with pytest.raises(InvalidArgumentError):
            sampler.sample(4, .5)

    def test_subsample_partition(self):
        sampler = RandomSampler(7)
        samples = np.arange(100, 137)
        original = samples.copy()
        for fraction in [.1, .3, .5, .99, 1.0]:
            subsamples, oob = sampler.subsample_with_oob(samples, fraction)
            assert subsamples.shape[0] == int(np.ceil(samples.shape[0] * fraction))
            assert len(set(subsamples) & set(oob)) == 0
            np.testing.assert_array_equal(np.sort(np.concatenate([subsamples, oob])), samples)
            assert sampler.subsample(samples, fraction).shape[0] == subsamples.shape[0]
        np.testing.assert_array_equal(samples, original)

    def test_draw_contract(self):
        sampler = RandomSampler(123)
        skip = {0, 5, 9, 19}
        for method in [sampler.draw, sampler.draw_simple, sampler.draw_knuth]:
            for k in [0, 1, 5, 10, 16]:
                result = method(20, skip, k)
                assert result.shape[0] == k
                assert np.unique(result).shape[0] == k
                assert np.all((result >= 0) & (result < 20))
                assert not (set(result.tolist()) & skip)
        # every allowed index is drawn when k is the number of allowed indices
        np.testing.assert_array_equal(np.sort(sampler.draw(20, skip, 16)),
                                      np.setdiff1d(np.arange(20), list(skip)))
        np.testing.assert_array_equal(sampler.draw_knuth(10, [], 10), np.arange(10))

    def test_draw_frequencies(self):
        max_, skip, k, n_trials = 20, {3, 7}, 5, 4000
        expected = k / (max_ - len(skip))
        for method in [RandomSampler(1).draw_simple, RandomSampler(2).draw_knuth]:
            counts = np.zeros(max_)
            for _ in range(n_trials):
                counts[method(max_, skip, k)] += 1
            freq = counts / n_trials
            assert freq[3] == 0 and freq[7] == 0
            allowed = np.setdiff1d(np.arange(max_), list(skip))
            np.testing.assert_allclose(freq[allowed], expected, atol=.035)

    def test_draw_invalid_arguments(self):
        sampler = RandomSampler(123)
        for method in [sampler.draw, sampler.draw_simple, sampler.draw_knuth]:
            with pytest.raises(InvalidArgumentError):
                method(10, {1, 2}, 9)
            with pytest.raises(InvalidArgumentError):
                method(10, {10}, 2)
            with pytest.raises(InvalidArgumentError):
                method(10, {-1}, 2)

    def test_draw_weighted(self):
        sampler = RandomSampler(5)
        weights = np.array([1., 0., 3., 0.])
        counts = np.zeros(4)
        for _ in range(4000):
            result = sampler.draw_weighted(4, 1, weights)
            counts[result] += 1
        np.testing.assert_allclose(counts / 4000, [.25, 0, .75, 0], atol=.03)
        np.testing.assert_array_equal(np.sort(sampler.draw_weighted(4, 2, weights)), [0, 2])
        with pytest.raises(InvalidArgumentError):
            sampler.draw_weighted(4, 3, weights)
        with pytest.raises(InvalidArgumentError):
            sampler.draw_weighted(4, 1, np.zeros(4))
        with pytest.raises(InvalidArgumentError):
            sampler.draw_weighted(5, 1, weights)

    def test_sample_poisson(self):
        sampler = RandomSampler(123)
        draws = [sampler.sample_poisson(4) for _ in range(3000)]
        assert all(isinstance(d, int) and d >= 0 for d in draws)
        np.testing.assert_allclose(np.mean(draws), 4, atol=.2)
        assert sampler.sample_poisson(0) == 0
        with pytest.raises(InvalidArgumentError):
            sampler.sample_poisson(-1)

    def test_random_state(self):
        first = RandomSampler(42)
        second = RandomSampler(42)
        for _ in range(5):
            np.testing.assert_array_equal(first.sample(50, .4), second.sample(50, .4))
            np.testing.assert_array_equal(first.draw(30, {2}, 4), second.draw(30, {2}, 4))
            np.testing.assert_array_equal(first.subsample(np.arange(20), .5), second.subsample(np.arange(20), .5))
        assert not np.array_equal(RandomSampler(1).sample(100, .5), RandomSampler(2).sample(100, .5))


class TestClusteredSampling(unittest.TestCase):

    def _options(self, **kwargs):
        return SamplingOptions(clusters=['a', 'a', 'b', 'b', 'b', 'c', 'c'], **kwargs)

    def test_cluster_map(self):
        options = self._options()
        assert options.clustering_enabled
        assert options.num_clusters == 3
        assert options.samples_per_cluster == 2
        np.testing.assert_array_equal(options.cluster_map[0], [0, 1])
        np.testing.assert_array_equal(options.cluster_map[1], [2, 3, 4])
        np.testing.assert_array_equal(options.cluster_map[2], [5, 6])
        assert not SamplingOptions().clustering_enabled
        assert not SamplingOptions(clusters=[]).clustering_enabled

    def test_invalid_options(self):
        with pytest.raises(InvalidArgumentError):
            self._options(samples_per_cluster=3)
        with pytest.raises(InvalidArgumentError):
            self._options(samples_per_cluster=0)
        with pytest.raises(InvalidArgumentError):
            self._options(sample_weights=np.ones(5))

    def test_row_weights_with_clusters_rejected(self):
        # row weights could not be used to draw clusters
        with pytest.raises(InvalidArgumentError):
            SamplingOptions(clusters=[0, 0, 1, 1, 2, 2], sample_weights=np.ones(6))
        with pytest.raises(InvalidArgumentError):
            self._options(sample_weights=np.ones(7))
        options = SamplingOptions(clusters=[], sample_weights=np.ones(6))
        assert not options.clustering_enabled
        assert RandomSampler(0, options).sample_clusters(6, .5).shape[0] == 3

    def test_sample_clusters(self):
        sampler = RandomSampler(123, self._options(samples_per_cluster=1))
        assert sampler.clustering_enabled()
        np.testing.assert_array_equal(np.sort(sampler.sample_clusters(7, 1.0)), [0, 1, 2])
        assert sampler.sample_clusters(7, .7).shape[0] == 2
        assert not RandomSampler(123).clustering_enabled()
        assert RandomSampler(123).sample_clusters(7, 1.0).shape[0] == 7

    def test_sample_from_clusters(self):
        sampler = RandomSampler(123, self._options())
        for _ in range(20):
            samples = sampler.sample_from_clusters([1, 2])
            assert samples.shape[0] == 4
            assert len(set(samples[:2]) - {2, 3, 4}) == 0
            np.testing.assert_array_equal(np.sort(samples[2:]), [5, 6])
        assert sampler.sample_from_clusters([]).shape[0] == 0
        with pytest.raises(InvalidArgumentError):
            sampler.sample_from_clusters([3])
        np.testing.assert_array_equal(RandomSampler(0).sample_from_clusters([4, 2]), [4, 2])


class TestTreeSamples(unittest.TestCase):

    def test_ci_groups_with_honesty(self):
        sampler = RandomSampler(123)
        trees = draw_tree_samples(sampler, 100, .25, 6, ci_group_size=2, honesty=True)
        assert len(trees) == 6
        for tree in trees:
            assert tree.structure.shape[0] == 13
            assert tree.estimation.shape[0] == 12
            assert len(set(tree.structure) & set(tree.estimation)) == 0
        for group in range(3):
            rows = set()
            for tree in trees[2 * group: 2 * group + 2]:
                rows |= set(tree.structure) | set(tree.estimation)
            assert len(rows) <= 50

    def test_without_groups_or_honesty(self):
        trees = draw_tree_samples(RandomSampler(123), 40, .5, 3)
        for tree in trees:
            assert tree.structure.shape[0] == 20
            np.testing.assert_array_equal(tree.structure, tree.estimation)

    def test_clustered_trees(self):
        options = SamplingOptions(clusters=np.repeat(np.arange(10), 3), samples_per_cluster=2)
        trees = draw_tree_samples(RandomSampler(123, options), 30, .5, 4, honesty=True)
        for tree in trees:
            # 5 clusters per tree, 3 grow the structure and 2 populate the leaves
            assert tree.structure.shape[0] == 6
            assert tree.estimation.shape[0] == 4
            structure_clusters = set(tree.structure // 3)
            estimation_clusters = set(tree.estimation // 3)
            assert len(structure_clusters & estimation_clusters) == 0

    def test_invalid_arguments(self):
        sampler = RandomSampler(123)
        with pytest.raises(InvalidArgumentError):
            draw_tree_samples(sampler, 100, .25, 5, ci_group_size=2)
        with pytest.raises(InvalidArgumentError):
            draw_tree_samples(sampler, 100, .6, 4, ci_group_size=2)
        with pytest.raises(InvalidArgumentError):
            draw_tree_samples(sampler, 100, .5, 0)
        with pytest.raises(InvalidArgumentError):
            draw_tree_samples(sampler, 100, .5, 2, honesty=True, honesty_fraction=1.0)
