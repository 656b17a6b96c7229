# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import logging
from collections import namedtuple
from types import MappingProxyType
import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from ._base import BasePredictionStrategy
from ._local_linear import LocalLinearPredictionStrategy
from ._regression import RegressionPredictionStrategy
from ..exceptions import InsufficientDataError, InvalidArgumentError, SingularSystemError
from ..utilities import check_ci_group_size

__all__ = ["Prediction",
           "PREDICTION_STRATEGIES",
           "make_prediction_strategy",
           "ForestPredictor"]

LOGGER = logging.getLogger(__name__)

Prediction = namedtuple("Prediction", ["predictions", "variance_estimates", "error_estimates"])
Prediction.__doc__ = """ Result for one query point. Estimates that were not requested are None. """

PREDICTION_STRATEGIES = MappingProxyType({
    "regression": RegressionPredictionStrategy,
    "local_linear": LocalLinearPredictionStrategy,
})


def make_prediction_strategy(kind, **params):
    """
    Build one of the available prediction strategies.

    Parameters
    ----------
    kind : {'regression', 'local_linear'}
        The strategy to build.
    params : dict
        Keyword arguments of the strategy's constructor.

    Returns
    -------
    strategy : BasePredictionStrategy
    """
    if kind not in PREDICTION_STRATEGIES:
        raise InvalidArgumentError("Unknown prediction strategy {!r}; expected one of {}"
                                   .format(kind, sorted(PREDICTION_STRATEGIES)))
    return PREDICTION_STRATEGIES[kind](**params)


def _partition_queries(n_queries, n_jobs):
    """Private function used to partition query points between jobs."""
    n_jobs = min(effective_n_jobs(n_jobs), n_queries)
    n_queries_per_job = np.full(n_jobs, n_queries // n_jobs, dtype=int)
    n_queries_per_job[: n_queries % n_jobs] += 1
    starts = np.cumsum(n_queries_per_job)
    return n_jobs, [0] + starts.tolist()


class ForestPredictor:
    """
    Evaluate a prediction strategy on many query points.

    Parameters
    ----------
    strategy : BasePredictionStrategy
        The strategy evaluated at every query point.
    ci_group_size : int, default 2
        The number of trees per group used for variance estimation.
    n_jobs : int or None, default None
        The number of jobs to run in parallel. ``None`` means 1 unless in a
        :obj:`joblib.parallel_backend` context. ``-1`` means using all processors.
    verbose : int, default 0
        Controls the verbosity of the parallel loop and of the per-point diagnostics.
    logger : logging.Logger or None, default None
        The sink of the per-point failure records. If None, the module logger is used.
    """

    def __init__(self, strategy, *, ci_group_size=2, n_jobs=None, verbose=0, logger=None):
        if not isinstance(strategy, BasePredictionStrategy):
            raise InvalidArgumentError("`strategy` must be a prediction strategy, but got {}".format(type(strategy)))
        self.strategy = strategy
        self.ci_group_size = ci_group_size
        self.n_jobs = n_jobs
        self.verbose = verbose
        self.logger = logger if logger is not None else LOGGER

    def predict(self, query_ids, observations, *, neighbor_weights=None, samples_by_tree=None,
                leaf_values=None, estimate_variance=False, estimate_error=False):
        """
        Predict at every query point.

        A failure of the estimate at one point (a singular local regression, or too few
        populated trees) yields NaN values for that point and a warning record; the other
        points are unaffected.

        Parameters
        ----------
        query_ids : list of int
            The query points.
        observations : Observations
            The observed channels of the training samples.
        neighbor_weights : list of dict or None, default None
            For every query, the forest weight of every neighbor. Required by strategies that
            ``requires_leaf_sampleIDs()``.
        samples_by_tree : list of list of list of int or None, default None
            For every query and every tree, the training samples of the query's leaf. Required
            by those strategies when `estimate_variance=True`.
        leaf_values : list of list of float or None, default None
            For every query, the value of the query's leaf in every tree (None for empty
            leaves). Required by the other strategies.
        estimate_variance : bool, default False
            Whether to estimate the variance of the predictions.
        estimate_error : bool, default False
            Whether to estimate the debiased squared error; query ids must then be training samples.

        Returns
        -------
        predictions : list of Prediction
            One result per query, in query order.
        """
        query_ids = list(query_ids)
        if self.strategy.requires_leaf_sampleIDs():
            self._check_per_query(neighbor_weights, "neighbor_weights", len(query_ids))
            if estimate_variance:
                self._check_per_query(samples_by_tree, "samples_by_tree", len(query_ids))
        else:
            self._check_per_query(leaf_values, "leaf_values", len(query_ids))
        if estimate_variance:
            check_ci_group_size(self.ci_group_size)
        if len(query_ids) == 0:
            return []

        n_jobs, starts = _partition_queries(len(query_ids), self.n_jobs)
        chunks = Parallel(n_jobs=n_jobs, verbose=self.verbose, backend='threading')(
            delayed(self._predict_chunk)(query_ids[starts[i]:starts[i + 1]],
                                         observations,
                                         self._slice(neighbor_weights, starts[i], starts[i + 1]),
                                         self._slice(samples_by_tree, starts[i], starts[i + 1]),
                                         self._slice(leaf_values, starts[i], starts[i + 1]),
                                         estimate_variance, estimate_error)
            for i in range(n_jobs))
        return [prediction for chunk in chunks for prediction in chunk]

    def _predict_chunk(self, query_ids, observations, neighbor_weights, samples_by_tree, leaf_values,
                       estimate_variance, estimate_error):
        uses_sample_ids = self.strategy.requires_leaf_sampleIDs()
        results = []
        for k, sample_id in enumerate(query_ids):
            query_input = neighbor_weights[k] if uses_sample_ids else leaf_values[k]
            predictions = self.strategy.predict(sample_id, query_input, observations)

            variance_estimates = None
            if estimate_variance:
                try:
                    if uses_sample_ids:
                        variance_estimates = self.strategy.compute_variance(
                            sample_id, query_input, samples_by_tree[k], observations, self.ci_group_size)
                    else:
                        variance_estimates = self.strategy.compute_variance(
                            sample_id, query_input, observations, self.ci_group_size)
                except (SingularSystemError, InsufficientDataError) as exc:
                    self.logger.warning("Variance estimate unavailable for query %s: %s", sample_id, exc)
                    variance_estimates = np.array([np.nan])

            error_estimates = None
            if estimate_error:
                error_estimates = self.strategy.compute_debiased_error(sample_id, query_input, observations)

            results.append(Prediction(predictions, variance_estimates, error_estimates))
        return results

    @staticmethod
    def _check_per_query(values, name, n_queries):
        if values is None:
            raise InvalidArgumentError("`{}` is required by this prediction strategy.".format(name))
        if len(values) != n_queries:
            raise InvalidArgumentError("`{}` must have one entry per query: expected {}, got {}"
                                       .format(name, n_queries, len(values)))

    @staticmethod
    def _slice(values, start, stop):
        return None if values is None else values[start:stop]
