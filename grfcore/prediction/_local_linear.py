# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import logging
import numpy as np
import scipy.linalg
from ._base import BasePredictionStrategy
from ._observations import OUTCOME
from ._variance import grouped_variance, objective_bayes_debiasing
from ..exceptions import InsufficientDataError, InvalidArgumentError, SingularSystemError
from ..utilities import check_ci_group_size, check_data_arrays, check_lambdas

__all__ = ["LocalLinearPredictionStrategy", "select_lambda"]

LOGGER = logging.getLogger(__name__)


class LocalLinearPredictionStrategy(BasePredictionStrategy):
    """
    Local linear correction of forest predictions [ll]_.

    Instead of averaging the outcomes of the forest neighbors of a query point x, fit a
    weighted ridge regression of the outcome on the covariate differences around x, using
    the forest weights as kernel weights::

        theta(x) = argmin_theta sum_i w_i(x) (Y_i - theta_0 - (X_i - x) . theta_1)^2 + penalty(theta_1)

    and return the intercept theta_0. The Gram matrix of the regression is computed once per
    query and shared by all the ridge penalties.

    Parameters
    ----------
    train_X : array_like of shape (n_train, n_features)
        The covariates of the training samples.
    query_X : array_like of shape (n_query, n_features)
        The covariates of the query points.
    lambdas : float or list of float, default (0.1,)
        The ridge penalties. One prediction is returned per penalty.
    weight_penalty : bool, default False
        If False, every non-intercept diagonal entry of the Gram matrix ``M`` is penalized by
        ``lambda * trace(M) / (p + 1)``. If True, entry ``i`` is penalized by ``lambda * M[i, i]``,
        i.e. the penalty scales with the weighted second moment of each covariate difference.
    linear_correction_variables : list of int or None, default None
        The columns used in the local regression. If None, all columns. An empty list fits a
        local constant, i.e. the weighted mean of the neighbor outcomes.
    verbose : int, default 0
    logger : logging.Logger or None, default None

    References
    ----------
    .. [ll] Friedberg, Rina, Julie Tibshirani, Susan Athey, and Stefan Wager. "Local linear forests."
        Journal of Computational and Graphical Statistics 30.2 (2021): 503-517.
    """

    def __init__(self, train_X, query_X, lambdas=(0.1,), weight_penalty=False,
                 linear_correction_variables=None, *, verbose=0, logger=None):
        super().__init__(verbose=verbose, logger=logger if logger is not None else LOGGER)
        self.train_X, self.query_X = check_data_arrays(train_X, query_X)
        self.lambdas = check_lambdas(lambdas)
        self.weight_penalty = bool(weight_penalty)
        n_features = self.train_X.shape[1]
        if linear_correction_variables is None:
            linear_correction_variables = np.arange(n_features)
        linear_correction_variables = np.asarray(linear_correction_variables, dtype=np.intp).ravel()
        if np.any(linear_correction_variables < 0) or np.any(linear_correction_variables >= n_features):
            raise InvalidArgumentError("`linear_correction_variables` must be column indices in [0, {}), "
                                       "but got {}".format(n_features, linear_correction_variables.tolist()))
        if np.unique(linear_correction_variables).shape[0] != linear_correction_variables.shape[0]:
            raise InvalidArgumentError("`linear_correction_variables` must not contain duplicates.")
        self.linear_correction_variables = linear_correction_variables

    def prediction_length(self):
        return self.lambdas.shape[0]

    def requires_leaf_sampleIDs(self):
        return True

    def predict(self, sample_id, neighbor_weights, observations):
        """ Local linear prediction at query point `sample_id`, one per ridge penalty.

        Parameters
        ----------
        sample_id : int
            The row of the query point in `query_X`.
        neighbor_weights : dict of int to float
            The forest weight of every training sample with a non-zero weight.
        observations : Observations
            The observed outcomes of the training samples.

        Returns
        -------
        predictions : ndarray of shape (n_lambdas,)
            The local intercept for each penalty, NaN where the regression is singular.
        """
        predictions = np.full(self.lambdas.shape[0], np.nan)
        try:
            X, weights, Y = self._design(sample_id, neighbor_weights, observations)
        except SingularSystemError as exc:
            self._debug("Query %s: %s", sample_id, exc)
            return predictions
        M0, XtWY = self._normal_equations(X, weights, Y)
        for i, lmbda in enumerate(self.lambdas):
            try:
                predictions[i] = self._solve(self._penalize(M0, lmbda), XtWY)[0]
            except SingularSystemError as exc:
                self._debug("Query %s, lambda=%s: %s", sample_id, lmbda, exc)
        return predictions

    def predict_coefficients(self, sample_id, neighbor_weights, observations):
        """ The full local regression coefficients (intercept first) for each ridge penalty.

        Returns
        -------
        coefficients : ndarray of shape (n_lambdas, 1 + n_correction_variables)

        Raises
        ------
        SingularSystemError
            If the local regression is singular for some penalty.
        """
        X, weights, Y = self._design(sample_id, neighbor_weights, observations)
        M0, XtWY = self._normal_equations(X, weights, Y)
        return np.array([self._solve(self._penalize(M0, lmbda), XtWY) for lmbda in self.lambdas])

    def compute_variance(self, sample_id, neighbor_weights, samples_by_tree, observations,
                         ci_group_size, debias=objective_bayes_debiasing):
        """ Grouped jackknife variance of the local linear prediction for the first ridge penalty.

        Each neighbor's influence on the local intercept is its pseudo-residual
        ``(X zeta)_i * (Y_i - (X theta)_i)`` with ``zeta = M^{-1} e_1``. The statistic of a tree is
        the mean pseudo-residual over the neighbors in the query's leaf of that tree, and the
        variance of their average is estimated from contiguous groups of `ci_group_size` trees.

        Parameters
        ----------
        sample_id : int
            The row of the query point in `query_X`.
        neighbor_weights : dict of int to float
            The forest weight of every training sample with a non-zero weight.
        samples_by_tree : list of list of int
            For every tree, the training samples in the leaf of the query point.
        observations : Observations
        ci_group_size : int
            The number of trees per group, at least 2.
        debias : callable, default objective_bayes_debiasing
            Called as ``debias(var_between, group_noise, num_good_groups)``.

        Returns
        -------
        variance : ndarray of shape (1,)

        Raises
        ------
        SingularSystemError
            If the local regression is singular.
        InsufficientDataError
            If no group of trees has all its trees populated.
        """
        ci_group_size = check_ci_group_size(ci_group_size)
        X, weights, Y, ids = self._design(sample_id, neighbor_weights, observations, return_ids=True)
        M0, XtWY = self._normal_equations(X, weights, Y)

        e_one = np.zeros(X.shape[1])
        e_one[0] = 1
        solution = self._solve(self._penalize(M0, self.lambdas[0]), np.column_stack([XtWY, e_one]))
        theta, zeta = solution[:, 0], solution[:, 1]
        pseudo_residual = (X @ zeta) * (Y - X @ theta)

        sample_index_map = {sample: i for i, sample in enumerate(ids.tolist())}
        tree_statistics = np.full(len(samples_by_tree), np.nan)
        for tree, samples in enumerate(samples_by_tree):
            rows = [sample_index_map[sample] for sample in samples if sample in sample_index_map]
            if len(rows) < len(samples):
                self._debug("Query %s, tree %d: %d leaf samples are not neighbors of the query",
                            sample_id, tree, len(samples) - len(rows))
            if rows:
                tree_statistics[tree] = np.mean(pseudo_residual[rows])

        variance = grouped_variance(tree_statistics, ci_group_size, debias=debias)
        self._debug("Query %s: %d neighbors, %d of %d trees populated, variance=%g",
                    sample_id, ids.shape[0], np.sum(~np.isnan(tree_statistics)), len(samples_by_tree), variance)
        return np.array([variance])

    def compute_debiased_error(self, sample_id, neighbor_weights, observations):
        """ Not available for local linear predictions; returns NaN for every ridge penalty. """
        return np.full(self.lambdas.shape[0], np.nan)

    def _design(self, sample_id, neighbor_weights, observations, return_ids=False):
        if len(neighbor_weights) == 0:
            raise SingularSystemError("The query has no neighbors.")
        ids = np.fromiter(neighbor_weights.keys(), dtype=np.int64, count=len(neighbor_weights))
        n_train = self.train_X.shape[0]
        out_of_range = (ids < 0) | (ids >= n_train)
        if np.any(out_of_range):
            raise InvalidArgumentError("Neighbor ids must be training rows in [0, {}), but got {}"
                                       .format(n_train, ids[out_of_range].tolist()))
        weights = np.fromiter(neighbor_weights.values(), dtype=np.float64, count=len(neighbor_weights))
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise InvalidArgumentError("Neighbor weights must be finite and non-negative.")
        n_active = np.count_nonzero(weights)
        n_params = 1 + self.linear_correction_variables.shape[0]
        if n_active < n_params:
            raise SingularSystemError("{} neighbors with positive weight cannot identify {} local "
                                      "coefficients.".format(n_active, n_params))
        # Both penalties are invariant to the scale of the weights
        weights = weights / np.sum(weights)

        X = np.ones((ids.shape[0], n_params))
        X[:, 1:] = (self.train_X[np.ix_(ids, self.linear_correction_variables)] -
                    self.query_X[sample_id, self.linear_correction_variables])
        Y = observations.get_channel(OUTCOME)[ids]
        if return_ids:
            return X, weights, Y, ids
        return X, weights, Y

    @staticmethod
    def _normal_equations(X, weights, Y):
        WX = X * weights.reshape(-1, 1)
        return WX.T @ X, WX.T @ Y

    def _penalize(self, M0, lmbda):
        M = M0.copy()
        diagonal = np.arange(1, M.shape[0])
        if self.weight_penalty:
            M[diagonal, diagonal] += lmbda * M0[diagonal, diagonal]
        else:
            M[diagonal, diagonal] += lmbda * np.trace(M0) / M.shape[0]
        return M

    @staticmethod
    def _solve(M, rhs):
        # LAPACK only warns on a rank deficient system
        if np.linalg.matrix_rank(M) < M.shape[0]:
            raise SingularSystemError("The local regression is rank deficient.")
        try:
            solution = scipy.linalg.solve(M, rhs, assume_a='sym')
        except np.linalg.LinAlgError as exc:
            raise SingularSystemError("The local regression is singular.") from exc
        if not np.all(np.isfinite(solution)):
            raise SingularSystemError("The local regression is singular.")
        return solution


def select_lambda(oob_predictions, outcomes):
    """
    Pick the ridge penalty with the smallest out-of-bag mean squared error.

    Parameters
    ----------
    oob_predictions : array_like of shape (n_samples, n_lambdas)
        The out-of-bag local linear predictions of the training samples for every penalty.
    outcomes : array_like of shape (n_samples,)
        The observed outcomes of the training samples.

    Returns
    -------
    index : int
        The index of the best penalty. Samples with a NaN prediction for some penalty are ignored.
    """
    oob_predictions = np.asarray(oob_predictions, dtype=np.float64)
    outcomes = np.asarray(outcomes, dtype=np.float64).ravel()
    if oob_predictions.ndim != 2 or oob_predictions.shape[0] != outcomes.shape[0]:
        raise InvalidArgumentError("`oob_predictions` must have shape (n_samples, n_lambdas) with "
                                   "n_samples={}, but got shape {}".format(outcomes.shape[0], oob_predictions.shape))
    usable = np.all(np.isfinite(oob_predictions), axis=1)
    if not np.any(usable):
        raise InsufficientDataError("No sample has a finite out-of-bag prediction for every penalty.")
    errors = np.mean((oob_predictions[usable] - outcomes[usable].reshape(-1, 1))**2, axis=0)
    return int(np.argmin(errors))
