# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

"""Utility methods."""

import numbers
import numpy as np
from sklearn.utils import check_array
from .exceptions import InvalidArgumentError


def check_data_arrays(*args):
    """Cast the covariate matrices into 2-d float arrays with a common number of columns.

    Parameters
    ----------
    args : array_like
        Covariate matrices of shape (n_rows, n_features).

    Returns
    -------
    args : list of ndarray
        The validated arrays, in the same order.
    """
    args = [check_array(arg, dtype=np.float64) for arg in args]
    n_cols = {arg.shape[1] for arg in args}
    if len(n_cols) > 1:
        raise InvalidArgumentError("Covariate matrices have incompatible numbers of columns: {}"
                                   .format(sorted(n_cols)))
    return args


def check_sample_fraction(sample_fraction, upper=1.0):
    """Check that a sampling fraction lies in (0, upper]."""
    if not isinstance(sample_fraction, numbers.Real) or not np.isfinite(sample_fraction):
        raise InvalidArgumentError("`sample_fraction` must be a finite real number, "
                                   "but got value {}".format(sample_fraction))
    if not (0 < sample_fraction <= upper):
        raise InvalidArgumentError("`sample_fraction` must be in (0, {}], but got value {}"
                                   .format(upper, sample_fraction))
    return float(sample_fraction)


def check_weights(weights, name="weights", length=None):
    """Check a vector of unnormalized, non-negative weights.

    Parameters
    ----------
    weights : array_like of shape (n,)
        The weights to validate.
    name : str, default "weights"
        Name used in error messages.
    length : int or None, default None
        If not None, the required length of the weight vector.

    Returns
    -------
    weights : ndarray of shape (n,)
        The weights as a float array.
    """
    weights = check_array(weights, ensure_2d=False, dtype=np.float64)
    if weights.ndim != 1:
        raise InvalidArgumentError("`{}` must be one dimensional, but got shape {}".format(name, weights.shape))
    if length is not None and weights.shape[0] != length:
        raise InvalidArgumentError("`{}` must have length {}, but got length {}"
                                   .format(name, length, weights.shape[0]))
    if np.any(weights < 0):
        raise InvalidArgumentError("`{}` must be non-negative.".format(name))
    if not np.any(weights > 0):
        raise InvalidArgumentError("`{}` must contain at least one positive value.".format(name))
    return weights


def check_lambdas(lambdas):
    """Check a non-empty list of non-negative ridge penalties and return it as a float array."""
    if isinstance(lambdas, numbers.Real):
        lambdas = [lambdas]
    lambdas = np.asarray(lambdas, dtype=np.float64).ravel()
    if lambdas.shape[0] == 0:
        raise InvalidArgumentError("At least one ridge penalty `lambdas` is required.")
    if not np.all(np.isfinite(lambdas)) or np.any(lambdas < 0):
        raise InvalidArgumentError("Ridge penalties `lambdas` must be finite and non-negative, "
                                   "but got {}".format(lambdas.tolist()))
    return lambdas


def check_ci_group_size(ci_group_size):
    """Check that trees are grouped in blocks of at least two, as required by the group noise correction."""
    if not isinstance(ci_group_size, numbers.Integral) or ci_group_size < 2:
        raise InvalidArgumentError("Parameter `ci_group_size` must be an integer of at least 2 to "
                                   "estimate variances, but got value {}".format(ci_group_size))
    return int(ci_group_size)


def as_leaf_array(leaf_values):
    """Convert per-tree leaf values into a float array where empty leaves (``None`` or NaN) are NaN."""
    return np.array([np.nan if value is None else value for value in leaf_values], dtype=np.float64)
