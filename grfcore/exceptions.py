# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

"""Error categories raised by the sampling and prediction routines."""

import numpy as np

__all__ = ["InvalidArgumentError",
           "SingularSystemError",
           "InsufficientDataError"]


class InvalidArgumentError(ValueError):
    """Raised for bad sampling parameters, invalid weight vectors or an invalid configuration."""


class SingularSystemError(np.linalg.LinAlgError):
    """Raised when a local ridge regression is ill-posed, e.g. when there are too few neighbors."""


class InsufficientDataError(ValueError):
    """Raised when there are not enough usable trees or tree groups for an estimate."""
