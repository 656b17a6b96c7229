# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import logging
from abc import ABCMeta, abstractmethod

__all__ = ["BasePredictionStrategy"]

LOGGER = logging.getLogger(__name__)


class BasePredictionStrategy(metaclass=ABCMeta):
    """
    Common contract of the forest prediction strategies.

    A strategy turns what the forest knows about a query point into a point prediction,
    a variance estimate and a debiased error estimate. Strategies that
    ``requires_leaf_sampleIDs()`` consume the neighbor weights and the sample ids of the
    query's leaf in every tree; the others consume one leaf value per tree.

    Strategies only hold immutable configuration and read-only data, so they can be called
    concurrently for distinct query points.

    Warning: This class should not be used directly. Use derived classes
    instead.

    Parameters
    ----------
    verbose : int, default 0
        If positive, diagnostic records of the numeric kernel are emitted at DEBUG level.
    logger : logging.Logger or None, default None
        The sink for diagnostic records. If None, the module logger of the strategy is used.
    """

    def __init__(self, *, verbose=0, logger=None):
        self.verbose = verbose
        self.logger = logger if logger is not None else LOGGER

    @abstractmethod
    def prediction_length(self):
        """ Number of values returned by `predict` for one query. """
        pass

    def prediction_value_length(self):
        """ Number of values per query that a result aggregation layer has to store. """
        return self.prediction_length()

    @abstractmethod
    def requires_leaf_sampleIDs(self):
        """ Whether the caller must supply the raw sample ids of each leaf rather than leaf values. """
        pass

    @abstractmethod
    def predict(self, sample_id, *args, **kwargs):
        pass

    @abstractmethod
    def compute_variance(self, sample_id, *args, **kwargs):
        pass

    @abstractmethod
    def compute_debiased_error(self, sample_id, *args, **kwargs):
        pass

    def _debug(self, msg, *args):
        if self.verbose > 0:
            self.logger.debug(msg, *args)
