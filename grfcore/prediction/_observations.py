# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

import numpy as np
from sklearn.utils import check_array
from ..exceptions import InvalidArgumentError

__all__ = ["OUTCOME", "TREATMENT", "INSTRUMENT", "Observations"]

# Channel indices
OUTCOME = 0
TREATMENT = 1
INSTRUMENT = 2


class Observations:
    """
    Read-only view of the observed channels (outcome, and optionally treatment and instrument)
    of the training samples.

    Parameters
    ----------
    outcome : array_like of shape (n_samples,)
        The outcome of every training sample.
    treatment : array_like of shape (n_samples,) or None, default None
    instrument : array_like of shape (n_samples,) or None, default None
    """

    def __init__(self, outcome, treatment=None, instrument=None):
        channels = {}
        for channel, values in ((OUTCOME, outcome), (TREATMENT, treatment), (INSTRUMENT, instrument)):
            if values is None:
                continue
            values = np.array(check_array(values, ensure_2d=False, dtype=np.float64), copy=True)
            if values.ndim != 1:
                raise InvalidArgumentError("Observed channels must be one dimensional, but got shape {}"
                                           .format(values.shape))
            values.setflags(write=False)
            channels[channel] = values
        lengths = {values.shape[0] for values in channels.values()}
        if len(lengths) > 1:
            raise InvalidArgumentError("Observed channels have incompatible lengths: {}".format(sorted(lengths)))
        self._channels = channels

    @property
    def num_samples(self):
        return self._channels[OUTCOME].shape[0]

    def get(self, channel, sample):
        return self.get_channel(channel)[sample]

    def get_channel(self, channel):
        """ Return the read-only array of values of `channel` for every sample. """
        if channel not in self._channels:
            raise InvalidArgumentError("Observation channel {} was not provided".format(channel))
        return self._channels[channel]
