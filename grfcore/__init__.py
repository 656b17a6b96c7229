# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

__all__ = ['exceptions',
           'prediction',
           'sampling',
           'utilities',
           '__version__']

from ._version import __version__
