# Copyright (c) PyWhy contributors. All rights reserved.
# Licensed under the MIT License.

__version__ = '0.1.0'
