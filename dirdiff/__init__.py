# Copyright dirdiff contributors
#
# dirdiff/__init__.py - Directory diff package initialisation
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Dirdiff top-level package.
"""
from ._dirdiff import *  # noqa: F401, F403
from ._dirdiff import __all__  # noqa: F401

__version__ = "1.0.0"
