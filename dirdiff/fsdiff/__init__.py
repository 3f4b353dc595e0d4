# Copyright dirdiff contributors
#
# dirdiff/fsdiff/__init__.py - Directory differ package
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff package.

Provides directory tree comparison facilities including content comparison,
ignore and prune filtering, tree rendering and patch generation. The main
entry points are ``FsDiffer`` and ``DiffOptions``.
"""
from .compare import ContentComparer
from .difftypes import DiffType, Side
from .engine import DiffEngine, DiffRecord, DiffResults
from .filters import IgnoreFilter, PruneFilter
from .fsdiffer import FsDiffer
from .options import DiffOptions
from .patch import PatchGenerator
from .tree import DiffTree

__all__ = [
    "ContentComparer",
    "DiffEngine",
    "DiffOptions",
    "DiffRecord",
    "DiffResults",
    "DiffTree",
    "DiffType",
    "FsDiffer",
    "IgnoreFilter",
    "PatchGenerator",
    "PruneFilter",
    "Side",
]
