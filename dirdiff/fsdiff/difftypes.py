# Copyright dirdiff contributors
#
# dirdiff/fsdiff/difftypes.py - Directory diff record types
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system diff types
"""
from enum import Enum, IntEnum


class DiffType(Enum):
    """
    Enum for different difference types.
    """

    MISSING = "missing"
    TYPE_MISMATCH = "type_mismatch"
    CONTENT = "content"


class Side(IntEnum):
    """
    The tree a ``DiffType.MISSING`` entry is absent from.
    """

    #: Absent from the first tree: the entry exists only in tree B.
    A = 0
    #: Absent from the second tree: the entry exists only in tree A.
    B = 1

    @property
    def other(self) -> "Side":
        """The opposite side."""
        return Side.B if self == Side.A else Side.A
