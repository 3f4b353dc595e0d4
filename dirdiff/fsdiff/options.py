# Copyright dirdiff contributors
#
# dirdiff/fsdiff/options.py - Directory diff options
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory comparison options.
"""
from dataclasses import dataclass, field, fields
from typing import Optional, Tuple, Union
from argparse import Namespace
import logging

from dirdiff import DirdiffArgumentError

from .filters import validate_patterns

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

_PATTERN_FIELDS = ("ignore_patterns", "prune_patterns")


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class DiffOptions:
    """
    Directory comparison options.
    """

    #: Path patterns to exclude from the comparison (glob notation)
    ignore_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: Directory patterns to show without descending (glob notation)
    prune_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: Do not descend into version control metadata directories
    default_prune: bool = True
    #: Maximum depth of differing directories to expand
    max_depth: Optional[int] = None
    #: Always compare content, even for hard links to the same inode
    paranoid: bool = False
    #: Depth of directory records to generate patches for
    patch_depth: Optional[int] = None
    #: Directory to write generated patches to
    patch_dir: str = "."
    #: Describe differing files using libmagic
    use_magic_file_type: bool = False
    #: Do not output progress or status updates
    quiet: bool = False

    def __post_init__(self):
        """
        Validate option values.

        :raises DirdiffPatternError: If a glob pattern is malformed.
        :raises DirdiffArgumentError: If a depth value is negative.
        """
        for name in _PATTERN_FIELDS:
            object.__setattr__(self, name, validate_patterns(getattr(self, name)))

        for name in ("max_depth", "patch_depth"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise DirdiffArgumentError(
                    f"Invalid {name.replace('_', '-')} value: {value}"
                )

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        items = [
            (key, val) if not isinstance(val, tuple) else (key, " ".join(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """

        def get_value(name: str) -> Union[bool, int, Optional[str], Tuple[str, ...]]:
            """
            Get a value from ``cmd_args``, converting lists to tuples.
            """
            attr = getattr(cmd_args, name)
            if isinstance(attr, list):
                return tuple(attr)
            if attr is None and name in _PATTERN_FIELDS:
                return ()
            if attr is None and name == "patch_dir":
                return "."
            return attr

        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: get_value(name) for name in field_names if hasattr(cmd_args, name)
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options
