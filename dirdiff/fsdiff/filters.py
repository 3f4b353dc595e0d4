# Copyright dirdiff contributors
#
# dirdiff/fsdiff/filters.py - Directory diff ignore and prune filters
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Glob based ignore and prune filtering.

Ignore patterns remove names from a comparison before it happens. Prune
patterns only affect rendering: a pruned directory is still reported as
differing but its children are not shown.
"""
from typing import Iterable, Optional, Tuple, TYPE_CHECKING
from fnmatch import fnmatchcase, translate
import logging
import re

from dirdiff import DirdiffPatternError, DIRDIFF_SUBSYSTEM_ENGINE

from .difftypes import DiffType, Side

if TYPE_CHECKING:
    from .engine import DiffRecord

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_ENGINE}, **kwargs)


#: Version control metadata directories that are never expanded by default.
DEFAULT_PRUNE_PATTERNS = (
    ".git",
    ".hg",
    ".svn",
    ".bzr",
    "_darcs",
    "CVS",
)


def _has_unbalanced_bracket(pattern: str) -> bool:
    """
    Return ``True`` if ``pattern`` opens a ``[...]`` character class that is
    never closed.
    """
    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            # A leading ']' is a literal member of the class.
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                return True
            i = j
        i += 1
    return False


def validate_pattern(pattern: str) -> str:
    """
    Check that ``pattern`` is a usable shell glob.

    :param pattern: The glob pattern to check.
    :type pattern: ``str``
    :returns: ``pattern`` unchanged.
    :rtype: ``str``
    :raises DirdiffPatternError: If the pattern is empty, contains a NUL
                                 character or an unterminated character
                                 class.
    """
    if not pattern:
        raise DirdiffPatternError("Empty glob pattern")
    if "\0" in pattern:
        raise DirdiffPatternError(f"Glob pattern contains NUL: {pattern!r}")
    if _has_unbalanced_bracket(pattern):
        raise DirdiffPatternError(f"Unterminated character class in: {pattern}")
    try:
        re.compile(translate(pattern))
    except re.error as err:
        raise DirdiffPatternError(f"Malformed glob pattern '{pattern}': {err}") from err
    return pattern


def validate_patterns(patterns: Iterable[str]) -> Tuple[str, ...]:
    """
    Validate each pattern in ``patterns``.

    :param patterns: The glob patterns to check.
    :returns: The patterns as a tuple.
    :rtype: ``Tuple[str, ...]``
    """
    return tuple(validate_pattern(pattern) for pattern in patterns)


def _matches(patterns: Tuple[str, ...], rel_path: str, name: str) -> Optional[str]:
    """
    Return the first pattern matching an entry, or ``None``.

    Patterns containing a path separator are matched against ``rel_path``;
    all others against the base ``name``.
    """
    for pattern in patterns:
        subject = rel_path if "/" in pattern else name
        if fnmatchcase(subject, pattern):
            return pattern
    return None


class IgnoreFilter:
    """
    Exclude names from the comparison by shell glob.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        """
        Initialise a new ``IgnoreFilter``.

        :param patterns: Glob patterns for paths to ignore.
        :type patterns: ``Iterable[str]``
        """
        self.patterns: Tuple[str, ...] = validate_patterns(patterns)

    def __bool__(self):
        return bool(self.patterns)

    def should_ignore(self, rel_path: str, side: Side) -> bool:
        """
        Return ``True`` if the entry at ``rel_path`` in tree ``side`` is
        excluded from comparison.

        :param rel_path: The entry path relative to its root.
        :type rel_path: ``str``
        :param side: The tree the entry was found in.
        :type side: ``Side``
        :returns: ``True`` if the entry should be skipped.
        :rtype: ``bool``
        """
        if not self.patterns:
            return False
        name = rel_path.rsplit("/", maxsplit=1)[-1]
        pattern = _matches(self.patterns, rel_path, name)
        if pattern is not None:
            _log_debug_engine(
                "Ignoring %s in tree %s (pattern=%s)", rel_path, side.name, pattern
            )
            return True
        return False


class PruneFilter:
    """
    Decide which differing directories are shown without their children.
    """

    def __init__(
        self,
        patterns: Iterable[str] = (),
        default_prune: bool = True,
        max_depth: Optional[int] = None,
    ):
        """
        Initialise a new ``PruneFilter``.

        :param patterns: Glob patterns for directories not to expand.
        :type patterns: ``Iterable[str]``
        :param default_prune: Include ``DEFAULT_PRUNE_PATTERNS``.
        :type default_prune: ``bool``
        :param max_depth: Do not expand records at or below this depth. The
                          root record has depth zero.
        :type max_depth: ``Optional[int]``
        """
        patterns = validate_patterns(patterns)
        if default_prune:
            patterns = DEFAULT_PRUNE_PATTERNS + patterns
        self.patterns: Tuple[str, ...] = patterns
        self.max_depth: Optional[int] = max_depth

    def should_prune(
        self, record: "DiffRecord", depth: int, rel_path: Optional[str] = None
    ) -> bool:
        """
        Return ``True`` if ``record`` should be displayed without descending
        into its children.

        :param record: The record about to be rendered.
        :type record: ``DiffRecord``
        :param depth: The depth of ``record``; zero for the root.
        :type depth: ``int``
        :param rel_path: The path of ``record`` relative to the roots, if
                         known.
        :type rel_path: ``Optional[str]``
        :returns: ``True`` if the children should not be shown.
        :rtype: ``bool``
        """
        if record.diff_type != DiffType.CONTENT or not record.children:
            return False
        if self.max_depth is not None and depth >= self.max_depth:
            return True
        if depth == 0:
            return False
        rel_path = rel_path if rel_path is not None else record.name
        return _matches(self.patterns, rel_path, record.name) is not None


__all__ = [
    "DEFAULT_PRUNE_PATTERNS",
    "IgnoreFilter",
    "PruneFilter",
    "validate_pattern",
    "validate_patterns",
]
