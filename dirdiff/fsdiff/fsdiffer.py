# Copyright dirdiff contributors
#
# dirdiff/fsdiff/fsdiffer.py - Directory differ
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level directory diff interface.
"""
from typing import Optional, TextIO
import logging
import sys

from dirdiff.progress import ProgressFactory, TermControl

from .engine import DiffEngine, DiffResults
from .options import DiffOptions
from .treewalk import check_root

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class FsDiffer:
    """
    Top-level interface for generating directory tree comparisons.
    """

    def __init__(
        self,
        options: Optional[DiffOptions] = None,
        term_control: Optional[TermControl] = None,
        progress_stream: Optional[TextIO] = None,
    ):
        """
        Initialise a new ``FsDiffer`` to compute directory differences.

        :param options: Options to control this ``FsDiffer`` instance.
        :type options: ``DiffOptions``
        :param term_control: An optional ``TermControl`` instance to use for
                             progress output. Overrides ``progress_stream``
                             if set.
        :type term_control: ``Optional[TermControl]``
        :param progress_stream: The stream to write progress to. Defaults
                                to ``sys.stderr``.
        :type progress_stream: ``Optional[TextIO]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self._term_control: Optional[TermControl] = term_control
        self._progress_stream: TextIO = progress_stream or sys.stderr

    def compare_roots(self, path_a: str, path_b: str) -> DiffResults:
        """
        Compare two directory trees and return diff results.

        :param path_a: The first (left hand) directory to compare.
        :type path_a: ``str``
        :param path_b: The second (right hand) directory to compare.
        :type path_b: ``str``
        :returns: The diff results for the comparison.
        :rtype: ``DiffResults``
        :raises DirdiffNotFoundError: If either root does not exist.
        :raises DirdiffNotADirectoryError: If either root is not a
                                           directory.
        :raises DirdiffFilesystemError: If an entry cannot be examined or
                                        read.
        """
        check_root(path_a)
        check_root(path_b)

        _log_debug("Comparing %s and %s with options:\n%s", path_a, path_b, self.options)

        throbber = ProgressFactory.get_throbber(
            "Comparing",
            quiet=self.options.quiet,
            term_stream=self._progress_stream,
            term_control=self._term_control,
        )
        engine = DiffEngine(self.options, throbber=throbber)

        throbber.start()
        try:
            records = engine.diff_trees(path_a, path_b)
        except KeyboardInterrupt:
            throbber.cancel("Quit!")
            raise
        except SystemExit:
            throbber.cancel("Exiting.")
            raise
        except Exception:
            throbber.cancel()
            raise

        throbber.end(f"Found {len(records)} top-level differences")
        _log_info(
            "Compared %s and %s: %d top-level differences",
            path_a,
            path_b,
            len(records),
        )
        return DiffResults(records, path_a, path_b, self.options)


__all__ = [
    "FsDiffer",
]
