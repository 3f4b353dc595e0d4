# Copyright dirdiff contributors
#
# dirdiff/fsdiff/tree.py - Directory diff tree renderer
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff tree rendering
"""
from typing import List, Optional, TYPE_CHECKING
import logging

from dirdiff import DIRDIFF_SUBSYSTEM_RENDER

from ..progress import TermControl
from .difftypes import DiffType, Side
from .filetypes import FileTypeDetector
from .filters import PruneFilter
from .treewalk import display_name

if TYPE_CHECKING:
    from .engine import DiffRecord
    from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_render(msg, *args, **kwargs):
    """A wrapper for render subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_RENDER}, **kwargs)


#: Suffix for differing directories shown without their children.
NOT_DESCENDING = " (not descending)"

#: Legend descriptions, in display order.
_LEGEND = [
    ((DiffType.MISSING, Side.B), "exists only in 1st tree"),
    ((DiffType.MISSING, Side.A), "exists only in 2nd tree"),
    ((DiffType.TYPE_MISMATCH, None), "types differ (directory vs file)"),
    ((DiffType.CONTENT, None), "contents differ"),
]


def _marker_map(term_control: TermControl):
    return {
        (DiffType.MISSING, Side.B): (term_control.RED, "-"),
        (DiffType.MISSING, Side.A): (term_control.GREEN, "+"),
        (DiffType.TYPE_MISMATCH, None): (term_control.BLUE, "!"),
        (DiffType.CONTENT, None): (term_control.YELLOW, "?"),
    }


class DiffTree:
    """Top level interface for rendering difference trees"""

    def __init__(
        self,
        root: "DiffRecord",
        prune_filter: Optional[PruneFilter] = None,
        file_types: Optional[FileTypeDetector] = None,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ):
        """
        Initialise a new ``DiffTree`` object.

        :param root: The root record for this ``DiffTree``.
        :type root: ``DiffRecord``
        :param prune_filter: Filter deciding which directories are shown
                             without their children.
        :type prune_filter: ``Optional[PruneFilter]``
        :param file_types: An optional detector used to annotate leaf
                           records with file type descriptions.
        :type file_types: ``Optional[FileTypeDetector]``
        :param color: A string to control color tree rendering: "auto",
                      "always", or "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance to use for
                             formatting. The supplied instance overrides any
                             ``color`` argument if set.
        :type term_control: ``Optional[TermControl]``
        """
        if root is None:
            raise ValueError("Root record is undefined")

        self.root: "DiffRecord" = root
        self.prune_filter: PruneFilter = prune_filter or PruneFilter()
        self.file_types: Optional[FileTypeDetector] = file_types

        # Set up color modes
        self.term_control: TermControl = term_control or TermControl(color=color)

        self._rendered: Optional[List[str]] = None

        # Default to ASCII tree drawing characters
        self.branch = "|-- "
        self.last = "`-- "
        self.vbar = "|"

        self.marker_map = _marker_map(self.term_control)

        encoding = getattr(self.term_control.term_stream, "encoding", None)

        if not encoding:
            return
        try:
            "└─├│".encode(encoding)
            self.branch = "├── "
            self.last = "└── "
            self.vbar = "│"
        except UnicodeEncodeError:
            return

    @classmethod
    def from_options(
        cls,
        root: "DiffRecord",
        options: "DiffOptions",
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ) -> "DiffTree":
        """
        Build a new ``DiffTree`` configured from ``DiffOptions``.

        :param root: The root record to render.
        :type root: ``DiffRecord``
        :param options: The options controlling pruning and file types.
        :type options: ``DiffOptions``
        :returns: A new ``DiffTree`` instance.
        :rtype: ``DiffTree``
        """
        prune_filter = PruneFilter(
            options.prune_patterns,
            default_prune=options.default_prune,
            max_depth=options.max_depth,
        )
        file_types = FileTypeDetector() if options.use_magic_file_type else None
        return cls(
            root,
            prune_filter=prune_filter,
            file_types=file_types,
            color=color,
            term_control=term_control,
        )

    @staticmethod
    def legend(color: str = "auto", term_control: Optional[TermControl] = None):
        """
        Return the legend explaining difference markers.

        :param color: A string to control color rendering: "auto", "always",
                      or "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance overriding
                             ``color``.
        :type term_control: ``Optional[TermControl]``
        :returns: A multi-line legend string.
        :rtype: ``str``
        """
        tc = term_control or TermControl(color=color)
        markers = _marker_map(tc)
        lines = ["Legend:"]
        for key, text in _LEGEND:
            color_code, marker = markers[key]
            lines.append(f"    {color_code}{marker} foo{tc.NORMAL} - {text}")
        return "\n".join(lines)

    def get_change_marker(self, record: "DiffRecord") -> str:
        """
        Return color-coded change mark for difference record.

        :param record: The diff record to generate a marker for.
        :type record: ``DiffRecord``
        :returns: Change marker with embedded color codes.
        :rtype: ``str``
        """
        color, marker = self.marker_map[(record.diff_type, record.side)]
        return f"{color}{marker}"

    # pylint: disable=too-many-arguments,too-many-positional-arguments
    def render(
        self,
        record: Optional["DiffRecord"] = None,
        parent: Optional["DiffRecord"] = None,
        depth: int = 0,
        rel_path: str = "",
        prefix: str = "",
        is_last: bool = True,
    ) -> Optional[str]:
        """
        Recursively render tree with box-drawing characters.

        :param record: The record to begin rendering from.
        :type record: ``Optional[DiffRecord]``
        :param parent: The directory record containing ``record``.
        :type parent: ``Optional[DiffRecord]``
        :param depth: The depth of ``record``; zero for the root.
        :type depth: ``int``
        :param rel_path: The path of ``record`` relative to the roots.
        :type rel_path: ``str``
        :param prefix: The prefix string for this record.
        :type prefix: ``str``
        :param is_last: ``True`` if this record is the last child of its
                        parent.
        :type is_last: ``bool``
        :returns: The rendered tree when called for the root, or ``None``.
        :rtype: ``Optional[str]``
        """
        record = record or self.root
        is_root = record is self.root

        if is_root:
            if self._rendered is None:
                self._rendered = []
            else:
                raise RuntimeError("Cannot restart rendering while render in progress")
        elif self._rendered is None:
            raise RuntimeError(
                "Cannot render a subtree before starting a root render()"
            )

        marker = self.get_change_marker(record)
        connector = "" if is_root else self.last if is_last else self.branch

        expand = record.is_dir and not self.prune_filter.should_prune(
            record, depth, rel_path=rel_path
        )
        if expand:
            suffix = ":"
        elif record.is_dir:
            _log_debug_render("Not descending into %s", rel_path or record.name)
            suffix = NOT_DESCENDING
        else:
            suffix = ""

        description = ""
        if self.file_types is not None and not record.is_dir:
            desc = self.file_types.describe(record, parent)
            description = f" ({desc})" if desc else ""

        self._rendered.append(
            f"{prefix}{connector}{marker} {display_name(record.name)}"
            f"{self.term_control.NORMAL}"
            f"{suffix}{description}"
        )

        if expand:
            # Calculate prefix for children
            extension = "" if is_root else "    " if is_last else f"{self.vbar}   "
            child_prefix = prefix + extension

            for i, child in enumerate(record.children):
                child_is_last = i == len(record.children) - 1
                child_path = f"{rel_path}/{child.name}" if rel_path else child.name
                self.render(
                    record=child,
                    parent=record,
                    depth=depth + 1,
                    rel_path=child_path,
                    prefix=child_prefix,
                    is_last=child_is_last,
                )

        if is_root:
            rendered = "\n".join(self._rendered)
            self._rendered = None
            return rendered
        return None


__all__ = [
    "DiffTree",
    "NOT_DESCENDING",
]
