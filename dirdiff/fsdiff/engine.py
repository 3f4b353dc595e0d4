# Copyright dirdiff contributors
#
# dirdiff/fsdiff/engine.py - Directory diff engine
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff engine
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging
import json
import os

from dirdiff import DIRDIFF_SUBSYSTEM_ENGINE
from dirdiff.progress import TermControl, ThrobberBase

from .compare import ContentComparer
from .difftypes import DiffType, Side
from .filters import IgnoreFilter
from .options import DiffOptions
from .treewalk import FsEntry, display_name, scan_dir
from .tree import DiffTree

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_ENGINE}, **kwargs)


#: Name of the synthetic record wrapping a non-empty result.
ROOT_NAME = "<root>"

#: Single character markers for each kind of difference.
MARKERS = {
    (DiffType.MISSING, Side.B): "-",
    (DiffType.MISSING, Side.A): "+",
    (DiffType.TYPE_MISMATCH, None): "!",
    (DiffType.CONTENT, None): "?",
}


def _join(rel_path: str, name: str) -> str:
    return f"{rel_path}/{name}" if rel_path else name


@dataclass(frozen=True)
class DiffRecord:
    """
    A single node in a directory difference tree.

    ``MISSING`` records name the tree the entry is absent from in ``side``.
    ``CONTENT`` records with children represent a directory whose subtree
    differs and carry the full paths of both directories; ``CONTENT``
    records without children represent a differing file, symbolic link or
    special file.
    """

    #: The kind of difference
    diff_type: DiffType
    #: The entry base name
    name: str
    #: For ``MISSING`` records, the tree lacking this entry
    side: Optional[Side] = None
    #: Full path of a differing directory in tree A
    a_path: Optional[str] = None
    #: Full path of a differing directory in tree B
    b_path: Optional[str] = None
    #: Differences below a differing directory, ordered by name
    children: Tuple["DiffRecord", ...] = ()

    def __post_init__(self):
        if self.diff_type == DiffType.MISSING and self.side is None:
            raise ValueError(f"MISSING record requires a side: {self.name}")
        if self.diff_type != DiffType.MISSING and self.side is not None:
            raise ValueError(
                f"Invalid side for {self.diff_type.value} record: {self.name}"
            )
        if self.children and self.diff_type != DiffType.CONTENT:
            raise ValueError(
                f"Only {DiffType.CONTENT.value} records may have children: {self.name}"
            )
        object.__setattr__(self, "children", tuple(self.children))

    def __str__(self) -> str:
        """
        Return a string representation of this ``DiffRecord``.

        :returns: A human readable string describing this record.
        :rtype: ``str``
        """
        return f"{self.marker} {self.name}"

    @property
    def is_dir(self) -> bool:
        """
        True if this record represents a differing directory.
        """
        return self.diff_type == DiffType.CONTENT and bool(self.children)

    @property
    def marker(self) -> str:
        """
        The single character marker for this kind of difference.
        """
        return MARKERS[(self.diff_type, self.side)]

    def to_dict(self) -> Dict[str, Any]:
        """
        Return a dictionary representation of this ``DiffRecord`` and its
        children.

        :returns: A dictionary mapping field names to values.
        :rtype: ``Dict[str, Any]``
        """
        record = {
            "name": self.name,
            "diff_type": self.diff_type.value,
            "side": self.side.name if self.side is not None else None,
        }
        if self.is_dir:
            record["a_path"] = self.a_path
            record["b_path"] = self.b_path
            record["children"] = [child.to_dict() for child in self.children]
        return record

    def walk(self, rel_path: str = "") -> Iterator[Tuple[str, "DiffRecord"]]:
        """
        Iterate over this record and its descendants depth first.

        :param rel_path: The relative path of this record's parent.
        :type rel_path: ``str``
        :returns: An iterator yielding ``(relative_path, record)`` tuples.
        :rtype: ``Iterator[Tuple[str, DiffRecord]]``
        """
        path = _join(rel_path, self.name)
        yield path, self
        for child in self.children:
            yield from child.walk(path)


class DiffResults:
    """Container for directory diff results with formatting methods."""

    #: Names of the supported string output formats
    OUTPUT_FORMATS = ["tree", "paths", "json"]

    def __init__(
        self,
        records: List[DiffRecord],
        root_a: str,
        root_b: str,
        options: Optional[DiffOptions] = None,
    ):
        self._records = list(records)
        self.root_a = root_a
        self.root_b = root_b
        self.options = options or DiffOptions()

    def __repr__(self) -> str:
        """
        Return a machine-readable representation of this instance.

        :returns: ``DiffResults`` constructor style string.
        :rtype: ``str``
        """
        return (
            f"DiffResults([...], {self.root_a!r}, {self.root_b!r}, {self.options!r})"
        )

    def __iter__(self) -> Iterator[DiffRecord]:
        """
        Implement iter(self).
        """
        return iter(self._records)

    def __len__(self):
        """
        Implement len(self).
        """
        return len(self._records)

    def __getitem__(self, index: int) -> DiffRecord:
        """
        Return self[index]

        :param index: The index to return.
        :type index: ``int``
        """
        return self._records[index]

    def root(self) -> Optional[DiffRecord]:
        """
        Return the synthetic root record wrapping these results, or ``None``
        if the trees do not differ.

        :returns: A ``CONTENT`` record named ``<root>`` carrying both root
                  paths, or ``None``.
        :rtype: ``Optional[DiffRecord]``
        """
        if not self._records:
            return None
        return DiffRecord(
            DiffType.CONTENT,
            ROOT_NAME,
            a_path=self.root_a,
            b_path=self.root_b,
            children=tuple(self._records),
        )

    def walk(self) -> Iterator[Tuple[str, DiffRecord]]:
        """
        Iterate over all records depth first, excluding the synthetic root.

        :returns: An iterator yielding ``(relative_path, record)`` tuples.
        :rtype: ``Iterator[Tuple[str, DiffRecord]]``
        """
        for record in self._records:
            yield from record.walk()

    def paths(self) -> List[str]:
        """
        Return a list of marked relative paths for every leaf difference.

        :returns: A list of ``"<marker> <relative path>"`` strings.
        :rtype: ``List[str]``
        """
        return [
            f"{record.marker} {display_name(path)}"
            for path, record in self.walk()
            if not record.is_dir
        ]

    def to_dict(self) -> Dict[str, Any]:
        """
        Return a dictionary representation of these results.

        :returns: A dictionary with the root paths and nested differences.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "root_a": self.root_a,
            "root_b": self.root_b,
            "differences": [record.to_dict() for record in self._records],
        }

    def json(self, pretty: bool = False) -> str:
        """
        Return a JSON representation of these results.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: JSON string description of directory differences.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)

    def tree(
        self,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ) -> str:
        """
        Render a ``DiffTree`` of this ``DiffResults`` instance.

        :param color: A string to control color tree rendering: "auto",
                      "always", or "never".
        :type color: ``str``
        :param term_control: An optional ``TermControl`` instance to use for
                             formatting. The supplied instance overrides any
                             ``color`` argument if set.
        :type term_control: ``Optional[TermControl]``
        :returns: A string representation of a difference tree, or an empty
                  string if there are no differences.
        :rtype: ``str``
        """
        root = self.root()
        if root is None:
            return ""
        tree = DiffTree.from_options(
            root, self.options, color=color, term_control=term_control
        )
        return tree.render()

    def legend(
        self,
        color: str = "auto",
        term_control: Optional[TermControl] = None,
    ) -> str:
        """
        Render the marker legend for tree output.

        :returns: The legend text.
        :rtype: ``str``
        """
        return DiffTree.legend(color=color, term_control=term_control)


class DiffEngine:
    """
    Core class for recursive directory comparisons.
    """

    def __init__(
        self,
        options: Optional[DiffOptions] = None,
        throbber: Optional[ThrobberBase] = None,
    ):
        """
        Initialise a new ``DiffEngine`` instance.

        :param options: Options to apply to the comparison.
        :type options: ``Optional[DiffOptions]``
        :param throbber: An optional started throbber used to report
                         progress.
        :type throbber: ``Optional[ThrobberBase]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.throbber: Optional[ThrobberBase] = throbber
        self.ignore_filter = IgnoreFilter(self.options.ignore_patterns)
        self.comparer = ContentComparer(self.options, throbber=throbber)

    def _scan(self, path: str, rel_path: str, side: Side) -> Dict[str, FsEntry]:
        entries = scan_dir(path)
        if not self.ignore_filter:
            return entries
        return {
            name: entry
            for name, entry in entries.items()
            if not self.ignore_filter.should_ignore(_join(rel_path, name), side)
        }

    def diff_trees(
        self, dir_a: str, dir_b: str, rel_path: str = ""
    ) -> List[DiffRecord]:
        """
        Compare two directories and return the records describing how they
        differ, recursing into directories present in both.

        :param dir_a: The directory from the first tree.
        :type dir_a: ``str``
        :param dir_b: The directory from the second tree.
        :type dir_b: ``str``
        :param rel_path: The path of both directories relative to their
                         roots; empty for the roots themselves.
        :type rel_path: ``str``
        :returns: A list of ``DiffRecord`` objects ordered by name. An empty
                  list means the directories are equivalent.
        :rtype: ``List[DiffRecord]``
        :raises DirdiffFilesystemError: If an entry cannot be examined or
                                        read.
        """
        entries_a = self._scan(dir_a, rel_path, Side.A)
        entries_b = self._scan(dir_b, rel_path, Side.B)

        names = sorted(set(entries_a) | set(entries_b), key=os.fsencode)
        _log_debug_engine(
            "Comparing '%s' (%d names, A:%d // B:%d)",
            rel_path or ".",
            len(names),
            len(entries_a),
            len(entries_b),
        )

        diffs: List[DiffRecord] = []
        for name in names:
            record = self._diff_entry(
                entries_a.get(name), entries_b.get(name), name, _join(rel_path, name)
            )
            if record is not None:
                diffs.append(record)
        return diffs

    def _diff_entry(
        self,
        entry_a: Optional[FsEntry],
        entry_b: Optional[FsEntry],
        name: str,
        rel_path: str,
    ) -> Optional[DiffRecord]:
        """
        Classify a single name present in at least one of two directories.
        """
        if entry_a is None or entry_b is None:
            side = Side.A if entry_a is None else Side.B
            _log_debug_engine("Missing from tree %s: %s", side.name, rel_path)
            return DiffRecord(DiffType.MISSING, name, side=side)

        if entry_a.type_key != entry_b.type_key:
            _log_debug_engine(
                "Type mismatch for %s (A:%s // B:%s)",
                rel_path,
                entry_a.type_desc,
                entry_b.type_desc,
            )
            return DiffRecord(DiffType.TYPE_MISMATCH, name)

        if entry_a.is_dir:
            if self.throbber is not None:
                self.throbber.throb(rel_path)
            children = self.diff_trees(entry_a.path, entry_b.path, rel_path)
            if not children:
                return None
            return DiffRecord(
                DiffType.CONTENT,
                name,
                a_path=entry_a.path,
                b_path=entry_b.path,
                children=tuple(children),
            )

        if self.comparer.files_differ(entry_a, entry_b, rel_path=rel_path):
            _log_debug_engine("Content differs: %s", rel_path)
            return DiffRecord(DiffType.CONTENT, name)
        return None


__all__ = [
    "DiffEngine",
    "DiffRecord",
    "DiffResults",
    "MARKERS",
    "ROOT_NAME",
]
