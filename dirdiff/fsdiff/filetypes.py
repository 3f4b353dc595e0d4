# Copyright dirdiff contributors
#
# dirdiff/fsdiff/filetypes.py - Directory diff file types
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type descriptions for rendered differences.
"""
from typing import Dict, Optional, TYPE_CHECKING
import logging
import os

import magic

from dirdiff import DirdiffFilesystemError, DIRDIFF_SUBSYSTEM_RENDER

from .difftypes import DiffType, Side
from .treewalk import FsEntry

if TYPE_CHECKING:
    from .engine import DiffRecord

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_render(msg, *args, **kwargs):
    """A wrapper for render subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_RENDER}, **kwargs)


#: Description used when an entry cannot be examined.
UNKNOWN_TYPE = "unknown"


class FileTypeDetector:
    """
    Describe file types using ``magic`` from python3-file-magic.

    Regular files are described by libmagic; all other entry types use the
    file system type description. Results are cached by path.
    """

    def __init__(self):
        self._cache: Dict[str, str] = {}

    def describe_path(self, path: str) -> str:
        """
        Return a short description of the file system entry at ``path``.

        :param path: The path to describe.
        :type path: ``str``
        :returns: A type description such as "ASCII text" or
                  "symbolic link", or "unknown" on error.
        :rtype: ``str``
        """
        if path in self._cache:
            return self._cache[path]

        try:
            entry = FsEntry.from_path(path)
        except DirdiffFilesystemError as err:
            _log_warn("Error detecting file type for %s: %s", path, err)
            return UNKNOWN_TYPE

        if not entry.is_file:
            desc = entry.type_desc
        else:
            # c9s magic does not have magic.error
            if hasattr(magic, "error"):
                magic_errors = (magic.error, OSError, ValueError)
            else:
                magic_errors = (OSError, ValueError)
            try:
                desc = magic.detect_from_filename(path).name
            except magic_errors as err:
                _log_warn("Error detecting file type for %s: %s", path, err)
                desc = UNKNOWN_TYPE

        _log_debug_render("Detected file type for %s: %s", path, desc)
        self._cache[path] = desc
        return desc

    def describe(
        self, record: "DiffRecord", parent: Optional["DiffRecord"]
    ) -> Optional[str]:
        """
        Return a description of the entries behind a leaf ``DiffRecord``.

        Leaf records do not carry paths: they are rebuilt from the paths of
        the enclosing directory record.

        :param record: The leaf record to describe.
        :type record: ``DiffRecord``
        :param parent: The directory record containing ``record``.
        :type parent: ``Optional[DiffRecord]``
        :returns: A description, ``"A-type -> B-type"`` for type
                  mismatches, or ``None`` if no paths are available.
        :rtype: ``Optional[str]``
        """
        if parent is None or parent.a_path is None or parent.b_path is None:
            return None

        path_a = os.path.join(parent.a_path, record.name)
        path_b = os.path.join(parent.b_path, record.name)

        if record.diff_type == DiffType.MISSING:
            return self.describe_path(path_b if record.side == Side.A else path_a)
        if record.diff_type == DiffType.TYPE_MISMATCH:
            return f"{self.describe_path(path_a)} -> {self.describe_path(path_b)}"
        return self.describe_path(path_b)


__all__ = [
    "FileTypeDetector",
    "UNKNOWN_TYPE",
]
