# Copyright dirdiff contributors
#
# dirdiff/fsdiff/treewalk.py - Directory diff file system access
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system entry handles and directory listing for the comparator.

All type classification uses ``os.lstat()`` results: a symbolic link is
always a symbolic link, whatever it points to.
"""
from typing import Dict, Optional, Tuple
import logging
import stat
import os

from dirdiff import (
    DirdiffFilesystemError,
    DirdiffNotADirectoryError,
    DirdiffNotFoundError,
    DIRDIFF_SUBSYSTEM_ENGINE,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_ENGINE}, **kwargs)


#: Type keys for file system entries, by ``stat.S_IFMT()`` value.
_TYPE_KEYS = {
    stat.S_IFDIR: "dir",
    stat.S_IFREG: "file",
    stat.S_IFLNK: "symlink",
    stat.S_IFBLK: "block",
    stat.S_IFCHR: "char",
    stat.S_IFIFO: "fifo",
    stat.S_IFSOCK: "socket",
}

#: Human readable descriptions for type keys.
_TYPE_DESCS = {
    "dir": "directory",
    "file": "file",
    "symlink": "symbolic link",
    "block": "block device",
    "char": "char device",
    "fifo": "FIFO",
    "socket": "socket",
    "other": "other",
}


class FsEntry:
    """
    Representation of a single file system entry for comparison.
    """

    def __init__(self, path: str, stat_info: os.stat_result):
        """
        Initialise a new ``FsEntry`` object.

        :param path: The full path to the entry.
        :type path: ``str``
        :param stat_info: An ``os.lstat()`` result for ``path``.
        :type stat_info: ``os.stat_result``
        """
        #: The full path to this entry
        self.path: str = path
        #: The entry name
        self.name: str = os.path.basename(path)
        #: An ``os.stat_result`` for this path (never following symlinks)
        self.stat: os.stat_result = stat_info
        #: File mode returned by ``lstat()``
        self.mode: int = stat_info.st_mode
        self._symlink_target: Optional[str] = None

    @classmethod
    def from_path(cls, path: str) -> "FsEntry":
        """
        Construct a new ``FsEntry`` by calling ``os.lstat()`` on ``path``.

        :param path: The path to examine.
        :type path: ``str``
        :returns: A new ``FsEntry``.
        :rtype: ``FsEntry``
        :raises DirdiffFilesystemError: If ``path`` cannot be examined.
        """
        try:
            return cls(path, os.lstat(path))
        except OSError as err:
            raise DirdiffFilesystemError(path, "stat", err) from err

    def __str__(self):
        """
        Return a string representation of this ``FsEntry`` object.

        :returns: A human readable representation of this ``FsEntry``.
        :rtype: ``str``
        """
        return f"{self.path} ({self.type_desc})"

    def __repr__(self):
        return f"FsEntry({self.path!r}, mode={oct(self.mode)})"

    @property
    def type_key(self) -> str:
        """
        A short string classifying the entry type: "dir", "file", "symlink",
        "block", "char", "fifo", "socket" or "other".
        """
        return _TYPE_KEYS.get(stat.S_IFMT(self.mode), "other")

    @property
    def type_desc(self) -> str:
        """
        Return a string description of the entry type.
        """
        return _TYPE_DESCS[self.type_key]

    @property
    def is_dir(self) -> bool:
        """
        True if this ``FsEntry`` is a directory (and not a symlink to one).
        """
        return stat.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        """
        True if this ``FsEntry`` is a regular file.
        """
        return stat.S_ISREG(self.mode)

    @property
    def is_symlink(self) -> bool:
        """
        True if this ``FsEntry`` is a symbolic link.
        """
        return stat.S_ISLNK(self.mode)

    @property
    def is_special(self) -> bool:
        """
        True if this ``FsEntry`` is a block or character device, FIFO or
        socket.
        """
        return self.type_key in ("block", "char", "fifo", "socket")

    @property
    def size(self) -> int:
        """The entry size from ``lstat()``."""
        return self.stat.st_size

    @property
    def identity(self) -> Tuple[int, int]:
        """The ``(st_dev, st_ino)`` pair identifying this entry."""
        return (self.stat.st_dev, self.stat.st_ino)

    @property
    def rdev(self) -> int:
        """The device number of a special file."""
        return self.stat.st_rdev

    @property
    def symlink_target(self) -> str:
        """
        The target of a symbolic link, read on first access.

        :raises DirdiffFilesystemError: If the link cannot be read.
        """
        if self._symlink_target is None:
            try:
                self._symlink_target = os.readlink(self.path)
            except OSError as err:
                raise DirdiffFilesystemError(self.path, "readlink", err) from err
        return self._symlink_target


def display_name(name: str) -> str:
    """
    Return a printable form of a file system name. Bytes that are not
    valid UTF-8 (carried as surrogate escapes by ``os.scandir()``) are
    shown as backslash escapes, e.g. ``bad\\xffname``.

    :param name: A file name or relative path.
    :type name: ``str``
    :returns: The name with undecodable bytes escaped.
    :rtype: ``str``
    """
    return os.fsencode(name).decode("utf-8", "backslashreplace")


def check_root(path: str) -> str:
    """
    Check that ``path`` names an existing directory to compare. A symbolic
    link given as a root is followed.

    :param path: The root path to check.
    :type path: ``str``
    :returns: ``path`` unchanged.
    :rtype: ``str``
    :raises DirdiffNotFoundError: If ``path`` does not exist.
    :raises DirdiffNotADirectoryError: If ``path`` is not a directory.
    :raises DirdiffFilesystemError: If ``path`` cannot be examined.
    """
    try:
        st = os.stat(path)
    except FileNotFoundError as err:
        raise DirdiffNotFoundError(f"Path does not exist: {path}") from err
    except NotADirectoryError as err:
        raise DirdiffNotADirectoryError(f"Path is not a directory: {path}") from err
    except OSError as err:
        raise DirdiffFilesystemError(path, "stat", err) from err
    if not stat.S_ISDIR(st.st_mode):
        raise DirdiffNotADirectoryError(f"Path is not a directory: {path}")
    return path


def scan_dir(path: str) -> Dict[str, FsEntry]:
    """
    List the immediate children of the directory at ``path``.

    :param path: The directory to list.
    :type path: ``str``
    :returns: A dictionary mapping entry names to ``FsEntry`` objects,
              ordered by name.
    :rtype: ``Dict[str, FsEntry]``
    :raises DirdiffFilesystemError: If the directory or one of its entries
                                    cannot be examined.
    """
    entries = {}
    try:
        with os.scandir(path) as it:
            for dentry in it:
                try:
                    entries[dentry.name] = FsEntry(
                        dentry.path, dentry.stat(follow_symlinks=False)
                    )
                except OSError as err:
                    raise DirdiffFilesystemError(dentry.path, "stat", err) from err
    except DirdiffFilesystemError:
        raise
    except OSError as err:
        raise DirdiffFilesystemError(path, "list", err) from err
    _log_debug_engine("Scanned %s: %d entries", path, len(entries))
    return {name: entries[name] for name in sorted(entries, key=os.fsencode)}
