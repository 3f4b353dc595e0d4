# Copyright dirdiff contributors
#
# dirdiff/fsdiff/compare.py - Directory diff content comparison
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Content equality checks for pairs of non-directory entries.

Checks run from cheapest to most expensive and stop at the first decisive
result: file size, then device and inode identity, then symbolic link
targets, file content or special file device numbers.
"""
from typing import Optional
import logging

from dirdiff import DirdiffFilesystemError, DIRDIFF_SUBSYSTEM_COMPARE
from dirdiff.progress import ThrobberBase

from .options import DiffOptions
from .treewalk import FsEntry

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_COMPARE}, **kwargs)


#: Read size for streaming file comparisons.
CHUNK_SIZE = 4096


class ContentComparer:
    """
    Decide whether two entries of the same type have equivalent content.
    """

    def __init__(
        self,
        options: Optional[DiffOptions] = None,
        throbber: Optional[ThrobberBase] = None,
    ):
        """
        Initialise a new ``ContentComparer``.

        :param options: Comparison options. Only ``paranoid`` is used.
        :type options: ``Optional[DiffOptions]``
        :param throbber: An optional started throbber to notify before
                         reading entry data.
        :type throbber: ``Optional[ThrobberBase]``
        """
        options = options or DiffOptions()
        self.paranoid: bool = options.paranoid
        self.throbber: Optional[ThrobberBase] = throbber

    def _visit(self, entry: FsEntry, rel_path: Optional[str]):
        if self.throbber is not None:
            self.throbber.throb(rel_path or entry.path)

    def files_differ(
        self, a: FsEntry, b: FsEntry, rel_path: Optional[str] = None
    ) -> bool:
        """
        Return ``True`` if the content of ``a`` and ``b`` differs.

        Both entries must exist, must not be directories and must have the
        same type.

        :param a: The entry from the first tree.
        :type a: ``FsEntry``
        :param b: The entry from the second tree.
        :type b: ``FsEntry``
        :param rel_path: The path of the entries relative to their roots,
                         used for progress reporting.
        :type rel_path: ``Optional[str]``
        :returns: ``True`` if the entries differ and ``False`` otherwise.
        :rtype: ``bool``
        :raises ValueError: If the entries are directories or of different
                            types.
        :raises DirdiffFilesystemError: If entry data cannot be read.
        """
        if a.is_dir or b.is_dir:
            raise ValueError(f"Cannot compare directory content: {a.path}, {b.path}")
        if a.type_key != b.type_key:
            raise ValueError(
                f"Cannot compare {a.type_desc} {a.path} with {b.type_desc} {b.path}"
            )

        if a.is_file and a.size != b.size:
            _log_debug_compare(
                "Size differs for %s (%d != %d)", a.path, a.size, b.size
            )
            return True

        if not self.paranoid and a.identity == b.identity:
            _log_debug_compare(
                "Same device and inode for %s and %s: %s", a.path, b.path, a.identity
            )
            return False

        self._visit(a, rel_path)

        if a.is_symlink:
            differ = a.symlink_target != b.symlink_target
            _log_debug_compare(
                "Symlink targets %s: %s -> %s, %s -> %s",
                "differ" if differ else "match",
                a.path,
                a.symlink_target,
                b.path,
                b.symlink_target,
            )
            return differ

        if a.is_file:
            return self._contents_differ(a.path, b.path)

        differ = a.rdev != b.rdev
        _log_debug_compare(
            "Device numbers %s for %s %s (%d, %d)",
            "differ" if differ else "match",
            a.type_desc,
            a.path,
            a.rdev,
            b.rdev,
        )
        return differ

    def _contents_differ(self, path_a: str, path_b: str) -> bool:
        """
        Stream two regular files and compare them chunk by chunk.

        :param path_a: The first file to compare.
        :type path_a: ``str``
        :param path_b: The second file to compare.
        :type path_b: ``str``
        :returns: ``True`` if the contents differ or the files have different
                  lengths, ``False`` otherwise.
        :rtype: ``bool``
        :raises DirdiffFilesystemError: If either file cannot be read.
        """
        try:
            fa = open(path_a, "rb")  # pylint: disable=consider-using-with
        except OSError as err:
            raise DirdiffFilesystemError(path_a, "open", err) from err
        with fa:
            try:
                fb = open(path_b, "rb")  # pylint: disable=consider-using-with
            except OSError as err:
                raise DirdiffFilesystemError(path_b, "open", err) from err
            with fb:
                offset = 0
                while True:
                    chunk_a = self._read_chunk(fa, path_a)
                    chunk_b = self._read_chunk(fb, path_b)
                    if chunk_a != chunk_b:
                        _log_debug_compare(
                            "Content differs for %s and %s near offset %d",
                            path_a,
                            path_b,
                            offset,
                        )
                        return True
                    if len(chunk_a) < CHUNK_SIZE:
                        # Equal short reads: both files ended here.
                        return False
                    offset += len(chunk_a)

    @staticmethod
    def _read_chunk(fp, path: str) -> bytes:
        try:
            return fp.read(CHUNK_SIZE)
        except OSError as err:
            raise DirdiffFilesystemError(path, "read", err) from err


__all__ = [
    "CHUNK_SIZE",
    "ContentComparer",
]
