# Copyright dirdiff contributors
#
# dirdiff/fsdiff/patch.py - Directory diff patch generation
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Unified patch generation for differing directories using diff(1).
"""
from subprocess import PIPE, run
from typing import Iterator, List, Optional, Set, Tuple, TYPE_CHECKING
import logging
import os

from dirdiff import DirdiffCalloutError, DIRDIFF_SUBSYSTEM_PATCH

from .options import DiffOptions

if TYPE_CHECKING:
    from .engine import DiffRecord, DiffResults

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_patch(msg, *args, **kwargs):
    """A wrapper for patch subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_PATCH}, **kwargs)


#: The external line diff command and arguments.
DIFF_CMD = ["diff", "-urN"]

#: diff(1) exit statuses meaning "no differences" and "differences found".
_DIFF_SUCCESS = (0, 1)

#: Patch file name used for the root record.
ROOT_PATCH_NAME = "root.patch"


def patch_file_name(rel_path: str) -> str:
    """
    Return the patch file name for a directory at ``rel_path``.

    :param rel_path: The directory path relative to the roots, or the empty
                     string for the roots themselves.
    :type rel_path: ``str``
    :returns: The file name to write the patch to.
    :rtype: ``str``
    """
    if not rel_path:
        return ROOT_PATCH_NAME
    return rel_path.replace("/", "_") + ".patch"


def _unique_patch_name(name: str, used: Set[str]) -> str:
    if name not in used:
        return name
    base = name[: -len(".patch")]
    suffix = 1
    while f"{base}.{suffix}.patch" in used:
        suffix += 1
    return f"{base}.{suffix}.patch"


def _dirs_at_depth(
    record: "DiffRecord", depth: int, rel_path: str = "", level: int = 0
) -> Iterator[Tuple[str, "DiffRecord"]]:
    if not record.is_dir:
        return
    if level == depth:
        yield rel_path, record
        return
    for child in record.children:
        child_path = f"{rel_path}/{child.name}" if rel_path else child.name
        yield from _dirs_at_depth(child, depth, child_path, level + 1)


class PatchGenerator:
    """
    Write unified patches for differing directories at a fixed depth.
    """

    def __init__(self, options: DiffOptions):
        """
        Initialise a new ``PatchGenerator``.

        :param options: Options supplying ``patch_depth`` and ``patch_dir``.
        :type options: ``DiffOptions``
        """
        if options.patch_depth is None:
            raise ValueError("PatchGenerator requires a patch_depth value")
        self.depth: int = options.patch_depth
        self.patch_dir: str = options.patch_dir

    def run_diff(self, path_a: str, path_b: str, patch_path: str):
        """
        Run ``diff -urN`` on two directories, writing output to
        ``patch_path``.

        :param path_a: The directory from the first tree.
        :type path_a: ``str``
        :param path_b: The directory from the second tree.
        :type path_b: ``str``
        :param patch_path: The file to write the patch to.
        :type patch_path: ``str``
        :raises DirdiffCalloutError: If diff cannot be run or exits with an
                                     error status.
        """
        cmd = DIFF_CMD + [path_a, path_b]
        _log_debug_patch("Running '%s' > %s", " ".join(cmd), patch_path)
        try:
            with open(patch_path, "wb") as patch_file:
                result = run(
                    cmd,
                    stdout=patch_file,
                    stderr=PIPE,
                    check=False,
                )
        except OSError as err:
            raise DirdiffCalloutError(
                f"Failed to run '{' '.join(cmd)}' to {patch_path}: {err}"
            ) from err

        if result.returncode not in _DIFF_SUCCESS:
            stderr = result.stderr.decode("utf8", errors="replace").strip()
            raise DirdiffCalloutError(
                f"'{' '.join(cmd)}' exited with status {result.returncode}: {stderr}"
            )

    def generate(self, results: "DiffResults") -> List[str]:
        """
        Generate patches for every differing directory at the configured
        depth. The roots have depth zero.

        Failures are logged and do not stop generation of other patches.

        :param results: The comparison results to generate patches for.
        :type results: ``DiffResults``
        :returns: The paths of the patch files written successfully.
        :rtype: ``List[str]``
        """
        root: Optional["DiffRecord"] = results.root()
        if root is None:
            _log_info("No differences: not generating patches")
            return []

        try:
            os.makedirs(self.patch_dir, exist_ok=True)
        except OSError as err:
            _log_warn("Could not create patch directory %s: %s", self.patch_dir, err)
            return []

        written = []
        used: Set[str] = set()
        for rel_path, record in _dirs_at_depth(root, self.depth):
            name = patch_file_name(rel_path)
            unique = _unique_patch_name(name, used)
            if unique != name:
                _log_warn(
                    "Patch name %s for %s is already in use: writing %s",
                    name,
                    rel_path,
                    unique,
                )
            used.add(unique)
            patch_path = os.path.join(self.patch_dir, unique)
            try:
                self.run_diff(record.a_path, record.b_path, patch_path)
            except DirdiffCalloutError as err:
                _log_warn("Patch generation failed for %s: %s", rel_path or ".", err)
                continue
            _log_info("Wrote patch for %s to %s", rel_path or ".", patch_path)
            written.append(patch_path)

        if not written:
            _log_debug_patch("No patches written at depth %d", self.depth)
        return written


__all__ = [
    "DIFF_CMD",
    "PatchGenerator",
    "ROOT_PATCH_NAME",
    "patch_file_name",
]
