# Copyright dirdiff contributors
#
# dirdiff/_dirdiff.py - Directory diff global definitions
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level dirdiff package.
"""
from typing import Optional, TextIO, TYPE_CHECKING
import logging
import weakref
import sys

if TYPE_CHECKING:
    from .progress import ThrobberBase

_log = logging.getLogger("dirdiff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Dirdiff debugging subsystem mask
DIRDIFF_DEBUG_COMPARE = 1
DIRDIFF_DEBUG_ENGINE = 2
DIRDIFF_DEBUG_RENDER = 4
DIRDIFF_DEBUG_PATCH = 8
DIRDIFF_DEBUG_COMMAND = 16
DIRDIFF_DEBUG_ALL = (
    DIRDIFF_DEBUG_COMPARE
    | DIRDIFF_DEBUG_ENGINE
    | DIRDIFF_DEBUG_RENDER
    | DIRDIFF_DEBUG_PATCH
    | DIRDIFF_DEBUG_COMMAND
)

# Dirdiff debugging subsystem names
DIRDIFF_SUBSYSTEM_COMPARE = "dirdiff.compare"
DIRDIFF_SUBSYSTEM_ENGINE = "dirdiff.engine"
DIRDIFF_SUBSYSTEM_RENDER = "dirdiff.render"
DIRDIFF_SUBSYSTEM_PATCH = "dirdiff.patch"
DIRDIFF_SUBSYSTEM_COMMAND = "dirdiff.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    DIRDIFF_DEBUG_COMPARE: DIRDIFF_SUBSYSTEM_COMPARE,
    DIRDIFF_DEBUG_ENGINE: DIRDIFF_SUBSYSTEM_ENGINE,
    DIRDIFF_DEBUG_RENDER: DIRDIFF_SUBSYSTEM_RENDER,
    DIRDIFF_DEBUG_PATCH: DIRDIFF_SUBSYSTEM_PATCH,
    DIRDIFF_DEBUG_COMMAND: DIRDIFF_SUBSYSTEM_COMMAND,
}

#: Currently enabled debug subsystems
_debug_subsystems = set()

#: Throbbers currently drawing to a terminal stream
_active_progress: weakref.WeakSet = weakref.WeakSet()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``dirdiff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    dirdiff_log = logging.getLogger("dirdiff")

    for handler in dirdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``dirdiff`` package.

    :param mask: the logical OR of the ``DIRDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > DIRDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid dirdiff debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    dirdiff_log = logging.getLogger("dirdiff")
    for handler in dirdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


def register_progress(progress: "ThrobberBase"):
    """Register a progress instance for log coordination."""
    _active_progress.add(progress)
    progress.registered = True


def unregister_progress(progress: "ThrobberBase"):
    """Unregister a progress instance."""
    _active_progress.discard(progress)
    progress.registered = False


def notify_log_output(stream: TextIO):
    """
    Notify progress instances that log output occurred on stream.

    Called by ProgressAwareHandler after emitting a record.

    :param stream: The stream that received output.
    :type stream: ``TextIO``
    """
    if stream not in (sys.stdout, sys.stderr):
        return
    for progress in list(_active_progress):
        if hasattr(progress, "reset_position"):
            progress.reset_position()


class ProgressAwareHandler(logging.StreamHandler):
    """
    A logging handler that coordinates with active throbber instances.

    After emitting a log record, notifies any throbber instances writing
    to the same stream so they can avoid erasing the log message.
    """

    def __init__(self, stream: Optional[TextIO] = None, **kwargs):
        super().__init__(stream=stream or sys.stderr, **kwargs)

    def emit(self, record):
        try:
            msg = self.format(record)
            self.stream.write(msg + "\n")
            self.stream.flush()
            notify_log_output(self.stream)
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)


#
# Dirdiff exception types
#


class DirdiffError(Exception):
    """
    Base class for directory diff errors.
    """


class DirdiffNotFoundError(DirdiffError):
    """
    A comparison root does not exist.
    """


class DirdiffNotADirectoryError(DirdiffError):
    """
    A comparison root exists but is not a directory.
    """


class DirdiffFilesystemError(DirdiffError):
    """
    An operating system error while examining an entry during traversal.
    """

    def __init__(self, path: str, operation: str, err: OSError):
        """
        Initialise a new ``DirdiffFilesystemError`` exception.

        :param path: The path that was being examined.
        :param operation: The failing operation ("stat", "read", ...).
        :param err: The underlying ``OSError``.
        """
        self.path, self.operation, self.errno = path, operation, err.errno
        msg = f"Failed to {operation} '{path}': {err.strerror or err}"
        super().__init__(msg)


class DirdiffPatternError(DirdiffError):
    """
    A malformed glob pattern was supplied.
    """


class DirdiffArgumentError(DirdiffError):
    """
    An invalid argument was passed to a dirdiff API call.
    """


class DirdiffCalloutError(DirdiffError):
    """
    An error calling out to an external program.
    """


__all__ = [
    "DIRDIFF_DEBUG_COMPARE",
    "DIRDIFF_DEBUG_ENGINE",
    "DIRDIFF_DEBUG_RENDER",
    "DIRDIFF_DEBUG_PATCH",
    "DIRDIFF_DEBUG_COMMAND",
    "DIRDIFF_DEBUG_ALL",
    # Debug logging - subsystem name interface
    "SubsystemFilter",
    "DIRDIFF_SUBSYSTEM_COMPARE",
    "DIRDIFF_SUBSYSTEM_ENGINE",
    "DIRDIFF_SUBSYSTEM_RENDER",
    "DIRDIFF_SUBSYSTEM_PATCH",
    "DIRDIFF_SUBSYSTEM_COMMAND",
    "set_debug_mask",
    "get_debug_mask",
    # Progress log callbacks
    "register_progress",
    "unregister_progress",
    "notify_log_output",
    "ProgressAwareHandler",
    "DirdiffError",
    "DirdiffNotFoundError",
    "DirdiffNotADirectoryError",
    "DirdiffFilesystemError",
    "DirdiffPatternError",
    "DirdiffArgumentError",
    "DirdiffCalloutError",
]
