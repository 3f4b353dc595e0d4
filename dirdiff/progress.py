# Copyright dirdiff contributors
#
# dirdiff/progress.py - Directory diff terminal control and progress
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal control and comparison progress indicators
"""
from typing import ClassVar, List, Optional, TextIO, Union
from datetime import datetime, timedelta
from abc import ABC, abstractmethod
import curses
import sys
import os

from dirdiff import register_progress, unregister_progress

#: Default number of columns if not detected from terminal.
DEFAULT_COLUMNS = 80

#: Minimum number of columns reserved for the status message.
MIN_MESSAGE_WIDTH = 16

#: Default frames-per-second for Throbber classes
DEFAULT_FPS = 10

#: Microseconds per second
_USECS_PER_SEC = 1000000


class TermControl:
    """
    Portable terminal control sequences and colors.

    Uses the curses package to look up control sequences for the current
    terminal. Adapted from Edward Loper's terminfo recipe (PSF license):

      https://code.activestate.com/recipes/475116-using-terminfo-for-portable-color-output-cursor-co/

    Each capability is an instance attribute holding the control string
    for that action, or the empty string if the terminal (or the selected
    color mode) does not support it. Output composed from these attributes
    therefore degrades to plain text on dumb terminals and pipes:

        >>> term = TermControl()
        >>> print("This is " + term.GREEN + "green" + term.NORMAL)
    """

    # Cursor movement:
    BOL: str = ""  #: Move the cursor to the beginning of the line
    UP: str = ""  #: Move the cursor up one line
    RIGHT: str = ""  #: Move the cursor right one char

    # Deletion:
    CLEAR_EOL: str = ""  #: Clear to the end of the line.

    # Output modes:
    BOLD: str = ""  #: Turn on bold mode
    NORMAL: str = ""  #: Turn off all modes

    # Cursor display:
    HIDE_CURSOR: str = ""  #: Make the cursor invisible
    SHOW_CURSOR: str = ""  #: Make the cursor visible

    # Foreground colors:
    BLACK: str = ""  #: Black foreground color
    BLUE: str = ""  #: Blue foreground color
    GREEN: str = ""  #: Green foreground color
    CYAN: str = ""  #: Cyan foreground color
    RED: str = ""  #: Red foreground color
    MAGENTA: str = ""  #: Magenta foreground color
    YELLOW: str = ""  #: Yellow foreground color
    WHITE: str = ""  #: White foreground color

    # Terminal size:
    columns: Optional[int] = None  #: Terminal width
    lines: Optional[int] = None  #: Terminal height

    _STRING_CAPABILITIES: List[str] = (
        """
    BOL:cr UP:cuu1 RIGHT:cuf1 CLEAR_EOL:el BOLD:bold NORMAL:sgr0
    HIDE_CURSOR:civis SHOW_CURSOR:cnorm""".split()
    )
    _LEGACY_COLORS: List[str] = (
        """BLACK BLUE GREEN CYAN RED MAGENTA YELLOW WHITE""".split()
    )
    _ANSI_COLORS: List[str] = "BLACK RED GREEN YELLOW BLUE MAGENTA CYAN WHITE".split()

    def _force_ansi(self):
        ansi_codes = {
            "BLACK": "\033[0;30m",
            "RED": "\033[0;31m",
            "GREEN": "\033[0;32m",
            "YELLOW": "\033[0;33m",
            "BLUE": "\033[0;34m",
            "MAGENTA": "\033[0;35m",
            "CYAN": "\033[0;36m",
            "WHITE": "\033[0;37m",
        }
        for color, code in ansi_codes.items():
            setattr(self, color, code)
        setattr(self, "NORMAL", "\033[0m")

    def _init_colors(self):
        """
        Initialize terminal foreground color codes.
        """
        set_fg = self._tigetstr("setf")
        if set_fg:
            set_fg = set_fg.encode("utf8")
            for i, color in enumerate(self._LEGACY_COLORS):
                setattr(self, color, curses.tparm(set_fg, i).decode("utf8") or "")
        set_fg_ansi = self._tigetstr("setaf")
        if set_fg_ansi:
            set_fg_ansi = set_fg_ansi.encode("utf8")
            for i, color in enumerate(self._ANSI_COLORS):
                setattr(self, color, curses.tparm(set_fg_ansi, i).decode("utf8") or "")

    def __init__(self, term_stream: Optional[TextIO] = None, color: str = "auto"):
        """
        Initialize terminal capabilities and size information.

        If the output stream is not a tty or terminal setup fails the
        instance has no capabilities, unless ``color`` is "always", in
        which case plain ANSI color codes are used.

        :param term_stream: Output stream to query for capabilities.
        :type term_stream: ``Optional[TextIO]``
        :param color: A string to control color rendering: "auto", "always", or
                      "never".
        :type color: ``str``
        """
        if term_stream is None:
            term_stream = sys.stdout

        self.term_stream = term_stream

        if color != "always":
            if not hasattr(term_stream, "isatty") or not term_stream.isatty():
                return

        try:
            curses.setupterm()
        # curses.error cannot be named in an except clause on all builds.
        except BaseException as err:  # pylint: disable=broad-exception-caught
            if isinstance(err, (KeyboardInterrupt, SystemExit)):  # pragma: no cover
                raise
            if color == "always":
                self._force_ansi()
            return  # pragma: no cover

        self.columns = curses.tigetnum("cols")
        self.lines = curses.tigetnum("lines")

        for capability in self._STRING_CAPABILITIES:
            (attr, cap_name) = capability.split(":")
            setattr(self, attr, self._tigetstr(cap_name) or "")

        if color != "never":
            self._init_colors()
        else:
            self.NORMAL = ""
            self.BOLD = ""

    def _tigetstr(self, cap_name):
        # Strip "$<2>" style delays: modern terminals do not need them.
        cap = curses.tigetstr(cap_name)
        cap = cap.decode(encoding="utf8") if cap else ""
        return cap.split("$", maxsplit=1)[0]


def _flush_with_broken_pipe_guard(stream: TextIO) -> None:
    """
    Handle ``BrokenPipeError`` when attempting to flush output streams.

    :param stream: The stream to flush.
    :type stream: TextIO
    """
    if stream is None or not hasattr(stream, "flush"):
        return
    try:
        stream.flush()
    except BrokenPipeError as err:
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            if hasattr(stream, "fileno"):
                os.dup2(devnull, stream.fileno())
        finally:
            os.close(devnull)
        raise SystemExit() from err


def truncate_left(message: str, width: int) -> str:
    """
    Shorten ``message`` to at most ``width`` characters by replacing its
    leading part with "...".

    :param message: The message to shorten.
    :type message: ``str``
    :param width: The maximum width in characters.
    :type width: ``int``
    :returns: The possibly shortened message.
    :rtype: ``str``
    """
    if len(message) <= width:
        return message
    if width <= 3:
        return message[len(message) - width :]
    return "..." + message[len(message) - (width - 3) :]


class ThrobberBase(ABC):
    """
    An abstract busy indicator class. The throbber reports liveness of a
    task where the total number of items is unknown, along with a status
    message naming the item currently being examined.
    """

    def __init__(self, header, register: bool = True):
        """
        Initialize base throbber state.

        :param header: The throbber header.
        :type header: ``str``
        :param register: Register this ``ThrobberBase`` for log callbacks.
        :type register: ``bool``
        """
        self.header: str = header
        self.message: str = ""
        self.frames: Union[str, List[str]] = r"."
        self.term: Optional[TermControl] = None
        self.stream: Optional[TextIO] = None
        self.started: bool = False
        self.first_update: bool = True
        self.nr_frames: int = len(self.frames)
        self.fps: int = DEFAULT_FPS
        self._frame_index: int = 0
        self._interval_us: int = round((1.0 / self.fps) * _USECS_PER_SEC)
        self._last: Optional[datetime] = None
        self.registered: bool = False
        self.register: bool = register

    def reset_position(self):
        """Mark throbber as displaced by external output."""
        self.first_update = True

    def start(self):
        """
        Begin a throbber run.
        """
        self.started = True
        self._last = datetime.now() - timedelta(microseconds=self._interval_us)

        if self.register:
            register_progress(self)

        self._do_start()

    def _do_start(self):
        """
        Hook invoked when throbber begins.
        """
        print(f"{self.header}: ", end="", file=self.stream)

    def _check_started(self, step: str):
        """
        Validate that throbber is active.

        :param step: The throbber step (method name) that is active.
        :type step: ``str``
        :raises ``ValueError``: If throbber has not started, or if the throbber
                                has started but ``self._last`` is ``None``.
        """
        theclass = self.__class__.__name__
        if not self.started:
            raise ValueError(f"{theclass}.{step}() called before start()")
        if self._last is None:
            raise ValueError(
                f"{theclass}.{step}() invalid throbber state:"
                "self.started=True but self._last=None"
            )

    def throb(self, message: Optional[str] = None):
        """
        Record a visit to ``message`` and output a frame if the frame
        interval has elapsed.

        :param message: An optional status message (the path being
                        examined).
        :type message: ``Optional[str]``
        """
        self._check_started("throb")
        if message is not None:
            self.message = message
        now = datetime.now()
        if (now - self._last).total_seconds() * _USECS_PER_SEC >= self._interval_us:
            self._do_throb()
            _flush_with_broken_pipe_guard(self.stream)
            self._last = now
            self._frame_index = (self._frame_index + 1) % self.nr_frames
            self.first_update = False

    @abstractmethod
    def _do_throb(self):
        """
        Hook for subclasses to update the throbber display.
        """

    def end(self, message: Optional[str] = None):
        """
        End the throbber run and finalize the display.

        :param message: An optional completion message.
        :type message: ``Optional[str]``
        """
        self._check_started("end")
        self._do_end(message=message)
        _flush_with_broken_pipe_guard(self.stream)
        self.started = False
        self._last = None
        if self.registered:
            unregister_progress(self)

    def cancel(self, message: Optional[str] = None):
        """
        Cancel the throbber run: equivalent to ``end()`` but tolerates a
        throbber that was never started.

        :param message: An optional cancellation message.
        :type message: ``Optional[str]``
        """
        if not self.started:
            return
        self.end(message=message)

    def _do_end(self, message: Optional[str] = None):
        """
        Perform final end-of-throbber handling.

        :param message: An optional completion message.
        :type message: ``Optional[str]``
        """
        print(f"\n{message}" if message else "", file=self.stream)


class Throbber(ThrobberBase):
    """
    A ``ThrobberBase`` subclass displaying a one line ASCII throbber
    followed by the current status message on capable terminals.
    """

    FRAMES: ClassVar[List[str]] = ["|", "/", "-", "\\", "|", "/", "-", "\\"]

    def __init__(
        self,
        header: str,
        register: bool = True,
        term_stream: Optional[TextIO] = None,
        tc: Optional[TermControl] = None,
    ):
        """
        Initialise a new one line throbber instance.

        :param header: The header string to print.
        :type header: ``str``
        :param register: Register this ``Throbber`` for log callbacks.
        :type register: ``bool``
        :param term_stream: The terminal stream to write to.
        :type term_stream: ``TextIO``
        :param tc: An optional ``TermControl`` object already initialised with
                   a ``term_stream`` value. If this argument is set it will
                   override any ``term_stream`` argument.
        :type tc: ``Optional[TermControl]``
        """
        super().__init__(header, register=register)

        if tc is not None:
            term_stream = tc.term_stream

        self.term: Optional[TermControl] = tc or TermControl(term_stream=term_stream)
        self.stream: Optional[TextIO] = term_stream or sys.stdout
        self.frames = self.FRAMES
        self.nr_frames = len(self.frames)

    def _message_width(self) -> int:
        """
        Return the number of columns available for the status message.
        """
        columns = self.term.columns or DEFAULT_COLUMNS
        # "header: " + frame + " " and one spare column.
        fixed = len(self.header) + 2 + len(self.frames[0]) + 2
        return max(MIN_MESSAGE_WIDTH, columns - fixed)

    def _do_start(self):
        """
        Just turn off the cursor: ``_do_throb()`` will print the header.
        """
        print(f"{self.term.HIDE_CURSOR}", end="", file=self.stream)

    def _do_throb(self):
        """
        Update the throbber frame and status message.
        """
        if not self.first_update:
            print(
                self.term.BOL + self.term.UP + self.term.CLEAR_EOL,
                end="",
                file=self.stream,
            )

        message = truncate_left(self.message, self._message_width())
        print(
            (
                f"{self.header}: "
                f"{self.term.GREEN}"
                f"{self.frames[self._frame_index]}"
                f"{self.term.NORMAL} {message}\n"
            ),
            end="",
            file=self.stream,
        )

    def _do_end(self, message: Optional[str] = None):
        """
        Erase the throbber line and restore the cursor.
        """
        if not self.first_update:
            print(
                self.term.BOL + self.term.UP + self.term.CLEAR_EOL,
                end="",
                file=self.stream,
            )

        print(self.term.SHOW_CURSOR, end="", file=self.stream)

        print(f"{message}\n" if message else "", end="", file=self.stream)


class SimpleThrobber(ThrobberBase):
    """
    A simple throbber that does not rely on terminal capabilities.
    """

    def __init__(
        self, header: str, register: bool = True, term_stream: Optional[TextIO] = None
    ):
        """
        Initialise a simple ascii throbber.

        :param header: The throbber header.
        :type header: ``str``
        :param register: Register this ``SimpleThrobber`` for log callbacks.
        :type register: ``bool``
        :param term_stream: The terminal stream to write to.
        :type term_stream: ``Optional[TextIO]``
        """
        super().__init__(header, register=register)
        self.stream = term_stream or sys.stdout

    def _do_throb(self):
        """
        Output simple throb frame.
        """
        print(self.frames[self._frame_index], end="", file=self.stream)


class NullThrobber(ThrobberBase):
    """
    A throbber class that produces no output.
    """

    def _do_start(self):
        """No-op start for NullThrobber."""

    def _do_throb(self):
        """No-op throb hook for NullThrobber."""

    def _do_end(self, message: Optional[str] = None):
        """No-op end for NullThrobber."""

    def throb(self, message: Optional[str] = None):
        """Silent throb for NullThrobber."""
        self._check_started("throb")

    def end(self, message: Optional[str] = None):
        """Silent end for NullThrobber."""
        self._check_started("end")
        self.started = False
        if self.registered:
            unregister_progress(self)


class ProgressFactory:
    """
    A factory for constructing progress objects.
    """

    @staticmethod
    def get_throbber(
        header: str,
        quiet: bool = False,
        term_stream: Optional[TextIO] = None,
        term_control: Optional[TermControl] = None,
        register: bool = True,
    ) -> ThrobberBase:
        """
        Return an appropriate ThrobberBase implementation.

        :param header: The throbber header.
        :type header: ``str``
        :param quiet: Suppress all output.
        :type quiet: ``bool``
        :param term_stream: An optional ``TextIO`` output object.
                            Defaults to ``sys.stderr`` if unspecified.
        :type term_stream: ``Optional[TextIO]``
        :param term_control: An optional ``TermControl`` object to use
                             for the throbber.
        :type term_control: ``Optional[TermControl]``
        :param register: Register the new object with the log system for
                         notification callbacks.
        :type register: ``bool``
        :returns: An appropriate throbber implementation.
        :rtype: ``ThrobberBase``
        """
        if term_control:
            term_stream = term_control.term_stream

        term_stream = term_stream or sys.stderr
        if quiet:
            throbber = NullThrobber(header, register=register)
        elif not hasattr(term_stream, "isatty") or not term_stream.isatty():
            throbber = SimpleThrobber(
                header,
                register=register,
                term_stream=term_stream,
            )
        else:
            throbber = Throbber(
                header,
                register=register,
                term_stream=term_stream,
                tc=term_control,
            )

        return throbber


__all__ = [
    "DEFAULT_FPS",
    "NullThrobber",
    "ProgressFactory",
    "SimpleThrobber",
    "TermControl",
    "ThrobberBase",
    "Throbber",
    "truncate_left",
]
