# Copyright dirdiff contributors
#
# dirdiff/command.py - Directory diff command interface
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``dirdiff.command`` module provides both the dir-diff command line
interface infrastructure, and a simple procedural interface to the
``dirdiff`` library modules.

The procedural interface is used by the ``dir-diff`` command line tool,
and may be used by application programs, or interactively in the
Python shell by users who do not require all the features present
in the dirdiff object API.
"""
from argparse import ArgumentParser
from typing import Optional
from os.path import basename
import logging
import sys

from dirdiff import (
    DirdiffError,
    DIRDIFF_DEBUG_COMPARE,
    DIRDIFF_DEBUG_ENGINE,
    DIRDIFF_DEBUG_RENDER,
    DIRDIFF_DEBUG_PATCH,
    DIRDIFF_DEBUG_COMMAND,
    DIRDIFF_DEBUG_ALL,
    DIRDIFF_SUBSYSTEM_COMMAND,
    SubsystemFilter,
    set_debug_mask,
    ProgressAwareHandler,
    __version__,
)
from dirdiff.progress import TermControl

from .fsdiff import DiffOptions, DiffResults, FsDiffer, PatchGenerator

OUTPUT_FORMATS = DiffResults.OUTPUT_FORMATS
COLOR_MODES = ["auto", "always", "never"]

#: Message printed by the tree format when the trees are equivalent.
NO_DIFFERENCES = "No differences."

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DIRDIFF_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None


def diff_dirs(
    path_a: str,
    path_b: str,
    options: Optional[DiffOptions] = None,
) -> DiffResults:
    """
    Find differences between two directory trees.

    :param path_a: The directory to use as the left side of the comparison.
    :type path_a: ``str``
    :param path_b: The directory to use as the right side of the comparison.
    :type path_b: ``str``
    :param options: Options controlling the comparison.
    :type options: ``Optional[DiffOptions]``
    :returns: A directory diff results container.
    :rtype: ``DiffResults``
    """
    fsd = FsDiffer(options=options)
    return fsd.compare_roots(path_a, path_b)


def print_results(
    results: DiffResults,
    output_format: str = "tree",
    legend: bool = True,
    pretty: bool = False,
    color: str = "auto",
):
    """
    Print comparison results to ``sys.stdout`` in the selected format.

    :param results: The results to print.
    :type results: ``DiffResults``
    :param output_format: One of "tree", "paths" or "json".
    :type output_format: ``str``
    :param legend: Print the marker legend before a tree.
    :type legend: ``bool``
    :param pretty: Indent JSON output.
    :type pretty: ``bool``
    :param color: A string to control color rendering: "auto", "always", or
                  "never".
    :type color: ``str``
    """
    if output_format == "json":
        print(results.json(pretty=pretty))
    elif output_format == "paths":
        for path in results.paths():
            print(path)
    elif output_format == "tree":
        if not results:
            print(NO_DIFFERENCES)
            return
        term_control = TermControl(color=color)
        if legend:
            print(results.legend(term_control=term_control))
        print("Diff:")
        print(results.tree(term_control=term_control))
    else:
        raise ValueError(f"Unknown output format: {output_format}")


def _diff_cmd(cmd_args):
    """
    Directory diff command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    output_format = cmd_args.output_format
    pretty = cmd_args.pretty
    color = cmd_args.color

    if pretty and output_format != "json":
        _log_error("Option --pretty only supported with --output-format=json")
        return 1

    if cmd_args.use_magic_file_type and output_format != "tree":
        _log_error("Option --file-types only supported with --output-format=tree")
        return 1

    if cmd_args.patch_dir is not None and cmd_args.patch_depth is None:
        _log_warn("Ignoring --patch-dir without --patch-depth")

    options = DiffOptions.from_cmd_args(cmd_args)

    results = diff_dirs(cmd_args.path_a, cmd_args.path_b, options)

    print_results(
        results,
        output_format=output_format,
        legend=not cmd_args.no_legend,
        pretty=pretty,
        color=color,
    )

    if options.patch_depth is not None:
        PatchGenerator(options).generate(results)

    return 0


def setup_logging(cmd_args):
    """
    Set up dirdiff logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    dirdiff_log = logging.getLogger("dirdiff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    dirdiff_log.setLevel(level)
    if dirdiff_log.hasHandlers():
        dirdiff_log.handlers.clear()

    # Subsystem log filtering
    _dirdiff_subsystem_filter = SubsystemFilter("dirdiff")

    # Main console handler
    _CONSOLE_HANDLER = ProgressAwareHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_dirdiff_subsystem_filter)

    dirdiff_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down dirdiff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "compare": DIRDIFF_DEBUG_COMPARE,
        "engine": DIRDIFF_DEBUG_ENGINE,
        "render": DIRDIFF_DEBUG_RENDER,
        "patch": DIRDIFF_DEBUG_PATCH,
        "command": DIRDIFF_DEBUG_COMMAND,
        "all": DIRDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_filter_args(parser):
    """
    Add ignore and prune filter arguments.
    """
    parser.add_argument(
        "-i",
        "--ignore-pattern",
        dest="ignore_patterns",
        metavar="PATTERN",
        action="append",
        help="Exclude paths matching the glob PATTERN from the comparison "
        "(may be repeated)",
    )
    parser.add_argument(
        "-p",
        "--prune-pattern",
        dest="prune_patterns",
        metavar="PATTERN",
        action="append",
        help="Do not show the contents of differing directories matching the "
        "glob PATTERN (may be repeated)",
    )
    parser.add_argument(
        "-P",
        "--no-default-prune",
        dest="default_prune",
        action="store_false",
        help="Show the contents of version control metadata directories",
    )
    parser.add_argument(
        "-m",
        "--max-depth",
        metavar="DEPTH",
        type=int,
        help="Do not show the contents of differing directories at or "
        "below DEPTH",
    )


def _add_output_args(parser):
    """
    Add output format arguments.
    """
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not display progress while comparing",
    )
    parser.add_argument(
        "--no-legend",
        action="store_true",
        help="Do not print the marker legend",
    )
    parser.add_argument(
        "--color",
        type=str,
        choices=COLOR_MODES,
        default="auto",
        help="Control use of colored output",
    )
    parser.add_argument(
        "-f",
        "--file-types",
        dest="use_magic_file_type",
        action="store_true",
        help="Describe differing entries using file type information",
    )
    parser.add_argument(
        "-o",
        "--output-format",
        type=str,
        choices=OUTPUT_FORMATS,
        default="tree",
        help="Output format for differences",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Format JSON output for readability",
    )


def main(args):
    """
    Main entry point for dir-diff.
    """
    parser = ArgumentParser(
        description="Compare two directory trees", prog=basename(args[0])
    )

    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of dir-diff",
        version=__version__,
    )
    parser.add_argument(
        "path_a",
        metavar="PATH_A",
        type=str,
        help="The first directory tree to compare",
    )
    parser.add_argument(
        "path_b",
        metavar="PATH_B",
        type=str,
        help="The second directory tree to compare",
    )
    _add_filter_args(parser)
    parser.add_argument(
        "-x",
        "--paranoid",
        action="store_true",
        help="Compare content even for hard links to the same file",
    )
    parser.add_argument(
        "--patch-depth",
        metavar="DEPTH",
        type=int,
        help="Write unified patches for differing directories at DEPTH",
    )
    parser.add_argument(
        "--patch-dir",
        metavar="DIR",
        type=str,
        help="Directory to write patches to (default: current directory)",
    )
    _add_output_args(parser)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    try:
        status = _diff_cmd(cmd_args)
    except DirdiffError as err:
        _log_error("%s", err)
    except KeyboardInterrupt:  # pragma: no cover
        _log_info("Exiting on user cancel")

    shutdown_logging()
    return status


def run():
    """
    Console script entry point for dir-diff.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
