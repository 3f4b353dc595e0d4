# Copyright dirdiff contributors
#
# tests/fsdiff/test_fsdiffer.py - FsDiffer tests.
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import os
from io import StringIO
from unittest.mock import patch, MagicMock

from dirdiff import (
    DirdiffFilesystemError,
    DirdiffNotADirectoryError,
    DirdiffNotFoundError,
)
from dirdiff.fsdiff.engine import DiffEngine, DiffResults
from dirdiff.fsdiff.difftypes import DiffType, Side
from dirdiff.fsdiff.fsdiffer import FsDiffer
from dirdiff.fsdiff.options import DiffOptions
from dirdiff.progress import NullThrobber, SimpleThrobber

from ._util import make_tree


class TestFsDiffer(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.a = make_tree(
            os.path.join(self._tmp.name, "a"),
            {"same": "x", "changed": "1", "gone": "g", "sub": {"f": "a"}},
        )
        self.b = make_tree(
            os.path.join(self._tmp.name, "b"),
            {"same": "x", "changed": "2", "new": "n", "sub": {"f": "a"}},
        )
        self.stream = StringIO()

    def tearDown(self):
        self._tmp.cleanup()

    def test_FsDiffer_defaults(self):
        fsd = FsDiffer()
        self.assertIsInstance(fsd.options, DiffOptions)

    def test_compare_roots(self):
        fsd = FsDiffer(progress_stream=self.stream)
        res = fsd.compare_roots(self.a, self.b)
        self.assertIsInstance(res, DiffResults)
        self.assertEqual(res.root_a, self.a)
        self.assertEqual(res.root_b, self.b)
        self.assertEqual(
            [(r.diff_type, r.name, r.side) for r in res],
            [
                (DiffType.CONTENT, "changed", None),
                (DiffType.MISSING, "gone", Side.B),
                (DiffType.MISSING, "new", Side.A),
            ],
        )
        self.assertIn("Comparing: ", self.stream.getvalue())
        self.assertIn("Found 3 top-level differences", self.stream.getvalue())

    def test_compare_roots_identical(self):
        fsd = FsDiffer(progress_stream=self.stream)
        res = fsd.compare_roots(self.a, self.a)
        self.assertEqual(len(res), 0)
        self.assertIsNone(res.root())

    def test_compare_roots_quiet(self):
        fsd = FsDiffer(DiffOptions(quiet=True), progress_stream=self.stream)
        with patch(
            "dirdiff.fsdiff.fsdiffer.DiffEngine", wraps=DiffEngine
        ) as mock_engine:
            fsd.compare_roots(self.a, self.b)
        throbber = mock_engine.call_args.kwargs["throbber"]
        self.assertIsInstance(throbber, NullThrobber)
        self.assertEqual(self.stream.getvalue(), "")

    def test_compare_roots_not_quiet_uses_simple_throbber(self):
        fsd = FsDiffer(progress_stream=self.stream)
        with patch("dirdiff.fsdiff.fsdiffer.DiffEngine") as mock_engine:
            mock_engine.return_value.diff_trees.return_value = []
            fsd.compare_roots(self.a, self.b)
        throbber = mock_engine.call_args.kwargs["throbber"]
        self.assertIsInstance(throbber, SimpleThrobber)

    def test_compare_roots_missing_root(self):
        fsd = FsDiffer(progress_stream=self.stream)
        with patch("dirdiff.fsdiff.fsdiffer.DiffEngine") as mock_engine:
            with self.assertRaises(DirdiffNotFoundError):
                fsd.compare_roots(self.a, os.path.join(self._tmp.name, "nope"))
            mock_engine.assert_not_called()
        self.assertEqual(self.stream.getvalue(), "")

    def test_compare_roots_not_a_directory(self):
        fsd = FsDiffer(progress_stream=self.stream)
        with self.assertRaises(DirdiffNotADirectoryError):
            fsd.compare_roots(os.path.join(self.a, "same"), self.b)

    def test_compare_roots_cancels_on_interrupt(self):
        fsd = FsDiffer(progress_stream=self.stream)
        throbber = MagicMock()
        with patch(
            "dirdiff.fsdiff.fsdiffer.ProgressFactory.get_throbber",
            return_value=throbber,
        ), patch("dirdiff.fsdiff.fsdiffer.DiffEngine") as mock_engine:
            mock_engine.return_value.diff_trees.side_effect = KeyboardInterrupt
            with self.assertRaises(KeyboardInterrupt):
                fsd.compare_roots(self.a, self.b)
        throbber.start.assert_called_once()
        throbber.cancel.assert_called_once_with("Quit!")
        throbber.end.assert_not_called()

    def test_compare_roots_cancels_on_error(self):
        fsd = FsDiffer(progress_stream=self.stream)
        throbber = MagicMock()
        err = DirdiffFilesystemError("/x", "read", OSError(5, "Input/output error"))
        with patch(
            "dirdiff.fsdiff.fsdiffer.ProgressFactory.get_throbber",
            return_value=throbber,
        ), patch("dirdiff.fsdiff.fsdiffer.DiffEngine") as mock_engine:
            mock_engine.return_value.diff_trees.side_effect = err
            with self.assertRaises(DirdiffFilesystemError):
                fsd.compare_roots(self.a, self.b)
        throbber.cancel.assert_called_once_with()
