# Copyright dirdiff contributors
#
# tests/fsdiff/test_tree.py - Difference DiffTree renderer tests
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import os
from unittest.mock import MagicMock, patch

from dirdiff.fsdiff.tree import DiffTree, NOT_DESCENDING
from dirdiff.fsdiff.engine import DiffEngine, DiffRecord, DiffResults
from dirdiff.fsdiff.difftypes import DiffType, Side
from dirdiff.fsdiff.filetypes import FileTypeDetector
from dirdiff.fsdiff.filters import PruneFilter
from dirdiff.fsdiff.options import DiffOptions
from dirdiff.progress import TermControl

from ._util import Link, make_tree


class FakeStream:
    """A non-tty output stream with a fixed encoding."""

    def __init__(self, encoding):
        self.encoding = encoding

    def isatty(self):
        return False


def _tc(encoding="ascii"):
    return TermControl(term_stream=FakeStream(encoding), color="never")


def _sample_root():
    d = DiffRecord(
        DiffType.CONTENT,
        "d",
        a_path="/a/d",
        b_path="/b/d",
        children=(
            DiffRecord(DiffType.CONTENT, "f"),
            DiffRecord(DiffType.MISSING, "g", side=Side.A),
        ),
    )
    return DiffRecord(
        DiffType.CONTENT,
        "<root>",
        a_path="/a",
        b_path="/b",
        children=(
            d,
            DiffRecord(DiffType.TYPE_MISMATCH, "t"),
            DiffRecord(DiffType.MISSING, "x", side=Side.B),
        ),
    )


class TestDiffTree(unittest.TestCase):
    def test_init_root_none(self):
        with self.assertRaises(ValueError):
            DiffTree(None)

    def test_unicode_chars(self):
        tree = DiffTree(_sample_root(), term_control=_tc("utf-8"))
        self.assertEqual(tree.branch, "├── ")
        self.assertEqual(tree.last, "└── ")

    def test_ascii_chars_fallback(self):
        tree = DiffTree(_sample_root(), term_control=_tc("ascii"))
        self.assertEqual(tree.branch, "|-- ")
        self.assertEqual(tree.last, "`-- ")

    def test_render_ascii(self):
        tree = DiffTree(_sample_root(), term_control=_tc())
        self.assertEqual(
            tree.render(),
            "? <root>:\n"
            "|-- ? d:\n"
            "|   |-- ? f\n"
            "|   `-- + g\n"
            "|-- ! t\n"
            "`-- - x",
        )

    def test_render_unicode(self):
        tree = DiffTree(_sample_root(), term_control=_tc("utf-8"))
        lines = tree.render().splitlines()
        self.assertEqual(lines[1], "├── ? d:")
        self.assertEqual(lines[2], "│   ├── ? f")
        self.assertEqual(lines[5], "└── - x")

    def test_render_twice(self):
        tree = DiffTree(_sample_root(), term_control=_tc())
        self.assertEqual(tree.render(), tree.render())

    def test_render_subtree_before_root(self):
        root = _sample_root()
        tree = DiffTree(root, term_control=_tc())
        with self.assertRaises(RuntimeError):
            tree.render(record=root.children[0])

    def test_colors(self):
        tc = _tc()
        tc.RED = "<R>"
        tc.GREEN = "<G>"
        tc.BLUE = "<B>"
        tc.YELLOW = "<Y>"
        tc.NORMAL = "<N>"
        tree = DiffTree(_sample_root(), term_control=tc)
        lines = tree.render().splitlines()
        self.assertEqual(lines[0], "<Y>? <root><N>:")
        self.assertEqual(lines[3], "|   `-- <G>+ g<N>")
        self.assertEqual(lines[4], "|-- <B>! t<N>")
        self.assertEqual(lines[5], "`-- <R>- x<N>")

    def test_default_prune(self):
        git = DiffRecord(
            DiffType.CONTENT,
            ".git",
            a_path="/a/.git",
            b_path="/b/.git",
            children=(DiffRecord(DiffType.CONTENT, "index"),),
        )
        root = DiffRecord(
            DiffType.CONTENT, "<root>", a_path="/a", b_path="/b", children=(git,)
        )
        rendered = DiffTree(root, term_control=_tc()).render()
        self.assertEqual(rendered, f"? <root>:\n`-- ? .git{NOT_DESCENDING}")

        no_prune = PruneFilter(default_prune=False)
        rendered = DiffTree(root, prune_filter=no_prune, term_control=_tc()).render()
        self.assertEqual(rendered, "? <root>:\n`-- ? .git:\n    `-- ? index")

    def test_max_depth(self):
        tree = DiffTree(
            _sample_root(), prune_filter=PruneFilter(max_depth=1), term_control=_tc()
        )
        lines = tree.render().splitlines()
        self.assertEqual(lines[1], "|-- ? d (not descending)")
        self.assertEqual(len(lines), 4)

    def test_max_depth_zero(self):
        tree = DiffTree(
            _sample_root(), prune_filter=PruneFilter(max_depth=0), term_control=_tc()
        )
        self.assertEqual(tree.render(), "? <root> (not descending)")

    def test_prune_by_relative_path(self):
        tree = DiffTree(
            _sample_root(),
            prune_filter=PruneFilter(["d"], default_prune=False),
            term_control=_tc(),
        )
        self.assertIn("? d (not descending)", tree.render())

    def test_legend(self):
        legend = DiffTree.legend(term_control=_tc())
        lines = legend.splitlines()
        self.assertEqual(lines[0], "Legend:")
        self.assertEqual(lines[1], "    - foo - exists only in 1st tree")
        self.assertEqual(lines[2], "    + foo - exists only in 2nd tree")
        self.assertEqual(lines[3], "    ! foo - types differ (directory vs file)")
        self.assertEqual(lines[4], "    ? foo - contents differ")

    def test_from_options(self):
        options = DiffOptions(
            prune_patterns=["vendor"], default_prune=False, max_depth=4
        )
        tree = DiffTree.from_options(_sample_root(), options, term_control=_tc())
        self.assertEqual(tree.prune_filter.patterns, ("vendor",))
        self.assertEqual(tree.prune_filter.max_depth, 4)
        self.assertIsNone(tree.file_types)

        options = DiffOptions(use_magic_file_type=True)
        tree = DiffTree.from_options(_sample_root(), options, term_control=_tc())
        self.assertIsInstance(tree.file_types, FileTypeDetector)


class TestDiffTreeFileTypes(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.a = make_tree(
            os.path.join(self._tmp.name, "a"),
            {"text": "one", "kind": {}, "only_a": Link("x")},
        )
        self.b = make_tree(
            os.path.join(self._tmp.name, "b"),
            {"text": "two", "kind": "file"},
        )

    def tearDown(self):
        self._tmp.cleanup()

    @patch("dirdiff.fsdiff.filetypes.magic")
    def test_render_file_types(self, mock_magic):
        mock_magic.detect_from_filename.return_value = MagicMock(name="fm")
        mock_magic.detect_from_filename.return_value.name = "ASCII text"
        records = DiffEngine().diff_trees(self.a, self.b)
        results = DiffResults(
            records, self.a, self.b, DiffOptions(use_magic_file_type=True)
        )
        lines = results.tree(term_control=_tc()).splitlines()
        self.assertEqual(lines[1], "|-- ! kind (directory -> ASCII text)")
        self.assertEqual(lines[2], "|-- - only_a (symbolic link)")
        self.assertEqual(lines[3], "`-- ? text (ASCII text)")
