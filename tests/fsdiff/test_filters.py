# Copyright dirdiff contributors
#
# tests/fsdiff/test_filters.py - Ignore and prune filter tests.
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from dirdiff import DirdiffPatternError
from dirdiff.fsdiff.difftypes import DiffType, Side
from dirdiff.fsdiff.engine import DiffRecord
from dirdiff.fsdiff.filters import (
    DEFAULT_PRUNE_PATTERNS,
    IgnoreFilter,
    PruneFilter,
    validate_pattern,
    validate_patterns,
)


def _dir_record(name):
    return DiffRecord(
        DiffType.CONTENT,
        name,
        a_path=f"/a/{name}",
        b_path=f"/b/{name}",
        children=(DiffRecord(DiffType.CONTENT, "f"),),
    )


class TestValidatePattern(unittest.TestCase):
    def test_valid_patterns(self):
        for pattern in ("*.o", "build", "[abc]*", "[!x]", "[]]", "a/b/*", "?"):
            self.assertEqual(validate_pattern(pattern), pattern)

    def test_empty(self):
        with self.assertRaises(DirdiffPatternError):
            validate_pattern("")

    def test_nul(self):
        with self.assertRaises(DirdiffPatternError):
            validate_pattern("a\0b")

    def test_unterminated_class(self):
        for pattern in ("[abc", "*.[ch", "[!", "[]"):
            with self.assertRaises(DirdiffPatternError, msg=pattern):
                validate_pattern(pattern)

    def test_validate_patterns_tuple(self):
        self.assertEqual(validate_patterns(["a", "b"]), ("a", "b"))
        with self.assertRaises(DirdiffPatternError):
            validate_patterns(["ok", "[bad"])


class TestIgnoreFilter(unittest.TestCase):
    def test_empty(self):
        f = IgnoreFilter()
        self.assertFalse(f)
        self.assertFalse(f.should_ignore("anything", Side.A))

    def test_basename_match(self):
        f = IgnoreFilter(["*.o"])
        self.assertTrue(f)
        self.assertTrue(f.should_ignore("main.o", Side.A))
        self.assertTrue(f.should_ignore("src/lib/util.o", Side.B))
        self.assertFalse(f.should_ignore("main.c", Side.A))

    def test_path_match(self):
        f = IgnoreFilter(["build/*"])
        self.assertTrue(f.should_ignore("build/out", Side.A))
        self.assertFalse(f.should_ignore("src/build/out", Side.A))
        self.assertFalse(f.should_ignore("build", Side.A))

    def test_case_sensitive(self):
        f = IgnoreFilter(["*.TXT"])
        self.assertFalse(f.should_ignore("a.txt", Side.A))

    def test_invalid(self):
        with self.assertRaises(DirdiffPatternError):
            IgnoreFilter(["[oops"])


class TestPruneFilter(unittest.TestCase):
    def test_default_prune(self):
        f = PruneFilter()
        self.assertEqual(f.patterns, DEFAULT_PRUNE_PATTERNS)
        self.assertTrue(f.should_prune(_dir_record(".git"), 1))
        self.assertTrue(f.should_prune(_dir_record("CVS"), 3, rel_path="x/y/CVS"))
        self.assertFalse(f.should_prune(_dir_record("src"), 1))

    def test_no_default_prune(self):
        f = PruneFilter(default_prune=False)
        self.assertEqual(f.patterns, ())
        self.assertFalse(f.should_prune(_dir_record(".git"), 1))

    def test_user_patterns(self):
        f = PruneFilter(["node_modules", "vendor/*"], default_prune=False)
        self.assertTrue(f.should_prune(_dir_record("node_modules"), 2))
        self.assertTrue(
            f.should_prune(_dir_record("pkg"), 2, rel_path="vendor/pkg")
        )
        self.assertFalse(f.should_prune(_dir_record("pkg"), 2, rel_path="src/pkg"))

    def test_max_depth(self):
        f = PruneFilter(max_depth=2)
        self.assertFalse(f.should_prune(_dir_record("a"), 1))
        self.assertTrue(f.should_prune(_dir_record("b"), 2))
        self.assertTrue(f.should_prune(_dir_record("c"), 3))

    def test_max_depth_zero_prunes_root(self):
        f = PruneFilter(max_depth=0)
        self.assertTrue(f.should_prune(_dir_record("<root>"), 0))

    def test_root_not_pruned_by_pattern(self):
        f = PruneFilter(["*"])
        self.assertFalse(f.should_prune(_dir_record("<root>"), 0))

    def test_leaves_never_pruned(self):
        f = PruneFilter(["*"], max_depth=0)
        self.assertFalse(f.should_prune(DiffRecord(DiffType.CONTENT, "f"), 1))
        self.assertFalse(
            f.should_prune(DiffRecord(DiffType.MISSING, ".git", side=Side.B), 1)
        )
        self.assertFalse(f.should_prune(DiffRecord(DiffType.TYPE_MISMATCH, "x"), 1))
