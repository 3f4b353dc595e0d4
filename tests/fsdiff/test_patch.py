# Copyright dirdiff contributors
#
# tests/fsdiff/test_patch.py - PatchGenerator tests
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import shutil
import os
from subprocess import CompletedProcess
from unittest.mock import patch

from dirdiff import DirdiffCalloutError
from dirdiff.fsdiff.engine import DiffEngine, DiffResults
from dirdiff.fsdiff.options import DiffOptions
from dirdiff.fsdiff.patch import (
    DIFF_CMD,
    PatchGenerator,
    ROOT_PATCH_NAME,
    patch_file_name,
)

from ._util import make_tree

_HAVE_DIFF = shutil.which("diff") is not None


class TestPatchFileName(unittest.TestCase):
    def test_names(self):
        self.assertEqual(patch_file_name(""), ROOT_PATCH_NAME)
        self.assertEqual(patch_file_name("src"), "src.patch")
        self.assertEqual(patch_file_name("src/lib"), "src_lib.patch")


class TestPatchGenerator(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.a = make_tree(
            os.path.join(self._tmp.name, "a"),
            {"top": "1\n", "src": {"lib": {"x.c": "int x;\n"}, "y.c": "y\n"}},
        )
        self.b = make_tree(
            os.path.join(self._tmp.name, "b"),
            {"top": "2\n", "src": {"lib": {"x.c": "int x = 1;\n"}, "y.c": "y\n"}},
        )
        self.out = os.path.join(self._tmp.name, "patches")

    def tearDown(self):
        self._tmp.cleanup()

    def _results(self, **kwargs):
        options = DiffOptions(patch_dir=self.out, **kwargs)
        records = DiffEngine(options).diff_trees(self.a, self.b)
        return options, DiffResults(records, self.a, self.b, options)

    def test_requires_depth(self):
        with self.assertRaises(ValueError):
            PatchGenerator(DiffOptions())

    def test_no_differences(self):
        options = DiffOptions(patch_depth=0, patch_dir=self.out)
        results = DiffResults([], self.a, self.b, options)
        with patch("dirdiff.fsdiff.patch.run") as mock_run:
            self.assertEqual(PatchGenerator(options).generate(results), [])
            mock_run.assert_not_called()

    def test_depth_selection(self):
        options, results = self._results(patch_depth=2)
        with patch(
            "dirdiff.fsdiff.patch.run",
            return_value=CompletedProcess([], 1, stderr=b""),
        ) as mock_run:
            written = PatchGenerator(options).generate(results)
        self.assertEqual(written, [os.path.join(self.out, "src_lib.patch")])
        cmd = mock_run.call_args.args[0]
        self.assertEqual(
            cmd,
            DIFF_CMD
            + [os.path.join(self.a, "src", "lib"), os.path.join(self.b, "src", "lib")],
        )

    def test_root_depth(self):
        options, results = self._results(patch_depth=0)
        with patch(
            "dirdiff.fsdiff.patch.run",
            return_value=CompletedProcess([], 0, stderr=b""),
        ) as mock_run:
            written = PatchGenerator(options).generate(results)
        self.assertEqual(written, [os.path.join(self.out, ROOT_PATCH_NAME)])
        self.assertEqual(mock_run.call_args.args[0], DIFF_CMD + [self.a, self.b])

    def test_colliding_patch_names(self):
        self.a = make_tree(
            os.path.join(self._tmp.name, "ca"),
            {"p": {"q_r": {"f": "1\n"}}, "p_q": {"r": {"f": "1\n"}}},
        )
        self.b = make_tree(
            os.path.join(self._tmp.name, "cb"),
            {"p": {"q_r": {"f": "2\n"}}, "p_q": {"r": {"f": "2\n"}}},
        )
        options, results = self._results(patch_depth=2)
        with patch(
            "dirdiff.fsdiff.patch.run",
            return_value=CompletedProcess([], 1, stderr=b""),
        ) as mock_run:
            with self.assertLogs("dirdiff.fsdiff.patch", level="WARNING") as logs:
                written = PatchGenerator(options).generate(results)
        self.assertEqual(mock_run.call_count, 2)
        self.assertEqual(
            written,
            [
                os.path.join(self.out, "p_q_r.patch"),
                os.path.join(self.out, "p_q_r.1.patch"),
            ],
        )
        self.assertIn("already in use", "\n".join(logs.output))

    def test_depth_beyond_tree(self):
        options, results = self._results(patch_depth=5)
        with patch("dirdiff.fsdiff.patch.run") as mock_run:
            self.assertEqual(PatchGenerator(options).generate(results), [])
            mock_run.assert_not_called()

    def test_error_status_logged_not_fatal(self):
        options, results = self._results(patch_depth=1)
        with patch(
            "dirdiff.fsdiff.patch.run",
            return_value=CompletedProcess([], 2, stderr=b"diff: trouble"),
        ):
            with self.assertLogs("dirdiff.fsdiff.patch", level="WARNING") as logs:
                written = PatchGenerator(options).generate(results)
        self.assertEqual(written, [])
        self.assertIn("diff: trouble", "\n".join(logs.output))

    def test_missing_diff_logged_not_fatal(self):
        options, results = self._results(patch_depth=1)
        with patch(
            "dirdiff.fsdiff.patch.run", side_effect=FileNotFoundError(2, "No such file")
        ):
            with self.assertLogs("dirdiff.fsdiff.patch", level="WARNING"):
                self.assertEqual(PatchGenerator(options).generate(results), [])

    def test_run_diff_raises(self):
        options = DiffOptions(patch_depth=0, patch_dir=self.out)
        os.makedirs(self.out)
        with patch(
            "dirdiff.fsdiff.patch.run",
            return_value=CompletedProcess([], 2, stderr=b"bad"),
        ):
            with self.assertRaises(DirdiffCalloutError):
                PatchGenerator(options).run_diff(
                    self.a, self.b, os.path.join(self.out, "x.patch")
                )

    @unittest.skipUnless(_HAVE_DIFF, "diff not installed")
    def test_real_diff(self):
        options, results = self._results(patch_depth=1)
        written = PatchGenerator(options).generate(results)
        self.assertEqual(written, [os.path.join(self.out, "src.patch")])
        with open(written[0], encoding="utf8") as f:
            content = f.read()
        self.assertIn("-int x;", content)
        self.assertIn("+int x = 1;", content)
