"""
Test suite for the emberc command-line interface.

Author: xwest
"""

import unittest
from unittest import mock
import io
import os
import subprocess
import sys
import tempfile
from contextlib import redirect_stdout, redirect_stderr

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from emberc import __version__
from emberc.cli import main


class TestCLI(unittest.TestCase):
    """Test cases for the CLI."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmpdir.name

    def tearDown(self):
        self._tmpdir.cleanup()

    def _write_source(self, code: str, name: str = "hello.em") -> str:
        path = os.path.join(self.tmpdir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(code)
        return path

    def _run(self, argv):
        """Run main() and capture (exit status, stdout, stderr)."""
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            try:
                status = main(argv)
            except SystemExit as e:
                status = e.code
        return status, stdout.getvalue(), stderr.getvalue()

    def test_emit_ast(self):
        source = self._write_source('extern printf\nprintf("hi")')
        status, out, _ = self._run([source, "--emit", "ast"])
        self.assertEqual(status, 0)
        self.assertEqual(out, "Program\n  ExternDeclaration printf\n  Call printf\n    StringLiteral 'hi'\n")

    def test_emit_tokens(self):
        source = self._write_source('extern printf\nprintf("hi", 5)')
        with mock.patch("emberc.backend.llvm_backend.subprocess.run") as run:
            status, out, _ = self._run([source, "--emit", "tokens"])

        run.assert_not_called()
        self.assertEqual(status, 0)
        lines = out.splitlines()
        self.assertEqual(lines[0], f"{source}:1:1: EXTERN('extern')")
        self.assertEqual(lines[2], f"{source}:2:1: IDENTIFIER('printf')")
        self.assertEqual(lines[4], f"{source}:2:8: STRING('hi')")
        self.assertTrue(lines[-1].endswith(": EOF('')"))
        self.assertFalse(os.path.exists(os.path.join(self.tmpdir, "hello.ll")))

    def test_emit_tokens_reports_warnings(self):
        source = self._write_source('"open')
        status, out, err = self._run([source, "--emit", "tokens"])
        self.assertEqual(status, 0)
        self.assertIn("STRING('open')", out)
        self.assertIn("WARNING[L002]", err)

    def test_emit_ll(self):
        source = self._write_source('extern printf\nprintf("hi")')
        status, _, err = self._run([source, "--emit", "ll", "-o", self.tmpdir])
        self.assertEqual(status, 0, err)
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir, "hello.ll")))

    def test_full_build_invokes_toolchain(self):
        source = self._write_source('extern printf\nprintf("hi")')
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=completed) as run:
            status, _, _ = self._run([source, "-o", self.tmpdir, "-O", "2", "--llc", "my-llc",
                                      "--cc", "my-cc", "-l", "m"])

        self.assertEqual(status, 0)
        llc_cmd = run.call_args_list[0][0][0]
        link_cmd = run.call_args_list[1][0][0]
        self.assertEqual(llc_cmd[:2], ["my-llc", "-O2"])
        self.assertEqual(link_cmd[0], "my-cc")
        self.assertEqual(link_cmd[-1], "-lm")

    def test_toolchain_failure_exit_status(self):
        source = self._write_source("extern puts")
        failed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="llc crashed")
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=failed):
            status, _, err = self._run([source, "-o", self.tmpdir])

        self.assertEqual(status, 1)
        self.assertIn("ERROR[B002]", err)
        self.assertIn("llc crashed", err)

    def test_syntax_errors_reported_build_continues(self):
        source = self._write_source('extern printf\nfoo(1, 2')
        status, _, err = self._run([source, "--emit", "ll", "-o", self.tmpdir])
        self.assertEqual(status, 0)
        self.assertIn("ERROR[P010]", err)
        self.assertIn("hello.em:2:9", err)
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir, "hello.ll")))

    def test_lowering_errors_reported(self):
        source = self._write_source("undefined")
        status, _, err = self._run([source, "--emit", "ll", "-o", self.tmpdir])
        self.assertEqual(status, 0)
        self.assertIn("ERROR[C002]", err)

    def test_lexer_warning_reported(self):
        source = self._write_source('"open')
        status, _, err = self._run([source, "--emit", "ast"])
        self.assertEqual(status, 0)
        self.assertIn("WARNING[L002]", err)

    def test_missing_source_file(self):
        status, _, err = self._run([os.path.join(self.tmpdir, "absent.em")])
        self.assertEqual(status, 1)
        self.assertIn("cannot read", err)

    def test_source_not_utf8(self):
        path = os.path.join(self.tmpdir, "latin.em")
        with open(path, "wb") as f:
            f.write(b'printf("\xff\xfe")')

        for emit in ("exe", "ast", "tokens"):
            status, _, err = self._run([path, "--emit", emit, "-o", self.tmpdir])
            self.assertEqual(status, 1)
            self.assertIn("cannot read", err)
            self.assertNotIn("Traceback", err)

    def test_usage_errors(self):
        status, _, err = self._run([])
        self.assertEqual(status, 1)
        self.assertIn("usage:", err)

        source = self._write_source("1")
        status, _, _ = self._run([source, "-O", "7"])
        self.assertEqual(status, 1)
        status, _, _ = self._run([source, "--emit", "obj"])
        self.assertEqual(status, 1)

    def test_version(self):
        status, out, _ = self._run(["--version"])
        self.assertEqual(status, 0)
        self.assertIn(__version__, out)

    def test_verbose_progress(self):
        source = self._write_source("1")
        status, _, err = self._run([source, "--emit", "ll", "-o", self.tmpdir, "-v"])
        self.assertEqual(status, 0)
        self.assertIn("Compiling", err)
        self.assertIn("hello.ll", err)


if __name__ == "__main__":
    unittest.main()
