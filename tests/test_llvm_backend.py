"""
Test suite for the build driver.

The toolchain is replaced by a mock of ``subprocess.run`` so these tests
need neither llc nor a C compiler.

Author: xwest
"""

import unittest
from unittest import mock
import io
import os
import subprocess
import sys
import tempfile
from contextlib import redirect_stderr

import llvmlite.ir as ir

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from emberc.driver import compile_source
from emberc.backend.llvm_backend import BuildDriver, BuildOptions
from emberc.backend.errors import ToolchainError


def _completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


class TestBuildDriver(unittest.TestCase):
    """Test cases for the build driver."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmpdir.name
        self.module = compile_source('extern printf\nprintf("hello %d", 5)').module

    def tearDown(self):
        self._tmpdir.cleanup()

    def _driver(self, **kwargs) -> BuildDriver:
        kwargs.setdefault("llc", "llc")
        kwargs.setdefault("cc", "clang")
        return BuildDriver(BuildOptions(output_dir=self.tmpdir, **kwargs))

    def _path(self, name: str) -> str:
        return os.path.join(self.tmpdir, name)

    def test_output_base(self):
        driver = BuildDriver()
        self.assertEqual(driver.output_base("src/hello.em"), "hello")
        self.assertEqual(driver.output_base("archive.tar.em"), "archive.tar")
        self.assertEqual(driver.output_base("noext"), "noext")

    def test_emit_ll_runs_no_tools(self):
        with mock.patch("emberc.backend.llvm_backend.subprocess.run") as run:
            result = self._driver(emit="ll").build(self.module, "hello.em")

        run.assert_not_called()
        self.assertTrue(result.success)
        self.assertEqual(result.artifacts, [self._path("hello.ll")])
        with open(self._path("hello.ll"), encoding="utf-8") as f:
            self.assertEqual(f.read(), str(self.module))

    def test_full_build_commands(self):
        """llc turns the .ll into assembly, then the C compiler links it."""
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=_completed()) as run:
            result = self._driver().build(self.module, "src/hello.em")

        self.assertTrue(result.success)
        self.assertIsNone(result.error)
        self.assertEqual(result.artifacts, [self._path("hello.ll"), self._path("hello.s"), self._path("hello")])
        self.assertEqual(run.call_count, 2)
        self.assertEqual(run.call_args_list[0][0][0],
                         ["llc", "-O0", self._path("hello.ll"), "-o", self._path("hello.s")])
        self.assertEqual(run.call_args_list[1][0][0],
                         ["clang", self._path("hello.s"), "-o", self._path("hello")])

    def test_emit_asm_stops_after_llc(self):
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=_completed()) as run:
            result = self._driver(emit="asm").build(self.module, "hello.em")

        self.assertEqual(run.call_count, 1)
        self.assertEqual(result.artifacts, [self._path("hello.ll"), self._path("hello.s")])

    def test_opt_level_and_libraries(self):
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=_completed()) as run:
            self._driver(opt_level=2, link_libs=["m", "pthread"]).build(self.module, "hello.em")

        self.assertIn("-O2", run.call_args_list[0][0][0])
        self.assertEqual(run.call_args_list[1][0][0][-2:], ["-lm", "-lpthread"])

    def test_failed_step_stops_build(self):
        with mock.patch("emberc.backend.llvm_backend.subprocess.run",
                        return_value=_completed(1, "llc: error: bad input")) as run:
            result = self._driver().build(self.module, "hello.em")

        self.assertFalse(result.success)
        self.assertEqual(run.call_count, 1)
        self.assertEqual(result.artifacts, [self._path("hello.ll")])
        self.assertIsInstance(result.error, ToolchainError)
        self.assertEqual(result.error.code, "B002")
        self.assertEqual(result.error.step, "llc")
        self.assertEqual(result.error.returncode, 1)
        self.assertIn("bad input", str(result.error))
        # Intermediate files are left in place
        self.assertTrue(os.path.exists(self._path("hello.ll")))

    def test_link_failure(self):
        with mock.patch("emberc.backend.llvm_backend.subprocess.run",
                        side_effect=[_completed(), _completed(1, "undefined reference")]):
            result = self._driver().build(self.module, "hello.em")

        self.assertEqual(result.error.step, "link")
        self.assertEqual(result.artifacts, [self._path("hello.ll"), self._path("hello.s")])

    def test_missing_tool(self):
        missing = FileNotFoundError(2, "No such file or directory")
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", side_effect=missing):
            result = self._driver(llc="/nonexistent/llc").build(self.module, "hello.em")

        self.assertEqual(result.error.code, "B003")
        self.assertIn("/nonexistent/llc", str(result.error))

    def test_unwritable_output(self):
        driver = BuildDriver(BuildOptions(output_dir=self._path("missing-dir"), emit="ll"))
        result = driver.build(self.module, "hello.em")
        self.assertEqual(result.error.code, "B004")
        self.assertEqual(result.artifacts, [])

    def test_malformed_module(self):
        """A module LLVM rejects is reported before anything is written."""
        module = ir.Module(name="broken")
        function = ir.Function(module, ir.FunctionType(ir.IntType(32), []), name="main")
        function.append_basic_block("entry")  # No terminator

        driver = self._driver(emit="ll")
        with self.assertRaises(ToolchainError) as cm:
            driver.verify(module)
        self.assertEqual(cm.exception.code, "B001")

        result = driver.build(module, "broken.em")
        self.assertEqual(result.error.code, "B001")
        self.assertFalse(os.path.exists(self._path("broken.ll")))

    def test_verify_accepts_generated_module(self):
        self.assertIsNotNone(BuildDriver().verify(self.module))

    def test_verbose_echoes_commands(self):
        stderr = io.StringIO()
        with mock.patch("emberc.backend.llvm_backend.subprocess.run", return_value=_completed()), \
                redirect_stderr(stderr):
            self._driver(verbose=True).build(self.module, "hello.em")

        output = stderr.getvalue()
        self.assertIn("llc -O0", output)
        self.assertIn("clang", output)


class TestBuildOptions(unittest.TestCase):
    """Test cases for build options."""

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            options = BuildOptions()
        self.assertEqual(options.output_dir, ".")
        self.assertEqual(options.llc, "llc")
        self.assertEqual(options.cc, "clang")
        self.assertEqual(options.opt_level, 0)
        self.assertEqual(options.emit, "exe")
        self.assertEqual(options.link_libs, [])

    def test_environment_overrides(self):
        with mock.patch.dict(os.environ, {"EMBER_LLC": "/opt/llvm/bin/llc", "EMBER_CC": "gcc"}):
            options = BuildOptions()
        self.assertEqual(options.llc, "/opt/llvm/bin/llc")
        self.assertEqual(options.cc, "gcc")

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            BuildOptions(opt_level=4)
        with self.assertRaises(ValueError):
            BuildOptions(emit="obj")

    def test_target_triple(self):
        self.assertEqual(BuildOptions(target_triple="aarch64-linux-gnu").resolve_triple(), "aarch64-linux-gnu")
        self.assertTrue(BuildOptions().resolve_triple())


if __name__ == "__main__":
    unittest.main()
