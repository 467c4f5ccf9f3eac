"""
LLVM Build Driver for Ember.

Takes a finished ``llvmlite.ir`` module and turns it into a native
executable with the system LLVM toolchain:

    <base>.ll  --llc-->  <base>.s  --cc-->  <base>

Author: xwest
"""

from typing import List, Optional
from dataclasses import dataclass, field
import os
import shlex
import subprocess
import sys

import llvmlite.binding as llvm
import llvmlite.ir as ll

from .errors import (
    ToolchainError, create_malformed_module_error, create_step_failed_error,
    create_tool_not_found_error, create_write_failed_error
)


EMIT_STAGES = ("ll", "asm", "exe")


def _env_default(name: str, fallback: str):
    return lambda: os.environ.get(name, fallback)


@dataclass
class BuildOptions:
    """Build configuration; tool paths default from EMBER_LLC / EMBER_CC."""
    output_dir: str = "."
    llc: str = field(default_factory=_env_default("EMBER_LLC", "llc"))
    cc: str = field(default_factory=_env_default("EMBER_CC", "clang"))
    opt_level: int = 0
    emit: str = "exe"              # Last artifact to produce: ll, asm or exe
    link_libs: List[str] = field(default_factory=list)
    target_triple: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if self.opt_level not in (0, 1, 2, 3):
            raise ValueError(f"opt_level must be 0-3, got {self.opt_level}")
        if self.emit not in EMIT_STAGES:
            raise ValueError(f"emit must be one of {', '.join(EMIT_STAGES)}, got {self.emit!r}")

    def resolve_triple(self) -> str:
        return self.target_triple or llvm.get_default_triple()


@dataclass
class BuildResult:
    """Outcome of a build: artifacts written so far, in order, and the failure if any."""
    artifacts: List[str] = field(default_factory=list)
    error: Optional[ToolchainError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class BuildDriver:
    """
    Serializes a module and runs the external toolchain on it.

    Each step runs synchronously; the first failing step ends the build.
    """

    def __init__(self, options: Optional[BuildOptions] = None):
        self.options = options or BuildOptions()

    def output_base(self, source_path: str) -> str:
        """Source file name without directory and final extension."""
        return os.path.splitext(os.path.basename(source_path))[0]

    def verify(self, module: ll.Module) -> 'llvm.ModuleRef':
        """
        Re-parse the textual IR with LLVM and run the verifier.

        Raises:
            ToolchainError: If LLVM rejects the module
        """
        try:
            llvm_module = llvm.parse_assembly(str(module))
            llvm_module.verify()
        except RuntimeError as e:
            raise create_malformed_module_error(str(e)) from e
        return llvm_module

    def build(self, module: ll.Module, source_path: str) -> BuildResult:
        """
        Build the artifacts for ``source_path`` from ``module``.

        Returns:
            BuildResult listing the files produced
        """
        result = BuildResult()
        base = os.path.join(self.options.output_dir, self.output_base(source_path))
        ll_path = base + ".ll"
        asm_path = base + ".s"
        exe_path = base

        try:
            self.verify(module)

            self._write_ir(module, ll_path)
            result.artifacts.append(ll_path)
            if self.options.emit == "ll":
                return result

            self._run([self.options.llc, f"-O{self.options.opt_level}", ll_path, "-o", asm_path], "llc")
            result.artifacts.append(asm_path)
            if self.options.emit == "asm":
                return result

            link_cmd = [self.options.cc, asm_path, "-o", exe_path]
            link_cmd.extend(f"-l{lib}" for lib in self.options.link_libs)
            self._run(link_cmd, "link")
            result.artifacts.append(exe_path)

        except ToolchainError as e:
            result.error = e

        return result

    def print_llvm_ir(self, module: ll.Module) -> str:
        """
        Get the LLVM IR as a string.
        """
        return str(module)

    def _write_ir(self, module: ll.Module, path: str):
        self._log(f"writing {path}")
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.print_llvm_ir(module))
        except OSError as e:
            raise create_write_failed_error(path, e) from e

    def _run(self, cmd: List[str], step: str):
        self._log(shlex.join(cmd))
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise create_tool_not_found_error(cmd[0], step, e) from e

        if completed.returncode != 0:
            raise create_step_failed_error(step, cmd, completed.returncode, completed.stderr)

    def _log(self, message: str):
        if self.options.verbose:
            print(f"  🔧 {message}", file=sys.stderr)
