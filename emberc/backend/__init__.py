"""
Ember Backend Package.

Build driver that hands generated LLVM IR to the native toolchain.

Author: xwest
"""

from .llvm_backend import BuildDriver, BuildOptions, BuildResult, EMIT_STAGES
from .errors import ToolchainError

__all__ = ['BuildDriver', 'BuildOptions', 'BuildResult', 'EMIT_STAGES', 'ToolchainError']
