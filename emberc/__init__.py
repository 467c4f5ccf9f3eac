"""
Ember Compiler Package

A minimal compiler for the Ember language: source text goes through a
streaming lexer, a recursive-descent parser and an llvmlite IR generator,
and the resulting LLVM IR is handed to llc and a C compiler for linking.

Architecture:
    emberc/
    ├── lexer/           # Tokenization
    ├── parser/          # Syntax analysis and AST
    ├── ir/              # LLVM IR generation
    ├── backend/         # Build driver (llc, linker)
    ├── driver.py        # Front-end pipeline
    └── cli.py           # Command-line interface

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer
from .parser import Parser
from .ir import IRGenerator
from .backend import BuildDriver, BuildOptions
from .driver import compile_source, compile_file, CompilationResult

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "IRGenerator",
    "BuildDriver",
    "BuildOptions",

    # Pipeline
    "compile_source",
    "compile_file",
    "CompilationResult",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
