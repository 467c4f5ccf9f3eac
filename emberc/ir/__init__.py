"""
Ember IR Package

Lowers the Ember AST to LLVM IR with llvmlite.

Key Features:
- One entry function holding all top-level statements
- A single signature table shared by extern declarations and call sites
- Argument type inference from the AST variant of each argument

Author: xwest
"""

from .ir_generator import IRGenerator, generate_module, ENTRY_POINT
from .signatures import Signature, SignatureTable, KNOWN_EXTERNS
from .errors import LoweringError

__all__ = [
    "IRGenerator",
    "generate_module",
    "ENTRY_POINT",
    "Signature",
    "SignatureTable",
    "KNOWN_EXTERNS",
    "LoweringError",
]
