"""
Pipeline facade for the Ember compiler.

Runs lexer, parser and IR generator over one source and gathers every
diagnostic they produce. Statements are lowered as soon as they are
parsed, so the parser never holds more than the statement in hand.

Author: xwest
"""

from typing import List, Optional, TextIO, Union
from dataclasses import dataclass, field

import llvmlite.ir as ir

from .lexer.lexer import Lexer
from .lexer.errors import LexerWarning
from .parser.parser import Parser
from .parser.ast_nodes import Program
from .parser.errors import ParseError
from .ir.ir_generator import IRGenerator
from .ir.errors import LoweringError


@dataclass
class CompilationResult:
    """Everything the front end produced for one source file."""
    program: Program
    module: ir.Module
    warnings: List[LexerWarning] = field(default_factory=list)
    parse_errors: List[ParseError] = field(default_factory=list)
    lowering_errors: List[LoweringError] = field(default_factory=list)

    @property
    def diagnostics(self) -> list:
        """Warnings and errors in pipeline order."""
        return [*self.warnings, *self.parse_errors, *self.lowering_errors]

    @property
    def has_errors(self) -> bool:
        return bool(self.parse_errors or self.lowering_errors)


def compile_source(source: Union[str, TextIO], filename: str = "<string>",
                   module_name: str = "main", target_triple: Optional[str] = None) -> CompilationResult:
    """
    Compile Ember source to a finalized LLVM module.

    Syntax and lowering errors do not stop compilation; the offending
    statements are left out of the module and reported in the result.
    """
    lexer = Lexer(source, filename)
    parser = Parser(lexer)
    generator = IRGenerator(module_name, target_triple)

    items = []
    for node in parser.parse_statements():
        items.append(node)
        try:
            generator.lower(node)
        except LoweringError as e:
            generator.errors.append(e)

    module = generator.finalize()
    start = items[0].location if items else None

    return CompilationResult(
        program=Program(items, start),
        module=module,
        warnings=list(lexer.warnings),
        parse_errors=list(parser.errors),
        lowering_errors=list(generator.errors),
    )


def compile_file(filepath: str, module_name: Optional[str] = None,
                 target_triple: Optional[str] = None) -> CompilationResult:
    """
    Compile an Ember source file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    with open(filepath, "r", encoding="utf-8") as f:
        return compile_source(f, filepath, module_name or filepath, target_triple)
