"""
Ember Parser Package

Implements the recursive descent parser for the Ember language and the AST
it produces.

Key Features:
- One-token lookahead over a streaming lexer
- Escape decoding of string literals
- Bounded nesting depth
- Error recovery that always makes progress

Author: xwest
"""

from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, Program, NumberLiteral, StringLiteral,
    VariableReference, Call, ExternDeclaration, dump
)
from .parser import Parser, parse_string, parse_file, decode_escapes
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser",
    "parse_string",
    "parse_file",
    "decode_escapes",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor", "Program",
    "NumberLiteral", "StringLiteral", "VariableReference", "Call",
    "ExternDeclaration", "dump",

    # Error handling
    "ParseError",
]
