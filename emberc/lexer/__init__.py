"""
Ember Lexer Package

Implements the lexical analyzer (tokenizer) for the Ember language.

Key Features:
- Streaming, one token at a time, one character of pushback
- '#' line comments
- Raw string interiors (escapes decoded later by the parser)
- Source location tracking for diagnostics

Author: xwest
"""

from .tokens import Token, TokenType, SourceLocation
from .lexer import Lexer, tokenize_string, tokenize_file
from .errors import Diagnostic, LexerWarning

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "Diagnostic",
    "LexerWarning",
    "tokenize_string",
    "tokenize_file",
]
