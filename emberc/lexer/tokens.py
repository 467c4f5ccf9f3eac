"""
Token definitions for the Ember lexer.

Ember has a deliberately tiny token set:
- the end-of-input marker and the ``extern`` keyword
- identifiers, string literals and number literals
- single-character punctuation (parentheses and comma get their own type,
  every other character is passed through as ``CHAR``)

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
    """Enumeration of all token types in Ember."""

    # Special tokens
    EOF = auto()                    # End of input
    EXTERN = auto()                 # extern

    # Literals and names
    IDENTIFIER = auto()             # printf, x1
    STRING = auto()                 # "hello\n" (raw interior text)
    NUMBER = auto()                 # 42, 3.14, .5

    # Punctuation
    LEFT_PAREN = auto()             # (
    RIGHT_PAREN = auto()            # )
    COMMA = auto()                  # ,
    CHAR = auto()                   # any other single character


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and AST dumps.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of file

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token in the Ember language.

    Each token owns its text, so nothing has to be copied out before the
    lexer produces the next one.
    """
    type: TokenType
    lexeme: str                     # Token text (string tokens: raw interior)
    location: SourceLocation

    def __str__(self) -> str:
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, {self.location!r})"

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a keyword."""
        return self.lexeme in KEYWORDS and self.type == KEYWORDS[self.lexeme]

    def describe(self) -> str:
        """Human readable form used in diagnostics."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.STRING:
            return f'string "{self.lexeme}"'
        if self.type in (TokenType.IDENTIFIER, TokenType.NUMBER):
            return f"{self.type.name.lower()} '{self.lexeme}'"
        return f"'{self.lexeme}'"


# Reserved words
KEYWORDS = {
    "extern": TokenType.EXTERN,
}

# Punctuation with a dedicated token type
PUNCTUATION = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    ",": TokenType.COMMA,
}

# Matches C isspace()
WHITESPACE = frozenset(" \t\n\r\v\f")

COMMENT_START = "#"
STRING_QUOTE = '"'
ESCAPE_CHAR = "\\"
