"""
Ember Lexer - turns source text into tokens, one at a time

Reads the source one character at a time and keeps exactly one character
of pushback (the current, not yet consumed character), so it works the same
on an in-memory string and on an open file.

Author: xwest
"""

from io import StringIO
from typing import Iterator, List, Optional, TextIO, Union

from .tokens import (
    Token, TokenType, SourceLocation, KEYWORDS, PUNCTUATION, WHITESPACE,
    COMMENT_START, STRING_QUOTE, ESCAPE_CHAR
)
from .errors import LexerWarning, create_unterminated_string_warning


def _is_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_alnum(char: str) -> bool:
    return _is_alpha(char) or _is_digit(char)


class Lexer:
    """
    Ember lexical analyzer.

    Call ``next_token()`` repeatedly; once the source is exhausted it keeps
    returning EOF tokens. The lexer never raises on malformed input, it
    records warnings instead.
    """

    def __init__(self, source: Union[str, TextIO], filename: str = "<unknown>"):
        """
        Initialize the lexer.

        Args:
            source: Source code string or a readable text stream
            filename: Name of source file for error reporting
        """
        self._stream: TextIO = StringIO(source) if isinstance(source, str) else source
        self.filename = filename
        self.warnings: List[LexerWarning] = []

        # Location of the current character
        self.pos = 0
        self.line = 1
        self.column = 1
        self._current: Optional[str] = self._stream.read(1) or None

    def next_token(self) -> Token:
        """Produce the next token from the source."""
        self._skip_whitespace_and_comments()

        location = self._location()
        char = self._current

        if char is None:
            return Token(TokenType.EOF, "", location)

        if _is_alpha(char):
            return self._tokenize_identifier_or_keyword(location)

        if _is_digit(char) or char == ".":
            return self._tokenize_number(location)

        if char == STRING_QUOTE:
            return self._tokenize_string(location)

        # Anything else is a single-character token
        self._advance()
        return Token(PUNCTUATION.get(char, TokenType.CHAR), char, location)

    def tokenize(self) -> List[Token]:
        """
        Tokenize the rest of the source.

        Returns:
            List of tokens ending with the EOF token
        """
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def _skip_whitespace_and_comments(self):
        """Skip whitespace and '#' line comments."""
        while self._current is not None:
            if self._current in WHITESPACE:
                self._advance()
            elif self._current == COMMENT_START:
                while self._current is not None and self._current != "\n":
                    self._advance()
            else:
                break

    def _tokenize_identifier_or_keyword(self, location: SourceLocation) -> Token:
        chars = [self._current]
        self._advance()
        while self._current is not None and _is_alnum(self._current):
            chars.append(self._current)
            self._advance()

        lexeme = "".join(chars)
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        return Token(token_type, lexeme, location)

    def _tokenize_number(self, location: SourceLocation) -> Token:
        # Digits and dots are collected verbatim; the parser decides the value
        chars = []
        while self._current is not None and (_is_digit(self._current) or self._current == "."):
            chars.append(self._current)
            self._advance()

        return Token(TokenType.NUMBER, "".join(chars), location)

    def _tokenize_string(self, location: SourceLocation) -> Token:
        """Collect the raw interior of a string literal; escapes are kept as written."""
        self._advance()  # Skip opening quote

        chars = []
        while self._current is not None and self._current != STRING_QUOTE:
            if self._current == ESCAPE_CHAR:
                chars.append(self._current)
                self._advance()
                if self._current is None:
                    break
            chars.append(self._current)
            self._advance()

        if self._current is None:
            self.warnings.append(create_unterminated_string_warning(location))
        else:
            self._advance()  # Skip closing quote

        return Token(TokenType.STRING, "".join(chars), location)

    def _advance(self):
        """Consume the current character and read the next one."""
        if self._current is None:
            return
        if self._current == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1
        self._current = self._stream.read(1) or None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens ending with EOF
    """
    return Lexer(source, filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        OSError: If the file cannot be read
    """
    with open(filepath, "r", encoding="utf-8") as f:
        return Lexer(f, filepath).tokenize()
