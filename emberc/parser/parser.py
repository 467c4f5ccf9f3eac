"""
Ember Recursive Descent Parser

Grammar (each production yields one AST node):

    primary     := NUMBER | STRING | call_or_var | '(' primary ')' | extern_decl
    call_or_var := IDENTIFIER [ '(' (primary (',' primary)*)? ')' ]
    extern_decl := 'extern' IDENTIFIER

The parser pulls tokens from the lexer on demand and keeps one token of
lookahead in ``current_token``.

Author: xwest
"""

from typing import Callable, Dict, Iterator, List, Tuple

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from .ast_nodes import (
    ASTNode, Program, NumberLiteral, StringLiteral, VariableReference, Call,
    ExternDeclaration
)
from .errors import (
    ParseError, SyntaxErrorRecovery, create_unexpected_token_error,
    create_missing_token_error, create_invalid_expression_error,
    create_unexpected_eof_error, create_nesting_too_deep_error
)


ESCAPE_SEQUENCES = {
    "n": "\n",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "r": "\r",
    "0": "\0",
}

DEFAULT_MAX_DEPTH = 256

# Any literal with more significant digits than this is outside i32
MAX_NUMBER_DIGITS = 10
SATURATED_NUMBER = 10 ** MAX_NUMBER_DIGITS


def decode_escapes(raw: str) -> str:
    """
    Decode the escape sequences of a raw string literal interior.

    Unknown escapes drop the backslash and keep the following character;
    a lone trailing backslash is kept as is.
    """
    out = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\" and i + 1 < len(raw):
            escaped = raw[i + 1]
            out.append(ESCAPE_SEQUENCES.get(escaped, escaped))
            i += 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def parse_number(text: str) -> int:
    """
    Integer value of a number token; anything after the first '.' is dropped.

    Values too long to be an i32 saturate to ``SATURATED_NUMBER`` so huge
    literals never reach ``int()`` and are rejected later as out of range.
    """
    whole = text.split(".", 1)[0].lstrip("0")
    if len(whole) > MAX_NUMBER_DIGITS:
        return SATURATED_NUMBER
    return int(whole) if whole else 0


class Parser:
    """
    Ember parser.

    ``parse_primary`` parses one production and raises ``ParseError`` on
    malformed input. ``parse_statements``/``parse`` drive it over the whole
    input, recording errors in ``self.errors`` and resynchronising.
    """

    def __init__(self, lexer: Lexer, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Initialize parser with a lexer.

        Args:
            lexer: Token source
            max_depth: Maximum nesting of parentheses and call arguments
        """
        self.lexer = lexer
        self.max_depth = max_depth
        self.errors: List[ParseError] = []

        self._consumed = 0
        self._depth = 0
        self.current_token: Token = lexer.next_token()

        self.prefix_parsers: Dict[TokenType, Callable[[], ASTNode]] = {
            TokenType.NUMBER: self._parse_number_literal,
            TokenType.STRING: self._parse_string_literal,
            TokenType.IDENTIFIER: self._parse_identifier,
            TokenType.LEFT_PAREN: self._parse_grouping,
            TokenType.EXTERN: self._parse_extern,
        }

    def parse(self) -> Program:
        """
        Parse the whole input.

        Returns:
            Program holding every statement that parsed; syntax errors are in
            ``self.errors``
        """
        location = self.current_token.location
        return Program(list(self.parse_statements()), location)

    def parse_statements(self) -> Iterator[ASTNode]:
        """Yield top-level statements one by one until end of input."""
        while not self._check(TokenType.EOF):
            start = self._consumed
            self._depth = 0
            try:
                node = self.parse_primary()
            except ParseError as e:
                self.errors.append(e)
                for _ in range(SyntaxErrorRecovery.tokens_to_skip(self._consumed - start)):
                    self._advance()
                continue
            yield node

    def parse_primary(self) -> ASTNode:
        """Parse a single primary starting at the current token."""
        token = self.current_token
        prefix_parser = self.prefix_parsers.get(token.type)
        if prefix_parser is None:
            if token.type == TokenType.EOF:
                raise create_unexpected_eof_error("an expression", token)
            raise create_invalid_expression_error(token)

        if self._depth >= self.max_depth:
            raise create_nesting_too_deep_error(self.max_depth, token)

        self._depth += 1
        try:
            return prefix_parser()
        finally:
            self._depth -= 1

    # Prefix parsers

    def _parse_number_literal(self) -> NumberLiteral:
        token = self._advance()
        return NumberLiteral(parse_number(token.lexeme), token.location, token.lexeme)

    def _parse_string_literal(self) -> StringLiteral:
        token = self._advance()
        return StringLiteral(decode_escapes(token.lexeme), token.location)

    def _parse_identifier(self) -> ASTNode:
        """Parse a variable reference or, if '(' follows, a call."""
        token = self._advance()
        if not self._check(TokenType.LEFT_PAREN):
            return VariableReference(token.lexeme, token.location)

        self._advance()  # Consume (
        args = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                args.append(self.parse_primary())
                if self._check(TokenType.RIGHT_PAREN):
                    break
                if not self._check(TokenType.COMMA):
                    raise self._expected("',' or ')' in argument list", TokenType.RIGHT_PAREN)
                self._advance()  # Consume ,

        self._advance()  # Consume )
        return Call(token.lexeme, args, token.location)

    def _parse_grouping(self) -> ASTNode:
        """Parse '(' primary ')'."""
        self._advance()  # Consume (
        node = self.parse_primary()
        if not self._check(TokenType.RIGHT_PAREN):
            raise self._expected("')'", TokenType.RIGHT_PAREN)
        self._advance()
        return node

    def _parse_extern(self) -> ExternDeclaration:
        start_token = self._advance()  # Consume extern
        if not self._check(TokenType.IDENTIFIER):
            raise create_missing_token_error(TokenType.IDENTIFIER, self.current_token)
        name_token = self._advance()
        return ExternDeclaration(name_token.lexeme, start_token.location)

    # Utility methods

    def _check(self, token_type: TokenType) -> bool:
        return self.current_token.type == token_type

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self.current_token
        if token.type != TokenType.EOF:
            self.current_token = self.lexer.next_token()
            self._consumed += 1
        return token

    def _expected(self, description: str, token_type: TokenType) -> ParseError:
        if self._check(TokenType.EOF):
            return create_unexpected_eof_error(description, self.current_token)
        error = create_unexpected_token_error(description, self.current_token)
        error.diagnostic.suggestions = SyntaxErrorRecovery.suggest_missing_token(token_type)
        return error


def parse_string(source: str, filename: str = "<string>") -> Tuple[Program, List[ParseError]]:
    """
    Convenience function to parse a source string.

    Returns:
        The program and the syntax errors met along the way
    """
    parser = Parser(Lexer(source, filename))
    program = parser.parse()
    return program, parser.errors


def parse_file(filepath: str) -> Tuple[Program, List[ParseError]]:
    """
    Convenience function to parse a source file.

    Raises:
        OSError: If the file cannot be read
    """
    with open(filepath, "r", encoding="utf-8") as f:
        parser = Parser(Lexer(f, filepath))
        program = parser.parse()
    return program, parser.errors
