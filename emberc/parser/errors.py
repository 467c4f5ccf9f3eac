"""
Error handling for the Ember parser.

Provides syntax error reporting with source location information and the
recovery policy used by the top-level parse loop.

Author: xwest
"""

from typing import Optional, List, Union

from ..lexer.tokens import Token, TokenType, SourceLocation
from ..lexer.errors import Diagnostic


class ParseError(Exception):
    """
    Exception raised when the parser encounters a syntax error.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.token = token

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class SyntaxErrorRecovery:
    """
    Recovery policy for the top-level parse loop.

    After a failed statement the parser resumes at the offending token when
    the failed production consumed at least one token, and skips exactly one
    token otherwise. Every failure therefore moves the stream forward.
    """

    @staticmethod
    def tokens_to_skip(consumed: int) -> int:
        """Number of tokens to drop before resuming."""
        return 0 if consumed > 0 else 1

    @staticmethod
    def suggest_missing_token(expected: TokenType) -> List[str]:
        """Suggest what token might be missing."""
        token_suggestions = {
            TokenType.RIGHT_PAREN: ["Add a closing parenthesis ')'"],
            TokenType.COMMA: ["Separate arguments with ','"],
            TokenType.IDENTIFIER: ["Write a function name, e.g. 'extern printf'"],
        }
        return list(token_suggestions.get(expected, []))


PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P002": "Expected token not found",
    "P005": "Invalid expression",
    "P010": "Unexpected end of input",
    "P013": "Nesting too deep",
}


# Helper functions for creating common parser errors

def create_unexpected_token_error(expected: Union[TokenType, str], found: Token) -> ParseError:
    """Create an error for an unexpected token."""
    expected_str = expected.name if isinstance(expected, TokenType) else expected
    found_str = found.describe()

    suggestions = SyntaxErrorRecovery.suggest_missing_token(expected) if isinstance(expected, TokenType) else []

    return ParseError(
        message=f"Expected {expected_str}, found {found_str}",
        location=found.location,
        token=found,
        code="P001",
        help_text=f"The parser expected to see {expected_str} at this position, but found {found_str} instead.",
        suggestions=suggestions
    )


def create_missing_token_error(expected: TokenType, found: Token) -> ParseError:
    """Create an error for a missing expected token."""
    expected_str = expected.name

    return ParseError(
        message=f"Expected {expected_str} after 'extern', found {found.describe()}",
        location=found.location,
        token=found,
        code="P002",
        help_text=f"The parser expected to see {expected_str} at this position.",
        suggestions=SyntaxErrorRecovery.suggest_missing_token(expected)
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start a primary."""
    return ParseError(
        message=f"Invalid expression: unexpected {found.describe()}",
        location=found.location,
        token=found,
        code="P005",
        help_text="A statement must be a number, a string, a name, a call, "
                  "a parenthesised primary or an extern declaration.",
        suggestions=["Check the expression syntax"]
    )


def create_unexpected_eof_error(expected: str, found: Token) -> ParseError:
    """Create an error for unexpected end of input."""
    return ParseError(
        message=f"Unexpected end of input, expected {expected}",
        location=found.location,
        token=found,
        code="P010",
        help_text=f"The parser reached the end of the file while expecting {expected}.",
        suggestions=[f"Add the missing {expected}", "Check for incomplete statements"]
    )


def create_nesting_too_deep_error(limit: int, found: Token) -> ParseError:
    """Create an error for input nested beyond the parser's depth limit."""
    return ParseError(
        message=f"Expression nested more than {limit} levels deep",
        location=found.location,
        token=found,
        code="P013",
        help_text="Deeply nested parentheses or calls are rejected instead of exhausting the stack.",
        suggestions=["Flatten the expression"]
    )
