"""
Error handling for AST-to-IR lowering.

Author: xwest
"""

from typing import Optional, List

from ..lexer.tokens import SourceLocation
from ..lexer.errors import Diagnostic


class LoweringError(Exception):
    """
    Exception raised when a top-level statement cannot be lowered to IR.

    The generator records it and moves on to the next statement.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
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

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


LOWERING_ERROR_CODES = {
    "C001": "Unknown AST node",
    "C002": "Unresolved name",
    "C003": "Unsupported argument type",
    "C004": "Integer literal out of range",
    "C005": "Incompatible function signature",
    "C006": "Reserved name",
}


def create_unknown_node_error(node) -> LoweringError:
    return LoweringError(
        message=f"Cannot lower {node.node_type.value} node",
        location=node.location,
        code="C001",
        help_text="Only top-level numbers, strings, names, calls and extern declarations can be compiled."
    )


def create_unresolved_name_error(name: str, location: Optional[SourceLocation]) -> LoweringError:
    return LoweringError(
        message=f"Unresolved name '{name}'",
        location=location,
        code="C002",
        help_text=f"'{name}' does not name a declared function or global.",
        suggestions=[f"Declare it first with 'extern {name}'"]
    )


def create_unsupported_argument_error(callee: str, position: int, reason: str,
                                      location: Optional[SourceLocation]) -> LoweringError:
    return LoweringError(
        message=f"Unsupported argument {position} in call to '{callee}': {reason}",
        location=location,
        code="C003",
        help_text="Call arguments must be numbers, strings, names or calls returning i32."
    )


def create_integer_out_of_range_error(literal: str, location: Optional[SourceLocation]) -> LoweringError:
    shown = literal if len(literal) <= 24 else f"{literal[:12]}... ({len(literal)} digits)"
    return LoweringError(
        message=f"Integer literal {shown} does not fit in i32",
        location=location,
        code="C004",
        help_text="Number literals are 32-bit signed integers (at most 2147483647)."
    )


def create_incompatible_signature_error(name: str, declared: str, requested: str,
                                        location: Optional[SourceLocation]) -> LoweringError:
    return LoweringError(
        message=f"'{name}' is declared as '{declared}', incompatible with '{requested}'",
        location=location,
        code="C005",
        help_text="The first declaration of a function fixes its signature; "
                  "later uses must agree with it.",
    )


def create_reserved_name_error(name: str, location: Optional[SourceLocation]) -> LoweringError:
    return LoweringError(
        message=f"'{name}' is reserved for the program entry point",
        location=location,
        code="C006",
        help_text="Top-level statements are compiled into the entry function; "
                  "it cannot be declared or called."
    )
