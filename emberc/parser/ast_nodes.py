"""
Abstract Syntax Tree node definitions for Ember.

Ember programs are a flat sequence of top-level primaries, so the tree has
only five expression variants plus the ``Program`` root. Each node records
where it starts in the source and supports the visitor pattern.

Nodes own their children outright and carry no parent links.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Any, Tuple
from enum import Enum

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    PROGRAM = "Program"

    NUMBER_LITERAL = "NumberLiteral"
    STRING_LITERAL = "StringLiteral"
    VARIABLE_REFERENCE = "VariableReference"
    CALL = "Call"
    EXTERN_DECLARATION = "ExternDeclaration"


class ASTVisitor:
    """
    Visitor base class.

    ``visit`` dispatches on the node's variant to ``visit_<variant>``,
    e.g. ``visit_call`` or ``visit_extern_declaration``.
    """

    def visit(self, node: 'ASTNode') -> Any:
        method = getattr(self, f"visit_{_snake_case(node.node_type.value)}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: 'ASTNode') -> Any:
        raise NotImplementedError(f"{type(self).__name__} cannot visit {node.node_type.value}")


def _snake_case(name: str) -> str:
    out = []
    for i, char in enumerate(name):
        if char.isupper() and i:
            out.append("_")
        out.append(char.lower())
    return "".join(out)


class ASTNode(ABC):
    """Base class for all AST nodes."""

    def __init__(self, node_type: ASTNodeType, location: Optional[SourceLocation] = None):
        self.node_type = node_type
        self.location = location

    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    @abstractmethod
    def children(self) -> List['ASTNode']:
        """Get all child nodes."""

    @abstractmethod
    def _fields(self) -> Tuple[Any, ...]:
        """Values that make up the node's structure (location excluded)."""

    def __eq__(self, other) -> bool:
        if not isinstance(other, ASTNode):
            return NotImplemented
        return self.node_type == other.node_type and self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash((self.node_type, self._fields()))

    def __str__(self) -> str:
        if self.location is None:
            return self.node_type.value
        return f"{self.node_type.value}@{self.location}"


# ============================================================================
# Expressions
# ============================================================================

class NumberLiteral(ASTNode):
    """Integer literal; ``text`` is the source spelling, kept for diagnostics."""
    value: int

    def __init__(self, value: int, location: Optional[SourceLocation] = None,
                 text: Optional[str] = None):
        super().__init__(ASTNodeType.NUMBER_LITERAL, location)
        self.value = value
        self.text = text if text is not None else str(value)

    def children(self) -> List[ASTNode]:
        return []

    def _fields(self):
        return (self.value,)

    def __repr__(self) -> str:
        return f"NumberLiteral({self.value!r})"


class StringLiteral(ASTNode):
    """String literal, already escape-decoded."""
    value: str

    def __init__(self, value: str, location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.STRING_LITERAL, location)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []

    def _fields(self):
        return (self.value,)

    def __repr__(self) -> str:
        return f"StringLiteral({self.value!r})"


class VariableReference(ASTNode):
    """Bare identifier."""
    name: str

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.VARIABLE_REFERENCE, location)
        self.name = name

    def children(self) -> List[ASTNode]:
        return []

    def _fields(self):
        return (self.name,)

    def __repr__(self) -> str:
        return f"VariableReference({self.name!r})"


class Call(ASTNode):
    """Call of a named function."""
    callee: str
    args: List[ASTNode]

    def __init__(self, callee: str, args: Optional[List[ASTNode]] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.CALL, location)
        if not callee:
            raise ValueError("Call.callee must be a non-empty identifier")
        self.callee = callee
        self.args = list(args) if args else []

    def children(self) -> List[ASTNode]:
        return list(self.args)

    def _fields(self):
        return (self.callee, tuple(self.args))

    def __repr__(self) -> str:
        return f"Call({self.callee!r}, {self.args!r})"


class ExternDeclaration(ASTNode):
    """``extern name`` - announces an externally defined function."""
    name: str

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.EXTERN_DECLARATION, location)
        if not name:
            raise ValueError("ExternDeclaration.name must be a non-empty identifier")
        self.name = name

    def children(self) -> List[ASTNode]:
        return []

    def _fields(self):
        return (self.name,)

    def __repr__(self) -> str:
        return f"ExternDeclaration({self.name!r})"


# ============================================================================
# Top-level
# ============================================================================

class Program(ASTNode):
    """Root node: the top-level statements of one file, in source order."""
    items: List[ASTNode]

    def __init__(self, items: List[ASTNode], location: Optional[SourceLocation] = None):
        super().__init__(ASTNodeType.PROGRAM, location)
        self.items = list(items)

    def children(self) -> List[ASTNode]:
        return list(self.items)

    def _fields(self):
        return tuple(self.items)

    def __repr__(self) -> str:
        return f"Program({self.items!r})"


class _Labeler(ASTVisitor):
    """One-line label of a single node, children excluded."""

    def visit_program(self, node: Program) -> str:
        return "Program"

    def visit_number_literal(self, node: NumberLiteral) -> str:
        return f"NumberLiteral {node.value}"

    def visit_string_literal(self, node: StringLiteral) -> str:
        return f"StringLiteral {node.value!r}"

    def visit_variable_reference(self, node: VariableReference) -> str:
        return f"VariableReference {node.name}"

    def visit_call(self, node: Call) -> str:
        return f"Call {node.callee}"

    def visit_extern_declaration(self, node: ExternDeclaration) -> str:
        return f"ExternDeclaration {node.name}"


def dump(node: ASTNode) -> str:
    """
    Render an AST as an indented, one-node-per-line tree.

    Walks with an explicit stack, so any depth the parser accepts can be
    dumped.
    """
    labeler = _Labeler()
    lines = []
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        lines.append("  " * depth + current.accept(labeler))
        stack.extend((child, depth + 1) for child in reversed(current.children()))
    return "\n".join(lines)
