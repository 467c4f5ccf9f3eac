"""
Function signature table.

Every function that ends up in the module goes through here, whether it was
announced by ``extern`` or first seen at a call site, so each name has
exactly one signature. The first declaration wins; later uses are checked
against it.

Author: xwest
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

import llvmlite.ir as ir

from ..lexer.tokens import SourceLocation
from .errors import create_incompatible_signature_error, create_reserved_name_error


I8 = ir.IntType(8)
I32 = ir.IntType(32)
I8_PTR = I8.as_pointer()
VOID = ir.VoidType()


def same_type(a: ir.Type, b: ir.Type) -> bool:
    """Compare IR types by their textual form."""
    return str(a) == str(b)


@dataclass
class Signature:
    """Signature of one external function."""
    name: str
    return_type: ir.Type
    param_types: List[ir.Type] = field(default_factory=list)
    var_arg: bool = False
    # A bare ``extern name`` with no known signature; the first call may refine it
    provisional: bool = False

    @property
    def function_type(self) -> ir.FunctionType:
        return ir.FunctionType(self.return_type, self.param_types, var_arg=self.var_arg)

    def accepts(self, arg_types: Sequence[ir.Type]) -> bool:
        """Whether a call with these argument types type-checks against this signature."""
        if len(arg_types) < len(self.param_types):
            return False
        if len(arg_types) > len(self.param_types) and not self.var_arg:
            return False
        return all(same_type(a, p) for a, p in zip(arg_types, self.param_types))

    def compatible_with(self, other: 'Signature') -> bool:
        """
        Whether two declarations can describe the same function.

        Return types must match; the shorter parameter list must be a prefix
        of the longer one and, if they differ in length, belong to a variadic
        signature.
        """
        if not same_type(self.return_type, other.return_type):
            return False
        short, long = sorted((self, other), key=lambda s: len(s.param_types))
        if len(short.param_types) != len(long.param_types) and not short.var_arg:
            return False
        if len(short.param_types) == len(long.param_types) and short.var_arg != long.var_arg:
            return False
        return all(same_type(a, b) for a, b in zip(short.param_types, long.param_types))

    def __str__(self) -> str:
        return str(self.function_type)


# Externs whose signature is known up front
KNOWN_EXTERNS = {
    "printf": (I32, [I8_PTR], True),
}


class SignatureTable:
    """
    Per-module table mapping function names to their single signature.

    Also the only place that creates ``ir.Function`` declarations.
    """

    def __init__(self, module: ir.Module, reserved: Iterable[str] = ()):
        self.module = module
        self.reserved = set(reserved)
        self._signatures: Dict[str, Signature] = {}
        self._functions: Dict[str, ir.Function] = {}

    def declare_extern(self, name: str, location: Optional[SourceLocation] = None) -> Signature:
        """Record an ``extern name`` declaration."""
        self._check_reserved(name, location)

        if name in KNOWN_EXTERNS:
            return_type, param_types, var_arg = KNOWN_EXTERNS[name]
            candidate = Signature(name, return_type, list(param_types), var_arg)
        else:
            candidate = Signature(name, VOID, [], False, provisional=True)

        existing = self._signatures.get(name)
        if existing is None:
            self._signatures[name] = candidate
            return candidate

        if candidate.provisional or existing.compatible_with(candidate):
            return existing

        raise create_incompatible_signature_error(name, str(existing), str(candidate), location)

    def resolve_call(self, name: str, arg_types: Sequence[ir.Type],
                     location: Optional[SourceLocation] = None,
                     pending: Optional[Dict[str, Signature]] = None) -> Signature:
        """
        Find the signature a call should use, declaring one from the argument
        types when the name is new or only provisionally declared.

        With ``pending``, new signatures are recorded there instead of in the
        table and take precedence over it; ``commit`` adopts them.
        """
        self._check_reserved(name, location)

        existing = pending.get(name) if pending else None
        if existing is None:
            existing = self._signatures.get(name)

        if existing is None or existing.provisional:
            inferred = Signature(name, I32, list(arg_types), var_arg=True)
            target = self._signatures if pending is None else pending
            target[name] = inferred
            return inferred

        if not existing.accepts(arg_types):
            requested = ir.FunctionType(existing.return_type, list(arg_types))
            raise create_incompatible_signature_error(name, str(existing), str(requested), location)

        return existing

    def commit(self, pending: Dict[str, Signature]):
        """Adopt signatures resolved against a ``pending`` map."""
        self._signatures.update(pending)

    def materialize(self, name: str) -> ir.Function:
        """Return the module's declaration for ``name``, creating it on first use."""
        function = self._functions.get(name)
        if function is None:
            signature = self._signatures[name]
            signature.provisional = False
            function = ir.Function(self.module, signature.function_type, name=name)
            function.linkage = "external"
            self._functions[name] = function
        return function

    def materialize_all(self) -> List[ir.Function]:
        return [self.materialize(name) for name in self._signatures]

    def get(self, name: str) -> Optional[Signature]:
        return self._signatures.get(name)

    def _check_reserved(self, name: str, location: Optional[SourceLocation]):
        if name in self.reserved:
            raise create_reserved_name_error(name, location)

    def __contains__(self, name: str) -> bool:
        return name in self._signatures

    def __iter__(self) -> Iterator[Signature]:
        return iter(self._signatures.values())

    def __len__(self) -> int:
        return len(self._signatures)
