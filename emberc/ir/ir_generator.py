"""
IR Generator for Ember.

Lowers Ember AST nodes into an LLVM IR module built with ``llvmlite.ir``.
Top-level statements are emitted, in source order, into the body of the
program's entry function ``main``.

Author: xwest
"""

from typing import Dict, Iterable, List, Optional, Union
from dataclasses import dataclass

import llvmlite.ir as ir

from ..parser.ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, Program, NumberLiteral, StringLiteral,
    VariableReference, Call, ExternDeclaration
)
from .errors import (
    LoweringError, create_unknown_node_error, create_unresolved_name_error,
    create_unsupported_argument_error, create_integer_out_of_range_error
)
from .signatures import Signature, SignatureTable, I8, I32, I8_PTR, same_type


ENTRY_POINT = "main"

I32_MIN = -(2 ** 31)
I32_MAX = 2 ** 31 - 1


@dataclass
class IRGenContext:
    """Context for IR generation."""
    entry_function: Optional[ir.Function] = None
    builder: Optional[ir.IRBuilder] = None
    finalized: bool = False


class IRGenerator(ASTVisitor):
    """
    Generates LLVM IR from Ember AST nodes.

    - Numbers become i32 constants
    - Strings become private constant globals, passed around as i8*
    - Calls get their signature from the module's SignatureTable
    - Extern declarations only touch the SignatureTable
    """

    def __init__(self, module_name: str = "main", target_triple: Optional[str] = None):
        """
        Initialize the IR generator.

        Args:
            module_name: Name recorded in the LLVM module
            target_triple: Target triple written into the module, if any
        """
        self.module = ir.Module(name=module_name)
        if target_triple:
            self.module.triple = target_triple

        self.signatures = SignatureTable(self.module, reserved={ENTRY_POINT})
        self.errors: List[LoweringError] = []
        self.context = IRGenContext()

        self._init_type_mappings()
        self._create_entry_function()

    def _init_type_mappings(self):
        """Parameter type inferred for each argument variant."""
        self.argument_type_map = {
            ASTNodeType.NUMBER_LITERAL: I32,
            ASTNodeType.STRING_LITERAL: I8_PTR,
            ASTNodeType.VARIABLE_REFERENCE: I8_PTR,
            ASTNodeType.CALL: I32,
        }

    def _create_entry_function(self):
        function = ir.Function(self.module, ir.FunctionType(I32, []), name=ENTRY_POINT)
        block = function.append_basic_block("entry")
        self.context.entry_function = function
        self.context.builder = ir.IRBuilder(block)

    def generate(self, statements: Union[Program, Iterable[ASTNode]]) -> ir.Module:
        """
        Lower every statement and finalize the module.

        A statement that fails to lower is recorded in ``self.errors`` and
        skipped.
        """
        if isinstance(statements, Program):
            statements = statements.items

        for node in statements:
            try:
                self.lower(node)
            except LoweringError as e:
                self.errors.append(e)

        return self.finalize()

    def lower(self, node: ASTNode) -> Optional[ir.Value]:
        """
        Lower one top-level node into the entry function.

        Returns:
            The node's IR value, or None for declarations

        Raises:
            LoweringError: If the node cannot be lowered
        """
        if self.context.finalized:
            raise RuntimeError("Cannot lower into a finalized module")
        return node.accept(self)

    def finalize(self) -> ir.Module:
        """Terminate the entry function and declare all pending externs."""
        if not self.context.finalized:
            self.signatures.materialize_all()
            self.context.builder.ret(ir.Constant(I32, 0))
            self.context.finalized = True
        return self.module

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    # Visitor methods

    def generic_visit(self, node: ASTNode):
        raise create_unknown_node_error(node)

    def visit_number_literal(self, node: NumberLiteral) -> ir.Constant:
        self._check_number(node)
        return ir.Constant(I32, node.value)

    def visit_string_literal(self, node: StringLiteral) -> ir.Value:
        """Emit a fresh NUL-terminated global; identical literals are not merged."""
        data = bytearray(node.value.encode("utf-8")) + b"\0"
        str_type = ir.ArrayType(I8, len(data))

        global_str = ir.GlobalVariable(self.module, str_type, name=self.module.get_unique_name(".str"))
        global_str.global_constant = True
        global_str.linkage = "private"
        global_str.unnamed_addr = True
        global_str.initializer = ir.Constant(str_type, data)

        zero = ir.Constant(I32, 0)
        return global_str.gep([zero, zero])

    def visit_variable_reference(self, node: VariableReference) -> ir.Value:
        if node.name in self.signatures:
            return self.signatures.materialize(node.name)
        try:
            return self.module.get_global(node.name)
        except KeyError:
            raise create_unresolved_name_error(node.name, node.location) from None

    def visit_extern_declaration(self, node: ExternDeclaration) -> None:
        self.signatures.declare_extern(node.name, node.location)
        return None

    def visit_call(self, node: Call) -> ir.Value:
        """
        Lower a call statement.

        The whole call tree is checked and its signatures resolved before
        anything is added to the module, so a call that fails leaves no
        trace behind.
        """
        pending = self._check_call(node)
        self.signatures.commit(pending)
        return self._emit_call(node)

    def _check_call(self, call: Call) -> Dict[str, Signature]:
        """
        Validate every node under ``call`` without touching the module.

        Returns:
            The signatures the call tree resolved, not yet committed
        """
        pending: Dict[str, Signature] = {}
        stack = [(call, None, 0)]
        while stack:
            node, parent, position = stack.pop()

            if node.node_type == ASTNodeType.NUMBER_LITERAL:
                self._check_number(node)

            elif node.node_type == ASTNodeType.VARIABLE_REFERENCE:
                if not self._is_resolvable(node.name, pending):
                    raise create_unresolved_name_error(node.name, node.location)

            elif node.node_type == ASTNodeType.CALL:
                arg_types = [self._infer_argument_type(node, i, arg) for i, arg in enumerate(node.args, 1)]
                signature = self.signatures.resolve_call(node.callee, arg_types, node.location, pending)
                if parent is not None and isinstance(signature.return_type, ir.VoidType):
                    raise create_unsupported_argument_error(
                        parent.callee, position, "the call returns void", node.location
                    )
                # Reversed so arguments are checked left to right
                for i in range(len(node.args), 0, -1):
                    stack.append((node.args[i - 1], node, i))

        return pending

    def _emit_call(self, node: Call) -> ir.Value:
        function = self.signatures.materialize(node.callee)

        args = []
        for arg in node.args:
            if arg.node_type == ASTNodeType.CALL:
                value = self._emit_call(arg)
            else:
                value = arg.accept(self)
            if isinstance(value.type, ir.PointerType) and not same_type(value.type, I8_PTR):
                value = self.context.builder.bitcast(value, I8_PTR)
            args.append(value)

        return self.context.builder.call(function, args)

    def _check_number(self, node: NumberLiteral):
        if not I32_MIN <= node.value <= I32_MAX:
            raise create_integer_out_of_range_error(node.text, node.location)

    def _is_resolvable(self, name: str, pending: Dict[str, Signature]) -> bool:
        if name in pending or name in self.signatures:
            return True
        try:
            self.module.get_global(name)
        except KeyError:
            return False
        return True

    def _infer_argument_type(self, call: Call, position: int, arg: ASTNode) -> ir.Type:
        arg_type = self.argument_type_map.get(arg.node_type)
        if arg_type is None:
            raise create_unsupported_argument_error(
                call.callee, position, f"{arg.node_type.value} cannot be passed", arg.location
            )
        return arg_type


def generate_module(statements: Union[Program, Iterable[ASTNode]], module_name: str = "main",
                    target_triple: Optional[str] = None):
    """
    Convenience function: lower statements into a finalized module.

    Returns:
        Tuple of (module, lowering errors)
    """
    generator = IRGenerator(module_name, target_triple)
    module = generator.generate(statements)
    return module, generator.errors
