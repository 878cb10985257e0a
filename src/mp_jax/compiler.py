"""Lowering from the expression AST to stack-machine bytecode."""

from __future__ import annotations

from .ast import BinaryKind, BinaryOp, Expr, Function, Number, Symbol, UnaryKind, UnaryOp
from .bytecode import Opcode, Program, ProgramBuilder
from .errors import CompileError
from .parser import ParseTree
from .variables import is_variable_name, variable_index

_BINARY_OPCODES = {
    BinaryKind.ADD: Opcode.ADD,
    BinaryKind.SUB: Opcode.SUB,
    BinaryKind.MUL: Opcode.MUL,
    BinaryKind.DIV: Opcode.DIV,
    BinaryKind.POW: Opcode.POW,
}


def _unsupported(feature: str) -> CompileError:
    return CompileError(f"Unsupported in bytecode backend: {feature}")


class _Compiler:
    def __init__(self) -> None:
        self.builder = ProgramBuilder()

    def compile_node(self, root: Expr) -> None:
        """Emit post-order code for `root` using an explicit work stack.

        Each entry is ``(node, operands_done)``; a node is revisited with
        True once its operands have been emitted.
        """
        work: list[tuple[Expr, bool]] = [(root, False)]
        while work:
            node, operands_done = work.pop()
            if operands_done:
                self._emit_operator(node)
                continue

            if isinstance(node, Number):
                self.builder.emit_const(node.value)
                continue

            if isinstance(node, Symbol):
                if not is_variable_name(node.name):
                    raise _unsupported(f"symbol {node.name!r}")
                self.builder.emit_var(variable_index(node.name))
                continue

            if isinstance(node, BinaryOp):
                if node.kind not in _BINARY_OPCODES:
                    raise _unsupported(f"binary operator {node.kind!r}")
                # Left is emitted first, so the VM pops right before left.
                work.append((node, True))
                work.append((node.right, False))
                work.append((node.left, False))
                continue

            if isinstance(node, UnaryOp):
                if node.kind not in (UnaryKind.PLUS, UnaryKind.MINUS):
                    raise _unsupported(f"unary operator {node.kind!r}")
                work.append((node, True))
                work.append((node.operand, False))
                continue

            if isinstance(node, Function):
                raise _unsupported(f"function call {node.name.value}()")

            raise _unsupported(f"node type {type(node).__name__}")

    def _emit_operator(self, node: Expr) -> None:
        if isinstance(node, BinaryOp):
            self.builder.emit(_BINARY_OPCODES[node.kind])
        elif isinstance(node, UnaryOp) and node.kind is UnaryKind.MINUS:
            self.builder.emit(Opcode.NEG)


def compile_tree(tree: ParseTree | Expr) -> Program:
    """Compile a whole tree; any node without a lowering fails the compile."""
    root = tree.root if isinstance(tree, ParseTree) else tree
    if root is None:
        raise CompileError("Cannot compile an empty tree")
    compiler = _Compiler()
    compiler.compile_node(root)
    return compiler.builder.build()
