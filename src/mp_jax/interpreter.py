"""Tree-walking evaluator over a parse tree."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Final

import jax.numpy as jnp

from .ast import BinaryKind, BinaryOp, Expr, Function, Number, Symbol, UnaryKind, UnaryOp
from .errors import ErrorKind, EvaluationError
from .numeric import FUNCTIONS, add, as_float64, divide, is_zero, multiply, negate, power, subtract, to_float
from .parser import ParseTree
from .variables import VariableTable, is_variable_name

_LEFT_FIRST_OPS: Final[dict[BinaryKind, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]]] = {
    BinaryKind.ADD: add,
    BinaryKind.SUB: subtract,
    BinaryKind.MUL: multiply,
}


class _Step(Enum):
    VISIT = "visit"
    CHECK_DIVISOR = "check_divisor"
    APPLY = "apply"


_Work = list[tuple[_Step, Expr]]


def _visit(node: Expr, variables: VariableTable, values: list[jnp.ndarray], work: _Work) -> None:
    if isinstance(node, Number):
        values.append(as_float64(node.value))
        return

    if isinstance(node, Symbol):
        if not is_variable_name(node.name):
            raise EvaluationError(ErrorKind.INVALID_NODE, f"Invalid symbol {node.name!r}")
        values.append(as_float64(variables[node.name]))
        return

    if isinstance(node, Function):
        work.append((_Step.APPLY, node))
        work.append((_Step.VISIT, node.arg))
        return

    if isinstance(node, BinaryOp):
        # Pushed in reverse: the last entry is visited first.
        if node.kind in _LEFT_FIRST_OPS:
            work.extend([(_Step.APPLY, node), (_Step.VISIT, node.right), (_Step.VISIT, node.left)])
        elif node.kind is BinaryKind.DIV:
            work.extend([(_Step.CHECK_DIVISOR, node), (_Step.VISIT, node.right)])
        elif node.kind is BinaryKind.POW:
            work.extend([(_Step.APPLY, node), (_Step.VISIT, node.left), (_Step.VISIT, node.right)])
        else:
            raise EvaluationError(ErrorKind.INVALID_NODE, f"Unknown binary operator {node.kind!r}")
        return

    if isinstance(node, UnaryOp):
        if node.kind not in (UnaryKind.PLUS, UnaryKind.MINUS):
            raise EvaluationError(ErrorKind.INVALID_NODE, f"Unknown unary operator {node.kind!r}")
        work.append((_Step.APPLY, node))
        work.append((_Step.VISIT, node.operand))
        return

    raise EvaluationError(ErrorKind.INVALID_NODE, f"Unsupported expression node: {type(node)!r}")


def _apply(node: Expr, values: list[jnp.ndarray]) -> None:
    if isinstance(node, Function):
        arg = values.pop()
        fn = FUNCTIONS.get(node.name)
        if fn is None:
            raise EvaluationError(ErrorKind.INVALID_FUNCTION)
        values.append(fn(arg))
        return

    if isinstance(node, UnaryOp):
        operand = values.pop()
        values.append(negate(operand) if node.kind is UnaryKind.MINUS else operand)
        return

    if node.kind in _LEFT_FIRST_OPS:
        right = values.pop()
        left = values.pop()
        values.append(_LEFT_FIRST_OPS[node.kind](left, right))
        return

    # DIV and POW evaluated the right operand first, so it sits below the left.
    left = values.pop()
    right = values.pop()
    values.append(divide(left, right) if node.kind is BinaryKind.DIV else power(left, right))


def interpret_node(node: Expr, variables: VariableTable) -> jnp.ndarray:
    """Post-order evaluation; the first error raised short-circuits the walk.

    Walks with an explicit work stack. Long ``+``/``*`` chains are built by
    parser loops and nest deeper than the interpreter's recursion limit.
    """
    values: list[jnp.ndarray] = []
    work: _Work = [(_Step.VISIT, node)]

    while work:
        step, current = work.pop()
        if step is _Step.VISIT:
            _visit(current, variables, values, work)
        elif step is _Step.CHECK_DIVISOR:
            if is_zero(values[-1]):
                raise EvaluationError(ErrorKind.ZERO_DIVISION)
            work.append((_Step.APPLY, current))
            work.append((_Step.VISIT, current.left))
        else:
            _apply(current, values)

    return values.pop()


class Interpreter:
    """Owns a parse tree (and its arena) plus a variable table."""

    def __init__(self, tree: ParseTree, variables: VariableTable | None = None) -> None:
        self.tree: ParseTree | None = tree
        self.variables = variables if variables is not None else VariableTable()

    def bind(self, name: str, value: object) -> None:
        self.variables.bind(name, value)

    def interpret(self) -> float:
        if self.tree is None or self.tree.root is None:
            raise EvaluationError(ErrorKind.EMPTY_EXPRESSION)
        return to_float(interpret_node(self.tree.root, self.variables))

    def free(self) -> None:
        if self.tree is not None:
            self.tree.free()
        self.tree = None
