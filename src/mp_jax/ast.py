"""AST nodes for single-variable arithmetic expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class FunctionName(str, Enum):
    INVALID = "?"
    LN = "ln"
    LOG = "log"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SQRT = "sqrt"

    @classmethod
    def lookup(cls, name: str) -> "FunctionName":
        """Exact-match a NAME token; unknown names map to INVALID."""
        return _FUNCTIONS_BY_NAME.get(name, cls.INVALID)


_FUNCTIONS_BY_NAME = {member.value: member for member in FunctionName if member is not FunctionName.INVALID}


class BinaryKind(str, Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    POW = "pow"


class UnaryKind(str, Enum):
    PLUS = "plus"
    MINUS = "minus"


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Symbol:
    name: str


@dataclass(frozen=True)
class Function:
    name: FunctionName
    arg: "Expr"


@dataclass(frozen=True)
class BinaryOp:
    kind: BinaryKind
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class UnaryOp:
    kind: UnaryKind
    operand: "Expr"


Expr = Union[Number, Symbol, Function, BinaryOp, UnaryOp]


def format_tree(node: Expr | None) -> str:
    """Render a tree as nested calls, e.g. ``add(x,mul(2.000000,y))``."""
    if node is None:
        return ""
    parts: list[str] = []
    work: list[tuple[Expr, bool]] = [(node, False)]
    while work:
        current, children_done = work.pop()
        if isinstance(current, Number):
            parts.append(f"{current.value:f}")
        elif isinstance(current, Symbol):
            parts.append(current.name)
        elif isinstance(current, Function):
            if children_done:
                parts.append(f"{current.name.value}({parts.pop()})")
            else:
                work.extend([(current, True), (current.arg, False)])
        elif isinstance(current, BinaryOp):
            if children_done:
                right = parts.pop()
                left = parts.pop()
                parts.append(f"{current.kind.value}({left},{right})")
            else:
                work.extend([(current, True), (current.right, False), (current.left, False)])
        elif isinstance(current, UnaryOp):
            if children_done:
                parts.append(f"{current.kind.value}({parts.pop()})")
            else:
                work.extend([(current, True), (current.operand, False)])
        else:
            parts.append("?")
    return parts[0]
