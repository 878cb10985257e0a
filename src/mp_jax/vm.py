"""Stack machine that executes compiled bytecode."""

from __future__ import annotations

import os
from typing import Callable, Final

import jax.numpy as jnp

from .bytecode import CONST_WIDTH, VAR_WIDTH, Opcode, Program, decode_f64, decode_u8
from .numeric import add, as_float64, divide, multiply, negate, power, subtract, to_float
from .variables import VARIABLE_COUNT, VariableTable

# "1" leaves operand-stack residue in place between runs.
KEEP_STACK_DEFAULT: Final[bool] = os.environ.get("MP_JAX_VM_KEEP_STACK", "0") == "1"

_BINARY_OPS: Final[dict[int, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]]] = {
    Opcode.ADD: add,
    Opcode.SUB: subtract,
    Opcode.MUL: multiply,
    Opcode.DIV: divide,
    Opcode.POW: power,
}


class VirtualMachine:
    """Runs a `Program` against its own variable table and operand stack.

    Division and power follow IEEE-754 without a zero check, so ``1/0``
    yields inf rather than an error.
    """

    def __init__(
        self,
        program: Program,
        variables: VariableTable | None = None,
        *,
        keep_stack: bool = KEEP_STACK_DEFAULT,
    ) -> None:
        self.program = program
        self.variables = variables if variables is not None else VariableTable()
        self.keep_stack = keep_stack
        self.stack: list[jnp.ndarray] = []
        self.ip = 0

    def bind(self, name: str, value: object) -> None:
        self.variables.bind(name, value)

    def _pop(self) -> jnp.ndarray | None:
        if not self.stack:
            return None
        return self.stack.pop()

    def run(self) -> bool:
        """Execute from offset 0; False on underflow or a malformed stream."""
        code = self.program.code
        stack = self.stack
        if not self.keep_stack:
            stack.clear()
        self.ip = 0

        while self.ip < len(code):
            op = code[self.ip]

            if op == Opcode.PUSH_NUM:
                if self.ip + 1 + CONST_WIDTH > len(code):
                    return False
                stack.append(as_float64(decode_f64(code, self.ip + 1)))
                self.ip += 1 + CONST_WIDTH
                continue

            if op == Opcode.PUSH_VAR:
                if self.ip + 1 + VAR_WIDTH > len(code):
                    return False
                index = decode_u8(code, self.ip + 1)
                if index >= VARIABLE_COUNT:
                    return False
                stack.append(as_float64(self.variables.slot(index)))
                self.ip += 1 + VAR_WIDTH
                continue

            binary = _BINARY_OPS.get(op)
            if binary is not None:
                right = self._pop()
                if right is None:
                    return False
                left = self._pop()
                if left is None:
                    return False
                stack.append(binary(left, right))
                self.ip += 1
                continue

            if op == Opcode.NEG:
                value = self._pop()
                if value is None:
                    return False
                stack.append(negate(value))
                self.ip += 1
                continue

            return False

        return True

    def result(self) -> float:
        if not self.stack:
            return 0.0
        return to_float(self.stack[-1])

    def free(self) -> None:
        self.stack.clear()
        self.program = Program()
        self.ip = 0
