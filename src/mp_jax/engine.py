"""Engine façade: one bind/evaluate contract over two execution modes."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .bytecode import Program
from .compiler import compile_tree
from .errors import EngineClosedError, ErrorKind, EvaluationError, MPError
from .interpreter import Interpreter
from .parser import ParseTree, parse
from .variables import VariableTable
from .vm import VirtualMachine

logger = logging.getLogger(__name__)

CONSTANTS: Final[dict[str, float]] = {
    "p": math.pi,
    "e": math.e,
}

DEFAULT_SAMPLE_RESOLUTION: Final[float] = float(os.environ.get("MP_JAX_SAMPLE_RESOLUTION", "0.008"))
DEFAULT_SAMPLE_CAPACITY: Final[int] = max(1, int(os.environ.get("MP_JAX_SAMPLE_CAPACITY", str(8 * 1024))))


class Mode(str, Enum):
    INTERPRET = "interpret"
    COMPILE = "compile"


@dataclass(frozen=True)
class Result:
    """Outcome of one evaluation.

    A failed evaluation carries NaN, never a plausible number. `kind` is
    the interpreter's error kind, or None when the VM run failed.
    """

    value: float
    error: bool = False
    kind: ErrorKind | None = None

    @classmethod
    def failure(cls, kind: ErrorKind | None = None) -> "Result":
        return cls(value=math.nan, error=True, kind=kind)

    def unwrap(self) -> float:
        if self.error:
            raise EvaluationError(self.kind)
        return self.value


@dataclass(frozen=True)
class Sample:
    x: float
    y: float
    error: bool = False


class Engine:
    """Parsed expression bound to exactly one execution mode.

    Build with `Engine.from_source` (raises the detailed error) or
    `create` / `create_with_mode` (return None on failure).
    """

    def __init__(
        self,
        mode: Mode,
        *,
        interpreter: Interpreter | None = None,
        vm: VirtualMachine | None = None,
    ) -> None:
        if (mode is Mode.INTERPRET) != (interpreter is not None) or (mode is Mode.COMPILE) != (vm is not None):
            raise ValueError(f"{mode.value} engine needs exactly its own backend")
        self._mode = mode
        self._interpreter = interpreter
        self._vm = vm
        self._closed = False

    @classmethod
    def from_source(cls, expression: str, mode: Mode | str = Mode.INTERPRET) -> "Engine":
        """Tokenize, parse and prepare `expression` for `mode`.

        Raises the `MPError` subclass that stopped construction, `TypeError`
        for a non-string expression and `ValueError` for an unknown mode.
        """
        if not isinstance(expression, str):
            raise TypeError(f"expression must be str, got {type(expression).__name__}")
        mode = Mode(mode)
        tree = parse(expression)

        if mode is Mode.INTERPRET:
            engine = cls(mode, interpreter=Interpreter(tree))
        else:
            try:
                program = compile_tree(tree)
            finally:
                # The program holds constants by value, never node references.
                tree.free()
            engine = cls(mode, vm=VirtualMachine(program))

        for name, value in CONSTANTS.items():
            engine.bind(name, value)
        logger.debug("Built %s engine for %r", mode.value, expression)
        return engine

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def variables(self) -> VariableTable:
        if self._interpreter is not None:
            return self._interpreter.variables
        assert self._vm is not None
        return self._vm.variables

    @property
    def tree(self) -> ParseTree | None:
        return None if self._interpreter is None else self._interpreter.tree

    @property
    def program(self) -> Program | None:
        if self._vm is None or self._closed:
            return None
        return self._vm.program

    def bind(self, name: str, value: float) -> None:
        if self._closed:
            raise EngineClosedError(f"Cannot bind {name!r} on a closed engine")
        if self._interpreter is not None:
            self._interpreter.bind(name, value)
        else:
            assert self._vm is not None
            self._vm.bind(name, value)

    def evaluate(self) -> Result:
        if self._closed:
            return Result.failure()

        if self._interpreter is not None:
            try:
                return Result(value=self._interpreter.interpret())
            except EvaluationError as err:
                return Result.failure(err.kind)

        assert self._vm is not None
        if not self._vm.run():
            return Result.failure()
        return Result(value=self._vm.result())

    def sample(
        self,
        x_start: float,
        x_end: float,
        *,
        resolution: float = DEFAULT_SAMPLE_RESOLUTION,
        capacity: int = DEFAULT_SAMPLE_CAPACITY,
        variable: str = "x",
    ) -> list[Sample]:
        """Bind `variable` across [x_start, x_end] and evaluate at each step.

        Stops early once `capacity` samples are collected.
        """
        if resolution <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")

        samples: list[Sample] = []
        x = float(x_start)
        while x <= x_end and len(samples) < capacity:
            self.bind(variable, x)
            result = self.evaluate()
            samples.append(Sample(x=x, y=result.value, error=result.error))
            x += resolution
        return samples

    def close(self) -> None:
        if self._closed:
            return
        if self._interpreter is not None:
            self._interpreter.free()
        if self._vm is not None:
            self._vm.free()
        self._closed = True

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Engine(mode={self._mode.value}, {state})"


def create_with_mode(expression: str | None, mode: Mode | str) -> Engine | None:
    """Build an engine or return None; the failure reason is only logged."""
    if expression is None:
        return None
    try:
        mode = Mode(mode)
    except ValueError:
        logger.debug("Unknown engine mode %r for %r", mode, expression)
        return None
    try:
        return Engine.from_source(expression, mode)
    except MPError as err:
        logger.debug("Could not build %s engine for %r: %s", mode.value, expression, err)
        return None


def create(expression: str | None) -> Engine | None:
    return create_with_mode(expression, Mode.INTERPRET)


def bind(engine: Engine, name: str, value: float) -> None:
    engine.bind(name, value)


def evaluate(engine: Engine | None) -> Result:
    if engine is None:
        return Result.failure()
    return engine.evaluate()


def destroy(engine: Engine | None) -> None:
    if engine is not None:
        engine.close()
