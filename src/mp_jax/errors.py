"""Structured error types for tokenize/parse/compile/evaluate separation."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_TOKEN = "invalid_token"
    INVALID_EXPRESSION = "invalid_expression"
    EMPTY_EXPRESSION = "empty_expression"
    INVALID_NODE = "invalid_node"
    INVALID_FUNCTION = "invalid_function"
    ZERO_DIVISION = "zero_division"

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    ErrorKind.INVALID_TOKEN: "Unexpected token",
    ErrorKind.INVALID_EXPRESSION: "Invalid expression",
    ErrorKind.EMPTY_EXPRESSION: "Empty expression",
    ErrorKind.INVALID_NODE: "Invalid expression",
    ErrorKind.INVALID_FUNCTION: "Invalid function",
    ErrorKind.ZERO_DIVISION: "Division by zero",
}


class MPError(Exception):
    """Base class for structured mp-jax errors."""


class MPParseError(MPError, SyntaxError):
    """Source-level failure with the offending byte span.

    Valid source is pure ASCII, so the character index where scanning stops
    is also the byte offset of the failure.
    """

    def __init__(
        self,
        kind: ErrorKind,
        position: int,
        end: int | None = None,
        *,
        message: str | None = None,
        expected: tuple[str, ...] = (),
        found: str | None = None,
        token: object | None = None,
    ) -> None:
        self.kind = kind
        self.message = message if message is not None else kind.message
        super().__init__(self.message)
        self.position = position
        self.end = position if end is None else end
        self.expected = expected
        self.found = found
        self.token = token

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"{self.message} at span [{self.position}, {self.end}){expected}{found}"


class TokenizeError(MPParseError):
    """First invalid token met by the tokenizer.

    `tokens` holds everything scanned before the failure.
    """

    def __init__(self, *args, tokens: list | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tokens = [] if tokens is None else tokens


class ParseError(MPParseError):
    """Grammar failure; the first error wins and parsing stops."""


class MPRuntimeError(MPError):
    """Generic failure after a successful parse."""


class EvaluationError(MPRuntimeError):
    """Per-call evaluation failure. `kind` is None for a bare VM run failure."""

    def __init__(self, kind: ErrorKind | None, message: str | None = None) -> None:
        self.kind = kind
        if message is None:
            message = kind.message if kind is not None else "Virtual machine run failed"
        super().__init__(message)
        self.message = message


class EngineClosedError(MPRuntimeError):
    """Operation on an engine whose resources were already released."""


class CompileError(MPError):
    """Node has no bytecode lowering; the whole compile fails."""


class ArenaExhaustedError(MPError):
    """Arena capacity was exceeded while building a tree."""


class VariableError(MPError, ValueError):
    """Variable name outside the a-z table."""
