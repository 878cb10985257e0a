"""mp-jax public API.

Importing the package turns on jax's process-wide ``jax_enable_x64`` flag,
so jax arrays created anywhere in the process afterwards default to 64-bit.
Both evaluation modes compute in float64.
"""

from .arena import Arena
from .ast import BinaryKind, BinaryOp, Expr, Function, FunctionName, Number, Symbol, UnaryKind, UnaryOp, format_tree
from .bytecode import Opcode, Program, ProgramBuilder, disassemble
from .compiler import compile_tree
from .engine import Engine, Mode, Result, Sample, bind, create, create_with_mode, destroy, evaluate
from .errors import (
    ArenaExhaustedError,
    CompileError,
    EngineClosedError,
    ErrorKind,
    EvaluationError,
    MPError,
    MPParseError,
    MPRuntimeError,
    ParseError,
    TokenizeError,
    VariableError,
)
from .interpreter import Interpreter
from .lexer import Token, TokenKind, format_tokens, tokenize
from .parser import ParseTree, parse, parse_tokens
from .variables import VariableTable
from .vm import VirtualMachine

__all__ = [
    "create",
    "create_with_mode",
    "bind",
    "evaluate",
    "destroy",
    "Engine",
    "Mode",
    "Result",
    "Sample",
    "tokenize",
    "format_tokens",
    "Token",
    "TokenKind",
    "parse",
    "parse_tokens",
    "ParseTree",
    "Arena",
    "Expr",
    "Number",
    "Symbol",
    "Function",
    "FunctionName",
    "BinaryOp",
    "BinaryKind",
    "UnaryOp",
    "UnaryKind",
    "format_tree",
    "Interpreter",
    "VariableTable",
    "compile_tree",
    "Opcode",
    "Program",
    "ProgramBuilder",
    "disassemble",
    "VirtualMachine",
    "ErrorKind",
    "MPError",
    "MPParseError",
    "TokenizeError",
    "ParseError",
    "MPRuntimeError",
    "EvaluationError",
    "EngineClosedError",
    "CompileError",
    "ArenaExhaustedError",
    "VariableError",
]
