"""Tokenization for single-variable arithmetic expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ErrorKind, TokenizeError

NAME_CAPACITY = 4


class TokenKind(str, Enum):
    EOF = "EOF"
    NUMBER = "NUMBER"
    SYMBOL = "SYMBOL"
    NAME = "NAME"
    PLUS = "PLUS"
    MINUS = "MINUS"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    POWER = "POWER"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    INVALID = "INVALID"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    pos: int
    end: int
    value: float | None = None


_SINGLE_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MULTIPLY,
    "/": TokenKind.DIVIDE,
    "^": TokenKind.POWER,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

_WHITESPACE = frozenset(" \t\n")
_DIGITS = frozenset("0123456789")
_LOWERCASE = frozenset("abcdefghijklmnopqrstuvwxyz")


def _scan_while(source: str, start: int, predicate) -> tuple[str, int]:
    i = start
    while i < len(source) and predicate(source[i]):
        i += 1
    return source[start:i], i


def _scan_number(source: str, start: int) -> int:
    """End of the longest ``digits[.digits][(e|E)[+-]digits]`` literal.

    An exponent marker without digits is left for the next token.
    """
    _, i = _scan_while(source, start, lambda c: c in _DIGITS)
    if i < len(source) and source[i] == ".":
        _, i = _scan_while(source, i + 1, lambda c: c in _DIGITS)
    if i < len(source) and source[i] in "eE":
        j = i + 1
        if j < len(source) and source[j] in "+-":
            j += 1
        _, k = _scan_while(source, j, lambda c: c in _DIGITS)
        if k > j:
            i = k
    return i


def _invalid(source: str, start: int, end: int, tokens: list[Token]) -> TokenizeError:
    text = source[start:end]
    token = Token(TokenKind.INVALID, text, start, end)
    return TokenizeError(
        ErrorKind.INVALID_TOKEN,
        start,
        end,
        found=f"{TokenKind.INVALID.value}({text})",
        token=token,
        tokens=tokens,
    )


def tokenize(source: str) -> list[Token]:
    """Scan `source` into tokens terminated by an EOF token.

    Raises `TokenizeError` on the first invalid token; there is no recovery.
    """
    tokens: list[Token] = []
    i = 0

    while i < len(source):
        ch = source[i]

        if ch in _WHITESPACE:
            i += 1
            continue

        if ch in _SINGLE_TOKENS:
            tokens.append(Token(_SINGLE_TOKENS[ch], ch, i, i + 1))
            i += 1
            continue

        if ch in _DIGITS:
            end = _scan_number(source, i)
            text = source[i:end]
            tokens.append(Token(TokenKind.NUMBER, text, i, end, value=float(text)))
            i = end
            continue

        if ch in _LOWERCASE:
            run, end = _scan_while(source, i, lambda c: c in _LOWERCASE)
            if len(run) == 1:
                tokens.append(Token(TokenKind.SYMBOL, run, i, end))
            elif len(run) <= NAME_CAPACITY:
                tokens.append(Token(TokenKind.NAME, run, i, end))
            else:
                raise _invalid(source, i, end, tokens)
            i = end
            continue

        raise _invalid(source, i, i + 1, tokens)

    tokens.append(Token(TokenKind.EOF, "", len(source), len(source)))
    return tokens


def format_tokens(tokens: list[Token]) -> str:
    """One line per token, e.g. ``0: TOKEN_NUMBER 2.000000``."""
    lines: list[str] = []
    for idx, tok in enumerate(tok for tok in tokens if tok.kind is not TokenKind.EOF):
        line = f"{idx}: TOKEN_{tok.kind.value}"
        if tok.kind is TokenKind.NUMBER:
            line += f" {tok.value:f}"
        elif tok.kind in {TokenKind.SYMBOL, TokenKind.NAME}:
            line += f" {tok.text}"
        lines.append(line)
    return "\n".join(lines)
