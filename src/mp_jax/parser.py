"""Recursive-descent parser for single-variable arithmetic expressions.

Grammar, one token of lookahead::

    expr    := term (('+' | '-') term)*
    term    := factor (('*' | '/') factor)*
    factor  := NAME '(' expr ')'
             | primary ('^' primary)?
    primary := '(' expr ')' | NUMBER | SYMBOL | '+' factor | '-' factor

A factor takes at most one '^', so ``2^2^2`` leaves the second '^' behind
and is rejected as trailing input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NoReturn

from .arena import Arena
from .ast import BinaryKind, BinaryOp, Expr, Function, FunctionName, Number, Symbol, UnaryKind, UnaryOp, format_tree
from .errors import ErrorKind, ParseError
from .lexer import Token, TokenKind, tokenize

_ADDITIVE = {TokenKind.PLUS: BinaryKind.ADD, TokenKind.MINUS: BinaryKind.SUB}
_MULTIPLICATIVE = {TokenKind.MULTIPLY: BinaryKind.MUL, TokenKind.DIVIDE: BinaryKind.DIV}
_UNARY = {TokenKind.PLUS: UnaryKind.PLUS, TokenKind.MINUS: UnaryKind.MINUS}


@dataclass
class ParseTree:
    """Root node plus the arena that owns every node under it."""

    root: Expr
    arena: Arena

    def free(self) -> None:
        self.arena.free()

    def __str__(self) -> str:
        return format_tree(self.root)


@dataclass
class _Parser:
    tokens: list[Token]
    arena: Arena
    index: int = 0
    _eof: Token = field(init=False)

    def __post_init__(self) -> None:
        end = self.tokens[-1].end if self.tokens else 0
        self._eof = Token(TokenKind.EOF, "", end, end)

    def parse_tree(self) -> Expr:
        if self._peek().kind is TokenKind.EOF:
            self._error(kind=ErrorKind.EMPTY_EXPRESSION)
        root = self._parse_expr()
        self._expect(TokenKind.EOF)
        return root

    def _peek(self) -> Token:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return self._eof

    def _advance(self) -> Token:
        tok = self._peek()
        if self.index < len(self.tokens):
            self.index += 1
        return tok

    def _match(self, kind: TokenKind) -> bool:
        if self._peek().kind is kind:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind) -> Token:
        tok = self._peek()
        if tok.kind is not kind:
            self._error(tok, expected=(kind.value,))
        return self._advance()

    def _error(
        self,
        tok: Token | None = None,
        *,
        kind: ErrorKind = ErrorKind.INVALID_EXPRESSION,
        expected: tuple[str, ...] = (),
    ) -> NoReturn:
        token = tok if tok is not None else self._peek()
        if token.kind is TokenKind.EOF:
            found = "EOF"
        else:
            found = f"{token.kind.value}({token.text})"
        raise ParseError(kind, token.pos, token.end, expected=expected, found=found, token=token)

    def _node(self, node: Expr) -> Expr:
        return self.arena.alloc(node)

    def _parse_expr(self) -> Expr:
        left = self._parse_term()
        while self._peek().kind in _ADDITIVE:
            kind = _ADDITIVE[self._advance().kind]
            right = self._parse_term()
            left = self._node(BinaryOp(kind=kind, left=left, right=right))
        return left

    def _parse_term(self) -> Expr:
        left = self._parse_factor()
        while self._peek().kind in _MULTIPLICATIVE:
            kind = _MULTIPLICATIVE[self._advance().kind]
            right = self._parse_factor()
            left = self._node(BinaryOp(kind=kind, left=left, right=right))
        return left

    def _parse_factor(self) -> Expr:
        tok = self._peek()
        if tok.kind is TokenKind.NAME:
            self._advance()
            self._expect(TokenKind.LPAREN)
            arg = self._parse_expr()
            self._expect(TokenKind.RPAREN)
            return self._node(Function(name=FunctionName.lookup(tok.text), arg=arg))

        base = self._parse_primary()
        if self._match(TokenKind.POWER):
            exponent = self._parse_primary()
            return self._node(BinaryOp(kind=BinaryKind.POW, left=base, right=exponent))
        return base

    def _parse_primary(self) -> Expr:
        tok = self._peek()

        if self._match(TokenKind.LPAREN):
            expr = self._parse_expr()
            self._expect(TokenKind.RPAREN)
            return expr

        if tok.kind is TokenKind.NUMBER:
            self._advance()
            return self._node(Number(value=float(tok.value)))

        if tok.kind is TokenKind.SYMBOL:
            self._advance()
            return self._node(Symbol(name=tok.text))

        if tok.kind in _UNARY:
            self._advance()
            operand = self._parse_factor()
            return self._node(UnaryOp(kind=_UNARY[tok.kind], operand=operand))

        self._error(tok, expected=("LPAREN", "NUMBER", "SYMBOL", "PLUS", "MINUS"))


def parse_tokens(tokens: list[Token], *, arena: Arena | None = None) -> ParseTree:
    """Build a tree from an already-scanned token list.

    A caller-supplied arena is left alone on failure; an arena created here
    is released before the error propagates.
    """
    owned = arena is None
    node_arena = Arena() if arena is None else arena
    parser = _Parser(tokens=tokens, arena=node_arena)
    try:
        root = parser.parse_tree()
    except RecursionError as exc:
        if owned:
            node_arena.free()
        tok = parser._peek()
        raise ParseError(
            ErrorKind.INVALID_EXPRESSION,
            tok.pos,
            tok.end,
            message="Expression nests too deeply",
            token=tok,
        ) from exc
    except Exception:
        if owned:
            node_arena.free()
        raise
    return ParseTree(root=root, arena=node_arena)


def parse(source: str, *, arena: Arena | None = None) -> ParseTree:
    tokens = tokenize(source)
    return parse_tokens(tokens, arena=arena)
