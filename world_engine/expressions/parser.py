"""Recursive-descent parser for prerequisite expressions.

Grammar::

    expression := path "exists"
                | path "includes" sum
                | sum (cmp_op sum)?
    sum        := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := "-" unary | atom
    atom       := NUMBER | STRING | "true" | "false" | path | "(" sum ")"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from world_engine.engine.errors import ExpressionSyntaxError, MalformedPath
from world_engine.engine.paths import Segment, parse_segment, split_path
from world_engine.expressions.tokenizer import Token, TokenType, tokenize


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class PathRef:
    text: str
    root: str
    segments: tuple[Segment, ...]


@dataclass(frozen=True)
class Negate:
    operand: "Node"


@dataclass(frozen=True)
class Arithmetic:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Comparison:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Exists:
    path: PathRef


@dataclass(frozen=True)
class Includes:
    path: PathRef
    needle: "Node"


Node = Union[Literal, PathRef, Negate, Arithmetic, Comparison, Exists, Includes]


def _path_ref(token: Token) -> PathRef:
    parts = split_path(token.value)
    try:
        segments = tuple(parse_segment(part, token.value) for part in parts[1:])
    except MalformedPath as exc:
        raise ExpressionSyntaxError(f"Malformed path at position {token.position}: {exc.message}") from exc
    return PathRef(text=token.value, root=parts[0], segments=segments)


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self, offset: int = 0) -> Token | None:
        index = self._pos + offset
        return self._tokens[index] if index < len(self._tokens) else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ExpressionSyntaxError("Unexpected end of expression")
        self._pos += 1
        return token

    def parse(self) -> Node:
        if not self._tokens:
            raise ExpressionSyntaxError("Empty expression")
        node = self._expression()
        trailing = self._peek()
        if trailing is not None:
            raise ExpressionSyntaxError(f"Unexpected token '{trailing.value}' at position {trailing.position}")
        return node

    def _expression(self) -> Node:
        head, keyword = self._peek(), self._peek(1)
        if head is not None and head.type is TokenType.PATH and keyword is not None and keyword.type is TokenType.KEYWORD:
            self._pos += 2
            if keyword.value == "exists":
                return Exists(path=_path_ref(head))
            return Includes(path=_path_ref(head), needle=self._sum())

        left = self._sum()
        token = self._peek()
        if token is not None and token.type is TokenType.COMPARE:
            self._advance()
            return Comparison(op=token.value, left=left, right=self._sum())
        return left

    def _sum(self) -> Node:
        node = self._term()
        while (token := self._peek()) is not None and token.type is TokenType.ARITHMETIC and token.value in "+-":
            self._advance()
            node = Arithmetic(op=token.value, left=node, right=self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (token := self._peek()) is not None and token.type is TokenType.ARITHMETIC and token.value in "*/":
            self._advance()
            node = Arithmetic(op=token.value, left=node, right=self._unary())
        return node

    def _unary(self) -> Node:
        token = self._peek()
        if token is not None and token.type is TokenType.ARITHMETIC and token.value == "-":
            self._advance()
            return Negate(operand=self._unary())
        return self._atom()

    def _atom(self) -> Node:
        token = self._advance()
        if token.type is TokenType.NUMBER:
            return Literal(float(token.value) if "." in token.value else int(token.value))
        if token.type is TokenType.STRING:
            return Literal(token.value)
        if token.type is TokenType.BOOLEAN:
            return Literal(token.value == "true")
        if token.type is TokenType.PATH:
            return _path_ref(token)
        if token.type is TokenType.LPAREN:
            node = self._sum()
            closing = self._peek()
            if closing is None or closing.type is not TokenType.RPAREN:
                raise ExpressionSyntaxError(f"Unbalanced parenthesis opened at position {token.position}")
            self._advance()
            return node
        raise ExpressionSyntaxError(f"Unexpected token '{token.value}' at position {token.position}")


def parse_expression(expr: str) -> Node:
    return _Parser(tokenize(expr)).parse()
