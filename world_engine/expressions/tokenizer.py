from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re

from world_engine.engine.errors import ExpressionSyntaxError


class TokenType(str, Enum):
    PATH = "path"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    KEYWORD = "keyword"
    COMPARE = "compare"
    ARITHMETIC = "arithmetic"
    LPAREN = "lparen"
    RPAREN = "rparen"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


COMPARISON_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")
ARITHMETIC_OPERATORS = ("+", "-", "*", "/")
KEYWORDS = frozenset({"exists", "includes"})
BOOLEANS = frozenset({"true", "false"})

_NUMBER = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_.\[\]]*")


def tokenize(expr: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    while i < len(expr):
        char = expr[i]
        if char.isspace():
            i += 1
            continue

        if char == "(":
            tokens.append(Token(TokenType.LPAREN, char, i))
            i += 1
            continue
        if char == ")":
            tokens.append(Token(TokenType.RPAREN, char, i))
            i += 1
            continue

        two_chars = expr[i : i + 2]
        if two_chars in COMPARISON_OPERATORS:
            tokens.append(Token(TokenType.COMPARE, two_chars, i))
            i += 2
            continue
        if char in COMPARISON_OPERATORS:
            tokens.append(Token(TokenType.COMPARE, char, i))
            i += 1
            continue
        if char in ARITHMETIC_OPERATORS:
            tokens.append(Token(TokenType.ARITHMETIC, char, i))
            i += 1
            continue

        if char in {'"', "'"}:
            end = expr.find(char, i + 1)
            if end == -1:
                raise ExpressionSyntaxError(f"Unterminated string literal at position {i}")
            tokens.append(Token(TokenType.STRING, expr[i + 1 : end], i))
            i = end + 1
            continue

        number = _NUMBER.match(expr, i)
        if number:
            tokens.append(Token(TokenType.NUMBER, number.group(), i))
            i = number.end()
            continue

        identifier = _IDENTIFIER.match(expr, i)
        if identifier:
            word = identifier.group()
            if word in BOOLEANS:
                tokens.append(Token(TokenType.BOOLEAN, word, i))
            elif word in KEYWORDS:
                tokens.append(Token(TokenType.KEYWORD, word, i))
            else:
                tokens.append(Token(TokenType.PATH, word, i))
            i = identifier.end()
            continue

        if char in {"=", "!"}:
            raise ExpressionSyntaxError(f"Unrecognized operator '{char}' at position {i}")
        raise ExpressionSyntaxError(f"Unexpected character at position {i}: '{char}'")

    return tokens
