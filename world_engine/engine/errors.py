"""Error taxonomy shared by path resolution, deltas and expressions.

Helpers raise ``WorldEngineError`` subclasses; public operations catch them
and hand the code back as data, so none of these ever escapes a batch call.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN_ROOT = "UnknownRoot"
    MALFORMED_PATH = "MalformedPath"
    PATH_NOT_FOUND = "PathNotFound"
    TYPE_MISMATCH = "TypeMismatch"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    NO_LEDGER_ENTRY = "NoLedgerEntry"
    INVALID_DELTA = "InvalidDelta"
    UNKNOWN_CONTEXT_ROOT = "UnknownContextRoot"
    CONTEXT_NOT_AVAILABLE = "ContextNotAvailable"
    SYNTAX_ERROR = "SyntaxError"


class WorldEngineError(Exception):
    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownRoot(WorldEngineError):
    code = ErrorCode.UNKNOWN_ROOT


class MalformedPath(WorldEngineError):
    code = ErrorCode.MALFORMED_PATH


class PathNotFound(WorldEngineError):
    code = ErrorCode.PATH_NOT_FOUND


class TypeMismatch(WorldEngineError):
    code = ErrorCode.TYPE_MISMATCH


class InsufficientFunds(WorldEngineError):
    code = ErrorCode.INSUFFICIENT_FUNDS


class NoLedgerEntry(WorldEngineError):
    code = ErrorCode.NO_LEDGER_ENTRY


class InvalidDelta(WorldEngineError):
    code = ErrorCode.INVALID_DELTA


class UnknownContextRoot(WorldEngineError):
    code = ErrorCode.UNKNOWN_CONTEXT_ROOT


class ContextNotAvailable(WorldEngineError):
    code = ErrorCode.CONTEXT_NOT_AVAILABLE


class ExpressionSyntaxError(WorldEngineError):
    code = ErrorCode.SYNTAX_ERROR
