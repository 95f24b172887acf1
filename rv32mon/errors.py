"""
Error classes for the rv32mon expression engine and command monitor.

Every engine failure is an ExprError subclass so callers can catch the
whole family in one place. The engine never prints; the monitor turns
these into one-line diagnostics.
"""

from __future__ import annotations


class ExprError(Exception):
    """Base class for expression evaluation errors."""


class LexError(ExprError):
    """No token rule matched at ``position``."""

    def __init__(self, position: int, remainder: str):
        self.position = position
        self.remainder = remainder
        super().__init__(f"no match at position {position}: {remainder!r}")

    def caret(self, source: str) -> str:
        """Return ``source`` with a caret line under the offending character."""
        return f"{source}\n{' ' * self.position}^"


class TooManyTokens(ExprError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"too many tokens (limit {limit})")


class EmptySpan(ExprError):
    def __init__(self, p: int = 0, q: int = -1):
        self.p = p
        self.q = q
        super().__init__(f"missing operand (empty span [{p}, {q}])")


class NotANumber(ExprError):
    def __init__(self, text: str, pos: int):
        self.text = text
        self.pos = pos
        super().__init__(f"expected a number at position {pos}, got {text!r}")


class NoOperatorFound(ExprError):
    """Unbalanced parentheses or operands without an operator between them."""

    def __init__(self, message: str = "no main operator found"):
        super().__init__(message)


class NestingTooDeep(ExprError):
    """Parentheses or unary operators nest deeper than the evaluator can recurse."""

    def __init__(self, token_count: int):
        self.token_count = token_count
        super().__init__(f"expression nests too deeply ({token_count} tokens)")


class DivisionByZero(ExprError):
    def __init__(self):
        super().__init__("division by zero")


class UnsupportedOperator(ExprError):
    """The split point is not an operator. Indicates an internal bug."""

    def __init__(self, text: str, pos: int):
        self.text = text
        self.pos = pos
        super().__init__(f"unsupported operator {text!r} at position {pos}")


class UnknownRegister(ExprError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown register {name!r}")


class MemoryAccessError(ExprError):
    def __init__(self, addr: int, message: str = "address out of bound"):
        self.addr = addr
        super().__init__(f"{message}: 0x{addr:08x}")


class MonitorError(Exception):
    """Command usage error raised inside the monitor."""
