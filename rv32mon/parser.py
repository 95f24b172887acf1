"""
Precedence-climbing parser for monitor expressions.

Builds an explicit tree in one left-to-right pass (O(n)), as an
alternative to the span evaluator in expr.py which rescans spans
(O(n^2) on deep nesting). Both use the same token list, the same
PRIORITY table and the same arithmetic, and must agree on every
well-formed expression.

Grammar:

    expr    := unary (BINOP unary)*      -- climbed by PRIORITY, left-assoc
    unary   := ('-' | '*') unary | primary
    primary := NUMBER | HEX | REG | '(' expr ')'
"""

from __future__ import annotations
from typing import List, Optional

from .ast_nodes import BinaryOp, Expression, Number, Register, UnaryOp
from .errors import EmptySpan, NoOperatorFound, NotANumber
from .expr import (
    DEFAULT_WORD_BITS, LITERALS, PRIORITY, UNARY_OPS,
    apply_binary, apply_unary, parse_literal, read_register,
)
from .lexer import Token, TokenType


class Parser:
    """Precedence-climbing parser producing an expression tree from tokens."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    # ── Entry ───────────────────────────────

    def parse(self) -> Expression:
        tree = self._parse_binary(min_priority=1)
        tok = self._cur()
        if tok is not None:
            raise NoOperatorFound(
                f"unexpected {tok.text!r} at position {tok.pos} "
                f"(unbalanced parentheses or missing operator)")
        return tree

    # ── Expressions ─────────────────────────

    def _parse_binary(self, min_priority: int) -> Expression:
        left = self._parse_unary()
        while True:
            tok = self._cur()
            if tok is None:
                return left
            priority = PRIORITY.get(tok.type)
            if priority is None or priority < min_priority:
                return left
            self._advance()
            # priority + 1 on the right side makes the operator left-associative
            right = self._parse_binary(priority + 1)
            left = BinaryOp(tok, left, right)

    def _parse_unary(self) -> Expression:
        tok = self._cur()
        if tok is not None and tok.type in UNARY_OPS:
            self._advance()
            return UnaryOp(tok, self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        tok = self._cur()
        if tok is None:
            raise EmptySpan(self.pos, self.pos - 1)
        if tok.type in LITERALS:
            self._advance()
            return Number(tok)
        if tok.type == TokenType.REG:
            self._advance()
            return Register(tok)
        if tok.type == TokenType.LPAREN:
            self._advance()
            inner = self._parse_binary(min_priority=1)
            closing = self._cur()
            if closing is None or closing.type != TokenType.RPAREN:
                raise NoOperatorFound(
                    f"unclosed '(' at position {tok.pos}")
            self._advance()
            return inner
        if tok.type == TokenType.RPAREN or tok.type in PRIORITY:
            # an operand is missing before this token
            raise EmptySpan(self.pos, self.pos - 1)
        raise NotANumber(tok.text, tok.pos)


class TreeEvaluator:
    """Evaluate a parsed tree with the span evaluator's arithmetic."""

    def __init__(self, registers=None, memory=None,
                 word_bits: int = DEFAULT_WORD_BITS):
        self.registers = registers
        self.memory = memory
        self.word_bits = word_bits
        self.mask = (1 << word_bits) - 1

    def evaluate(self, node: Expression) -> int:
        if isinstance(node, Number):
            return parse_literal(node.token, self.mask)
        if isinstance(node, Register):
            return read_register(self.registers, node.token.text, self.mask)
        if isinstance(node, UnaryOp):
            value = self.evaluate(node.operand)
            return apply_unary(node.op, value, self.mask,
                               self.memory, self.word_bits // 8)
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        return apply_binary(node.op, left, right, self.mask)
