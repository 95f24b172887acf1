"""
Expression evaluation engine for the monitor.

Evaluates a token list by recursing on inclusive spans [p, q] instead of
building a parse tree:

    eval(p, q)
      p > q                    -> EmptySpan
      p == q                   -> literal or register value
      (  ...  ) wraps the span -> eval(p + 1, q - 1)
      otherwise                -> split at the main operator and combine

The main operator is the lowest-priority binary operator outside all
parentheses. The locator scans right to left and only replaces its pick
on a STRICTLY lower priority, so the rightmost operator of the lowest
priority is chosen and chains like ``8-3-2`` group as ``(8-3)-2``.
Changing that comparison to ``<=`` makes every chain right-associative.

All arithmetic is unsigned and wraps at the configured word width.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional

from .errors import (
    DivisionByZero, EmptySpan, MemoryAccessError, NestingTooDeep, NoOperatorFound,
    NotANumber, UnknownRegister, UnsupportedOperator,
)
from .lexer import DEFAULT_MAX_TOKENS, Token, TokenType, tokenize

log = logging.getLogger('rv32mon.expr')

DEFAULT_WORD_BITS = 32

# Binary operator priorities; lower binds looser.
PRIORITY: Dict[TokenType, int] = {
    TokenType.AND: 1,
    TokenType.EQ: 2,
    TokenType.NEQ: 2,
    TokenType.ADD: 3,
    TokenType.SUB: 3,
    TokenType.MUL: 4,
    TokenType.DIV: 4,
}

UNARY_OPS = frozenset({TokenType.NEG, TokenType.DEREF})
LITERALS = {TokenType.NUMBER: 10, TokenType.HEX: 16}


# ──────────────────────────────────────────────
# Span helpers
# ──────────────────────────────────────────────

def is_fully_parenthesized(tokens: List[Token], p: int, q: int) -> bool:
    """True if a single matching pair of parentheses wraps tokens[p..q].

    ``(1+2)+(3+4)`` starts with '(' and ends with ')' but is NOT fully
    parenthesized: the depth drops to zero before q.
    """
    if p >= q:
        return False
    if tokens[p].type != TokenType.LPAREN or tokens[q].type != TokenType.RPAREN:
        return False

    depth = 0
    for i in range(p, q + 1):
        ttype = tokens[i].type
        if ttype == TokenType.LPAREN:
            depth += 1
        elif ttype == TokenType.RPAREN:
            depth -= 1
            if depth < 0:
                return False
            if depth == 0 and i != q:
                return False
    return depth == 0


def locate_main_operator(tokens: List[Token], p: int, q: int) -> Optional[int]:
    """Return the index of the main operator of tokens[p..q], or None.

    None means the span is malformed (unbalanced parentheses, operands with
    no operator between them) or a single atom.
    """
    main_op = None
    min_priority = None
    level = 0

    for i in range(q, p - 1, -1):
        ttype = tokens[i].type
        # Reversed roles: scanning right to left, ')' opens a level.
        if ttype == TokenType.RPAREN:
            level += 1
        elif ttype == TokenType.LPAREN:
            level -= 1
            if level < 0:
                return None

        if level != 0:
            continue

        priority = PRIORITY.get(ttype)
        if priority is None:
            continue

        # Strict '<' keeps the rightmost operator among equals.
        if min_priority is None or priority < min_priority:
            min_priority = priority
            main_op = i

    if main_op is None or level != 0:
        return None
    return main_op


# ──────────────────────────────────────────────
# Arithmetic shared by both evaluation strategies
# ──────────────────────────────────────────────

# Literal digits are folded in chunks: int() rejects strings longer than
# sys.get_int_max_str_digits().
LITERAL_CHUNK = 16


def parse_literal(tok: Token, mask: int) -> int:
    base = LITERALS[tok.type]
    digits = tok.text[2:] if tok.type == TokenType.HEX else tok.text
    value = 0
    for start in range(0, len(digits), LITERAL_CHUNK):
        chunk = digits[start:start + LITERAL_CHUNK]
        value = (value * base ** len(chunk) + int(chunk, base)) & mask
    return value


def apply_binary(op: Token, left: int, right: int, mask: int) -> int:
    ttype = op.type
    if ttype == TokenType.ADD:
        return (left + right) & mask
    if ttype == TokenType.SUB:
        return (left - right) & mask
    if ttype == TokenType.MUL:
        return (left * right) & mask
    if ttype == TokenType.DIV:
        if right == 0:
            raise DivisionByZero()
        return left // right
    if ttype == TokenType.EQ:
        return int(left == right)
    if ttype == TokenType.NEQ:
        return int(left != right)
    if ttype == TokenType.AND:
        return int(bool(left) and bool(right))
    raise UnsupportedOperator(op.text, op.pos)


def apply_unary(op: Token, value: int, mask: int, memory, word_bytes: int) -> int:
    if op.type == TokenType.NEG:
        return -value & mask
    if op.type == TokenType.DEREF:
        if memory is None:
            raise MemoryAccessError(value, "no memory attached")
        return memory.read(value, word_bytes) & mask
    raise UnsupportedOperator(op.text, op.pos)


def read_register(registers, name: str, mask: int) -> int:
    if registers is None:
        raise UnknownRegister(name)
    return registers.read(name) & mask


# ──────────────────────────────────────────────
# Span evaluator
# ──────────────────────────────────────────────

class Evaluator:
    """Recursive span evaluator over one token list.

    ``registers`` needs ``read(name) -> int`` and ``memory`` needs
    ``read(addr, length) -> int``; either may be None when the expression
    does not reference it.
    """

    def __init__(self, tokens: List[Token], registers=None, memory=None,
                 word_bits: int = DEFAULT_WORD_BITS):
        self.tokens = tokens
        self.registers = registers
        self.memory = memory
        self.word_bits = word_bits
        self.mask = (1 << word_bits) - 1

    def evaluate(self) -> int:
        return self.eval(0, len(self.tokens) - 1)

    def eval(self, p: int, q: int) -> int:
        log.debug(f"eval({p}, {q})")
        tokens = self.tokens

        if p > q:
            raise EmptySpan(p, q)

        if p == q:
            tok = tokens[p]
            if tok.type in LITERALS:
                return parse_literal(tok, self.mask)
            if tok.type == TokenType.REG:
                return read_register(self.registers, tok.text, self.mask)
            raise NotANumber(tok.text, tok.pos)

        if is_fully_parenthesized(tokens, p, q):
            return self.eval(p + 1, q - 1)

        op = locate_main_operator(tokens, p, q)
        if op is None:
            if tokens[p].type in UNARY_OPS:
                value = self.eval(p + 1, q)
                return apply_unary(tokens[p], value, self.mask,
                                   self.memory, self.word_bits // 8)
            raise NoOperatorFound(
                f"no main operator in tokens [{p}, {q}] "
                f"(unbalanced parentheses or missing operator)")

        left = self.eval(p, op - 1)
        right = self.eval(op + 1, q)
        return apply_binary(tokens[op], left, right, self.mask)


# ──────────────────────────────────────────────
# Public entry point
# ──────────────────────────────────────────────

STRATEGIES = ("span", "tree")


def evaluate(expr: str, registers=None, memory=None, *,
             word_bits: int = DEFAULT_WORD_BITS,
             max_tokens: int = DEFAULT_MAX_TOKENS,
             strategy: str = "span") -> int:
    """Tokenize and evaluate ``expr``; return an unsigned integer.

    Args:
        expr: Expression text, without the command keyword.
        registers: Register collaborator for ``$name`` references.
        memory: Memory collaborator for unary ``*`` dereference.
        word_bits: Width of the unsigned arithmetic domain.
        max_tokens: Token capacity; more tokens raise TooManyTokens.
        strategy: 'span' (recursive span evaluation) or 'tree'
            (precedence-climbing parser, then tree walk).

    Raises:
        ExprError: any subclass; the first failure aborts the evaluation.
    """
    tokens = tokenize(expr, max_tokens)

    try:
        if strategy == "span":
            return Evaluator(tokens, registers, memory, word_bits).evaluate()
        if strategy == "tree":
            from .parser import Parser, TreeEvaluator
            tree = Parser(tokens).parse()
            return TreeEvaluator(registers, memory, word_bits).evaluate(tree)
    except RecursionError:
        raise NestingTooDeep(len(tokens)) from None
    raise ValueError(f"unknown strategy {strategy!r}; expected one of {STRATEGIES}")
