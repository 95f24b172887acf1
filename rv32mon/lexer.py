"""
Tokenizer for monitor expressions.

Converts an expression string into a list of tokens using an ordered
table of regex rules. At each scan position the rules are tried in
declaration order and the FIRST rule that matches at that position wins,
so rule order is part of the grammar (``0x`` literals before decimal
literals, ``==`` before anything that could match its prefix).

After scanning, ``-`` and ``*`` in operand position are retyped to the
unary NEG and DEREF kinds.
"""

from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import LexError, TooManyTokens

log = logging.getLogger('rv32mon.lexer')

DEFAULT_MAX_TOKENS = 32


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    # Operands
    NUMBER = "NUMBER"
    HEX = "HEX"
    REG = "REG"

    # Binary operators
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQ = "=="
    NEQ = "!="
    AND = "&&"

    # Unary operators (assigned after scanning)
    NEG = "neg"
    DEREF = "deref"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"


# ──────────────────────────────────────────────
# Token data class
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    pos: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.text!r}, @{self.pos})"


# ──────────────────────────────────────────────
# Rule table (first match wins)
# ──────────────────────────────────────────────

RULES: List[Tuple[str, Optional[TokenType]]] = [
    (r"[ \t]+", None),                      # spaces
    (r"0[xX][0-9a-fA-F]+", TokenType.HEX),  # must precede NUMBER
    (r"[0-9]+", TokenType.NUMBER),
    (r"\$[A-Za-z0-9]+", TokenType.REG),
    (r"==", TokenType.EQ),
    (r"!=", TokenType.NEQ),
    (r"&&", TokenType.AND),
    (r"\+", TokenType.ADD),
    (r"-", TokenType.SUB),
    (r"\*", TokenType.MUL),
    (r"/", TokenType.DIV),
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
]

# Compiled once at import; read-only afterwards.
_COMPILED = tuple((re.compile(pattern), ttype) for pattern, ttype in RULES)

# Kinds that can end an operand. A '-' or '*' after anything else is unary.
OPERAND_END = frozenset({
    TokenType.NUMBER, TokenType.HEX, TokenType.REG, TokenType.RPAREN,
})

UNARY_FORMS = {
    TokenType.SUB: TokenType.NEG,
    TokenType.MUL: TokenType.DEREF,
}


def tokenize(expr: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> List[Token]:
    """Tokenize ``expr`` and return a fresh list of tokens.

    Raises:
        LexError: no rule matches at some position.
        TooManyTokens: more than ``max_tokens`` tokens were produced.
    """
    tokens: List[Token] = []
    position = 0

    while position < len(expr):
        for index, (pattern, ttype) in enumerate(_COMPILED):
            m = pattern.match(expr, position)
            if m is None:
                continue
            text = m.group(0)
            log.debug(f"match rules[{index}] = {pattern.pattern!r} at position "
                      f"{position} with len {len(text)}: {text!r}")
            if ttype is not None:
                if len(tokens) >= max_tokens:
                    raise TooManyTokens(max_tokens)
                tokens.append(Token(ttype, text, position))
            position = m.end()
            break
        else:
            raise LexError(position, expr[position:])

    return _mark_unary(tokens)


def _mark_unary(tokens: List[Token]) -> List[Token]:
    """Retype '-' and '*' that sit in operand position."""
    result: List[Token] = []
    for tok in tokens:
        if tok.type in UNARY_FORMS and (not result or result[-1].type not in OPERAND_END):
            tok = Token(UNARY_FORMS[tok.type], tok.text, tok.pos)
        result.append(tok)
    return result
