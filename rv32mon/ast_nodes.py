"""
Expression tree nodes produced by the precedence-climbing parser.

The span evaluator in expr.py never builds these; they exist for the
'tree' evaluation strategy and for debugging (``--ast``).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from .lexer import Token


@dataclass
class Number:
    token: Token                # NUMBER or HEX


@dataclass
class Register:
    token: Token                # REG, text includes the '$' sigil


@dataclass
class UnaryOp:
    op: Token                   # NEG or DEREF
    operand: Expression


@dataclass
class BinaryOp:
    op: Token
    left: Expression
    right: Expression


Expression = Union[Number, Register, UnaryOp, BinaryOp]


def format_tree(node: Expression, indent: int = 0) -> str:
    """Render a tree one node per line, children indented."""
    prefix = "  " * indent
    if isinstance(node, Number):
        return f"{prefix}Number {node.token.text}"
    if isinstance(node, Register):
        return f"{prefix}Register {node.token.text}"
    if isinstance(node, UnaryOp):
        return (f"{prefix}UnaryOp {node.op.type.name}\n"
                f"{format_tree(node.operand, indent + 1)}")
    return (f"{prefix}BinaryOp {node.op.text}\n"
            f"{format_tree(node.left, indent + 1)}\n"
            f"{format_tree(node.right, indent + 1)}")
