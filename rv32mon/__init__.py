"""
rv32mon — Simple debugger monitor for an RV32 emulator
======================================================
Inspects emulated processor state (registers, guest memory) and evaluates
expressions that may reference it.

Architecture:
    ┌────────────┐    ┌──────────┐    ┌────────────────────┐    ┌─────────┐
    │ expression │───>│  Lexer   │───>│ Evaluator (spans)  │───>│  value  │
    │  (text)    │    │ (tokens) │    │  or Parser + tree  │    │ (uint)  │
    └────────────┘    └──────────┘    └────────────────────┘    └─────────┘
                                          │            │
                                     Registers       Memory
                                     ($name)         (*addr)

    - lexer.py:     ordered regex rules, first match wins
    - expr.py:      main-operator locator + recursive span evaluator
    - parser.py:    precedence-climbing parser (alternative strategy)
    - regs.py:      RV32 register file, lookup by name
    - memory.py:    flat little-endian guest memory
    - monitor.py:   command table and read-eval loop
    - config.py:    MonitorConfig + JSON config files
"""

__version__ = "0.1.0"

from .errors import (
    ExprError, LexError, TooManyTokens, EmptySpan, NotANumber,
    NoOperatorFound, NestingTooDeep, DivisionByZero, UnsupportedOperator,
    UnknownRegister, MemoryAccessError, MonitorError,
)
from .lexer import Token, TokenType, tokenize
from .expr import Evaluator, evaluate, is_fully_parenthesized, locate_main_operator
from .parser import Parser, TreeEvaluator
from .regs import Registers
from .memory import Memory
from .config import ConfigError, MonitorConfig, load_config
from .monitor import Monitor
