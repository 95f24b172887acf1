#!/usr/bin/env python3
"""
rvmon — RV32 emulator monitor CLI

Usage:
    python rvmon.py [--image IMG] [--config FILE] [-e EXPR] [-b SCRIPT]
                    [--word-bits 32] [--max-tokens 32] [--strategy span|tree]
                    [-v] [--log-file FILE]

Without -e or -b an interactive prompt is started.

Examples:
    python rvmon.py                              # built-in image, interactive
    python rvmon.py --image build/hello.bin
    python rvmon.py -e "(1+2)*3"                 # 9 (0x00000009)
    python rvmon.py -e "*0x80000010" --strategy tree
    python rvmon.py -e "2*(3+4)" --tokens        # dump token stream
    python rvmon.py -b session.txt               # run a command script
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from rv32mon import __version__
from rv32mon.ast_nodes import format_tree
from rv32mon.config import ConfigError, MonitorConfig, load_config, parse_int_arg
from rv32mon.errors import ExprError, LexError, NestingTooDeep
from rv32mon.expr import STRATEGIES
from rv32mon.lexer import tokenize
from rv32mon.monitor import Monitor
from rv32mon.parser import Parser

log = logging.getLogger('rv32mon')


def setup_logging(verbose: int, log_file: str = None, rich_console: bool = True):
    """WARNING by default, INFO with -v, DEBUG (lexer/evaluator traces) with -vv."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    # ── Console handler (stderr) ──
    if rich_console:
        console = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            rich_tracebacks=True,
        )
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    console.setLevel(level)
    handlers = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        handlers=handlers,
        force=True
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rvmon",
        description="Simple debugger monitor for an RV32 emulator",
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--image", help="Raw binary image loaded at the memory base "
                                        "(default: built-in image)")
    parser.add_argument("--mem-base", default=None,
                        help="Guest memory base address (hex, e.g. 0x80000000)")
    parser.add_argument("--mem-size", default=None,
                        help="Guest memory size in bytes (hex or decimal)")
    parser.add_argument("--word-bits", type=int, default=None,
                        help="Arithmetic word width in bits (default: 32)")
    parser.add_argument("--max-tokens", type=int, default=None,
                        help="Token capacity per expression (default: 32)")
    parser.add_argument("--strategy", choices=STRATEGIES, default=None,
                        help="Evaluation strategy (default: span)")
    parser.add_argument("-e", "--eval", metavar="EXPR",
                        help="Evaluate EXPR, print the value and exit")
    parser.add_argument("-b", "--batch", metavar="SCRIPT",
                        help="Run monitor commands from SCRIPT and exit")
    parser.add_argument("--tokens", action="store_true",
                        help="With -e: dump the token stream and exit (debug)")
    parser.add_argument("--ast", action="store_true",
                        help="With -e: dump the expression tree and exit (debug)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--log-file", help="Write a DEBUG log to this file")
    parser.add_argument("--plain-log", action="store_true",
                        help="Plain console log lines instead of rich formatting")
    parser.add_argument("--version", action="version",
                        version=f"rvmon {__version__}")
    return parser


def resolve_config(args) -> MonitorConfig:
    """Defaults, then --config file, then CLI flags."""
    config = load_config(args.config) if args.config else MonitorConfig()
    return config.update(
        image=args.image,
        mem_base=parse_int_arg(args.mem_base) if args.mem_base else None,
        mem_size=parse_int_arg(args.mem_size) if args.mem_size else None,
        word_bits=args.word_bits,
        max_tokens=args.max_tokens,
        strategy=args.strategy,
    )


def _dump_tokens(expr: str, config: MonitorConfig):
    for tok in tokenize(expr, config.max_tokens):
        print(tok)


def _dump_ast(expr: str, config: MonitorConfig):
    tokens = tokenize(expr, config.max_tokens)
    try:
        text = format_tree(Parser(tokens).parse())
    except RecursionError:
        raise NestingTooDeep(len(tokens)) from None
    print(text)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file, rich_console=not args.plain_log)

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    try:
        if args.eval is not None and (args.tokens or args.ast):
            if args.tokens:
                _dump_tokens(args.eval, config)
            else:
                _dump_ast(args.eval, config)
            return 0

        monitor = Monitor(config)
        log.info(f"Monitor ready: {config.word_bits}-bit words, strategy {config.strategy}, "
                 f"memory 0x{config.mem_base:08x}+0x{config.mem_size:x}")

        if args.eval is not None:
            if not args.eval.strip():
                print("Error: Missing expression", file=sys.stderr)
                return 1
            value = monitor.evaluate(args.eval)
            print(monitor.format_value(value))
            return 0

        if args.batch:
            with open(args.batch, "r", encoding="utf-8") as f:
                monitor.mainloop(f)
            return 0

        monitor.mainloop()
        return 0

    except LexError as e:
        print(f"Lexer error: {e}", file=sys.stderr)
        print(e.caret(args.eval or ""), file=sys.stderr)
        return 1
    except ExprError as e:
        print(f"Expression error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal monitor error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
