"""
Interactive command monitor.

Reads one line at a time, splits it into a command name and an argument
string, and routes it through COMMANDS:

    help [CMD]   list commands
    q            quit
    info r|w     show registers (watchpoints are not supported)
    x N EXPR     dump N 4-byte words starting at address EXPR
    p EXPR       evaluate EXPR, print decimal and hex

Usage errors and expression errors are printed as one-line diagnostics;
nothing is printed for a command that fails halfway.
"""

import logging
import re
import sys
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, TextIO

from .config import MonitorConfig
from .errors import ExprError, LexError, MonitorError
from .expr import evaluate
from .memory import Memory
from .regs import Registers

log = logging.getLogger('rv32mon.monitor')

X_WORD_BYTES = 4
X_WORDS_PER_LINE = 4

# Word count for x: plain decimal digits, optional leading +.
COUNT_RE = re.compile(r"\+?[0-9]{1,10}")


@dataclass
class Command:
    name: str
    description: str
    handler: Callable[["Monitor", Optional[str]], bool]


class Monitor:
    """Command monitor over one register file and one guest memory.

    Usage:
        mon = Monitor()
        mon.execute("p (1+2)*3")      # prints "9 (0x00000009)"
        mon.mainloop()                # interactive until 'q' or EOF
    """

    def __init__(self, config: Optional[MonitorConfig] = None,
                 regs: Optional[Registers] = None,
                 mem: Optional[Memory] = None,
                 out: Optional[TextIO] = None):
        self.config = config or MonitorConfig()
        self.out = out or sys.stdout

        if mem is None:
            mem = Memory(self.config.mem_base, self.config.mem_size)
            if self.config.image:
                mem.load_file(self.config.image)
            else:
                mem.load_builtin()
        self.mem = mem

        if regs is None:
            regs = Registers(pc=self.config.mem_base)
        for name, value in self.config.registers.items():
            regs.write(name, value)
        self.regs = regs

    # ══════════════════════════════════════════════
    # Evaluation
    # ══════════════════════════════════════════════

    def evaluate(self, expr: str) -> int:
        """Evaluate ``expr`` against this monitor's registers and memory."""
        return evaluate(expr, self.regs, self.mem,
                        word_bits=self.config.word_bits,
                        max_tokens=self.config.max_tokens,
                        strategy=self.config.strategy)

    def format_value(self, value: int) -> str:
        digits = self.config.word_bits // 4
        return f"{value} (0x{value:0{digits}x})"

    # ══════════════════════════════════════════════
    # Dispatch
    # ══════════════════════════════════════════════

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def execute(self, line: str) -> bool:
        """Run one command line. Returns False when the monitor should quit."""
        line = line.strip()
        if not line:
            return True

        parts = line.split(None, 1)
        name = parts[0]
        args = parts[1] if len(parts) > 1 else None
        log.debug(f"command {name!r} args {args!r}")

        cmd = COMMAND_INDEX.get(name)
        if cmd is None:
            self._print(f"Error: Unknown command '{name}'")
            return True

        try:
            return cmd.handler(self, args)
        except MonitorError as e:
            self._print(f"Error: {e}")
        except ExprError as e:
            self._print(f"Error: {e}")
        return True

    def mainloop(self, lines: Optional[Iterable[str]] = None):
        """Read and execute commands until 'q' or end of input.

        With ``lines`` the commands are taken from the iterable and no
        prompt is shown (batch mode).
        """
        if lines is not None:
            for line in lines:
                if not self.execute(line):
                    return
            return

        while True:
            try:
                line = input(self.config.prompt)
            except EOFError:
                self._print()
                return
            if not self.execute(line):
                return

    # ══════════════════════════════════════════════
    # Command handlers
    # ══════════════════════════════════════════════

    def cmd_help(self, args: Optional[str]) -> bool:
        arg = args.split()[0] if args else None
        if arg is None:
            for cmd in COMMANDS:
                self._print(f"{cmd.name} - {cmd.description}")
            return True
        cmd = COMMAND_INDEX.get(arg)
        if cmd is None:
            raise MonitorError(f"Unknown command '{arg}'")
        self._print(f"{cmd.name} - {cmd.description}")
        return True

    def cmd_q(self, args: Optional[str]) -> bool:
        return False

    def cmd_info(self, args: Optional[str]) -> bool:
        words = args.split() if args else []
        if not words:
            raise MonitorError("Missing subcommand. Usage: info r or info w")
        if len(words) > 1:
            raise MonitorError("Too many arguments. Usage: info r or info w")

        sub = words[0]
        if sub == "r":
            self._print(self.regs.display())
        elif sub == "w":
            self._print("Watchpoints are not supported")
        else:
            raise MonitorError(f"Invalid subcommand '{sub}'. Valid options: r, w")
        return True

    def cmd_x(self, args: Optional[str]) -> bool:
        parts = args.split(None, 1) if args else []
        if len(parts) < 2:
            raise MonitorError("Missing arguments. Usage: x N EXPR")

        count_text, expr = parts
        count = int(count_text) if COUNT_RE.fullmatch(count_text) else 0
        if count <= 0:
            raise MonitorError(f"Invalid count '{count_text}'. Must be a positive integer")

        addr = self.evaluate(expr)
        # Read everything first so a fault prints nothing.
        words = [self.mem.read(addr + i * X_WORD_BYTES, X_WORD_BYTES)
                 for i in range(count)]

        for row in range(0, count, X_WORDS_PER_LINE):
            chunk = words[row:row + X_WORDS_PER_LINE]
            cells = ' '.join(f"0x{w:08x}" for w in chunk)
            self._print(f"0x{addr + row * X_WORD_BYTES:08x}: {cells}")
        return True

    def cmd_p(self, args: Optional[str]) -> bool:
        if not args or not args.strip():
            raise MonitorError("Missing expression. Usage: p EXPR")

        try:
            value = self.evaluate(args)
        except LexError as e:
            self._print(f"Error: Invalid expression '{args}': {e}")
            self._print(e.caret(args))
            return True
        except ExprError as e:
            self._print(f"Error: Invalid expression '{args}': {e}")
            return True

        self._print(self.format_value(value))
        return True


COMMANDS: List[Command] = [
    Command("help", "Display information about all supported commands", Monitor.cmd_help),
    Command("q", "Exit the monitor", Monitor.cmd_q),
    Command("info", "Print program status: 'info r' for registers, 'info w' for watchpoints",
            Monitor.cmd_info),
    Command("x", "Print N 4-byte values starting at address EXPR", Monitor.cmd_x),
    Command("p", "Evaluate and print the value of expression EXPR", Monitor.cmd_p),
]

COMMAND_INDEX = {cmd.name: cmd for cmd in COMMANDS}
