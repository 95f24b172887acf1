"""
RV32 register file for the monitor.

Register model (RV32I, ABI names):
  $0        x0, hard-wired zero (writes are dropped)
  ra        x1, return address
  sp gp tp  x2..x4, stack / global / thread pointers
  t0..t6    temporaries (x5-x7, x28-x31)
  s0..s11   saved registers (x8, x9, x18-x27)
  a0..a7    arguments / return values (x10-x17)
  pc        program counter

All registers are 32 bits wide. Names are case-sensitive; one leading
'$' sigil is stripped before lookup, so ``$sp``, ``sp`` and ``$x2``
name the same register and ``$0`` names x0.
"""

from typing import Dict

from .errors import UnknownRegister

REG_NAMES = (
    "$0", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
)

WORD_MASK = 0xFFFFFFFF
RESET_PC = 0x80000000


def _build_index() -> Dict[str, int]:
    index = {}
    for i, name in enumerate(REG_NAMES):
        index[name.lstrip("$")] = i
        index[f"x{i}"] = i
    return index


# name (without sigil) -> GPR number
_REG_INDEX = _build_index()


class Registers:
    """RV32 general-purpose registers plus pc."""

    __slots__ = ('gpr', 'pc')

    def __init__(self, pc: int = RESET_PC):
        self.gpr = [0] * 32
        self.pc = pc & WORD_MASK

    # --- Name resolution ---

    @staticmethod
    def resolve(name: str):
        """Return a GPR number, or 'pc'. Raises UnknownRegister."""
        key = name[1:] if name.startswith("$") else name
        if key == "pc":
            return "pc"
        if key in _REG_INDEX:
            return _REG_INDEX[key]
        raise UnknownRegister(name)

    # --- Access ---

    def read(self, name: str) -> int:
        """Value of register ``name``."""
        idx = self.resolve(name)
        if idx == "pc":
            return self.pc
        return self.gpr[idx]

    def write(self, name: str, value: int):
        """Write ``value`` (masked to 32 bits). Writes to x0 are dropped."""
        idx = self.resolve(name)
        value &= WORD_MASK
        if idx == "pc":
            self.pc = value
        elif idx != 0:
            self.gpr[idx] = value

    # --- Display ---

    def display(self) -> str:
        """Format register state, one register per line: name, hex, decimal."""
        lines = [f"pc\t0x{self.pc:08x}\t{self.pc}"]
        for name, value in zip(REG_NAMES, self.gpr):
            lines.append(f"{name}\t0x{value:08x}\t{value}")
        return "\n".join(lines)

    def reset(self, pc: int = RESET_PC):
        """Zero all GPRs and set pc."""
        self.gpr = [0] * 32
        self.pc = pc & WORD_MASK
