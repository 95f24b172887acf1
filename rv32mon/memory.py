"""
Guest physical memory for the monitor.

Flat byte-addressable memory starting at ``base`` (default $80000000,
the RV32 reset vector). Multi-byte accesses are little-endian.
Accesses outside [base, base + size) raise MemoryAccessError instead of
wrapping around, so a bad address in ``x`` or ``*EXPR`` is reported to
the user.

When no image is given the monitor loads BUILTIN_IMAGE at the base:

  80000000  00000297  auipc t0, 0
  80000004  00028823  sb    zero, 16(t0)
  80000008  0102c503  lbu   a0, 16(t0)
  8000000c  00100073  ebreak
  80000010  deadbeef  (data)
"""

import logging
import struct
from pathlib import Path
from typing import Optional, Union

from .errors import MemoryAccessError

log = logging.getLogger('rv32mon.memory')

MEM_BASE = 0x80000000
MEM_SIZE = 0x100000     # 1 MiB

BUILTIN_IMAGE = struct.pack(
    "<5I",
    0x00000297,  # auipc t0, 0
    0x00028823,  # sb zero, 16(t0)
    0x0102C503,  # lbu a0, 16(t0)
    0x00100073,  # ebreak
    0xDEADBEEF,
)

_ACCESS_WIDTHS = (1, 2, 4, 8)


class Memory:
    """Flat little-endian memory covering [base, base + size)."""

    def __init__(self, base: int = MEM_BASE, size: int = MEM_SIZE):
        self.base = base
        self.size = size
        self._mem = bytearray(size)

    def contains(self, addr: int, length: int = 1) -> bool:
        return self.base <= addr and addr + length <= self.base + self.size

    def _offset(self, addr: int, length: int) -> int:
        if length not in _ACCESS_WIDTHS:
            raise ValueError(f"unsupported access width {length}")
        if not self.contains(addr, length):
            raise MemoryAccessError(addr)
        return addr - self.base

    # --- Core read/write ---

    def read(self, addr: int, length: int = 4) -> int:
        """Read ``length`` bytes at ``addr`` as an unsigned little-endian value."""
        off = self._offset(addr, length)
        return int.from_bytes(self._mem[off:off + length], "little")

    def write(self, addr: int, length: int, value: int):
        """Write the low ``length`` bytes of ``value`` at ``addr``."""
        off = self._offset(addr, length)
        value &= (1 << (8 * length)) - 1
        self._mem[off:off + length] = value.to_bytes(length, "little")

    # --- Bulk load ---

    def load_binary(self, data: bytes, addr: Optional[int] = None) -> int:
        """Copy ``data`` into memory at ``addr`` (default: base). Returns its size."""
        if addr is None:
            addr = self.base
        if not data:
            return 0
        if not self.contains(addr, len(data)):
            raise MemoryAccessError(addr + len(data) - 1,
                                    f"image of {len(data)} bytes does not fit")
        off = addr - self.base
        self._mem[off:off + len(data)] = data
        log.info(f"Loaded {len(data)} bytes at 0x{addr:08x}")
        return len(data)

    def load_file(self, path: Union[str, Path], addr: Optional[int] = None) -> int:
        """Load a raw binary image file."""
        return self.load_binary(Path(path).read_bytes(), addr)

    def load_builtin(self) -> int:
        return self.load_binary(BUILTIN_IMAGE)

    # --- Debug ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Hex and ASCII dump of [start, start + length), 16 bytes per line."""
        if length <= 0:
            return ""
        if not self.contains(start, length):
            raise MemoryAccessError(start)
        off = start - self.base
        lines = []
        for row in range(0, length, 16):
            chunk = self._mem[off + row:off + min(row + 16, length)]
            hex_bytes = ' '.join(f'{b:02x}' for b in chunk)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in chunk)
            lines.append(f'{start + row:08x}  {hex_bytes:<47}  {ascii_bytes}')
        return '\n'.join(lines)
