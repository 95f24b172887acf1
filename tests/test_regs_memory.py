"""
Register file and guest memory tests.
"""

import pytest

from rv32mon.errors import MemoryAccessError, UnknownRegister
from rv32mon.memory import BUILTIN_IMAGE, MEM_BASE, Memory
from rv32mon.regs import REG_NAMES, RESET_PC, Registers


# ═══════════════════════════════════════════════
# Registers
# ═══════════════════════════════════════════════

class TestRegisters:
    def test_reset_state(self):
        regs = Registers()
        assert regs.pc == RESET_PC
        assert all(v == 0 for v in regs.gpr)

    def test_read_write_abi_name(self):
        regs = Registers()
        regs.write("a0", 0x1234)
        assert regs.read("a0") == 0x1234
        assert regs.gpr[10] == 0x1234

    def test_sigil_is_optional(self):
        regs = Registers()
        regs.write("$sp", 0x80001000)
        assert regs.read("sp") == 0x80001000
        assert regs.read("$sp") == 0x80001000

    def test_numeric_aliases(self):
        regs = Registers()
        regs.write("x31", 7)
        assert regs.read("t6") == 7
        assert regs.read("$x31") == 7

    def test_zero_register_is_hardwired(self):
        regs = Registers()
        regs.write("$0", 99)
        regs.write("x0", 99)
        assert regs.read("$0") == 0
        assert regs.read("0") == 0

    def test_values_are_masked(self):
        regs = Registers()
        regs.write("t0", 0x1_0000_0001)
        assert regs.read("t0") == 1

    def test_pc(self):
        regs = Registers()
        regs.write("pc", 0x80000010)
        assert regs.read("$pc") == 0x80000010

    def test_unknown_register(self):
        regs = Registers()
        with pytest.raises(UnknownRegister) as exc:
            regs.read("$r99")
        assert exc.value.name == "$r99"

    def test_only_one_sigil_is_stripped(self):
        with pytest.raises(UnknownRegister):
            Registers().read("$$sp")

    def test_case_sensitive(self):
        with pytest.raises(UnknownRegister):
            Registers().read("PC")

    def test_display(self):
        regs = Registers()
        regs.write("ra", 0x2A)
        lines = regs.display().splitlines()
        assert len(lines) == 33
        assert lines[0] == "pc\t0x80000000\t2147483648"
        assert lines[2] == "ra\t0x0000002a\t42"
        assert [line.split("\t")[0] for line in lines[1:]] == list(REG_NAMES)

    def test_reset(self):
        regs = Registers()
        regs.write("s11", 5)
        regs.reset(pc=0x100)
        assert regs.read("s11") == 0
        assert regs.pc == 0x100


# ═══════════════════════════════════════════════
# Memory
# ═══════════════════════════════════════════════

class TestMemory:
    def test_little_endian_words(self):
        mem = Memory()
        mem.write(MEM_BASE, 4, 0x11223344)
        assert mem.read(MEM_BASE, 1) == 0x44
        assert mem.read(MEM_BASE, 2) == 0x3344
        assert mem.read(MEM_BASE, 4) == 0x11223344

    def test_write_truncates(self):
        mem = Memory()
        mem.write(MEM_BASE, 1, 0x1FF)
        assert mem.read(MEM_BASE, 1) == 0xFF
        assert mem.read(MEM_BASE + 1, 1) == 0

    def test_builtin_image(self):
        mem = Memory()
        assert mem.load_builtin() == 20
        assert mem.read(MEM_BASE, 4) == 0x00000297
        assert mem.read(MEM_BASE + 0x0C, 4) == 0x00100073
        assert mem.read(MEM_BASE + 0x10, 4) == 0xDEADBEEF
        assert len(BUILTIN_IMAGE) == 20

    def test_out_of_bounds_below(self):
        with pytest.raises(MemoryAccessError) as exc:
            Memory().read(MEM_BASE - 1, 1)
        assert exc.value.addr == MEM_BASE - 1

    def test_out_of_bounds_straddling_end(self):
        mem = Memory(size=16)
        assert mem.read(MEM_BASE + 12, 4) == 0
        with pytest.raises(MemoryAccessError):
            mem.read(MEM_BASE + 13, 4)

    def test_bad_width(self):
        with pytest.raises(ValueError):
            Memory().read(MEM_BASE, 3)

    def test_load_binary_at_offset(self):
        mem = Memory()
        mem.load_binary(b"\x01\x02", MEM_BASE + 8)
        assert mem.read(MEM_BASE + 8, 2) == 0x0201

    def test_image_too_large(self):
        mem = Memory(size=8)
        with pytest.raises(MemoryAccessError):
            mem.load_binary(bytes(9))

    def test_load_file(self, tmp_path):
        path = tmp_path / "img.bin"
        path.write_bytes(bytes([0xEF, 0xBE, 0xAD, 0xDE]))
        mem = Memory()
        assert mem.load_file(path) == 4
        assert mem.read(MEM_BASE, 4) == 0xDEADBEEF

    def test_custom_base(self):
        mem = Memory(base=0x1000, size=0x100)
        mem.write(0x1000, 4, 5)
        assert mem.read(0x1000) == 5
        assert not mem.contains(0x1100)

    def test_hexdump_builtin_image(self):
        mem = Memory()
        mem.load_builtin()
        lines = mem.hexdump(MEM_BASE, 20).splitlines()
        assert lines[0] == ("80000000  97 02 00 00 23 88 02 00 03 c5 02 01 73 00 10 00"
                            "  ....#.......s...")
        assert lines[1] == "80000010  " + "ef be ad de".ljust(47) + "  ...."

    def test_hexdump_printable_bytes(self):
        mem = Memory()
        mem.load_binary(b"RV32 mon")
        assert mem.hexdump(MEM_BASE, 8).endswith("  RV32 mon")

    def test_hexdump_bounds(self):
        mem = Memory(size=16)
        assert mem.hexdump(MEM_BASE, 0) == ""
        with pytest.raises(MemoryAccessError):
            mem.hexdump(MEM_BASE + 8, 16)
