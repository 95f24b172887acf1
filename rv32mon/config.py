"""
Monitor configuration.

Settings come from three layers, later ones winning:
  1. MonitorConfig defaults (below)
  2. a JSON file given with --config
  3. command-line flags

Example config file:

    {
        "prompt": "(rv32) ",
        "word_bits": 32,
        "max_tokens": 64,
        "strategy": "tree",
        "mem_base": "0x80000000",
        "mem_size": "0x100000",
        "image": "build/hello.bin",
        "registers": {"sp": "0x80008000", "a0": 7}
    }

Integers may be given as JSON numbers or as strings in decimal, 0x hex
or $ hex (Motorola convention).
"""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import UnknownRegister
from .expr import DEFAULT_WORD_BITS, STRATEGIES
from .lexer import DEFAULT_MAX_TOKENS
from .memory import MEM_BASE, MEM_SIZE
from .regs import Registers

log = logging.getLogger('rv32mon.config')

DEFAULT_PROMPT = "(rv32mon) "
WORD_WIDTHS = (8, 16, 32, 64)


class ConfigError(Exception):
    pass


def parse_int_arg(value: Union[str, int]) -> int:
    """Parse an integer that may be hex (0x...), $ prefix, or decimal."""
    if isinstance(value, bool):
        raise ConfigError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        if text.startswith("$"):
            return int(text[1:], 16)
        return int(text)
    except ValueError:
        raise ConfigError(f"invalid integer {value!r}") from None


@dataclass
class MonitorConfig:
    prompt: str = DEFAULT_PROMPT
    word_bits: int = DEFAULT_WORD_BITS
    max_tokens: int = DEFAULT_MAX_TOKENS
    strategy: str = "span"
    mem_base: int = MEM_BASE
    mem_size: int = MEM_SIZE
    image: Optional[str] = None                 # None -> built-in image
    registers: Dict[str, int] = field(default_factory=dict)

    def validate(self):
        """Raise ConfigError on values the engine cannot work with."""
        if self.word_bits not in WORD_WIDTHS:
            raise ConfigError(f"word_bits must be one of {WORD_WIDTHS}, got {self.word_bits}")
        if self.max_tokens < 1:
            raise ConfigError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.strategy not in STRATEGIES:
            raise ConfigError(f"strategy must be one of {STRATEGIES}, got {self.strategy!r}")
        if self.mem_size < 1:
            raise ConfigError(f"mem_size must be positive, got {self.mem_size}")
        for name in self.registers:
            try:
                Registers.resolve(name)
            except UnknownRegister:
                raise ConfigError(f"unknown register {name!r} in registers") from None
        return self

    def update(self, **overrides) -> "MonitorConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes).validate()


_INT_FIELDS = ("word_bits", "max_tokens", "mem_base", "mem_size")


def config_from_dict(data: dict) -> MonitorConfig:
    """Build a validated MonitorConfig from a parsed JSON object."""
    known = {f.name for f in dataclasses.fields(MonitorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

    values = dict(data)
    for name in _INT_FIELDS:
        if name in values:
            values[name] = parse_int_arg(values[name])
    if "registers" in values:
        if not isinstance(values["registers"], dict):
            raise ConfigError("registers must be an object of name -> value")
        values["registers"] = {name: parse_int_arg(v)
                               for name, v in values["registers"].items()}
    return MonitorConfig(**values).validate()


def load_config(path: Union[str, Path]) -> MonitorConfig:
    """Load a JSON config file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from None
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    log.info(f"Loaded config from {path}")
    return config_from_dict(data)
