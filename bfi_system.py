"""
BFI System
==========
Wires together:
  - the Tape store (bfi_tape.py)
  - the Console device (bfi_devices.py)
  - the Interpreter (bfi.py)

The tape persists across executions; only ``reset()`` clears it.
"""

from __future__ import annotations
from typing import Optional

from bfi import Interpreter
from bfi_devices import Console, EOF_KEEP
from bfi_tape import Tape, MEM_DEFAULT


class BFSystem:
    """One interpreter instance with its own tape and console."""

    def __init__(self, mem_size: int = MEM_DEFAULT, strict: bool = True,
                 eof: str = EOF_KEEP):
        self.tape = Tape(mem_size)
        self.console = Console(eof=eof)
        self.interp = Interpreter(self.tape, self.console, strict=strict)
        self.run_count: int = 0

    @property
    def mem_size(self) -> int:
        return self.tape.size

    # -- Execution --

    def execute(self, source: str, max_steps: Optional[int] = None) -> int:
        """Run *source*; returns the number of instructions executed."""
        steps = self.interp.execute(source, max_steps)
        self.run_count += 1
        return steps

    def load_file(self, path: str) -> str:
        """Read program text from *path*."""
        with open(path, "r", encoding="latin-1") as f:
            return f.read()

    def run_file(self, path: str, max_steps: Optional[int] = None) -> int:
        return self.execute(self.load_file(path), max_steps)

    # -- Memory control --

    def reset(self):
        """Zero memory and return the cursor to 0."""
        self.interp.reset()

    def resize(self, size: int):
        """Re-allocate the tape. On failure the old tape is kept."""
        self.tape.allocate(size)

    # -- Output helpers --

    def get_tx_output(self) -> str:
        """Drain the console TX buffer as text."""
        return self.console.drain_tx().decode("latin-1")

    def dump_state(self) -> str:
        t = self.tape
        return (f"mem={t.size} ptr={t.cursor} "
                f"val={t.current_value()} (0x{t.current_value():02x}) "
                f"runs={self.run_count}")
