"""
BFI Execution Engine
====================
A character-stepping interpreter for Brainfuck.  The program text is kept as
is; the fetch/decode/execute loop walks it with an integer position, skipping
every character that is not one of the eight instructions.

Loops use a return-position stack: entering a loop pushes the position of the
first body instruction, a ``]`` with a nonzero cell jumps back to the top of
the stack, and a ``]`` with a zero cell pops it.  A ``[`` with a zero cell
fast-forwards past its matching ``]``.

Two verification modes are available:

  strict (default)  brackets must nest properly; the matching ``]`` of every
                    ``[`` is precomputed so fast-forward is a single lookup
  loose             only the number of ``[`` and ``]`` must agree;
                    fast-forward rescans the text
"""

from __future__ import annotations
from typing import Callable, Optional

from bfi_devices import Console
from bfi_errors import (BFError, AllocationError, InvalidProgramError,
                    TruncatedJumpError, ReturnStackError)
from bfi_tape import Tape, MEM_DEFAULT

__all__ = [
    "Interpreter", "verify", "build_jump_table", "COMMANDS",
    "BFError", "AllocationError", "InvalidProgramError",
    "TruncatedJumpError", "ReturnStackError", "MEM_DEFAULT",
]

# ---------------------------------------------------------------------------
#  Instruction set
# ---------------------------------------------------------------------------

PTR_INC = ">"
PTR_DEC = "<"
MEM_INC = "+"
MEM_DEC = "-"
PUT_CHR = "."
GET_CHR = ","
JMP_FWD = "["
JMP_BCK = "]"

COMMANDS = frozenset(PTR_INC + PTR_DEC + MEM_INC + MEM_DEC +
                     PUT_CHR + GET_CHR + JMP_FWD + JMP_BCK)


# ---------------------------------------------------------------------------
#  Verification
# ---------------------------------------------------------------------------

def verify(source: str) -> bool:
    """Return True if *source* has as many ``[`` as ``]``.

    Ordering is not checked: ``"]["`` passes.
    """
    brackets_open = 0
    for ch in source:
        if ch == JMP_FWD:
            brackets_open += 1
        elif ch == JMP_BCK:
            brackets_open -= 1
    return brackets_open == 0


def build_jump_table(source: str) -> dict[int, int]:
    """Map each ``[`` position to its matching ``]`` position.

    Raises InvalidProgramError on a ``]`` with no open loop or a ``[`` that
    is never closed.
    """
    table: dict[int, int] = {}
    stack: list[int] = []
    for i, ch in enumerate(source):
        if ch == JMP_FWD:
            stack.append(i)
        elif ch == JMP_BCK:
            if not stack:
                raise InvalidProgramError("Unmatched ']'", i)
            table[stack.pop()] = i
    if stack:
        raise InvalidProgramError("Unmatched '['", stack[-1])
    return table


# ---------------------------------------------------------------------------
#  Interpreter
# ---------------------------------------------------------------------------

class Interpreter:
    """Brainfuck engine owning a tape, a console and a return-position stack."""

    def __init__(self, tape: Optional[Tape] = None,
                 console: Optional[Console] = None, strict: bool = True):
        self.tape = tape if tape is not None else Tape()
        self.console = console if console is not None else Console()
        self.strict = strict

        # Loaded program
        self.code: str = ""
        self.pc: int = 0
        self._jumps: Optional[dict[int, int]] = None
        self._stack: list[int] = []

        # Run state
        self.steps: int = 0
        self.hit_step_limit: bool = False

        # Callbacks
        self.on_step: Optional[Callable[[int, str], None]] = None  # (position, symbol)

    # -- Introspection --

    @property
    def return_stack(self) -> tuple[int, ...]:
        return tuple(self._stack)

    @property
    def finished(self) -> bool:
        return self._next_command(self.pc) >= len(self.code)

    # -- Loading --

    def load(self, source: str):
        """Verify *source* and make it the current program.

        The tape is not touched; the return stack starts empty.
        """
        if self.strict:
            jumps = build_jump_table(source)
        else:
            if not verify(source):
                raise InvalidProgramError("Unbalanced brackets")
            jumps = None
        self.code = source
        self._jumps = jumps
        self.pc = 0
        self._stack = []
        self.steps = 0
        self.hit_step_limit = False

    # =====================================================================
    #  STEP: the fetch/decode/execute loop
    # =====================================================================

    def _next_command(self, pos: int) -> int:
        code = self.code
        n = len(code)
        while pos < n and code[pos] not in COMMANDS:
            pos += 1
        return pos

    def step(self) -> bool:
        """Execute one instruction. Returns False once the program has ended."""
        pc = self._next_command(self.pc)
        if pc >= len(self.code):
            self.pc = pc
            return False

        sym = self.code[pc]
        if self.on_step:
            self.on_step(pc, sym)
        self.pc = pc
        tape = self.tape
        nxt = pc + 1

        if sym == PTR_INC:
            tape.move_cursor(1)
        elif sym == PTR_DEC:
            tape.move_cursor(-1)
        elif sym == MEM_INC:
            tape.increment()
        elif sym == MEM_DEC:
            tape.decrement()
        elif sym == PUT_CHR:
            self.console.write_byte(tape.current_value())
        elif sym == GET_CHR:
            b = self.console.read_byte()
            if b is None:
                b = self.console.eof_value(tape.current_value())
            tape.write(b)
        elif sym == JMP_FWD:
            if tape.current_value() != 0:
                self._stack.append(nxt)
            else:
                nxt = self._fast_forward(pc)
        elif sym == JMP_BCK:
            if tape.current_value() != 0:
                if not self._stack:
                    raise ReturnStackError("No open loop to return to", pc)
                nxt = self._stack[-1]
            elif self._stack:
                self._stack.pop()

        self.pc = nxt
        self.steps += 1
        return True

    def _fast_forward(self, pos: int) -> int:
        """Position just past the ``]`` matching the ``[`` at *pos*."""
        if self._jumps is not None:
            return self._jumps[pos] + 1

        code = self.code
        skip = 0
        for i in range(pos + 1, len(code)):
            ch = code[i]
            if ch == JMP_FWD:
                skip += 1
            elif ch == JMP_BCK:
                if skip > 0:
                    skip -= 1
                else:
                    return i + 1
        raise TruncatedJumpError("No matching ']' for skipped loop", pos)

    # -- Run loop --

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until the program ends or *max_steps* instructions have run.

        Returns the number of instructions executed by this call.  Without a
        budget a loop that never exits runs forever.
        """
        executed = 0
        self.hit_step_limit = False
        while True:
            if max_steps is not None and executed >= max_steps:
                self.hit_step_limit = not self.finished
                break
            if not self.step():
                break
            executed += 1
        return executed

    def execute(self, source: str, max_steps: Optional[int] = None) -> int:
        """Verify and run *source* against the current tape."""
        self.load(source)
        return self.run(max_steps)

    def reset(self):
        """Zero the tape and forget any loaded program."""
        self.tape.reset()
        self.code = ""
        self.pc = 0
        self._jumps = None
        self._stack = []
        self.steps = 0
        self.hit_step_limit = False
