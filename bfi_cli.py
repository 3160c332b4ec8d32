#!/usr/bin/env python3
"""
BFI Shell / CLI
===============
Command-line front end and interactive REPL for the Brainfuck interpreter.

Provides:
  - Program selection: inline argument, file, or piped stdin
  - Tape size, EOF policy and verification mode selection
  - Optional per-instruction trace and step budget
  - An interactive shell with tape inspection commands

Usage:
  python bfi_cli.py [-f FILE] [-m SIZE] [-i] [-n] [--eof keep|zero|max]
                [--loose] [--max-steps N] [--trace] [CODE]

Shell:
  Lines are executed as Brainfuck.  A line starting with '$' is a string of
  single-letter shell commands, run left to right (e.g. '$lxd').
"""

from __future__ import annotations
import argparse
import cmd
import sys
import readline  # line editing and history for cmd.Cmd
from typing import Optional

from bfi import BFError, AllocationError
from bfi_devices import EOF_POLICIES, EOF_KEEP
from bfi_system import BFSystem
from bfi_tape import MEM_DEFAULT

# Shell settings
SHELL_PS1 = "bf> "
SHELL_CMD_PREFIX = "$"
SHELL_WINDOW_SIZE = 5
ADDR_DISPLAY_MOD = 10000


# ---------------------------------------------------------------------------
#  Host I/O wiring
# ---------------------------------------------------------------------------

def _stdout_byte(byte_val: int):
    """Write one program output byte to the host terminal, unbuffered."""
    out = sys.stdout
    out.flush()
    buf = getattr(out, "buffer", None)
    if buf is None:
        out.write(chr(byte_val))
        out.flush()
    else:
        buf.write(bytes([byte_val]))
        buf.flush()


def _stdin_line() -> bytes | str:
    """Refill the console from stdin one line at a time (empty at EOF).

    Reads raw bytes when stdin has a binary buffer, so program input is
    passed through without decoding.
    """
    buf = getattr(sys.stdin, "buffer", None)
    if buf is None:
        return sys.stdin.readline()
    return buf.readline()


def _stdin_source() -> str:
    """Whole program text piped on stdin, decoded like BFSystem.load_file."""
    buf = getattr(sys.stdin, "buffer", None)
    if buf is None:
        return sys.stdin.read()
    return buf.read().decode("latin-1")


def wire_host_io(bf: BFSystem):
    bf.console.on_tx = _stdout_byte
    bf.console.on_rx = _stdin_line


def _make_tracer(bf: BFSystem):
    tape = bf.tape

    def trace(pos: int, sym: str):
        print(f"  {pos:6d}: {sym}  ptr={tape.cursor} cell={tape.current_value()}",
              file=sys.stderr)
    return trace


# ---------------------------------------------------------------------------
#  Shell
# ---------------------------------------------------------------------------

class BFShell(cmd.Cmd):
    """Interactive Brainfuck shell."""

    intro = ("BFI interactive shell.  Lines are run as Brainfuck; "
             f"'{SHELL_CMD_PREFIX}h' for help, '{SHELL_CMD_PREFIX}q' to quit.")
    prompt = SHELL_PS1

    def __init__(self, system: BFSystem, newlines: bool = False,
                 max_steps: Optional[int] = None):
        super().__init__()
        self.sys = system
        self.newlines = newlines
        self.max_steps = max_steps

        # Program I/O goes straight to the terminal
        wire_host_io(self.sys)

    # -- Input loop --

    def cmdloop(self, intro=None):
        """Read and run lines until '$q' or end of input.

        End of input stops the loop directly; a typed 'EOF' line is ordinary
        (inert) program text.
        """
        self.preloop()
        if intro is not None:
            self.intro = intro
        if self.intro:
            print(self.intro)
        stop = False
        while not stop:
            line = self.read_line()
            if line is None:
                print()
                break
            stop = self.onecmd(line)
        self.postloop()

    def read_line(self) -> Optional[str]:
        """Next shell line without its line ending, or None at end of input."""
        if sys.stdin.isatty():
            try:
                return input(self.prompt)
            except EOFError:
                return None
        # Piped session: share the byte-level reader with the ',' instruction
        sys.stdout.write(self.prompt)
        sys.stdout.flush()
        line = _stdin_line()
        if not line:
            return None
        if isinstance(line, bytes):
            line = line.decode("latin-1")
        return line.rstrip("\r\n")

    # -- Dispatch --

    def onecmd(self, line):
        line = line.strip()
        if not line:
            return self.emptyline()
        if line.startswith(SHELL_CMD_PREFIX):
            return self.run_commands(line[len(SHELL_CMD_PREFIX):])
        self.run_code(line)
        return False

    def run_commands(self, letters: str) -> bool:
        """Run single-letter commands in order. Returns True on quit."""
        for ch in letters:
            if ch.isspace():
                continue
            handler = getattr(self, "do_" + ch, None) if ch.isalpha() else None
            if handler is None:
                print(f"Unknown command: {ch}")
                continue
            if handler(""):
                return True
        return False

    def run_code(self, source: str):
        """Execute one line of Brainfuck against the persistent tape."""
        try:
            self.sys.execute(source, self.max_steps)
        except BFError as e:
            print(f"Error: {e}", file=sys.stderr)
            return
        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return
        if self.sys.interp.hit_step_limit:
            print(f"Stopped after {self.sys.interp.steps} steps (step limit).",
                  file=sys.stderr)
        if self.newlines:
            print()

    # ================================================================
    #  Commands
    # ================================================================

    def do_h(self, arg):
        """Help (this message)"""
        print("Interactive/REPL shell:")
        print("  Evaluates brainfuck code")
        print(f"  Start input with '{SHELL_CMD_PREFIX}' to input non-brainfuck commands")
        print()
        print("Commands:")
        for ch in "hqlxdwnrm":
            print(f"  {ch}\t{getattr(self, 'do_' + ch).__doc__}")

    def do_q(self, arg):
        """Exit"""
        return True

    def do_l(self, arg):
        """Print pointer location"""
        print(self.sys.tape.cursor)

    def do_x(self, arg):
        """Print current cell value in hex"""
        print(f"0x{self.sys.tape.current_value():02x}")

    def do_d(self, arg):
        """Print current cell value in decimal"""
        print(self.sys.tape.current_value())

    def do_w(self, arg):
        """Print window"""
        cells = self.sys.tape.window(SHELL_WINDOW_SIZE // 2)
        print("val: \t" + "".join(f" 0x{v:02x} " for _, v in cells))
        print("ptr: \t" + "".join(f" {a % ADDR_DISPLAY_MOD:<4d} " for a, _ in cells))

    def do_n(self, arg):
        """Toggle newlines (after code is executed)"""
        self.newlines = not self.newlines
        print(f"Newlines: {'on' if self.newlines else 'off'}")

    def do_r(self, arg):
        """Reset (zero) memory and return pointer to 0"""
        self.sys.reset()
        print("Memory zeroed")

    def do_m(self, arg):
        """Print memory size"""
        print(self.sys.mem_size)

    def emptyline(self):
        """Don't repeat the last command on empty input."""
        pass


# ---------------------------------------------------------------------------
#  Main
# ---------------------------------------------------------------------------

def run_source(bf: BFSystem, source: str, max_steps: Optional[int] = None,
               newline: bool = False) -> int:
    """Execute a whole program from the command line. Returns an exit status."""
    try:
        bf.execute(source, max_steps)
    except BFError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if bf.interp.hit_step_limit:
        print(f"Stopped after {bf.interp.steps} steps (step limit).", file=sys.stderr)
    if newline:
        print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfi",
        description="Brainfuck interpreter and interactive shell",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python bfi_cli.py '++++++++[>++++++++<-]>+.'\n"
               "  python bfi_cli.py -f hello.bf -n\n"
               "  cat hello.bf | python bfi_cli.py\n"
               "  python bfi_cli.py -i -m 1024\n"
    )
    parser.add_argument("code", nargs="?", default=None,
                        help="Brainfuck source to run")
    parser.add_argument("-f", "--file", type=str, default=None,
                        help="Read the program from FILE")
    parser.add_argument("-m", "--memory", type=int, default=MEM_DEFAULT,
                        help=f"Tape size in bytes (default: {MEM_DEFAULT})")
    parser.add_argument("-i", "--interactive", action="store_true",
                        help="Enter the shell (after running any given program)")
    parser.add_argument("-n", "--newline", action="store_true",
                        help="Print a newline after each execution")
    parser.add_argument("--eof", choices=EOF_POLICIES, default=EOF_KEEP,
                        help="Cell value on end of input: keep the cell, "
                             "store 0, or store 255 (default: keep)")
    parser.add_argument("--loose", action="store_true",
                        help="Only check that '[' and ']' counts match")
    parser.add_argument("--max-steps", type=int, default=None, metavar="N",
                        help="Stop each execution after N instructions")
    parser.add_argument("--trace", action="store_true",
                        help="Print every executed instruction to stderr")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        bf = BFSystem(mem_size=args.memory, strict=not args.loose, eof=args.eof)
    except AllocationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    wire_host_io(bf)
    if args.trace:
        bf.interp.on_step = _make_tracer(bf)

    # Source selection: file, then argument, then piped stdin
    source = None
    if args.file:
        try:
            source = bf.load_file(args.file)
        except OSError as e:
            print(f"ERROR: cannot read '{args.file}': {e}", file=sys.stderr)
            return 1
    elif args.code is not None:
        source = args.code
    elif not args.interactive and not sys.stdin.isatty():
        source = _stdin_source()

    status = 0
    if source is not None:
        try:
            status = run_source(bf, source, args.max_steps, args.newline)
        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return 130

    if args.interactive or source is None:
        shell = BFShell(bf, newlines=args.newline, max_steps=args.max_steps)
        try:
            shell.cmdloop()
        except KeyboardInterrupt:
            print("\nInterrupted. Goodbye.")
    return status


if __name__ == "__main__":
    sys.exit(main())
