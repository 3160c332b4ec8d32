"""
BFI Tape Store
==============
The flat byte-addressable memory of the interpreter: a fixed-size buffer of
unsigned 8-bit cells and a single cursor.

All cursor arithmetic goes through ``offset()``, which wraps modulo the tape
size in both directions, so the cursor can never leave ``[0, size)``.
"""

from __future__ import annotations

from bfi_errors import AllocationError

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

MEM_DEFAULT = 30000
CELL_MASK = 0xFF


# ---------------------------------------------------------------------------
#  Tape
# ---------------------------------------------------------------------------

class Tape:
    """Fixed-size cell buffer with a wraparound cursor."""

    def __init__(self, size: int = MEM_DEFAULT):
        self.cells = bytearray()
        self._cursor: int = 0
        self.allocate(size)

    # -- Allocation --

    def allocate(self, size: int):
        """Replace the buffer with *size* zeroed cells and home the cursor.

        On failure the previous buffer and cursor are kept as they were.
        """
        if isinstance(size, bool) or not isinstance(size, int):
            raise AllocationError(f"Tape size must be an integer, got {size!r}")
        if size <= 0:
            raise AllocationError(f"Tape size must be positive, got {size}")
        try:
            cells = bytearray(size)
        except (MemoryError, OverflowError) as e:
            raise AllocationError(f"Cannot allocate {size} cells: {e}") from e
        self.cells = cells
        self._cursor = 0

    def reset(self):
        """Zero every cell and return the cursor to 0."""
        self.cells[:] = bytes(len(self.cells))
        self._cursor = 0

    # -- Properties --

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def cursor(self) -> int:
        return self._cursor

    # -- Addressing --

    def offset(self, delta: int) -> int:
        """Address *delta* cells away from the cursor, wrapped to the tape."""
        return (self._cursor + delta) % len(self.cells)

    def move_cursor(self, delta: int):
        self._cursor = self.offset(delta)

    # -- Cell access --

    def value_at(self, index: int) -> int:
        if not 0 <= index < len(self.cells):
            raise IndexError(f"Cell {index} outside tape of {len(self.cells)} cells")
        return self.cells[index]

    def current_value(self) -> int:
        return self.cells[self._cursor]

    def write(self, value: int):
        self.cells[self._cursor] = value & CELL_MASK

    def increment(self):
        c = self._cursor
        self.cells[c] = (self.cells[c] + 1) & CELL_MASK

    def decrement(self):
        c = self._cursor
        self.cells[c] = (self.cells[c] - 1) & CELL_MASK

    # -- Debug / introspection --

    def window(self, radius: int) -> list[tuple[int, int]]:
        """Return ``(address, value)`` for the cells within *radius* of the cursor."""
        out = []
        for delta in range(-radius, radius + 1):
            addr = self.offset(delta)
            out.append((addr, self.cells[addr]))
        return out

    def dump(self, start: int, count: int) -> bytes:
        """Raw contents of *count* cells from *start*, wrapping past the end."""
        n = len(self.cells)
        return bytes(self.cells[(start + i) % n] for i in range(count))
