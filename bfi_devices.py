"""
BFI Console Device
==================
Byte-level I/O for the interpreter, modelled on a serial UART:

  - TX: every byte the program outputs is handed to ``on_tx``, or buffered
        for ``drain_tx`` when no sink is attached
  - RX: bytes queued with ``inject_input`` are consumed by the input
        instruction; when the queue runs dry ``on_rx`` is asked for more

End-of-input policy
-------------------
When ``read_byte()`` finds no more input the interpreter asks the console
what to store in the current cell:

  EOF_KEEP   leave the cell unchanged (default)
  EOF_ZERO   store 0
  EOF_MAX    store 255 (what a C ``getchar()`` returning -1 truncates to)
"""

from __future__ import annotations
from collections import deque
from typing import Callable, Optional

EOF_KEEP = "keep"
EOF_ZERO = "zero"
EOF_MAX = "max"

EOF_POLICIES = (EOF_KEEP, EOF_ZERO, EOF_MAX)


class Console:
    """Output sink and input source for the I/O instructions."""

    def __init__(self, eof: str = EOF_KEEP):
        if eof not in EOF_POLICIES:
            raise ValueError(f"Unknown EOF policy {eof!r} (expected one of {EOF_POLICIES})")
        self.eof = eof
        self.tx_buffer: deque[int] = deque()   # bytes written by the program
        self.rx_buffer: deque[int] = deque()   # bytes waiting to be read
        self.tx_count: int = 0
        self.rx_count: int = 0

        # Callbacks
        self.on_tx: Optional[Callable[[int], None]] = None   # called with each output byte
        self.on_rx: Optional[Callable[[], bytes | str]] = None  # refill; empty means EOF

    # -- TX --

    def write_byte(self, value: int):
        value &= 0xFF
        self.tx_count += 1
        if self.on_tx:
            self.on_tx(value)
        else:
            self.tx_buffer.append(value)

    def drain_tx(self) -> bytes:
        """Return all pending TX bytes and clear the buffer."""
        out = bytes(self.tx_buffer)
        self.tx_buffer.clear()
        return out

    # -- RX --

    def inject_input(self, data: bytes | str):
        """Push bytes into the RX buffer."""
        if isinstance(data, str):
            data = data.encode("latin-1", errors="replace")
        for b in data:
            self.rx_buffer.append(b & 0xFF)

    @property
    def has_rx_data(self) -> bool:
        return len(self.rx_buffer) > 0

    def read_byte(self) -> Optional[int]:
        """Next input byte, or None at end of input."""
        if not self.rx_buffer and self.on_rx:
            self.inject_input(self.on_rx())
        if not self.rx_buffer:
            return None
        self.rx_count += 1
        return self.rx_buffer.popleft()

    def eof_value(self, current: int) -> int:
        """Cell value to store when input is exhausted."""
        if self.eof == EOF_ZERO:
            return 0
        if self.eof == EOF_MAX:
            return 0xFF
        return current
