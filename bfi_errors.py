"""
BFI error types.

Every failure the interpreter reports derives from ``BFError`` so front ends
can catch one class, print the message and carry on.
"""

from __future__ import annotations

from typing import Optional


class BFError(Exception):
    """Base for interpreter-generated errors."""
    pass


class AllocationError(BFError):
    """The tape could not be sized as requested."""
    pass


class _PositionedError(BFError):
    def __init__(self, message: str, position: Optional[int] = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class InvalidProgramError(_PositionedError):
    """Bracket verification failed; nothing was executed."""
    pass


class TruncatedJumpError(_PositionedError):
    """A skipped loop has no matching ']' before the end of the program."""
    pass


class ReturnStackError(_PositionedError):
    """A ']' needed to jump back but no loop was open."""
    pass
