from __future__ import annotations


class AssemblerError(Exception):
    """Base class for stream assembler misuse."""


class RangeError(AssemblerError, IndexError):
    """An offset outside the buffered region was requested."""

    def __init__(self, start: int, end: int, buffered_to: int) -> None:
        super().__init__(f"range [{start}, {end}) outside buffer of length {buffered_to}")
        self.start = start
        self.end = end
        self.buffered_to = buffered_to


class StreamClosedError(AssemblerError):
    """Text was appended after the end-of-stream signal."""
