from __future__ import annotations

from bisect import bisect_right
from typing import List

from render.errors import RangeError


class ChunkBuffer:
    """Append-only text buffer with a finalize frontier.

    Everything before ``finalized_to`` has been handed to the renderer and is
    never reinterpreted; ``[finalized_to, buffered_to)`` is still tentative.
    Fragments are stored as appended and sliced in place, so reading the
    tentative region costs the fragments it spans, not the whole stream.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        # Absolute offset of each part's first character.
        self._starts: List[int] = []
        self._buffered_to: int = 0
        self._finalized_to: int = 0

    @property
    def buffered_to(self) -> int:
        return self._buffered_to

    @property
    def finalized_to(self) -> int:
        return self._finalized_to

    @property
    def tentative(self) -> str:
        return self.slice(self._finalized_to, self._buffered_to)

    def append(self, fragment: str) -> int:
        """Append a fragment and return the new ``buffered_to``."""
        if not isinstance(fragment, str):
            raise TypeError(f"fragment must be str, not {type(fragment).__name__}")
        if fragment:
            self._starts.append(self._buffered_to)
            self._parts.append(fragment)
            self._buffered_to += len(fragment)
        return self._buffered_to

    def slice(self, start: int, end: int) -> str:
        if start < 0 or start > end or end > self._buffered_to:
            raise RangeError(start, end, self._buffered_to)
        if start == end:
            return ""
        i = bisect_right(self._starts, start) - 1
        pieces = []
        while i < len(self._parts) and self._starts[i] < end:
            offset = self._starts[i]
            pieces.append(self._parts[i][max(start - offset, 0):end - offset])
            i += 1
        return "".join(pieces)

    def char_before(self, offset: int) -> str:
        if offset <= 0:
            return ""
        return self.slice(offset - 1, offset)

    def finalize(self, offset: int) -> None:
        """Move the frontier forward to ``offset``."""
        if offset < self._finalized_to or offset > self._buffered_to:
            raise RangeError(self._finalized_to, offset, self._buffered_to)
        self._finalized_to = offset

    def __len__(self) -> int:
        return self._buffered_to
