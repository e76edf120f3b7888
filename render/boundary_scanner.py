"""Find the safe-to-finalize prefix of a tentative Markdown region.

The scanner is stateless between calls: it is handed the region that starts
at the emit frontier together with the mode active there, and reports how
far the region is fully determined. Because the frontier always sits at the
start of the last unresolved construct, each call only rescans that
construct plus the newly appended text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from render.fence_state import (
    FENCE_KIND,
    INLINE_CODE_KIND,
    PLAIN,
    FenceState,
    Transition,
    in_fence,
    inline_code,
)

logger = logging.getLogger(__name__)

BACKTICK = "`"
HASH = "#"
NEWLINE = "\n"
FENCE_TICKS = 3
MAX_HEADING = 6
HEADER_GAP = (" ", "\t")
# Characters allowed right after a closing fence on the same line.
CLOSER_FOLLOW = ("", NEWLINE, " ", "\t", "\r")

# PendingMarker kinds
PENDING_BACKTICKS = "backtick_run"
PENDING_FENCE_OPEN = "fence_open"
PENDING_FENCE_CLOSE = "fence_close"
PENDING_INLINE_CLOSE = "inline_close"
PENDING_HEADER = "header_marker"


@dataclass(frozen=True)
class PendingMarker:
    """A construct that cannot be classified until more text arrives."""

    kind: str
    start: int


@dataclass
class ScanResult:
    resolved_to: int
    transitions: List[Transition] = field(default_factory=list)
    pending: Optional[PendingMarker] = None


def _run_length(text: str, start: int, ch: str) -> int:
    end = start
    while end < len(text) and text[end] == ch:
        end += 1
    return end - start


class _Scan:
    """Mutable cursor for a single scan call."""

    def __init__(self, text: str, base: int, mode: Transition, line_start: bool, final: bool) -> None:
        self.text = text
        self.base = base
        self.mode = mode
        self.start_mode = mode
        self.line_start = line_start
        self.final = final
        self.pos = 0
        self.transitions: List[Transition] = []
        self.pending: Optional[PendingMarker] = None

    def mark(self, pos: int, state: FenceState, markup: bool = False, heading: int = 0) -> None:
        tr = Transition(self.base + pos, state, markup, heading)
        if tr.same_tag(self.mode):
            return
        if self.transitions and self.transitions[-1].offset == tr.offset:
            # The previous tag covered no characters.
            self.transitions.pop()
            self.mode = self.transitions[-1] if self.transitions else self.start_mode
            if tr.same_tag(self.mode):
                return
        self.transitions.append(tr)
        self.mode = tr

    def block(self, kind: str) -> bool:
        """Record the pending construct at the cursor; False when forced to resolve."""
        if self.final:
            return False
        self.pending = PendingMarker(kind, self.base + self.pos)
        return True

    def peek(self, pos: int) -> str:
        return self.text[pos] if pos < len(self.text) else ""

    # -- per-state steps; each returns False to stop the scan --

    def step_fence(self) -> bool:
        state = self.mode.state
        ch = self.text[self.pos]
        if self.line_start and ch == BACKTICK:
            run = _run_length(self.text, self.pos, BACKTICK)
            end = self.pos + run
            if end == len(self.text) and self.block(PENDING_FENCE_CLOSE):
                return False
            follow = self.peek(end)
            if run == FENCE_TICKS and follow in CLOSER_FOLLOW:
                if follow == NEWLINE:
                    end += 1
                self.mark(self.pos, state, markup=True)
                self.mark(end, PLAIN)
                self.pos = end
                self.line_start = follow == NEWLINE
                return True
            self.mark(self.pos, state)
            self.pos = end
            self.line_start = False
            return True
        self.mark(self.pos, state)
        self.pos += 1
        self.line_start = ch == NEWLINE
        return True

    def step_inline(self) -> bool:
        state = self.mode.state
        heading = self.mode.heading
        ch = self.text[self.pos]
        if ch == NEWLINE:
            # Spans never cross lines; the newline itself is plain text.
            self.mark(self.pos, PLAIN, heading=heading)
            return True
        if ch == BACKTICK:
            run = _run_length(self.text, self.pos, BACKTICK)
            end = self.pos + run
            if end == len(self.text) and self.block(PENDING_INLINE_CLOSE):
                return False
            if run == state.ticks:
                self.mark(self.pos, state, markup=True, heading=heading)
                self.mark(end, PLAIN, heading=heading)
            else:
                self.mark(self.pos, state, heading=heading)
            self.pos = end
            return True
        self.mark(self.pos, state, heading=heading)
        self.pos += 1
        return True

    def step_plain(self) -> bool:
        ch = self.text[self.pos]
        heading = self.mode.heading
        if ch == BACKTICK:
            return self._plain_backticks(heading)
        if ch == HASH and self.line_start:
            return self._header_marker()
        self.mark(self.pos, PLAIN, heading=heading)
        self.pos += 1
        self.line_start = ch == NEWLINE
        if self.line_start and heading:
            self.mark(self.pos, PLAIN)
        return True

    def _plain_backticks(self, heading: int) -> bool:
        run = _run_length(self.text, self.pos, BACKTICK)
        end = self.pos + run
        if end == len(self.text) and self.block(PENDING_BACKTICKS):
            return False
        follow = self.peek(end)
        if run == FENCE_TICKS:
            eol = self.text.find(NEWLINE, end)
            if eol == -1:
                if self.block(PENDING_FENCE_OPEN):
                    return False
                # Opener never terminated: nothing was fenced.
                self.mark(self.pos, PLAIN, heading=heading)
                self.pos = len(self.text)
                self.line_start = False
                return True
            fence = in_fence(self.text[end:eol].strip())
            self.mark(self.pos, fence, markup=True)
            self.mark(eol + 1, fence)
            self.pos = eol + 1
            self.line_start = True
            return True
        if run < FENCE_TICKS and follow not in ("", NEWLINE):
            code = inline_code(run)
            self.mark(self.pos, code, markup=True, heading=heading)
            self.mark(end, code, heading=heading)
        else:
            self.mark(self.pos, PLAIN, heading=heading)
        self.pos = end
        self.line_start = False
        return True

    def _header_marker(self) -> bool:
        run = _run_length(self.text, self.pos, HASH)
        end = self.pos + run
        if end == len(self.text) and self.block(PENDING_HEADER):
            return False
        if run <= MAX_HEADING and self.peek(end) in HEADER_GAP:
            self.mark(self.pos, PLAIN, markup=True, heading=run)
            self.mark(end + 1, PLAIN, heading=run)
            self.pos = end + 1
        else:
            self.mark(self.pos, PLAIN)
            self.pos = end
        self.line_start = False
        return True

    def run(self) -> ScanResult:
        steps = {
            FENCE_KIND: self.step_fence,
            INLINE_CODE_KIND: self.step_inline,
        }
        while self.pos < len(self.text):
            step = steps.get(self.mode.state.kind, self.step_plain)
            if not step():
                break
        result = ScanResult(self.base + self.pos, self.transitions, self.pending)
        if self.pending is not None:
            logger.debug("scan stopped at %s (%s)", self.pending.start, self.pending.kind)
        return result


class BoundaryScanner:
    """Classifies the tentative region and finds the largest safe prefix."""

    def scan(
        self,
        text: str,
        base: int = 0,
        mode: Optional[Transition] = None,
        line_start: bool = True,
        final: bool = False,
    ) -> ScanResult:
        """Scan ``text``, which begins at absolute offset ``base``.

        Args:
            text: The tentative region ``[finalized_to, buffered_to)``.
            base: Absolute offset of ``text[0]``.
            mode: Classification active at ``base`` (defaults to plain text).
            line_start: Whether ``base`` is the first position of a line.
            final: End-of-stream; force every pending construct to resolve.

        Returns:
            ScanResult whose ``resolved_to`` is never below ``base``.
        """
        if mode is None:
            mode = Transition(base, PLAIN)
        return _Scan(text, base, mode, line_start, final).run()
