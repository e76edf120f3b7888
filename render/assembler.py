"""Emit frontier: turns a fragment stream into finalized, tagged segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from render.boundary_scanner import BoundaryScanner, PendingMarker
from render.chunk_buffer import ChunkBuffer
from render.errors import StreamClosedError
from render.fence_state import FenceState, FenceStateMachine, Transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmitSegment:
    """Finalized text ``[start, end)`` and the classification it was written in."""

    start: int
    end: int
    text: str
    state: FenceState
    markup: bool = False
    heading: int = 0

    @property
    def tag(self):
        return (self.state, self.markup, self.heading)


class StreamAssembler:
    """Reassembles fragments and emits the maximal safe prefix after each one.

    Each instance owns its buffer and state machine, so independent streams
    need independent assemblers.
    """

    def __init__(self, sink: Optional[Callable[[EmitSegment], None]] = None) -> None:
        self.buffer = ChunkBuffer()
        self.machine = FenceStateMachine()
        self.scanner = BoundaryScanner()
        self.sink = sink
        self.pending: Optional[PendingMarker] = None
        self.closed = False

    @property
    def finalized_to(self) -> int:
        return self.buffer.finalized_to

    @property
    def buffered_to(self) -> int:
        return self.buffer.buffered_to

    @property
    def state(self) -> FenceState:
        return self.machine.state

    def append(self, fragment: str) -> List[EmitSegment]:
        """Add a fragment and return the segments it allowed to finalize."""
        if self.closed:
            raise StreamClosedError("cannot append after finish()")
        before = self.buffer.buffered_to
        if self.buffer.append(fragment) == before:
            return []
        return self._advance(final=False)

    def finish(self) -> List[EmitSegment]:
        """Signal end-of-stream: force-resolve and emit everything left."""
        if self.closed:
            return []
        segments = self._advance(final=True)
        self.closed = True
        if not self.machine.state.is_plain:
            logger.debug("implicitly closing %s at %d", self.machine.state, self.buffer.buffered_to)
        self.machine.close(self.buffer.buffered_to)
        return segments

    def feed(self, fragments: Iterable[str]) -> Iterator[EmitSegment]:
        """Drive a whole stream, yielding after every fragment."""
        for fragment in fragments:
            yield from self.append(fragment)
        yield from self.finish()

    def _advance(self, final: bool) -> List[EmitSegment]:
        start = self.buffer.finalized_to
        result = self.scanner.scan(
            self.buffer.tentative,
            base=start,
            mode=self.machine.mode,
            line_start=self.buffer.char_before(start) in ("", "\n"),
            final=final,
        )
        self.pending = result.pending
        end = result.resolved_to
        if end == start:
            return []
        opening = self.machine.mode
        self.machine.apply(result.transitions, resolved_to=end)
        segments = self._segments(opening, result.transitions, start, end)
        self.buffer.finalize(end)
        logger.debug("frontier %d -> %d (%d segments)", start, end, len(segments))
        if self.sink is not None:
            for segment in segments:
                self.sink(segment)
        return segments

    def _segments(
        self, opening: Transition, transitions: List[Transition], start: int, end: int
    ) -> List[EmitSegment]:
        out: List[EmitSegment] = []
        current = opening
        cursor = start
        for tr in transitions + [Transition(end)]:
            if tr.offset > cursor:
                out.append(
                    EmitSegment(
                        start=cursor,
                        end=tr.offset,
                        text=self.buffer.slice(cursor, tr.offset),
                        state=current.state,
                        markup=current.markup,
                        heading=current.heading,
                    )
                )
                cursor = tr.offset
            current = tr
        return out


def assemble(fragments: Iterable[str]) -> List[EmitSegment]:
    """Run a complete fragment stream through a fresh assembler."""
    return list(StreamAssembler().feed(fragments))


def merge_segments(segments: Iterable[EmitSegment]) -> List[EmitSegment]:
    """Coalesce neighbouring segments that carry the same tag."""
    merged: List[EmitSegment] = []
    for seg in segments:
        if merged and merged[-1].tag == seg.tag and merged[-1].end == seg.start:
            prev = merged[-1]
            merged[-1] = EmitSegment(
                prev.start, seg.end, prev.text + seg.text, prev.state, prev.markup, prev.heading
            )
        else:
            merged.append(seg)
    return merged
