from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from render.errors import RangeError


PLAIN_KIND = "plain"
INLINE_CODE_KIND = "inline_code"
FENCE_KIND = "fence"


@dataclass(frozen=True)
class FenceState:
    """Which region the writer is in: plain text, inline code or a fence."""

    kind: str = PLAIN_KIND
    language: Optional[str] = None
    # Opening backtick count of an inline span; not part of the identity.
    ticks: int = field(default=0, compare=False)

    @property
    def is_plain(self) -> bool:
        return self.kind == PLAIN_KIND

    @property
    def is_inline_code(self) -> bool:
        return self.kind == INLINE_CODE_KIND

    @property
    def in_fence(self) -> bool:
        return self.kind == FENCE_KIND

    def __str__(self) -> str:
        if self.kind == FENCE_KIND:
            return f"InFence({self.language!r})"
        return "InlineCode" if self.kind == INLINE_CODE_KIND else "Plain"


PLAIN = FenceState(PLAIN_KIND)
INLINE_CODE = FenceState(INLINE_CODE_KIND, ticks=1)


def inline_code(ticks: int = 1) -> FenceState:
    return FenceState(INLINE_CODE_KIND, ticks=ticks)


def in_fence(language: Optional[str] = None) -> FenceState:
    return FenceState(FENCE_KIND, language=language or None)


@dataclass(frozen=True)
class Transition:
    """Classification that takes effect at ``offset``."""

    offset: int
    state: FenceState = PLAIN
    markup: bool = False
    heading: int = 0

    def same_tag(self, other: "Transition") -> bool:
        return (self.state, self.markup, self.heading) == (other.state, other.markup, other.heading)


class FenceStateMachine:
    """Single authoritative FenceState, advanced only by resolved transitions."""

    def __init__(self) -> None:
        self.mode: Transition = Transition(0, PLAIN)
        self.resolved_to: int = 0
        self._history: List[Tuple[int, FenceState]] = [(0, PLAIN)]

    @property
    def state(self) -> FenceState:
        return self.mode.state

    @property
    def history(self) -> List[Tuple[int, FenceState]]:
        return list(self._history)

    def apply(self, transitions: Iterable[Transition], resolved_to: Optional[int] = None) -> None:
        """Replay resolved transitions in order, then mark ``resolved_to`` as known."""
        for tr in transitions:
            if tr.offset < self.resolved_to:
                raise RangeError(tr.offset, self.resolved_to, self.resolved_to)
            if tr.state != self.mode.state:
                last_offset, _ = self._history[-1]
                if last_offset == tr.offset:
                    # Zero-width state; only the later one was ever active.
                    self._history.pop()
                if not self._history or self._history[-1][1] != tr.state:
                    self._history.append((tr.offset, tr.state))
            self.mode = tr
            self.resolved_to = tr.offset
        if resolved_to is not None:
            if resolved_to < self.resolved_to:
                raise RangeError(resolved_to, self.resolved_to, self.resolved_to)
            self.resolved_to = resolved_to

    def state_at(self, offset: int) -> FenceState:
        """State that was active for the character at ``offset``."""
        if offset < 0 or offset > self.resolved_to:
            raise RangeError(offset, offset, self.resolved_to)
        current = PLAIN
        for start, state in self._history:
            if start > offset:
                break
            current = state
        return current

    def close(self, offset: int) -> None:
        """Implicitly close any open fence or inline span at ``offset``."""
        self.apply([Transition(offset, PLAIN)], resolved_to=offset)
