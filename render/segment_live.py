from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text

from render.assembler import EmitSegment
from render.fence_state import FenceState
from render.inline import plain_line, render_inline

DEFAULT_CODE_THEME = "monokai"


@dataclass
class SegmentStream:
    """Prints finalized segments to a rich console as they arrive.

    Text outside fences is held until its line terminator, then printed with
    inline styling (emphasis, strikethrough, links, code spans) and, for
    heading lines, the heading style. Fenced code lines are highlighted once
    complete. With ``char_delay`` set, output is written one character at a
    time with that many seconds between characters.
    """

    console: Console = field(default_factory=Console)
    code_theme: str = DEFAULT_CODE_THEME
    show_markup: bool = False
    char_delay: float = 0.0
    fence: Optional[FenceState] = None
    code_line: List[str] = field(default_factory=list)
    line: List[Tuple[str, bool]] = field(default_factory=list)
    heading_level: int = 0
    _syntax: Optional[Syntax] = None
    _started: bool = False

    def __call__(self, segment: EmitSegment) -> None:
        self.write(segment)

    def write(self, segment: EmitSegment) -> None:
        if segment.state.in_fence:
            if self.fence != segment.state:
                if self.fence is not None:
                    self._close_fence()
                self._open_fence(segment.state)
            if segment.markup:
                if self.show_markup:
                    self._flush_code()
                    self._emit(Text(segment.text, style="dim"))
                return
            self._write_code(segment.text)
            return

        if self.fence is not None:
            self._close_fence()

        if segment.heading:
            self.heading_level = segment.heading
        if segment.markup and not self.show_markup:
            return
        self._write_line(segment.text, segment.state.is_inline_code)

    def close(self) -> None:
        """Flush partial lines at end of stream."""
        if self.fence is not None:
            self._close_fence()
        self._flush_line()

    def _emit(self, text: Text) -> None:
        if not text.plain:
            return
        if self.char_delay <= 0:
            self.console.print(text, end="", soft_wrap=True, highlight=False)
            return
        for char in text.divide(range(1, len(text))):
            if self._started:
                time.sleep(self.char_delay)
            self._started = True
            self.console.print(char, end="", soft_wrap=True, highlight=False)

    # ---- plain and heading lines ----
    def _write_line(self, text: str, is_code: bool) -> None:
        while text:
            body, sep, text = text.partition("\n")
            if body:
                self.line.append((body, is_code))
            if sep:
                self._flush_line(newline=True)

    def _flush_line(self, newline: bool = False) -> None:
        if not self.line and not newline:
            return
        pieces, self.line = self.line, []
        rendered = plain_line(pieces) if self.show_markup else render_inline(pieces)
        if self.heading_level:
            rendered.style = f"markdown.h{min(self.heading_level, 6)}"
            self.heading_level = 0
        if newline:
            rendered.append("\n")
        self._emit(rendered)

    # ---- fenced code ----
    def _open_fence(self, state: FenceState) -> None:
        self._flush_line()
        self.fence = state
        self.code_line = []
        self._syntax = Syntax("", state.language or "text", theme=self.code_theme)

    def _write_code(self, text: str) -> None:
        for piece in text.splitlines(keepends=True):
            self.code_line.append(piece)
            if piece.endswith("\n"):
                self._flush_code()

    def _flush_code(self) -> None:
        if not self.code_line or self._syntax is None:
            return
        line = "".join(self.code_line)
        self.code_line = []
        highlighted = self._syntax.highlight(line)
        if not line.endswith("\n"):
            # Lexers terminate their output with a newline.
            highlighted.remove_suffix("\n")
        # Themed backgrounds justify left, which would pad to console width.
        highlighted.justify = None
        self._emit(highlighted)

    def _close_fence(self) -> None:
        self._flush_code()
        self.fence = None
        self._syntax = None
