"""Inline Markdown styling for completed plain lines.

Code spans are classified by the assembler, not by the Markdown parser: they
are passed in as separate pieces and stand in the parsed source as a single
placeholder character, so emphasis and links still resolve around them.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from markdown_it import MarkdownIt
from rich.style import Style
from rich.text import Text

CODE_STYLE = "markdown.code"
CODE_SLOT = "\ue000"

_TAG_STYLES = {
    "strong": "markdown.strong",
    "em": "markdown.em",
    "s": "markdown.s",
    "a": "markdown.link",
}

# Backtick spans are already resolved; raw HTML stays literal text.
_parser = MarkdownIt("commonmark").enable("strikethrough").disable(["backticks", "html_inline"])


def plain_line(pieces: Sequence[Tuple[str, bool]]) -> Text:
    """Concatenate ``(text, is_code)`` pieces without interpreting Markdown."""
    line = Text()
    for text, is_code in pieces:
        line.append(text, style=CODE_STYLE if is_code else "")
    return line


def render_inline(pieces: Sequence[Tuple[str, bool]]) -> Text:
    """Style one line given as ``(text, is_code)`` pieces.

    The line must not contain its terminator. Falls back to :func:`plain_line`
    when a code span lands somewhere the parser drops text (a link target).
    """
    source: List[str] = []
    codes: List[str] = []
    for text, is_code in pieces:
        if is_code:
            if source and source[-1] == CODE_SLOT:
                codes[-1] += text
            else:
                codes.append(text)
                source.append(CODE_SLOT)
        else:
            source.append(text.replace(CODE_SLOT, ""))

    tokens = _parser.parseInline("".join(source))
    children = tokens[0].children if tokens and tokens[0].children else []

    line = Text()
    slots = iter(codes)
    used = 0
    opened: List[Tuple[str, str, int]] = []
    for tok in children:
        if tok.nesting == 1:
            opened.append((tok.tag, str(tok.attrGet("href") or ""), len(line)))
        elif tok.nesting == -1:
            tag, href, start = opened.pop()
            style = _TAG_STYLES.get(tag)
            if style:
                line.stylize(style, start, len(line))
            if tag == "a" and href:
                line.stylize(Style(link=href), start, len(line))
                if line.plain[start:] != href:
                    line.append(f" ({href})", style="markdown.link_url")
        elif tok.type == "image":
            line.append(f"[image: {tok.content}]", style="markdown.link")
        elif tok.type in ("softbreak", "hardbreak"):
            line.append("\n")
        else:
            parts = tok.content.split(CODE_SLOT)
            line.append(parts[0])
            for part in parts[1:]:
                line.append(next(slots, ""), style=CODE_STYLE)
                line.append(part)
                used += 1

    if used != len(codes):
        return plain_line(pieces)
    return line
