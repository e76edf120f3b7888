#!/usr/bin/env python3
"""
stream-cli: progressively render Markdown that arrives in arbitrary fragments

Sources
- a fixture file whose fragments are separated by a token (default "<|>")
- stdin, read the same way
- an LLM SSE endpoint (--url), one fragment per text delta

Text is shown as soon as it can no longer change meaning; fenced code is
highlighted line by line with the fence's language tag; --delay types the
output out one character at a time.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Iterable, List, Optional

import requests
from rich.console import Console
from rich.logging import RichHandler

from render.assembler import StreamAssembler
from render.segment_live import DEFAULT_CODE_THEME, SegmentStream
from util.fragment_feed import DEFAULT_SEPARATOR, iter_chunks, load_fixture, split_fixture
from util.sse_client import iter_sse_fragments

DEFAULT_MAX_TOKENS = 2048

logger = logging.getLogger("stream_cli")


def build_payload(prompt: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> dict:
    return {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }


def read_fragments(args: argparse.Namespace) -> Iterable[str]:
    if args.url:
        return iter_sse_fragments(args.url, json=build_payload(args.prompt or "", args.max_tokens))
    if args.file and args.file != "-":
        fragments: List[str] = load_fixture(args.file, args.separator)
    else:
        fragments = split_fixture(sys.stdin.read(), args.separator)
    if args.rechunk:
        return list(iter_chunks("".join(fragments), args.rechunk))
    return fragments


def run(fragments: Iterable[str], console: Console, *, segments_only: bool = False, show_markup: bool = False, code_theme: str = DEFAULT_CODE_THEME, char_delay: float = 0.0) -> int:
    """Feed fragments through a fresh assembler into the chosen output."""
    if segments_only:
        assembler = StreamAssembler()
        for seg in assembler.feed(fragments):
            flags = " markup" if seg.markup else ""
            if seg.heading:
                flags += f" h{seg.heading}"
            console.print(f"[{seg.start}:{seg.end}] {seg.state}{flags} {seg.text!r}", markup=False, highlight=False, soft_wrap=True)
        return 0

    view = SegmentStream(console=console, code_theme=code_theme, show_markup=show_markup, char_delay=char_delay)
    assembler = StreamAssembler(sink=view)
    try:
        for fragment in fragments:
            assembler.append(fragment)
        assembler.finish()
        logger.debug("rendered %d characters", assembler.finalized_to)
    finally:
        view.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Streaming Markdown assembler and renderer")
    p.add_argument("file", nargs="?", help="Fixture file with separator-delimited fragments ('-' or omitted: stdin)")
    p.add_argument("--separator", default=os.getenv("STREAM_SEPARATOR", DEFAULT_SEPARATOR), help=f"Fragment separator token (default: {DEFAULT_SEPARATOR})")
    p.add_argument("--url", help="Stream fragments from an SSE endpoint instead of a file")
    p.add_argument("--prompt", help="Prompt sent to --url")
    p.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS, help="max_tokens for --url requests")
    p.add_argument("--rechunk", type=int, default=0, metavar="N", help="Re-split the input into N-character fragments")
    p.add_argument("--segments", action="store_true", help="Print tagged segments instead of rendering")
    p.add_argument("--show-markup", action="store_true", help="Keep fence, backtick and header markers in the output")
    p.add_argument("--code-theme", default=os.getenv("STREAM_CODE_THEME", DEFAULT_CODE_THEME), help="Pygments theme for fenced code")
    p.add_argument("--delay", type=float, default=float(os.getenv("STREAM_CHAR_DELAY_MS", "0")), metavar="MS", help="Typewriter delay between printed characters, in milliseconds")
    p.add_argument("--debug", action="store_true", help="Log frontier advances")
    args = p.parse_args(argv)

    level = "DEBUG" if args.debug else os.getenv("STREAM_LOG_LEVEL", "WARNING").upper()
    err_console = Console(stderr=True)
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(console=err_console, show_path=False)])

    if args.rechunk < 0:
        err_console.print("[red]Error:[/red] --rechunk must be positive")
        return 2
    if args.delay < 0:
        err_console.print("[red]Error:[/red] --delay must not be negative")
        return 2

    console = Console()
    try:
        fragments = read_fragments(args)
        return run(fragments, console, segments_only=args.segments, show_markup=args.show_markup, code_theme=args.code_theme, char_delay=args.delay / 1000.0)
    except requests.exceptions.RequestException as e:
        err_console.print(f"[red]Request error:[/red] {e}")
        return 1
    except OSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
