"""Fragment sources: fixture documents, SSE text deltas and re-chunkers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Union

DEFAULT_SEPARATOR = "<|>"


def split_fixture(document: str, separator: str = DEFAULT_SEPARATOR) -> List[str]:
    """Split a fixture document into its fragments.

    The separator token marks fragment boundaries only; empty pieces (two
    separators in a row, or one at either end) are dropped.
    """
    if not separator:
        raise ValueError("separator must be a non-empty string")
    return [piece for piece in document.split(separator) if piece]


def load_fixture(path: Union[str, Path], separator: str = DEFAULT_SEPARATOR) -> List[str]:
    text = Path(path).read_text(encoding="utf-8")
    return split_fixture(text, separator)


def iter_chars(text: str) -> Iterator[str]:
    yield from text


def iter_chunks(text: str, size: int) -> Iterator[str]:
    """Re-split ``text`` into pieces of at most ``size`` characters."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for i in range(0, len(text), size):
        yield text[i : i + size]


def iter_text_deltas(lines: Iterable[str]) -> Iterator[str]:
    """Map JSON SSE data lines to the text fragments they carry.

    Understands Bedrock/Anthropic frames (``content_block_delta`` with a
    ``text_delta``) and Azure/OpenAI chat completion chunks
    (``choices[].delta.content``). Stops at ``[DONE]`` or ``message_stop``;
    lines that are not JSON are skipped.
    """
    for data in lines:
        if data == "[DONE]":
            break
        try:
            evt: Dict = json.loads(data)
        except json.JSONDecodeError:
            continue
        if not isinstance(evt, dict):
            continue
        e_type = evt.get("type")
        if e_type == "message_stop":
            break
        if e_type == "content_block_delta":
            delta = evt.get("delta") or {}
            if delta.get("type") == "text_delta":
                text = delta.get("text", "")
                if text:
                    yield text
            continue
        for choice in evt.get("choices") or []:
            content = (choice.get("delta") or {}).get("content")
            if isinstance(content, str) and content:
                yield content
