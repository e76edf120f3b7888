from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional

import requests

from util.fragment_feed import iter_text_deltas

logger = logging.getLogger(__name__)


def iter_sse_data(lines: Iterable[Optional[str]]) -> Iterator[str]:
    """Yield the value of every ``data`` field in a stream of SSE lines.

    Lines are split at the first colon into field and value, and a single
    space after the colon is dropped. Comment lines (leading colon) and blank
    keep-alives are skipped; ``event``, ``id`` and ``retry`` fields carry
    nothing the fragment stream needs.
    """
    for raw in lines:
        if not raw or raw.startswith(":"):
            continue
        name, _, value = raw.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            yield value
        else:
            logger.debug("skipping SSE field %r", name)


def iter_sse_fragments(
    url: str,
    *,
    method: str = "POST",
    json: Optional[dict] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: float = 60.0,
    session: Optional[requests.Session] = None,
) -> Iterator[str]:
    """Stream the text fragments of an LLM SSE endpoint, in arrival order.

    HTTP errors surface as ``requests`` exceptions when iteration starts.
    """
    http = session or requests.Session()
    send = http.get if method.upper() == "GET" else http.post
    with send(url, json=json, params=params, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        yield from iter_text_deltas(iter_sse_data(response.iter_lines(decode_unicode=True)))
