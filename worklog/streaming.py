"""
Incremental Server-Sent-Events decoding for streaming chat completions.

Raw response buffers go in, text deltas come out. Frames split across
buffers are reassembled; undecodable bytes are replaced rather than raised;
frames that are not valid JSON or match no known shape are dropped.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, List, Optional

from worklog.types import Done, Malformed, StreamEvent, TextDelta

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def _dig(payload: Any, *path: Any) -> Any:
    """Walk nested dicts/lists; None when any step is missing."""
    current = payload
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[step] if isinstance(step, int) else current.get(step)
    return current


def extract_delta_text(payload: Any) -> Optional[str]:
    """
    Pull the delta text out of a decoded frame.

    Shapes are tried in order: OpenAI-compatible choices[0].delta.content,
    Dashscope output.choices[0].text, then Dashscope output.text.
    """
    for path in (
        ("choices", 0, "delta", "content"),
        ("output", "choices", 0, "text"),
        ("output", "text"),
    ):
        value = _dig(payload, *path)
        if isinstance(value, str):
            return value
    return None


def parse_data_line(line: str) -> Optional[StreamEvent]:
    """
    Interpret a single SSE line.

    Returns None for lines that are not data lines (comments, event names,
    blank separators).
    """
    if not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):]
    if data.startswith(" "):
        data = data[1:]
    data = data.strip()

    if data == DONE_SENTINEL:
        return Done()

    try:
        payload = json.loads(data)
    except ValueError:
        return Malformed(raw=data)

    text = extract_delta_text(payload)
    if text is None:
        return Malformed(raw=data)
    return TextDelta(text=text)


class SSEDecoder:
    """
    Stateful decoder for one response body.

    Feed buffers in arrival order with feed(), then call flush() once the
    body has closed. Both return the recognised events in decode order;
    malformed frames are counted and logged, never returned.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self.malformed_count = 0
        self.done_seen = False

    def feed(self, chunk: bytes) -> List[StreamEvent]:
        text = self._pending + self._decoder.decode(chunk)
        lines = text.split("\n")
        self._pending = lines.pop()
        return self._handle_lines(lines)

    def flush(self) -> List[StreamEvent]:
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not text:
            return []
        return self._handle_lines([text])

    def _handle_lines(self, lines: List[str]) -> List[StreamEvent]:
        events: List[StreamEvent] = []
        for line in lines:
            event = parse_data_line(line.rstrip("\r"))
            if event is None:
                continue
            if isinstance(event, Malformed):
                self.malformed_count += 1
                logger.debug(f"Dropping unrecognised stream frame: {event.raw[:100]}")
                continue
            if isinstance(event, Done):
                self.done_seen = True
            events.append(event)
        return events


async def iter_text_deltas(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """
    Decode an async byte stream into non-empty text deltas.

    The stream ends when the byte source is exhausted; an in-band [DONE]
    frame does not stop iteration.
    """
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            if isinstance(event, TextDelta) and event.text:
                yield event.text
    for event in decoder.flush():
        if isinstance(event, TextDelta) and event.text:
            yield event.text

    if decoder.malformed_count:
        logger.info(f"Stream finished with {decoder.malformed_count} unrecognised frame(s) dropped")
