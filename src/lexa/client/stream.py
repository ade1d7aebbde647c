"""Server-sent-event decoding for streamed chat completions.

Hidden design decisions:
- How raw transport chunks of arbitrary size are reassembled into lines
- Which lines carry content and which are heartbeats or sentinels
- How a record that fails to parse is re-buffered instead of dropped

The wire format is the OpenAI-compatible delta stream:

    data: {"choices":[{"delta":{"content":"Hi"}}]}

    data: [DONE]
"""

import codecs
import json
import logging
from collections.abc import AsyncIterator, Iterator
from enum import Enum
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class StreamDecoder:
    """Turns byte chunks into complete text lines.

    Trailing bytes that do not yet form a complete line stay in the
    buffer until more data arrives or the stream ends. Blank lines and
    comment lines (starting with ':') are never surfaced.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def buffer(self) -> str:
        """Text received but not yet returned as a line."""
        return self._buffer

    def feed(self, chunk: bytes) -> None:
        """Append a raw chunk. Multi-byte characters may span chunks."""
        if chunk:
            self._buffer += self._decoder.decode(chunk)

    def next_line(self) -> str | None:
        """Pop the next complete line, or None if no complete line is buffered."""
        while True:
            index = self._buffer.find("\n")
            if index == -1:
                return None
            line = self._buffer[:index]
            self._buffer = self._buffer[index + 1:]
            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip() or line.startswith(":"):
                continue
            return line

    def lines(self) -> Iterator[str]:
        """Yield every complete line currently buffered."""
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line

    def push_back(self, line: str) -> None:
        """Re-attach a line (and its newline) in front of the buffer."""
        self._buffer = f"{line}\n{self._buffer}"

    def finish(self) -> None:
        """Flush the decoder and terminate a trailing partial line."""
        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"


class EventKind(str, Enum):
    """Classification of a decoded line."""

    DELTA = "delta"            # Parsed record, may or may not carry text
    DONE = "done"              # Terminal sentinel, informational only
    IGNORED = "ignored"        # Not a data line
    INCOMPLETE = "incomplete"  # Data line whose payload did not parse


class StreamEvent(NamedTuple):
    kind: EventKind
    text: str | None = None


def _delta_content(record: Any) -> str | None:
    if not isinstance(record, dict):
        return None
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


def parse_event(line: str) -> StreamEvent:
    """Classify one decoded line and extract its incremental text."""
    if not line.startswith(DATA_PREFIX):
        return StreamEvent(EventKind.IGNORED)

    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return StreamEvent(EventKind.DONE)

    try:
        record = json.loads(payload)
    except json.JSONDecodeError:
        return StreamEvent(EventKind.INCOMPLETE)
    return StreamEvent(EventKind.DELTA, _delta_content(record))


class DeltaStream:
    """Incremental parser from raw chunks to content tokens.

    States per line: accumulate -> split on newline -> parse ->
    on failure keep the line pending. A pending record is joined with the
    following line when that line is a continuation (no data prefix), and
    re-attached to the buffer when no following line has arrived yet.
    A pending record followed by a new data line is malformed and dropped.
    """

    def __init__(self) -> None:
        self._decoder = StreamDecoder()
        self.done = False
        self.discarded = 0

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a transport chunk and return the tokens it completed."""
        self._decoder.feed(chunk)
        return self._drain(final=False)

    def finish(self) -> list[str]:
        """Process whatever remains once the transport has closed."""
        self._decoder.finish()
        return self._drain(final=True)

    def _drain(self, final: bool) -> list[str]:
        tokens: list[str] = []
        pending: str | None = None

        while True:
            line = self._decoder.next_line()
            if line is None:
                if pending is not None:
                    if final:
                        self._discard(pending)
                    else:
                        self._decoder.push_back(pending)
                return tokens

            if pending is not None:
                if line.startswith(DATA_PREFIX):
                    self._discard(pending)
                else:
                    line = f"{pending}\n{line}"
                pending = None

            event = parse_event(line)
            if event.kind is EventKind.INCOMPLETE:
                pending = line
            elif event.kind is EventKind.DONE:
                self.done = True
            elif event.kind is EventKind.DELTA and event.text:
                tokens.append(event.text)

    def _discard(self, line: str) -> None:
        self.discarded += 1
        logger.debug("Dropping unparseable stream record: %.80s", line)


async def iter_deltas(chunks: AsyncIterator[bytes]) -> AsyncIterator[str]:
    """Yield content tokens from an async iterator of raw byte chunks."""
    stream = DeltaStream()
    async for chunk in chunks:
        for token in stream.feed(chunk):
            yield token
    for token in stream.finish():
        yield token
