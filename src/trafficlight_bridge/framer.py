"""
Line framing for the inbound serial stream.

Turns arbitrarily fragmented byte chunks into complete, newline-delimited
text lines.  Knows nothing about what a line means — that's
:mod:`protocol`'s job.

Typical usage (via :class:`~trafficlight_bridge.session.BridgeSession`)::

    framer = LineFramer()
    for line in framer.feed(transport.read_chunk()):
        record = parse_status(line, previous)
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterator

from .constants import LINE_DELIMITER
from .exceptions import FrameOverflowError

logger = logging.getLogger(__name__)


class LineFramer:
    """Accumulates decoded text and yields each newline-terminated line.

    Text after the last delimiter is kept for the next :meth:`feed`, so a
    record split across reads (or several records coalesced into one
    read) comes out exactly as if the stream had arrived in one piece.

    Args:
        strip: Strip surrounding whitespace (including a trailing ``\\r``)
            from each emitted line.
        max_buffer: Optional cap, in characters, on the unterminated
            remainder.  ``None`` (the default) leaves the buffer unbounded:
            a peer that never sends a newline grows it without limit.
    """

    def __init__(self, strip: bool = True, max_buffer: int | None = None) -> None:
        if max_buffer is not None and max_buffer <= 0:
            raise ValueError(f"max_buffer must be positive, got {max_buffer}")
        self.strip = strip
        self.max_buffer = max_buffer
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        """The unterminated text waiting for its delimiter."""
        return self._buffer

    def feed(self, chunk: bytes) -> Iterator[str]:
        """Append *chunk* and return an iterator over the lines it completes.

        The chunk is decoded and buffered immediately; only the line
        extraction is lazy.  Lines not consumed before the next call are
        still emitted, in order, by a later iterator.

        Raises:
            FrameOverflowError: If ``max_buffer`` is set and the remainder
                after the last delimiter exceeds it.  The oversized
                remainder is discarded.
        """
        self._buffer += self._decoder.decode(chunk)
        if self.max_buffer is not None:
            tail = len(self._buffer) - self._buffer.rfind(LINE_DELIMITER) - 1
            if tail > self.max_buffer:
                self._buffer = self._buffer[: len(self._buffer) - tail]
                raise FrameOverflowError(
                    f"No line delimiter within {self.max_buffer} characters; "
                    f"discarded {tail} buffered characters"
                )
        return self._drain()

    def reset(self) -> None:
        """Drop any buffered partial line and decoder state."""
        self._buffer = ""
        self._decoder.reset()

    def _drain(self) -> Iterator[str]:
        while True:
            idx = self._buffer.find(LINE_DELIMITER)
            if idx == -1:
                return
            line = self._buffer[:idx]
            self._buffer = self._buffer[idx + 1 :]
            yield line.strip() if self.strip else line
