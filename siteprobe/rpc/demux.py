"""Split a chunked stdout byte stream into JSON response payloads."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

# Same line limit as the server's stdin reader.
MAX_LINE_BYTES = 4 * 1024 * 1024


class LineDemultiplexer:
    """Buffers chunks and yields one parsed object per complete line."""

    def __init__(self, max_log_chars: int = 200, max_line_bytes: int = MAX_LINE_BYTES):
        self._buffer = b""
        self._max_log_chars = max_log_chars
        self._max_line_bytes = max_line_bytes
        self._discarding = False

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes | str) -> list[dict[str, Any]]:
        """Append a chunk and return payloads for every completed line."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        if self._discarding and lines:
            # first line is the tail of the oversized one
            lines = lines[1:]
            self._discarding = False
        if self._discarding:
            self._buffer = b""
        elif len(self._buffer) > self._max_line_bytes:
            logger.warning(
                "Dropping response line over {} bytes: {}",
                self._max_line_bytes,
                self._buffer[: self._max_log_chars].decode("utf-8", errors="replace"),
            )
            self._buffer = b""
            self._discarding = True
        payloads: list[dict[str, Any]] = []
        for raw in lines:
            text = raw.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
            except json.JSONDecodeError:
                logger.warning("Failed to parse response: {}", text[: self._max_log_chars])
                continue
            if not isinstance(payload, dict):
                logger.debug("Ignoring non-object frame: {}", text[: self._max_log_chars])
                continue
            payloads.append(payload)
        return payloads

    def reset(self) -> bytes:
        """Drop and return any buffered partial line."""
        leftover, self._buffer = self._buffer, b""
        self._discarding = False
        return leftover
