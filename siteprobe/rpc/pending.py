"""Instance-owned table of in-flight requests."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from siteprobe.utils.exceptions import RpcTimeoutError


@dataclass(slots=True)
class PendingRequest:
    """Bookkeeping for one in-flight call awaiting its response."""

    id: int
    method: str
    future: asyncio.Future[Any]
    timeout_seconds: float
    started_at: float = field(default_factory=time.monotonic)
    timer: asyncio.TimerHandle | None = None

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


class PendingCalls:
    """
    Id counter plus id -> PendingRequest mapping.

    Only touched from the event loop thread. Ids are minted from a counter
    that is never reset, so an id is never reused while pending.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self._entries: dict[int, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, req_id: object) -> bool:
        return req_id in self._entries

    @property
    def last_id(self) -> int:
        return self._next_id

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def register(self, method: str, timeout_seconds: float) -> PendingRequest:
        """Mint an id, store the entry and arm its timeout."""
        loop = asyncio.get_running_loop()
        req_id = self.next_id()
        entry = PendingRequest(
            id=req_id,
            method=method,
            future=loop.create_future(),
            timeout_seconds=timeout_seconds,
        )
        self._entries[req_id] = entry
        entry.timer = loop.call_later(timeout_seconds, self._expire, req_id)
        return entry

    def _expire(self, req_id: int) -> None:
        entry = self._entries.pop(req_id, None)
        if entry is None:
            return
        logger.warning("Request {} ({}) timed out after {:.1f}s", req_id, entry.method, entry.elapsed())
        if not entry.future.done():
            entry.future.set_exception(RpcTimeoutError(entry.method, entry.timeout_seconds, entry.elapsed()))

    def pop(self, req_id: Any) -> PendingRequest | None:
        """Remove and return the entry for req_id, disarming its timer."""
        # bool is an int subclass and True == 1
        if isinstance(req_id, bool) or not isinstance(req_id, int):
            return None
        entry = self._entries.pop(req_id, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()
        return entry

    def resolve(self, req_id: Any, payload: dict[str, Any]) -> bool:
        """Deliver a response payload; False when no entry matches."""
        entry = self.pop(req_id)
        if entry is None:
            return False
        if not entry.future.done():
            entry.future.set_result(payload)
        return True

    def discard(self, req_id: int) -> None:
        self.pop(req_id)

    def reject_all(self, make_exc: Callable[[], BaseException]) -> int:
        """Fail every outstanding entry with a fresh exception and clear the table."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(make_exc())
        return len(entries)
