# services/holding_events.py
"""
In-process change notification for a user's holdings.

Ledger writes publish after commit; the /holdings/stream endpoint subscribes
and re-sends the ordered holding list on every event. Scope is a single
worker process. Publishing is thread-safe: sync routes run in the
threadpool, so events are handed to each subscriber's loop.
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

logger = logging.getLogger(__name__)

_Subscriber = Tuple[asyncio.AbstractEventLoop, asyncio.Queue]


class HoldingEventBroker:
    def __init__(self) -> None:
        self._subscribers: Dict[int, Dict[int, _Subscriber]] = defaultdict(dict)

    @contextmanager
    def subscribe(self, user_id: int) -> Iterator[asyncio.Queue]:
        """Must be entered from inside a running event loop."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[user_id][id(queue)] = (loop, queue)
        try:
            yield queue
        finally:
            subs = self._subscribers.get(user_id)
            if subs is not None:
                subs.pop(id(queue), None)
                if not subs:
                    self._subscribers.pop(user_id, None)

    def publish(self, user_id: int, event: Dict[str, Any]) -> int:
        subs = list((self._subscribers.get(user_id) or {}).values())
        for loop, queue in subs:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(queue.put_nowait, event)
        if subs:
            logger.debug("holding_event action=%s subscribers=%d", event.get("action"), len(subs))
        return len(subs)

    def subscriber_count(self, user_id: int) -> int:
        return len(self._subscribers.get(user_id) or {})


broker = HoldingEventBroker()
