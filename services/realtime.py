# app/services/realtime.py
import asyncio
from typing import Dict, Set, Optional, Any
import logging

from core.constants import REALTIME_TABLES

logger = logging.getLogger(__name__)


class ChangeFeed:
    """In-process pub/sub of row changes, keyed by table name."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {table: set() for table in REALTIME_TABLES}

    def subscribe(self, table: str) -> asyncio.Queue:
        if table not in self._subscribers:
            raise ValueError(f"Unknown table: {table}")
        queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[table].add(queue)
        return queue

    def unsubscribe(self, table: str, queue: asyncio.Queue):
        self._subscribers.get(table, set()).discard(queue)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, ()))

    def publish(self, table: str, action: str, row_id: Any, data: Optional[dict] = None):
        """Fan an event out to every subscriber; slow consumers drop events."""
        event = {"table": table, "action": action, "id": str(row_id)}
        if data:
            event["data"] = data

        for queue in list(self._subscribers.get(table, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Realtime subscriber on {table} is full, dropping {action} {row_id}")


change_feed = ChangeFeed()
