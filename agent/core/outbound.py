# Outbound message queue shared by the loop thread and background uploads
import logging
import threading
from collections import deque
from typing import Callable, Deque

from pydantic import BaseModel

from shared import codec

logger = logging.getLogger(__name__)

# Drain period of the outbound queue
SEND_INTERVAL_MS = 10


class OutboundQueue:
    """
    Thread-safe FIFO of encoded messages waiting for the transport.

    Any thread may enqueue; only the loop thread drains. Messages are encoded
    at enqueue time so background producers never touch the transport. Delivery
    is best effort: a buffer the transport refuses is dropped, not retried.
    """

    def __init__(self):
        self._items: Deque[bytes] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, message: BaseModel):
        data = codec.encode(message)
        with self._lock:
            self._items.append(data)

    def drain(self, send: Callable[[bytes], bool]) -> int:
        """
        Offer every message queued when the drain starts to ``send``.

        Messages enqueued while draining wait for the next drain.

        Args:
            send: Non-blocking send returning whether the buffer was accepted

        Returns:
            int: Number of buffers the transport accepted
        """
        with self._lock:
            pending = len(self._items)

        sent = 0
        while pending > 0:
            with self._lock:
                if not self._items:
                    break
                data = self._items.popleft()
            pending -= 1
            if send(data):
                sent += 1
            else:
                logger.debug(f"Transport refused a {len(data)} byte message - dropped")
        return sent

    def clear(self) -> int:
        """Discard all queued messages. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._items)
            self._items.clear()
        if dropped:
            logger.info(f"Discarded {dropped} unsent message(s)")
        return dropped
