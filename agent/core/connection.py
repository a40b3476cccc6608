# Liveness tracking for the controller link
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Silence on the link longer than this marks it stale
DISCONNECTION_TIMEOUT_MS = 5000


class ConnectionMonitor:
    """
    Decides whether the logical link to the controller is alive.

    Any fully received inbound message counts as proof of life, so a busy
    controller does not need to send dedicated heartbeats. When the link has
    been silent for longer than the timeout while connected, the monitor flips
    to disconnected and calls ``on_disconnected`` once; it stays disconnected
    until the next inbound message.

    The monitor starts disconnected, with the activity timestamp taken at
    construction time.
    """

    def __init__(
        self,
        timeout_ms: int = DISCONNECTION_TIMEOUT_MS,
        on_disconnected: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._timeout = timeout_ms / 1000.0
        self._on_disconnected = on_disconnected
        self._clock = clock
        self._connected = False
        self._last_received_at = clock()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def last_received_at(self) -> float:
        return self._last_received_at

    def on_activity(self, now: Optional[float] = None):
        """Record inbound traffic and mark the link alive."""
        self._last_received_at = self._clock() if now is None else now
        if not self._connected:
            logger.info("Controller link is alive")
        self._connected = True

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Check the link for staleness.

        Args:
            now: Monotonic timestamp in seconds, defaults to the monitor clock

        Returns:
            bool: True if this tick transitioned the link to disconnected
        """
        if now is None:
            now = self._clock()

        if not self._connected or now - self._last_received_at <= self._timeout:
            return False

        logger.warning(
            f"No traffic from controller for {now - self._last_received_at:.1f}s - reconnecting"
        )
        self._last_received_at = now
        self._connected = False
        if self._on_disconnected is not None:
            self._on_disconnected()
        return True
