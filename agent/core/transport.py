# ZeroMQ transport to the controller
import logging
from typing import Optional

import zmq  # Auto-reconnecting message sockets

logger = logging.getLogger(__name__)


class ZmqTransport:
    """
    Point-to-point channel to the controller over a DEALER socket.

    ZeroMQ handles the low-level reconnection; this class only exposes the
    non-blocking primitives the agent loop needs. One message is one framed
    buffer; when a multipart message arrives, its last frame is the payload.
    The socket never lingers on close.
    """

    def __init__(self, context: Optional[zmq.Context] = None):
        self.context = context or zmq.Context.instance()
        self.socket = self.context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.address: Optional[str] = None
        self._poller = zmq.Poller()
        self._poller.register(self.socket, zmq.POLLIN)

    def connect(self, address: str):
        """Connect to ``address``, dropping any previous endpoint first."""
        if self.address is not None:
            try:
                self.socket.disconnect(self.address)
            except zmq.ZMQError as e:
                logger.debug(f"Disconnect from {self.address} failed: {e}")
        self.socket.connect(address)
        self.address = address
        logger.info(f"Connecting to controller at {address}")

    def try_send(self, data: bytes) -> bool:
        try:
            self.socket.send(data, zmq.NOBLOCK)
            return True
        except zmq.Again:
            return False
        except zmq.ZMQError as e:
            logger.debug(f"Send failed: {e}")
            return False

    def poll(self, timeout_ms: int) -> bool:
        """Wait up to ``timeout_ms`` for an inbound message."""
        return bool(self._poller.poll(timeout_ms))

    def receive(self) -> Optional[bytes]:
        """Return the next inbound buffer, or None if nothing is waiting."""
        try:
            frames = self.socket.recv_multipart(zmq.NOBLOCK)
        except zmq.Again:
            return None
        return frames[-1] if frames else None

    def close(self):
        if not self.socket.closed:
            self._poller.unregister(self.socket)
            self.socket.close(linger=0)
