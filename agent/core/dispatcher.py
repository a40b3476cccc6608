# Routing of inbound buffers to command handlers
import logging
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from agent.core.connection import ConnectionMonitor
from shared import codec
from shared.models import MessageType

logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], None]


class CommandDispatcher:
    """
    Turns one fully received buffer into at most one handler call.

    Every buffer counts as link activity, even one that cannot be decoded.
    Undecodable buffers and variants without a handler are ignored so that
    controllers speaking a newer protocol do not break older agents.
    """

    def __init__(self, monitor: ConnectionMonitor, handlers: Dict[MessageType, Handler]):
        self.monitor = monitor
        # Keyed by wire value so lookups match the decoded ``type`` string
        self.handlers = {MessageType(kind).value: handler for kind, handler in handlers.items()}

    def dispatch(self, raw: bytes) -> Optional[BaseModel]:
        """
        Decode ``raw`` and run the matching handler.

        Returns:
            The decoded message if a handler ran, otherwise None
        """
        self.monitor.on_activity()

        try:
            message = codec.decode(raw)
        except codec.DecodeError as e:
            logger.debug(f"Ignoring undecodable buffer ({len(raw)} bytes): {e}")
            return None

        handler = self.handlers.get(message.type)
        if handler is None:
            logger.debug(f"No handler for message type '{message.type}' - ignored")
            return None

        handler(message)
        return message
