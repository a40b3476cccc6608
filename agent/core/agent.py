# Core imports for agent functionality
import logging
import threading
import time
from typing import Callable, Optional

from pydantic import BaseModel

from agent.config import AgentSettings
from agent.core.connection import ConnectionMonitor
from agent.core.dispatcher import CommandDispatcher
from agent.core.executor import OperationExecutor
from agent.core.filesystem import FileSystem
from agent.core.identity import HostIdentity
from agent.core.outbound import OutboundQueue
from agent.core.transfer import UPLOAD_OPERATION, BackgroundRunner, UploadWorker, UriFetcher
from agent.core.transport import ZmqTransport
from shared.models import (
    DeleteFileMessage,
    DoYourDutyMessage,
    DownloadFilePartMessage,
    MessageType,
    NavigateToFolderMessage,
    PingMessage,
    PongMessage,
    UploadFileMessage,
)

logger = logging.getLogger(__name__)

NAVIGATION_OPERATION = "Folder navigation"
DELETION_OPERATION = "File deletion"
DOWNLOAD_OPERATION = "File download"


class Agent:
    """
    Remote command agent holding a single logical connection to a controller.

    The Agent is the composition root. It owns:
    - The transport socket and the outbound queue it drains
    - The connection monitor that detects a stale link and reconnects
    - The dispatcher routing inbound commands to the handlers below
    - The executor turning local operation outcomes into status reports
    - The upload worker running fetches on a background event loop

    Event model:
    One loop thread multiplexes "transport receivable" and a periodic timer
    (every ``send_interval_ms``), handling one event at a time. Command handlers
    run synchronously on that thread, except uploads, which only communicate
    back by enqueueing messages.
    """

    def __init__(
        self,
        settings: Optional[AgentSettings] = None,
        transport=None,
        filesystem: Optional[FileSystem] = None,
        identity: Optional[HostIdentity] = None,
        runner: Optional[BackgroundRunner] = None,
        fetcher: Optional[UriFetcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or AgentSettings()
        self.transport = transport or ZmqTransport()
        self.clock = clock

        self.filesystem = filesystem or FileSystem(self.settings.download_part_size)
        self.identity = identity or HostIdentity()
        # Identity is collected once; every (re)connect re-sends the same snapshot
        self.greeting = self.identity.greeting()

        self.outbound = OutboundQueue()
        self.monitor = ConnectionMonitor(
            self.settings.disconnection_timeout_ms,
            on_disconnected=self._reconnect,
            clock=clock,
        )
        self.executor = OperationExecutor(self.send)
        self.uploads = UploadWorker(
            self.send,
            runner or BackgroundRunner(),
            fetcher or UriFetcher(self.settings.upload_chunk_size),
            self.settings.progress_step,
        )
        self.dispatcher = CommandDispatcher(
            self.monitor,
            {
                MessageType.DO_YOUR_DUTY: self._do_your_duty,
                MessageType.PING: self._ping,
                MessageType.NAVIGATE_TO_FOLDER: self._navigate_to_folder,
                MessageType.DOWNLOAD_FILE_PART: self._download_file_part,
                MessageType.UPLOAD_FILE: self._upload_file,
                MessageType.DELETE_FILE: self._delete_file,
            },
        )

        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def connected(self) -> bool:
        return self.monitor.connected

    def send(self, message: BaseModel):
        """Queue a message for the controller. Safe from any thread."""
        self.outbound.enqueue(message)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self):
        """Connect to the controller and queue the greeting."""
        self.transport.connect(self.settings.controller_address)
        self._greet()

    def _reconnect(self):
        self.outbound.clear()
        self.connect()

    def on_receivable(self, raw: bytes):
        """Handle one complete inbound buffer."""
        self.dispatcher.dispatch(raw)

    def on_timer(self, now: Optional[float] = None):
        """Periodic pulse: drain the outbound queue, then check link liveness."""
        self.outbound.drain(self.transport.try_send)
        self.monitor.tick(now)

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def start(self):
        """Connect and run the event loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self.connect()
        self._running.set()
        self._thread = threading.Thread(target=self._loop, name="agent-loop", daemon=True)
        self._thread.start()

    def run_forever(self):
        """Connect and run the event loop on the calling thread until stopped."""
        self.connect()
        self._running.set()
        self._loop()

    def stop(self, timeout: float = 5.0):
        """Stop the loop, cancel outstanding uploads and close the transport."""
        self._running.clear()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self.uploads.cancel_all()
        self.uploads.runner.stop()
        self.transport.close()
        logger.info("Agent stopped")

    def _loop(self):
        interval = self.settings.send_interval_ms / 1000.0
        next_tick = self.clock() + interval

        while self._running.is_set():
            timeout_ms = max(0, int((next_tick - self.clock()) * 1000))
            try:
                if self.transport.poll(timeout_ms):
                    raw = self.transport.receive()
                    if raw is not None:
                        self.on_receivable(raw)

                now = self.clock()
                if now >= next_tick:
                    self.on_timer(now)
                    next_tick = now + interval
            except Exception as e:
                # A single bad event must never stop the loop
                logger.exception(f"Agent loop error: {e}")

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _greet(self):
        self.send(self.greeting)

    def _do_your_duty(self, message: DoYourDutyMessage):
        logger.debug("DoYourDuty received")

    def _ping(self, message: PingMessage):
        self.send(PongMessage())

    def _navigate_to_folder(self, message: NavigateToFolderMessage):
        self.executor.run_simple(
            NAVIGATION_OPERATION,
            lambda: self.filesystem.navigate(message.path),
            lambda navigation: navigation.path,
        )

    def _delete_file(self, message: DeleteFileMessage):
        self.executor.run_simple(
            DELETION_OPERATION,
            lambda: self.filesystem.delete_file(message.file_path),
            lambda deletion: deletion.file_path,
        )

    def _download_file_part(self, message: DownloadFilePartMessage):
        def on_part(part: DownloadFilePartMessage):
            if part.current_part == part.total_part:
                self.executor.send_status(
                    message.operation_id,
                    DOWNLOAD_OPERATION,
                    True,
                    "Successfully downloaded : " + part.path,
                )

        self.executor.run_complex(
            message.operation_id,
            DOWNLOAD_OPERATION,
            lambda: self.filesystem.download_part(
                message.operation_id, message.current_part, message.path
            ),
            on_part,
        )

    def _upload_file(self, message: UploadFileMessage):
        try:
            self.uploads.start(message)
        except Exception as e:
            self.executor.send_failure(message.operation_id, UPLOAD_OPERATION, e)
