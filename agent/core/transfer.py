# Background fetching of remote resources for UploadFile commands
import asyncio
import logging
import os
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Coroutine, Dict, List, Optional

import aiohttp  # HTTP client for remote resources
from pydantic import BaseModel

from agent.core.executor import describe_error
from shared.models import (
    UPLOAD_FINISHED,
    StatusUpdateMessage,
    UploadFileMessage,
    UploadProgressMessage,
)

logger = logging.getLogger(__name__)

UPLOAD_OPERATION = "File upload (downloading from web)"
DEFAULT_PROGRESS_STEP = 5
DEFAULT_CHUNK_SIZE = 64 * 1024


class ProgressThrottle:
    """
    Reduces a stream of percentages to threshold crossings.

    ``update`` returns the highest multiple of ``step`` crossed since the last
    reported value, or None when no new threshold was reached. Comparing the
    previous and current values means a jump over several thresholds still
    produces a report.
    """

    def __init__(self, step: int = DEFAULT_PROGRESS_STEP):
        if step <= 0:
            raise ValueError("step must be positive")
        self.step = step
        self._last: Optional[int] = None

    def update(self, percentage: int) -> Optional[int]:
        percentage = max(0, min(100, percentage))
        threshold = percentage - percentage % self.step
        if self._last is not None and threshold <= self._last:
            return None
        self._last = threshold
        return threshold


class UriFetcher:
    """Streams a remote resource to a local file with aiohttp."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, timeout: Optional[float] = None):
        self.chunk_size = chunk_size
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self, uri: str, path: str, on_progress: Callable[[int], None]):
        """
        Download ``uri`` into ``path``.

        ``on_progress`` receives an integer percentage after every chunk when
        the server announces a Content-Length; it is called with 0 before the
        first chunk. Chunks are written from a worker thread so a slow disk
        never stalls the event loop. A file this call has opened is removed on
        failure; a file that could not be opened is left untouched.
        """
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(uri) as response:
                response.raise_for_status()
                total = response.content_length
                received = 0
                if total:
                    on_progress(0)
                f = await asyncio.to_thread(open, path, "wb")
                try:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await asyncio.to_thread(f.write, chunk)
                        received += len(chunk)
                        if total:
                            on_progress(int(received * 100 / total))
                    await asyncio.to_thread(f.close)
                except BaseException:
                    f.close()
                    if os.path.exists(path):
                        os.remove(path)
                    raise


class BackgroundRunner:
    """
    Runs coroutines on a private event loop in a daemon thread.

    ``submit`` is callable from any thread and returns a ``concurrent.futures``
    future that can be waited on or cancelled independently. ``stop`` cancels
    whatever is still running and lets it unwind before the loop shuts down.
    """

    def __init__(self, name: str = "agent-background"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self):
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()
        self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        self._loop.close()

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._loop.is_closed()

    def submit(self, coro: Coroutine) -> Future:
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    async def _cancel_pending(self):
        tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def stop(self, timeout: float = 5.0):
        if not self.running:
            return
        try:
            self.submit(self._cancel_pending()).result(timeout)
        except FutureTimeoutError:
            logger.warning(f"Background tasks still running after {timeout}s, stopping anyway")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)


class UploadWorker:
    """
    Executes UploadFile commands outside the receive loop.

    All reports go through ``send``, which must be thread-safe:
    ``UploadProgressMessage`` on each progress threshold, then either a final
    ``UploadProgressMessage`` with ``percentage=-1`` or a failed
    ``StatusUpdateMessage``. Uploads are not cancelled on disconnect.

    Operation ids are not unique (``-1`` marks every untracked upload), so
    each id maps to all of its in-flight futures.
    """

    def __init__(
        self,
        send: Callable[[BaseModel], None],
        runner: BackgroundRunner,
        fetcher: Optional[UriFetcher] = None,
        progress_step: int = DEFAULT_PROGRESS_STEP,
    ):
        self.send = send
        self.runner = runner
        self.fetcher = fetcher or UriFetcher()
        self.progress_step = progress_step
        self._active: Dict[int, List[Future]] = {}
        self._lock = threading.Lock()

    @property
    def active(self) -> Dict[int, List[Future]]:
        with self._lock:
            return {operation_id: list(futures) for operation_id, futures in self._active.items()}

    def start(self, message: UploadFileMessage) -> Future:
        logger.info(f"Upload {message.operation_id}: fetching {message.uri} into {message.path}")
        future = self.runner.submit(self._upload(message))
        with self._lock:
            self._active.setdefault(message.operation_id, []).append(future)
        future.add_done_callback(lambda done: self._forget(message.operation_id, done))
        return future

    def cancel(self, operation_id: int) -> bool:
        """Cancel every in-flight upload carrying ``operation_id``."""
        with self._lock:
            futures = list(self._active.get(operation_id, []))
        return any([future.cancel() for future in futures])

    def cancel_all(self):
        with self._lock:
            futures = [future for group in self._active.values() for future in group]
        for future in futures:
            future.cancel()

    def _forget(self, operation_id: int, future: Future):
        with self._lock:
            futures = self._active.get(operation_id)
            if futures is None:
                return
            if future in futures:
                futures.remove(future)
            if not futures:
                del self._active[operation_id]

    def _progress(self, message: UploadFileMessage, percentage: int):
        self.send(
            UploadProgressMessage(
                operation_id=message.operation_id,
                path=message.path,
                uri=message.uri,
                percentage=percentage,
            )
        )

    async def _upload(self, message: UploadFileMessage):
        throttle = ProgressThrottle(self.progress_step)

        def on_progress(percentage: int):
            threshold = throttle.update(percentage)
            if threshold is not None:
                self._progress(message, threshold)

        try:
            await self.fetcher.fetch(message.uri, message.path, on_progress)
        except asyncio.CancelledError:
            logger.info(f"Upload {message.operation_id} cancelled")
            raise
        except Exception as e:
            logger.warning(f"Upload {message.operation_id} failed: {e}")
            self.send(
                StatusUpdateMessage(
                    operation_id=message.operation_id,
                    operation_name=UPLOAD_OPERATION,
                    success=False,
                    message=describe_error(e),
                )
            )
            return

        logger.info(f"Upload {message.operation_id} finished: {message.path}")
        self._progress(message, UPLOAD_FINISHED)
