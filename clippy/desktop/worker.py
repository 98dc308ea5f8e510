"""
Background worker - an asyncio loop living in its own thread.

tkinter owns the main thread, so every coroutine (LLM calls, speech,
widgets, database) runs on this loop. Results never touch the UI
directly: they are turned into events and put on a queue.Queue that
the frame callback drains.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from queue import Queue
from typing import Any, Callable, Coroutine, Optional

from .events import TaskFailed

logger = logging.getLogger(__name__)


class BackgroundWorker:
    """
    Runs coroutines submitted from the UI thread.

    Attributes:
        events: Queue of events for the UI thread
    """

    def __init__(self, events: Optional[Queue] = None):
        self.events: Queue = events if events is not None else Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running and self._loop is not None

    def start(self, timeout: float = 5.0) -> None:
        """Start the loop thread and wait until it accepts work."""
        if self._running:
            return

        self._running = True
        self._thread = threading.Thread(target=self._run_loop, name="clippy-worker", daemon=True)
        self._thread.start()
        if not self._ready.wait(timeout):
            raise RuntimeError("Background loop did not start")

    def _run_loop(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)

        try:
            self._loop.run_forever()
        finally:
            # Cancel whatever is still pending (speech, widgets)
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()
            logger.debug("Background loop closed")

    def submit(
        self,
        coro: Coroutine,
        on_result: Optional[Callable[[Any], Any]] = None,
        name: str = "task",
    ) -> Optional[Future]:
        """
        Schedule `coro` on the worker loop.

        `on_result` maps the coroutine's result to an event for the UI
        (None means nothing to report). Exceptions become TaskFailed
        events. Returns None when the worker is not running.
        """
        if not self.running:
            coro.close()
            logger.warning(f"Worker not running, dropped {name}")
            return None

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(lambda f: self._deliver(f, on_result, name))
        return future

    def _deliver(self, future: Future, on_result, name: str) -> None:
        if future.cancelled():
            logger.debug(f"{name} cancelled")
            return

        error = future.exception()
        if error is not None:
            logger.error(f"❌ {name} failed: {error!r}")
            self.events.put(TaskFailed(name, str(error) or type(error).__name__))
            return

        if on_result is None:
            return
        event = on_result(future.result())
        if event is not None:
            self.events.put(event)

    def run(self, coro: Coroutine, timeout: float = 5.0) -> Any:
        """Run `coro` on the worker and block for its result (startup/shutdown only)."""
        if not self.running:
            coro.close()
            raise RuntimeError("Worker not running")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def stop(self, cleanup: Optional[Coroutine] = None, timeout: float = 2.0) -> None:
        """
        Stop the loop and join the thread.

        Args:
            cleanup: Optional coroutine run first (closing clients, database)
            timeout: Seconds to wait for cleanup and for the thread
        """
        if not self._running:
            if cleanup is not None:
                cleanup.close()
            return

        if cleanup is not None:
            try:
                self.run(cleanup, timeout=timeout)
            except Exception as e:
                logger.warning(f"Cleanup did not finish: {e!r}")

        self._running = False
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("👋 Background worker stopped")
