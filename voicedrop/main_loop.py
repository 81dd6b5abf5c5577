"""Single-owner event loop that serializes work onto one thread."""

import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class MainLoop:
    """Queue of callables executed on the thread that drains it.

    Background threads (audio, speech backend, HTTP, keyboard) must hand
    anything that touches session state or persisted settings to
    :meth:`post` instead of running it themselves.
    """

    def __init__(self):
        self._queue: "queue.Queue[Optional[tuple]]" = queue.Queue()
        self._stop_event = threading.Event()
        self.owner_thread: Optional[threading.Thread] = None

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)`` on the main loop. Safe from any thread."""
        self._queue.put((fn, args))

    def run_pending(self) -> int:
        """Run everything queued so far on the calling thread.

        Returns:
            Number of callables executed
        """
        count = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return count
            if item is not None:
                self._run(*item)
                count += 1

    def run_forever(self, poll_interval: float = 0.1) -> None:
        """Drain the queue until :meth:`stop` is called."""
        self.owner_thread = threading.current_thread()
        logger.debug(f"Main loop running on {self.owner_thread.name}")
        while not self._stop_event.is_set():
            try:
                item = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            if item is None:
                break
            self._run(*item)
        self.run_pending()
        logger.debug("Main loop stopped")

    def stop(self) -> None:
        self._stop_event.set()
        self._queue.put(None)

    def _run(self, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception as e:
            logger.error(f"Unhandled exception in main loop task {getattr(fn, '__name__', fn)}: {e}",
                         exc_info=True)
