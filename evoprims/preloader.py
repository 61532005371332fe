"""Background prefetching of generated values."""

import logging
import queue
import threading
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How often blocked calls re-check the running flag, in seconds
POLL_INTERVAL = 0.05


class Preloader(Generic[T]):
    """Runs ``generate_fn`` on a daemon thread, keeping up to ``pool_size`` results ready.

    ``get_next`` blocks until a value is available; ``get_next_or_default`` returns
    ``default`` when nothing is queued. An exception raised by ``generate_fn`` stops
    the worker and is re-raised from the next ``get_next`` call.
    """

    def __init__(self, pool_size: int, generate_fn: Callable[[], T], default: Optional[T] = None):
        if pool_size < 1:
            raise ValueError(f"pool_size must be positive, got {pool_size}")
        self.default = default
        self._generate_fn = generate_fn
        self._queue: "queue.Queue[T]" = queue.Queue(maxsize=pool_size)
        self._running = threading.Event()
        self._running.set()
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="preloader", daemon=True)
        self._thread.start()
        logger.debug(f"Spawned preloader thread {self._thread.name}")

    def _run(self):
        logger.debug("Preloader thread starting up")
        try:
            while self._running.is_set():
                item = self._generate_fn()
                while self._running.is_set():
                    try:
                        self._queue.put(item, timeout=POLL_INTERVAL)
                        break
                    except queue.Full:
                        continue
        except Exception as e:
            logger.exception("Preloader generator failed")
            self._error = e
        logger.debug("Preloader thread shutting down")

    @property
    def running(self) -> bool:
        return self._running.is_set() and self._thread.is_alive()

    def _check_worker(self):
        if self._error is not None:
            raise RuntimeError("Preloader generator failed") from self._error
        if not self._thread.is_alive():
            raise RuntimeError("Preloader thread is not running")

    def get_next(self) -> T:
        while True:
            try:
                return self._queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                self._check_worker()

    def get_next_or_default(self) -> T:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            if self._error is not None:
                self._check_worker()
            return self.default

    def close(self):
        """Stop the worker, discard anything queued and wait for the thread to exit."""
        if not self._running.is_set():
            return
        logger.info("Shutting down preloader thread")
        self._running.clear()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        self._thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
