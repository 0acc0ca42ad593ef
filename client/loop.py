"""
Single execution context for the client.

User actions and the periodic sync both run on the loop thread, so the
record cache is only ever mutated from one place. Timers never call into
the client themselves; they post a callback onto the loop.
"""

import logging
import queue
import threading
from typing import TYPE_CHECKING, Callable, List, Optional

from vaultsync import SyncResult, TransportError

from .config import SYNC_INTERVAL_SECONDS

if TYPE_CHECKING:
    from .client import VaultClient

logger = logging.getLogger(__name__)


class EventLoop:
    def __init__(self):
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._timers: List[threading.Timer] = []
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    def post(self, fn: Callable[[], None]) -> None:
        """Schedule fn on the loop thread. Safe to call from any thread."""
        self._queue.put(fn)

    def call_every(self, interval: float, fn: Callable[[], None]) -> None:
        """Post fn every interval seconds until the loop stops."""

        def tick() -> None:
            if self._stopped.is_set():
                return
            self.post(fn)
            self._arm(interval, tick)

        self._arm(interval, tick)

    def _arm(self, interval: float, tick: Callable[[], None]) -> None:
        with self._lock:
            if self._stopped.is_set():
                return
            timer = threading.Timer(interval, tick)
            timer.daemon = True
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
            timer.start()

    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("Loop callback failed")

    def run_pending(self) -> int:
        """Run everything queued so far without blocking. Returns how many ran."""
        ran = 0
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return ran
            self._run(fn)
            ran += 1

    def run_forever(self, poll_interval: float = 0.5) -> None:
        while not self._stopped.is_set():
            try:
                fn = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            self._run(fn)

    def stop(self) -> None:
        with self._lock:
            self._stopped.set()
            for t in self._timers:
                t.cancel()
            self._timers = []

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()


class SyncScheduler:
    """Periodic full sync of a VaultClient, marshaled onto an EventLoop."""

    def __init__(self, client: "VaultClient", loop: EventLoop, interval: float = SYNC_INTERVAL_SECONDS,
                 on_result: Optional[Callable[[SyncResult], None]] = None):
        self._client = client
        self._loop = loop
        self._interval = interval
        self._on_result = on_result
        self.last_result: Optional[SyncResult] = None
        self.last_error: Optional[Exception] = None

    def start(self) -> None:
        self._loop.call_every(self._interval, self.run_once)

    def trigger(self) -> None:
        """Sync as soon as the loop is free (e.g. on user request)."""
        self._loop.post(self.run_once)

    def run_once(self) -> None:
        try:
            result = self._client.sync()
        except TransportError as e:
            # Background sync: log and retry on the next tick
            self.last_error = e
            logger.warning("Background sync failed: %s", e)
            return
        self.last_error = None
        self.last_result = result
        if self._on_result is not None:
            self._on_result(result)
