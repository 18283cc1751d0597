"""
Countdown Timer
===============
One-second countdown for a sitting. The repeating tick runs on a daemon
thread that is stopped by pause(), reset(), or leaving the `with` block.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CountdownTimer:
    def __init__(self, initial_time: int = 3600, interval: float = 1.0):
        self.initial_time = initial_time
        self.interval = interval
        self.time_left = initial_time
        self._on_time_up: Optional[Callable[[], None]] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    @property
    def formatted_time(self) -> str:
        minutes, seconds = divmod(self.time_left, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def start(self, on_time_up: Optional[Callable[[], None]] = None):
        """Start ticking. Does nothing when already running."""
        with self._lock:
            if self._thread is not None:
                return
            self._on_time_up = on_time_up
            self._stop = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop,),
                name="countdown-timer",
                daemon=True,
            )
            self._thread.start()
        logger.debug(f"Timer started at {self.formatted_time}")

    def pause(self):
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def reset(self):
        self.pause()
        self.time_left = self.initial_time

    def tick(self):
        """Advance one step; at zero, stop and fire the time-up callback."""
        if self.time_left > 0:
            self.time_left -= 1
            return
        callback = self._on_time_up
        self.pause()
        logger.info("Time is up")
        if callback:
            callback()

    def _run(self, stop: threading.Event):
        while not stop.wait(self.interval):
            self.tick()

    def __enter__(self) -> "CountdownTimer":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.pause()
