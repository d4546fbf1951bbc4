# admission.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import psutil

logger = logging.getLogger(__name__)

DEFAULT_MAX_RUNNING = 4
DEFAULT_LOAD_FACTOR = 2.0
DEFAULT_POLL_INTERVAL = 0.05  # seconds


class LoadSampleError(Exception):
    """The system load (or CPU count) could not be read; nothing can be admitted."""
    pass


def sample_load() -> float:
    """1-minute load average."""
    try:
        return float(psutil.getloadavg()[0])
    except (OSError, RuntimeError, AttributeError) as e:
        raise LoadSampleError(f"reading load average: {e}") from e


def logical_cpus() -> int:
    try:
        n = psutil.cpu_count(logical=True)
    except (OSError, RuntimeError) as e:
        raise LoadSampleError(f"getting CPU counts: {e}") from e
    if not n:
        raise LoadSampleError("getting CPU counts: unknown")
    return int(n)


class AdmissionController:
    """
    Decides when another job may start.

    Two gates, both must pass:
      - slots: at most `max_running` admitted jobs hold a slot at once
        (a bounded semaphore; waiting for a slot blocks, it does not poll)
      - load: 1-minute load average <= load_factor * logical CPUs,
        re-sampled every `poll_interval` while it is too high

    Load is only checked when admitting. Jobs already running are never stopped.
    """

    def __init__(
        self,
        max_running: int = DEFAULT_MAX_RUNNING,
        *,
        load_factor: float = DEFAULT_LOAD_FACTOR,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        load_sampler: Callable[[], float] = sample_load,
        cpu_count: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_running < 1:
            raise ValueError(f"max_running must be >= 1, got {max_running}")
        self.max_running = max_running
        self.load_factor = load_factor
        self.poll_interval = poll_interval
        self._sample = load_sampler
        self._cpus = cpu_count
        self._sleep = sleep

        self._slots = threading.BoundedSemaphore(max_running)
        self._lock = threading.Lock()
        self._running = 0
        self._peak = 0

    # ---- counters ----

    @property
    def running(self) -> int:
        with self._lock:
            return self._running

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak

    @property
    def threshold(self) -> float:
        if self._cpus is None:
            self._cpus = logical_cpus()
        return self.load_factor * self._cpus

    def load_ok(self) -> bool:
        """
        Raises:
          LoadSampleError: if the load average cannot be read.
        """
        try:
            load = self._sample()
        except LoadSampleError:
            raise
        except (OSError, RuntimeError) as e:
            raise LoadSampleError(f"reading load average: {e}") from e
        return load <= self.threshold

    # ---- admission ----

    def try_admit(self) -> bool:
        """Non-blocking: take a slot if one is free and the load allows it."""
        if not self.load_ok():
            return False
        if not self._slots.acquire(blocking=False):
            return False
        self._mark_started()
        return True

    def admit(self) -> None:
        """
        Block until a job may start, then hold a slot for it.

        Raises:
          LoadSampleError: the slot is given back before raising.
        """
        self._slots.acquire()
        try:
            waited = False
            while not self.load_ok():
                if not waited:
                    logger.info("load average above %.1f, waiting", self.threshold)
                    waited = True
                self._sleep(self.poll_interval)
        except BaseException:
            self._slots.release()
            raise
        self._mark_started()

    def release(self) -> None:
        with self._lock:
            self._running -= 1
        self._slots.release()

    def _mark_started(self) -> None:
        with self._lock:
            self._running += 1
            self._peak = max(self._peak, self._running)
