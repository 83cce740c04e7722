"""PositionEventStream — paces raw fixes from a source onto a bounded queue."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from dataclasses import dataclass

from speedwatch.engine.models import PositionSample

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionEvent:
    """A parsed fix and the monotonic time it was read from the source."""

    sample: PositionSample
    received_at: float  # time.monotonic() seconds


@dataclass
class StreamStats:
    """Running counters of what happened to the fixes read so far."""

    accepted: int = 0
    rejected: int = 0  # parser raised ValueError
    stale: int = 0  # timestamp older than the last accepted fix
    dropped: int = 0  # overwritten while the queue was full


class PositionEventStream:
    """Reads fixes from *source* at *target_hz* and queues them as :class:`PositionEvent`.

    Fixes the parser rejects, and fixes whose timestamp runs backwards, are
    counted in :attr:`stats` and never reach the queue.  When the queue is
    full the oldest event is discarded so the consumer always sees the most
    recent position.

    A live source returns ``None`` while it has no new fix; a recorded one
    returns ``None`` once it is exhausted.  With ``stop_when_exhausted`` the
    first ``None`` ends polling and :attr:`finished` becomes True.

    Parameters
    ----------
    source:
        Object with ``read_fix() -> dict | None``.
    parser:
        Object with ``parse(raw: dict) -> PositionSample``.
    target_hz:
        Fix rate in Hz.
    queue_maxsize:
        Maximum number of events buffered before drop-oldest kicks in.
    stop_when_exhausted:
        Treat ``None`` from the source as end of track.
    """

    def __init__(
        self,
        source,
        parser,
        target_hz: float = 1.0,
        queue_maxsize: int = 16,
        stop_when_exhausted: bool = False,
    ) -> None:
        if target_hz <= 0:
            raise ValueError(f"target_hz must be > 0, got {target_hz}")
        self._source = source
        self._parser = parser
        self._interval = 1.0 / target_hz
        self._stop_when_exhausted = stop_when_exhausted
        self._queue: queue.Queue[PositionEvent] = queue.Queue(maxsize=queue_maxsize)
        self._stop_event = threading.Event()
        self._finished = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_timestamp_ms: int | None = None
        self.stats = StreamStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background polling thread."""
        self._stop_event.clear()
        self._finished.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="PositionStream")
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread to stop and join it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    @property
    def finished(self) -> bool:
        """True once polling has ended, because the source ran out or stop() was called."""
        return self._finished.is_set()

    def is_drained(self) -> bool:
        """True when polling has finished and every queued event was consumed."""
        return self.finished and self._queue.empty()

    def get_event(self, timeout: float = 0.1) -> PositionEvent | None:
        """Return the next queued event, or None if none arrives within *timeout* s."""
        try:
            if timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def queue_size(self) -> int:
        """Return the current number of buffered events."""
        return self._queue.qsize()

    def poll_once(self) -> bool:
        """Read and queue a single fix.

        Returns False when the source returned nothing.
        """
        raw = self._source.read_fix()
        if raw is None:
            return False
        now = time.monotonic()
        try:
            sample = self._parser.parse(raw)
        except ValueError as exc:
            self.stats.rejected += 1
            _logger.warning("Dropping unusable fix: %s", exc)
            return True

        last = self._last_timestamp_ms
        if last is not None and sample.timestamp_ms < last:
            self.stats.stale += 1
            _logger.warning("Dropping stale fix at %d ms (last was %d ms)", sample.timestamp_ms, last)
            return True

        self._last_timestamp_ms = sample.timestamp_ms
        self.stats.accepted += 1
        self._enqueue(PositionEvent(sample=sample, received_at=now))
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                t0 = time.monotonic()
                if not self.poll_once() and self._stop_when_exhausted:
                    _logger.info("Position source exhausted after %d fix(es)", self.stats.accepted)
                    break
                wait = self._interval - (time.monotonic() - t0)
                if wait > 0:
                    self._stop_event.wait(wait)
        finally:
            self._finished.set()

    def _enqueue(self, event: PositionEvent) -> None:
        """Put *event* in the queue; drop oldest if full."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with contextlib.suppress(queue.Empty):
                self._queue.get_nowait()
                self.stats.dropped += 1
            with contextlib.suppress(queue.Full):
                self._queue.put_nowait(event)
