"""Batch aggregator — a single worker thread that owns the per-log-type batches
and flushes them on a fixed interval."""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from oms_sink.metrics import SinkMetrics
from oms_sink.models import LogEntry

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL = 60.0

# Log the first drop and then one in every DROP_LOG_EVERY, so that a full
# queue cannot turn its own warnings into an endless stream of writes.
DROP_LOG_EVERY = 1000

ShipFunc = Callable[[str, list[LogEntry]], bool]


class _Command:
    FLUSH = "flush"
    STOP = "stop"

    def __init__(self, kind: str):
        self.kind = kind
        self.done = threading.Event()


class BatchAggregator:
    """Accumulates entries per log type and hands each non-empty batch to
    *ship* once per *flush_interval*.

    Producers only ever put onto the intake queue. The batches dict is read
    and written exclusively by the worker thread, so it needs no lock.
    Flushed entries are discarded whether or not shipping succeeded.
    """

    def __init__(
        self,
        ship: ShipFunc,
        *,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        queue_size: int = 0,
        metrics: Optional[SinkMetrics] = None,
    ):
        self._ship = ship
        self._flush_interval = flush_interval
        self._metrics = metrics or SinkMetrics()
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._batches: dict[str, list[LogEntry]] = {}

        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()
        self._stopped = threading.Event()
        # Orders FLUSH commands against the STOP command on the queue.
        self._command_lock = threading.Lock()
        self._dropped = 0
        self._drop_lock = threading.Lock()

    # Public API

    def start(self):
        """Start the worker thread. Calling it again is a no-op."""
        with self._start_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._run, name="oms-batch-aggregator", daemon=True
            )
            self._thread.start()

    def submit(self, entry: LogEntry) -> bool:
        """Hand an entry to the worker without blocking.

        Returns False if the aggregator is stopped or the intake queue is
        full, in which case the entry is dropped.
        """
        if self._stopped.is_set():
            return False
        try:
            self._queue.put_nowait(entry)
        except queue.Full:
            self._metrics.record_dropped()
            with self._drop_lock:
                self._dropped += 1
                dropped = self._dropped
            if dropped % DROP_LOG_EVERY == 1:
                logger.warning(
                    "Intake queue full (%d entries), dropped %d log entries so far",
                    self._queue.maxsize,
                    dropped,
                )
            return False
        self._metrics.record_accepted()
        return True

    def force_flush(self, timeout: float | None = None) -> bool:
        """Ask the worker to flush now.

        The request is queued behind every entry submitted before it, so
        those entries are included. Returns True once the flush has
        completed, False if it did not finish within *timeout* or the
        aggregator has been stopped.
        """
        command = _Command(_Command.FLUSH)
        with self._command_lock:
            if self._stopped.is_set() or not self.running:
                return False
            self._queue.put(command)
        return command.done.wait(timeout)

    def stop(self, timeout: float | None = None):
        """Stop the worker after draining and flushing everything submitted
        before this call. Later submissions are rejected."""
        with self._command_lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            if self._thread is None:
                return
            self._queue.put(_Command(_Command.STOP))
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Aggregator did not stop within %.1fs", timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def flush_interval(self) -> float:
        return self._flush_interval

    @property
    def metrics(self) -> SinkMetrics:
        return self._metrics

    # Worker thread

    def _run(self):
        try:
            self._loop()
        finally:
            self._release_pending()

    def _loop(self):
        next_tick = time.monotonic() + self._flush_interval
        while True:
            remaining = next_tick - time.monotonic()
            if remaining <= 0:
                self._flush_all()
                next_tick = time.monotonic() + self._flush_interval
                continue

            try:
                item = self._queue.get(timeout=remaining)
            except queue.Empty:
                continue

            if isinstance(item, LogEntry):
                self._batches.setdefault(item.log_type, []).append(item)
                continue

            self._flush_all()
            item.done.set()
            if item.kind == _Command.STOP:
                logger.info("Aggregator stopped: %s", self._metrics.snapshot())
                return

    def _release_pending(self):
        """Wake any caller still waiting on a command left behind the exit.

        Entries still queued at this point raced past stop and are dropped.
        """
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if isinstance(item, _Command):
                item.done.set()

    def _flush_all(self):
        # Replacing values while iterating is safe: no keys are added or removed.
        for log_type, entries in self._batches.items():
            if not entries:
                continue
            self._batches[log_type] = []
            self._ship_batch(log_type, entries)

    def _ship_batch(self, log_type: str, entries: list[LogEntry]):
        start = time.monotonic()
        try:
            success = bool(self._ship(log_type, entries))
        except Exception:
            logger.exception(
                "Shipping %d entries of type %s raised", len(entries), log_type
            )
            success = False
        elapsed_ms = (time.monotonic() - start) * 1000

        self._metrics.record_batch(log_type, len(entries), elapsed_ms, success)
        if success:
            logger.debug("Flushed %d log entries of type %s", len(entries), log_type)
        else:
            logger.warning(
                "Dropped batch of %d log entries of type %s after failed flush",
                len(entries),
                log_type,
            )
