"""Metrics collector — thread-safe counters for intake and shipping."""

import threading
import time


class SinkMetrics:
    """Collects counters about accepted, dropped, shipped and lost entries.

    Written from caller threads (intake) and the aggregator thread
    (shipping), so every update happens under a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries_accepted: int = 0
        self._entries_dropped: int = 0
        self._batches_sent: int = 0
        self._batches_failed: int = 0
        self._entries_sent: int = 0
        self._entries_lost: int = 0
        self._sent_by_type: dict[str, int] = {}
        self._send_time_total_ms: float = 0.0
        self._send_count: int = 0
        self._start_time = time.monotonic()

    def record_accepted(self) -> None:
        with self._lock:
            self._entries_accepted += 1

    def record_dropped(self) -> None:
        with self._lock:
            self._entries_dropped += 1

    def record_batch(
        self,
        log_type: str,
        batch_size: int,
        send_time_ms: float,
        success: bool,
    ) -> None:
        """Record the outcome of a single flush attempt.

        Args:
            log_type: Destination stream of the batch.
            batch_size: Number of log entries in the batch.
            send_time_ms: Time taken by the attempt, in milliseconds.
            success: Whether the endpoint accepted the batch.
        """
        with self._lock:
            self._send_time_total_ms += send_time_ms
            self._send_count += 1
            if success:
                self._batches_sent += 1
                self._entries_sent += batch_size
                self._sent_by_type[log_type] = self._sent_by_type.get(log_type, 0) + batch_size
            else:
                self._batches_failed += 1
                self._entries_lost += batch_size

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all collected metrics."""
        with self._lock:
            avg_send = (
                self._send_time_total_ms / self._send_count if self._send_count else 0.0
            )

            return {
                "entries_accepted": self._entries_accepted,
                "entries_dropped": self._entries_dropped,
                "batches_sent": self._batches_sent,
                "batches_failed": self._batches_failed,
                "entries_sent": self._entries_sent,
                "entries_lost": self._entries_lost,
                "sent_by_type": dict(self._sent_by_type),
                "avg_send_time_ms": avg_send,
                "uptime_seconds": time.monotonic() - self._start_time,
            }
