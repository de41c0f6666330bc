"""Log sink — a file-like writer that classifies lines and queues them for
shipping to Azure Log Analytics."""

import datetime
import logging
from typing import Callable, Optional

from oms_sink.access_log import parse_access_log
from oms_sink.aggregator import BatchAggregator
from oms_sink.config import SinkConfig
from oms_sink.metrics import SinkMetrics
from oms_sink.models import LogEntry, create_log_entry, entry_from_access_log
from oms_sink.shipper import OmsShipper


class OmsLogSink:
    """Stream-like object accepted anywhere a writable text or byte stream is.

    ``write`` parses the line synchronously and hands the entry to the
    background aggregator; it never waits on the network and never reports
    shipping failures. Those go to the ``oms_sink`` loggers and metrics.
    """

    def __init__(
        self,
        config: SinkConfig,
        *,
        shipper: Optional[OmsShipper] = None,
        aggregator: Optional[BatchAggregator] = None,
        now: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self._config = config
        self._now = now
        if shipper is None:
            config.validate()
        self._shipper = shipper or OmsShipper(
            config.customer_id,
            config.shared_key,
            timeout=config.request_timeout,
            endpoint=config.endpoint,
            api_version=config.api_version,
            time_generated_field=config.time_generated_field,
        )
        self._aggregator = aggregator or BatchAggregator(
            self._shipper.ship,
            flush_interval=config.flush_interval,
            queue_size=config.queue_size,
            metrics=SinkMetrics(),
        )
        self._aggregator.start()
        self.closed = False

    # Stream protocol

    def write(self, data: bytes | str) -> int:
        """Queue one log line. Returns the number of bytes/characters accepted."""
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        if text.strip():
            self._aggregator.submit(self.build_entry(text))
        return len(data)

    def flush(self):
        """No-op. Stream handlers call this after every record; use
        ``force_flush`` to ship immediately."""

    def writable(self) -> bool:
        return True

    # Entry building

    def build_entry(self, line: str) -> LogEntry:
        """Classify *line* and build the entry for its destination stream.

        The line is shipped exactly as written, terminator included.
        """
        generated_at = self._now() if self._now else None

        access_log = parse_access_log(line)
        if access_log is not None:
            return entry_from_access_log(
                line, self._config.http_log_type, access_log, generated_at
            )
        return create_log_entry(
            line, self._config.plain_log_type, generated_at=generated_at
        )

    # Lifecycle

    def force_flush(self, timeout: float | None = None) -> bool:
        """Ship everything written so far without waiting for the next tick."""
        return self._aggregator.force_flush(timeout)

    def close(self, timeout: float | None = None):
        """Flush pending entries, stop the aggregator, and close the HTTP session."""
        if self.closed:
            return
        self.closed = True
        self._aggregator.stop(timeout)
        self._shipper.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def log_types(self) -> tuple[str, str]:
        return self._config.log_types

    @property
    def metrics(self) -> SinkMetrics:
        return self._aggregator.metrics


class OmsLogHandler(logging.Handler):
    """logging.Handler that writes each formatted record to an OmsLogSink.

    Records from the sink's own loggers are skipped so that shipping
    failures cannot be fed back into the sink.
    """

    def __init__(self, sink: OmsLogSink, level=logging.NOTSET):
        super().__init__(level=level)
        self.sink = sink

    def emit(self, record: logging.LogRecord):
        if record.name == "oms_sink" or record.name.startswith("oms_sink."):
            return
        try:
            self.sink.write(self.format(record))
        except Exception:
            self.handleError(record)
