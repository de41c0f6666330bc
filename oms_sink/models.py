"""Log entry model and its wire representation."""

import datetime
from dataclasses import dataclass, field
from typing import Optional

from oms_sink.access_log import AccessLog

TIME_GENERATED_FIELD = "time_generated"

# Optional attributes in wire order: (attribute, JSON key).
_OPTIONAL_FIELDS = (
    ("http_status", "http_status"),
    ("latency_ms", "latency"),
    ("http_method", "http_method"),
    ("http_path", "http_path"),
    ("http_client", "http_client"),
)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    message: str
    log_type: str
    generated_at: datetime.datetime = field(default_factory=_utcnow)
    http_status: Optional[int] = None
    latency_ms: Optional[float] = None
    http_method: Optional[str] = None
    http_path: Optional[str] = None
    http_client: Optional[str] = None


def create_log_entry(
    message: str,
    log_type: str,
    *,
    http_status: Optional[int] = None,
    latency_ms: Optional[float] = None,
    http_method: Optional[str] = None,
    http_path: Optional[str] = None,
    http_client: Optional[str] = None,
    generated_at: Optional[datetime.datetime] = None,
) -> LogEntry:
    """Factory function that creates a LogEntry.

    Every HTTP attribute is independent; leave any of them as None to mark
    it absent.
    """
    return LogEntry(
        message=message,
        log_type=log_type,
        generated_at=generated_at if generated_at is not None else _utcnow(),
        http_status=http_status,
        latency_ms=latency_ms,
        http_method=http_method,
        http_path=http_path,
        http_client=http_client,
    )


def entry_from_access_log(
    message: str,
    log_type: str,
    access_log: AccessLog,
    generated_at: Optional[datetime.datetime] = None,
) -> LogEntry:
    """Create a LogEntry carrying the fields parsed from an access-log line."""
    return create_log_entry(
        message,
        log_type,
        http_status=access_log.http_status,
        latency_ms=access_log.latency_ms,
        http_method=access_log.method,
        http_path=access_log.path,
        http_client=access_log.client_ip,
        generated_at=generated_at,
    )


def format_time_generated(dt: datetime.datetime) -> str:
    """Format *dt* as ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive datetimes are taken to be UTC. Sub-second precision is dropped
    because the ingestion API rejects nanosecond timestamps.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def entry_to_dict(entry: LogEntry, time_field: str = TIME_GENERATED_FIELD) -> dict:
    """Convert a LogEntry to the JSON object shipped to the endpoint.

    Absent optional fields are left out entirely. The log type is not part
    of the body; it is sent in the Log-Type header.
    """
    data = {
        "log": entry.message,
        time_field: format_time_generated(entry.generated_at),
    }
    for attr, key in _OPTIONAL_FIELDS:
        value = getattr(entry, attr)
        if value is not None:
            data[key] = value
    return data
