"""Parses Gin-style HTTP access-log lines into structured results."""

import re
from dataclasses import dataclass
from typing import Optional

# Colour escapes are optional on either side of the status code, and the ESC
# byte itself may have been stripped by an intermediate writer.
_GIN_RE = re.compile(
    r"\[GIN\]\s+\d{4}/\d{2}/\d{2}\s+-\s+\d{2}:\d{2}:\d{2}\s+"
    r"\|(?:\x1b?\[\d+;\d+m)?\s+(?P<status>\d{3})\s+(?:\x1b?\[0m)?"
    r"\|\s+(?P<latency>[\d.]{1,13})(?P<unit>ns|[µμu]s|ms|s)"
    r"(?:\s+\|\s+(?P<client>\S+)\s+"
    r"\|\s*(?:\x1b?\[\d+(?:;\d+)*m)?\s*(?P<method>[A-Z]+)\s*(?:\x1b?\[0m)?"
    r"\s*\"?(?P<path>[^\s\"]+)\"?)?"
)

DEFAULT_HTTP_STATUS = 200

_MICRO_UNITS = ("µs", "μs", "us")


@dataclass(frozen=True)
class AccessLog:
    http_status: int
    latency_ms: float
    client_ip: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None


def parse_http_status(text: str) -> int:
    """Return the status as an int, or 200 if *text* is not an integer."""
    try:
        return int(text)
    except (TypeError, ValueError):
        return DEFAULT_HTTP_STATUS


def parse_latency(value: str, unit: str) -> float:
    """Convert a Gin duration (value + unit suffix) to milliseconds.

    An unparseable value yields 0.0. Only a bare ``s`` is scaled up; ``ns``
    and the microsecond spellings are fractions, anything else is taken as
    already being milliseconds.
    """
    try:
        latency = float(value)
    except (TypeError, ValueError):
        latency = 0.0

    if unit == "ns":
        return latency / 1_000_000
    if unit in _MICRO_UNITS:
        return latency / 1_000
    if unit == "s":
        return latency * 1_000
    return latency


def parse_access_log(line: str) -> AccessLog | None:
    """Parse a Gin access-log line.

    Returns None when *line* is not an access-log line; the caller then
    treats it as a plain message.
    """
    m = _GIN_RE.search(line)
    if not m:
        return None

    return AccessLog(
        http_status=parse_http_status(m.group("status")),
        latency_ms=parse_latency(m.group("latency"), m.group("unit")),
        client_ip=m.group("client"),
        method=m.group("method"),
        path=m.group("path"),
    )
