"""HTTP shipper — signs and POSTs one batch per call to the Data Collector API."""

import datetime
import json
import logging
from typing import Callable, Optional

import requests

from oms_sink.models import TIME_GENERATED_FIELD, LogEntry, entry_to_dict
from oms_sink.signature import build_signature, rfc1123_date

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"
RESOURCE = "/api/logs"
DEFAULT_API_VERSION = "2016-04-01"
DEFAULT_TIMEOUT = 10.0


def default_endpoint(customer_id: str) -> str:
    return f"https://{customer_id}.ods.opinsights.azure.com"


class OmsShipper:
    """Builds, signs and sends batches of log entries.

    The signing context (date, body length) is derived afresh for every
    request, so a prepared request must be sent promptly.
    """

    def __init__(
        self,
        customer_id: str,
        shared_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        endpoint: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        time_generated_field: str = TIME_GENERATED_FIELD,
        session: Optional[requests.Session] = None,
        now: Optional[Callable[[], datetime.datetime]] = None,
    ):
        self._customer_id = customer_id
        self._shared_key = shared_key
        self._timeout = timeout
        self._endpoint = (endpoint or default_endpoint(customer_id)).rstrip("/")
        self._api_version = api_version
        self._time_field = time_generated_field
        self._session = session or requests.Session()
        self._now = now

    @property
    def url(self) -> str:
        return f"{self._endpoint}{RESOURCE}?api-version={self._api_version}"

    def build_request(self, log_type: str, entries: list[LogEntry]) -> requests.PreparedRequest:
        """Serialize *entries* (in order) and return a signed POST request."""
        body = json.dumps(
            [entry_to_dict(e, self._time_field) for e in entries],
            separators=(",", ":"),
        ).encode("utf-8")

        date = rfc1123_date(self._now() if self._now else None)
        signature = build_signature(
            self._shared_key,
            self._customer_id,
            date,
            len(body),
            "POST",
            CONTENT_TYPE,
            RESOURCE,
        )
        headers = {
            "content-type": CONTENT_TYPE,
            "Authorization": signature,
            "Log-Type": log_type,
            "x-ms-date": date,
            "time-generated-field": self._time_field,
        }
        return requests.Request("POST", self.url, data=body, headers=headers).prepare()

    def ship(self, log_type: str, entries: list[LogEntry]) -> bool:
        """Send one batch. Returns True only for a 2xx response.

        Failures are logged here and never raised; the caller drops the
        batch either way.
        """
        if not entries:
            return True

        try:
            request = self.build_request(log_type, entries)
        except (requests.RequestException, ValueError) as exc:
            logger.error("Could not build request for %s: %s", log_type, exc)
            return False

        try:
            response = self._session.send(request, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning(
                "Failed to send %d log entries of type %s: %s",
                len(entries),
                log_type,
                exc,
            )
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Endpoint rejected %d log entries of type %s: HTTP %d %s",
                len(entries),
                log_type,
                response.status_code,
                response.text[:200],
            )
            return False

        logger.debug("Shipped %d log entries of type %s", len(entries), log_type)
        return True

    def close(self):
        """Close the underlying HTTP session."""
        self._session.close()
