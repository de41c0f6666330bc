"""SharedKey request signing for the Log Analytics HTTP Data Collector API."""

import base64
import binascii
import datetime
import hashlib
import hmac
import logging
from email.utils import format_datetime
from typing import Optional

logger = logging.getLogger(__name__)


def decode_shared_key(shared_key: str) -> bytes:
    """Base64-decode the workspace key, degrading to an empty key if invalid."""
    try:
        return base64.b64decode(shared_key, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Shared key is not valid base64; signing with an empty key")
        return b""


def build_signature(
    shared_key: str,
    customer_id: str,
    date: str,
    content_length: int,
    method: str,
    content_type: str,
    resource: str,
) -> str:
    """Build the ``Authorization`` header value for one request.

    The string to sign is::

        METHOD\\nCONTENT_LENGTH\\nCONTENT_TYPE\\nx-ms-date:DATE\\nRESOURCE

    and the result is ``SharedKey <customer_id>:<base64 HMAC-SHA256>``.
    """
    string_to_hash = f"{method}\n{content_length}\n{content_type}\nx-ms-date:{date}\n{resource}"
    key = decode_shared_key(shared_key)
    digest = hmac.new(key, string_to_hash.encode("utf-8"), hashlib.sha256).digest()
    encoded_hash = base64.b64encode(digest).decode("ascii")
    return f"SharedKey {customer_id}:{encoded_hash}"


def rfc1123_date(now: Optional[datetime.datetime] = None) -> str:
    """Return *now* (default: current time) as an RFC 1123 date in GMT."""
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)
    # The API rejects "UTC"; usegmt renders the zone as "GMT".
    return format_datetime(now.astimezone(datetime.timezone.utc), usegmt=True)
