"""Job identifiers and the UTC instants stored on job rows.

Ids are ULIDs: 48 bits of millisecond time followed by 80 random bits,
rendered as 26 Crockford base32 characters. Listing a lineage by id
therefore also lists it in creation order.
"""

import secrets
import time
from datetime import UTC, datetime

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_ulid() -> str:
    """A new 26-character, time-sortable job id."""
    value = (int(time.time() * 1000) << 80) | secrets.randbits(80)
    chars = []
    for _ in range(26):
        value, digit = divmod(value, 32)
        chars.append(_CROCKFORD[digit])
    return "".join(reversed(chars))


def _as_utc(dt: datetime) -> datetime:
    # naive values written by older workers are UTC
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def to_iso8601(dt: datetime | None) -> str | None:
    return None if dt is None else _as_utc(dt).isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse a stored instant; blank columns read as ``None``."""
    return _as_utc(datetime.fromisoformat(s)) if s else None
