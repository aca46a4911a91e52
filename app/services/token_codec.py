"""
Check-in token codec.

A token is the text embedded in an RSVP's QR code:

    JTM-EVENT:<event_id>:<user_id>:<issued_at_epoch>

It is a lookup key, not a credential. Decoding only proves the text has the
right shape; the caller still has to find a matching RSVP.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from app.core.config import settings
from app.exceptions import MalformedToken, TypeMismatch, TokenExpired

SEPARATOR = ":"
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")
# Seconds or milliseconds, ASCII digits only
TIMESTAMP_PATTERN = re.compile(r"[0-9]{1,13}")

# Tokens issued by the web client carry milliseconds
_MILLIS_THRESHOLD = 10 ** 11


@dataclass(frozen=True)
class CheckInToken:
    event_id: str
    user_id: str
    issued_at: int  # epoch seconds


def _to_epoch(issued_at: Union[datetime, int, float, None]) -> int:
    if issued_at is None:
        return int(datetime.now(timezone.utc).timestamp())
    if isinstance(issued_at, datetime):
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        return int(issued_at.timestamp())
    return int(issued_at)


def _check_identifier(name: str, value: str, token: Optional[str] = None) -> None:
    if not isinstance(value, str) or not IDENTIFIER_PATTERN.fullmatch(value):
        raise TypeMismatch(f"{name} is not a valid identifier: {value!r}", token)


def encode(
    event_id: str,
    user_id: str,
    issued_at: Union[datetime, int, float, None] = None,
    tag: Optional[str] = None,
) -> str:
    """Build the token string for an event/registrant pair"""
    _check_identifier("event_id", event_id)
    _check_identifier("user_id", user_id)
    tag = tag or settings.CHECKIN_TOKEN_TAG
    return SEPARATOR.join([tag, event_id, user_id, str(_to_epoch(issued_at))])


def decode(
    token: str,
    tag: Optional[str] = None,
    max_age_hours: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CheckInToken:
    """Parse a scanned token.

    Raises MalformedToken when the text does not have exactly four
    colon-separated parts or carries the wrong tag, TypeMismatch when the
    ids or the timestamp are not well formed, and TokenExpired when
    ``max_age_hours`` is given and the token is older than that.
    """
    if not isinstance(token, str):
        raise MalformedToken("Token must be text")

    raw = token.strip()
    parts = raw.split(SEPARATOR)
    if len(parts) != 4:
        raise MalformedToken(f"Expected 4 fields, got {len(parts)}", raw)

    expected_tag = tag or settings.CHECKIN_TOKEN_TAG
    found_tag, event_id, user_id, issued_raw = parts
    if found_tag != expected_tag:
        raise MalformedToken(f"Unrecognized token tag {found_tag!r}", raw)

    _check_identifier("event_id", event_id, raw)
    _check_identifier("user_id", user_id, raw)

    if not TIMESTAMP_PATTERN.fullmatch(issued_raw):
        raise TypeMismatch(f"Issue timestamp is not numeric: {issued_raw!r}", raw)
    issued_at = int(issued_raw)
    if issued_at >= _MILLIS_THRESHOLD:
        issued_at //= 1000

    if max_age_hours is not None:
        current = _to_epoch(now)
        if current - issued_at > max_age_hours * 3600:
            raise TokenExpired(f"Token is older than {max_age_hours} hours", raw, issued_at)

    return CheckInToken(event_id=event_id, user_id=user_id, issued_at=issued_at)
