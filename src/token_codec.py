"""
OAuth2 Token Codec

Serializes token records to and from the JSON layout used for cached
credential files:

    {"access_token": "...", "token_type": "Bearer",
     "refresh_token": "...", "expiry": "2024-05-01T12:00:00Z"}

Optional fields are omitted when unset. The zero timestamp written by some
OAuth2 client libraries ("0001-01-01T00:00:00Z") is read back as "no expiry".
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from auth_errors import EncodingError, MalformedRecord

ZERO_EXPIRY = "0001-01-01T00:00:00Z"

# RFC 3339 with optional fractional seconds (up to nanoseconds) and offset
_EXPIRY_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?(?P<tz>Z|[+-]\d{2}:\d{2})$"
)


@dataclass
class TokenRecord:
    access_token: str
    token_type: str = ""
    refresh_token: str | None = None
    expiry: datetime | None = None

    def __post_init__(self):
        # An empty refresh token is written as absent, so it is held as absent too
        if self.refresh_token == "":
            self.refresh_token = None
        if self.expiry is not None and self.expiry.tzinfo is None:
            self.expiry = self.expiry.replace(tzinfo=timezone.utc)


def _parse_expiry(value) -> datetime | None:
    if value is None or value == "" or value == ZERO_EXPIRY:
        return None
    if not isinstance(value, str):
        raise MalformedRecord(f"Token expiry must be a string, got {type(value).__name__}")

    match = _EXPIRY_PATTERN.match(value)
    if not match:
        raise MalformedRecord(f"Token expiry is not an RFC 3339 timestamp: {value!r}")

    text = match.group("base")
    frac = match.group("frac")
    if frac:
        # datetime only keeps microseconds
        text += "." + frac[:6].ljust(6, "0")
    tz = match.group("tz")
    text += "+00:00" if tz == "Z" else tz

    try:
        expiry = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedRecord(f"Token expiry is not a valid timestamp: {value!r}") from e
    if expiry.year == 1:
        return None
    return expiry.astimezone(timezone.utc)


def _format_expiry(expiry: datetime) -> str:
    expiry = expiry.astimezone(timezone.utc)
    text = expiry.strftime("%Y-%m-%dT%H:%M:%S")
    if expiry.microsecond:
        text += f".{expiry.microsecond:06d}".rstrip("0")
    return text + "Z"


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedRecord(f"Token field '{key}' must be a string, got {type(value).__name__}")
    return value


def decode(data) -> TokenRecord:
    """
    Decode a JSON token record.

    Args:
        data: bytes, str, or a readable stream containing the JSON document.

    Returns:
        The decoded TokenRecord.

    Raises:
        MalformedRecord: invalid JSON, wrong field types, or no access token.
    """
    if hasattr(data, "read"):
        data = data.read()
    try:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        payload = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedRecord(f"Token record is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedRecord("Token record must be a JSON object")

    access_token = _optional_str(payload, "access_token")
    if not access_token:
        raise MalformedRecord("Token record has no access token")

    return TokenRecord(
        access_token=access_token,
        token_type=_optional_str(payload, "token_type") or "",
        refresh_token=_optional_str(payload, "refresh_token") or None,
        expiry=_parse_expiry(payload.get("expiry")),
    )


def encode(record: TokenRecord) -> bytes:
    """Encode a token record as UTF-8 JSON, omitting unset optional fields."""
    payload = {"access_token": record.access_token}
    if record.token_type:
        payload["token_type"] = record.token_type
    if record.refresh_token:
        payload["refresh_token"] = record.refresh_token

    try:
        if record.expiry is not None:
            payload["expiry"] = _format_expiry(record.expiry)
        return (json.dumps(payload) + "\n").encode("utf-8")
    except (TypeError, ValueError, AttributeError, OverflowError) as e:
        raise EncodingError(f"Unable to encode token record: {e}") from e


def from_oauth_response(token: dict, now: datetime | None = None) -> TokenRecord:
    """
    Build a TokenRecord from a token endpoint response.

    requests-oauthlib adds an absolute ``expires_at`` (epoch seconds) next to
    the relative ``expires_in``; the absolute value wins when both are present.
    """
    access_token = token.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise MalformedRecord("Token response has no access token")

    expiry = None
    expires_at = token.get("expires_at")
    expires_in = token.get("expires_in")
    try:
        if expires_at is not None:
            expiry = datetime.fromtimestamp(float(expires_at), tz=timezone.utc)
        elif expires_in is not None:
            now = now or datetime.now(timezone.utc)
            expiry = now + timedelta(seconds=int(expires_in))
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise MalformedRecord(f"Token response has an invalid expiry: {e}") from e

    return TokenRecord(
        access_token=access_token,
        token_type=token.get("token_type") or "",
        refresh_token=token.get("refresh_token") or None,
        expiry=expiry,
    )
