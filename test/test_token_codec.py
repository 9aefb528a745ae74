"""
Tests for token_codec.py

Tests cover:
- Decoding cached token JSON (including zero and nanosecond expiries)
- Rejection of malformed records
- Encoding with omitted optional fields
- Conversion of token endpoint responses
"""

import io
import json
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

import token_codec
from auth_errors import EncodingError, MalformedRecord
from token_codec import TokenRecord


class TestDecode:
    """Tests for decode function."""

    def test_full_record(self):
        """Test decoding a record with every field present."""
        data = (
            b'{"access_token": "at", "token_type": "Bearer", "refresh_token": "rt",'
            b' "expiry": "2024-05-01T12:00:00Z"}'
        )

        record = token_codec.decode(data)

        assert record.access_token == "at"
        assert record.token_type == "Bearer"
        assert record.refresh_token == "rt"
        assert record.expiry == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_reads_from_stream(self):
        """Test decode accepts a readable binary stream."""
        record = token_codec.decode(io.BytesIO(b'{"access_token": "at"}'))
        assert record == TokenRecord(access_token="at")

    def test_accepts_str(self):
        """Test decode accepts a JSON string."""
        assert token_codec.decode('{"access_token": "at"}').access_token == "at"

    def test_zero_expiry_means_no_expiry(self):
        """Test the zero timestamp written by other OAuth2 libraries decodes to None."""
        record = token_codec.decode(b'{"access_token": "at", "expiry": "0001-01-01T00:00:00Z"}')
        assert record.expiry is None

    def test_nanosecond_expiry_with_offset(self):
        """Test fractional seconds beyond microseconds are truncated and offsets normalized to UTC."""
        record = token_codec.decode(b'{"access_token": "at", "expiry": "2024-05-01T14:00:00.123456789+02:00"}')
        assert record.expiry == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert record.expiry.tzinfo == timezone.utc

    def test_invalid_json(self):
        """Test invalid JSON raises MalformedRecord."""
        with pytest.raises(MalformedRecord):
            token_codec.decode(b"{not json")

    def test_empty_document(self):
        """Test an empty file raises MalformedRecord."""
        with pytest.raises(MalformedRecord):
            token_codec.decode(b"")

    def test_not_an_object(self):
        """Test a JSON array raises MalformedRecord."""
        with pytest.raises(MalformedRecord):
            token_codec.decode(b'["at"]')

    def test_missing_access_token(self):
        """Test a record without an access token is never accepted."""
        with pytest.raises(MalformedRecord, match="no access token"):
            token_codec.decode(b'{"refresh_token": "rt"}')

    def test_empty_access_token(self):
        """Test an empty access token is rejected."""
        with pytest.raises(MalformedRecord):
            token_codec.decode(b'{"access_token": ""}')

    def test_type_mismatch(self):
        """Test a non-string field raises MalformedRecord."""
        with pytest.raises(MalformedRecord, match="refresh_token"):
            token_codec.decode(b'{"access_token": "at", "refresh_token": 42}')

    def test_bad_expiry(self):
        """Test an unparseable expiry raises MalformedRecord."""
        with pytest.raises(MalformedRecord, match="expiry"):
            token_codec.decode(b'{"access_token": "at", "expiry": "tomorrow"}')

    def test_invalid_utf8(self):
        """Test undecodable bytes raise MalformedRecord."""
        with pytest.raises(MalformedRecord):
            token_codec.decode(b"\xff\xfe\x00")


class TestEncode:
    """Tests for encode function."""

    def test_omits_unset_fields(self):
        """Test only the access token is written for a minimal record."""
        data = token_codec.encode(TokenRecord(access_token="at"))
        assert json.loads(data) == {"access_token": "at"}

    def test_full_record(self):
        """Test all fields are written, expiry in RFC 3339 with Z suffix."""
        record = TokenRecord(
            access_token="at",
            token_type="Bearer",
            refresh_token="rt",
            expiry=datetime(2024, 5, 1, 12, 0, 0, 500000, tzinfo=timezone.utc),
        )

        payload = json.loads(token_codec.encode(record))

        assert payload == {
            "access_token": "at",
            "token_type": "Bearer",
            "refresh_token": "rt",
            "expiry": "2024-05-01T12:00:00.5Z",
        }

    def test_naive_expiry_treated_as_utc(self):
        """Test a naive expiry is interpreted as UTC."""
        record = TokenRecord(access_token="at", expiry=datetime(2024, 5, 1, 12, 0, 0))
        assert json.loads(token_codec.encode(record))["expiry"] == "2024-05-01T12:00:00Z"

    def test_decode_of_encoded_record_is_equal(self):
        """Test a record survives encode followed by decode."""
        record = TokenRecord(
            access_token="at",
            token_type="Bearer",
            refresh_token="rt",
            expiry=datetime(2030, 1, 2, 3, 4, 5, 120000, tzinfo=timezone.utc),
        )
        assert token_codec.decode(token_codec.encode(record)) == record

    def test_empty_refresh_token_is_absent(self):
        """Test an empty refresh token is held and written as absent, so decoding gives an equal record."""
        record = TokenRecord(access_token="at", refresh_token="")

        assert record.refresh_token is None
        assert json.loads(token_codec.encode(record)) == {"access_token": "at"}
        assert token_codec.decode(token_codec.encode(record)) == record

    def test_unrepresentable_value(self):
        """Test a non-serializable field raises EncodingError."""
        with pytest.raises(EncodingError):
            token_codec.encode(TokenRecord(access_token=object()))


class TestFromOauthResponse:
    """Tests for from_oauth_response function."""

    def test_expires_at_wins(self):
        """Test the absolute expires_at is preferred over expires_in."""
        record = token_codec.from_oauth_response(
            {"access_token": "at", "token_type": "Bearer", "expires_in": 10, "expires_at": 1714564800.0}
        )
        assert record.expiry == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_expires_in(self):
        """Test a relative expires_in is added to the current time."""
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        record = token_codec.from_oauth_response({"access_token": "at", "expires_in": 3600}, now=now)
        assert record.expiry == now + timedelta(hours=1)

    def test_refresh_token_kept(self):
        """Test the refresh token from the response is carried over."""
        record = token_codec.from_oauth_response({"access_token": "at", "refresh_token": "rt"})
        assert record.refresh_token == "rt"
        assert record.expiry is None

    def test_missing_access_token(self):
        """Test a response without an access token raises MalformedRecord."""
        with pytest.raises(MalformedRecord):
            token_codec.from_oauth_response({"token_type": "Bearer"})
