"""
Tests for the table key layout
"""
from datetime import datetime, timedelta, timezone

import pytest

from justlog.keys import (
    credential_key,
    entry_sort_id,
    format_timestamp,
    hash_key,
    lookup_key,
    parse_timestamp,
    profile_key,
)


def test_hash_key_is_lowercase_sha256_hex():
    assert hash_key("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_record_keys():
    assert credential_key("u1") == {"uid": "u1", "sk": "apikey"}
    assert lookup_key("ab12") == {"uid": "apikey#ab12", "sk": "apikey#ab12"}
    assert profile_key("u1") == {"uid": "u1", "sk": "profile"}


def test_format_timestamp_is_utc_rfc3339():
    est = timezone(timedelta(hours=-5))
    assert format_timestamp(datetime(2026, 2, 5, 3, 4, 5, tzinfo=est)) == "2026-02-05T08:04:05Z"
    # sub-second precision is dropped
    assert format_timestamp(datetime(2026, 2, 5, 8, 0, 0, 999999, tzinfo=timezone.utc)) == "2026-02-05T08:00:00Z"


def test_entry_sort_ids_order_by_time():
    early = entry_sort_id("food", datetime(2026, 2, 5, 9, tzinfo=timezone.utc))
    late = entry_sort_id("food", datetime(2026, 2, 5, 10, tzinfo=timezone.utc))
    assert early == "food#2026-02-05T09:00:00Z"
    assert early < late


def test_parse_timestamp():
    assert parse_timestamp("2026-02-05T08:00:00Z") == datetime(2026, 2, 5, 8, tzinfo=timezone.utc)
    assert parse_timestamp("2026-02-05T10:00:00+02:00") == datetime(2026, 2, 5, 8, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_timestamp("2026-02-05T08:00:00")
