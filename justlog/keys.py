"""
Key layout of the JustLog table.

Every record lives in one table addressed by a partition key ``uid`` and a
sort key ``sk``:

    credential record   uid=<user id>            sk="apikey"
    lookup record       uid="apikey#<digest>"    sk="apikey#<digest>"
    profile record      uid=<user id>            sk="profile"
    log entry           uid=<user id>            sk="<type>#<RFC3339 UTC>"

Timestamps are second-precision, zero-padded and always UTC, so sort keys of
one entry type compare as strings in time order.
"""
import hashlib
from datetime import datetime, timezone

PARTITION_KEY = "uid"
SORT_KEY = "sk"

API_KEY_SK = "apikey"
API_KEY_LOOKUP_PREFIX = "apikey#"
PROFILE_SK = "profile"

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def hash_key(raw_key: str) -> str:
    """Lowercase hex SHA-256 digest of a raw API key."""
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def lookup_id(digest: str) -> str:
    return API_KEY_LOOKUP_PREFIX + digest


def credential_key(user_id: str) -> dict:
    return {PARTITION_KEY: user_id, SORT_KEY: API_KEY_SK}


def lookup_key(digest: str) -> dict:
    synthetic = lookup_id(digest)
    return {PARTITION_KEY: synthetic, SORT_KEY: synthetic}


def profile_key(user_id: str) -> dict:
    return {PARTITION_KEY: user_id, SORT_KEY: PROFILE_SK}


def to_utc(ts: datetime) -> datetime:
    # Naive datetimes are taken to already be UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format ``ts`` as RFC3339 in UTC, e.g. 2026-02-05T08:00:00Z."""
    return to_utc(ts).strftime(RFC3339_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime."""
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed.astimezone(timezone.utc)


def entry_sort_id(entry_type: str, ts: datetime) -> str:
    return f"{entry_type}#{format_timestamp(ts)}"
