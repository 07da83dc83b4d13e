"""
JustLog

Single-table DynamoDB storage for food, exercise and weight logs, with
API key credentials and an MCP tool surface on top.
"""
from justlog.credentials import CredentialStore
from justlog.entries import Entry, EntryStore, EntryType
from justlog.errors import Conflict, Corrupt, JustLogError, NotFound, StoreUnavailable, ValidationError
from justlog.profiles import Profile, ProfileStore

__all__ = [
    "CredentialStore",
    "Conflict",
    "Corrupt",
    "Entry",
    "EntryStore",
    "EntryType",
    "JustLogError",
    "NotFound",
    "Profile",
    "ProfileStore",
    "StoreUnavailable",
    "ValidationError",
]
