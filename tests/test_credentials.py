"""
Tests for API key issue / resolve / revoke
"""
import re

import pytest
from botocore.exceptions import ClientError

from justlog.credentials import CredentialStore
from justlog.errors import Corrupt, NotFound, StoreUnavailable
from justlog.keys import hash_key
from tests.conftest import all_items


def credential_items(table):
    return [i for i in all_items(table) if i["sk"] == "apikey" or i["uid"].startswith("apikey#")]


def fail_transactions(monkeypatch, table):
    def transact_write_items(**kwargs):
        raise ClientError(
            {"Error": {"Code": "TransactionCanceledException", "Message": "Transaction cancelled"}},
            "TransactWriteItems",
        )
    monkeypatch.setattr(table.meta.client, "transact_write_items", transact_write_items)


def test_issue_returns_64_hex_key(credentials):
    raw_key = credentials.issue("u1")
    assert re.fullmatch(r"[0-9a-f]{64}", raw_key)


def test_issue_then_resolve(credentials):
    raw_key = credentials.issue("u1")
    assert credentials.resolve(raw_key) == "u1"


def test_issue_writes_hash_pair_not_raw_key(credentials, table):
    raw_key = credentials.issue("u1")
    digest = hash_key(raw_key)

    credential = table.get_item(Key={"uid": "u1", "sk": "apikey"})["Item"]
    assert credential == {"uid": "u1", "sk": "apikey", "KeyHash": digest}

    lookup_id = "apikey#" + digest
    lookup = table.get_item(Key={"uid": lookup_id, "sk": lookup_id})["Item"]
    assert lookup == {"uid": lookup_id, "sk": lookup_id, "UID": "u1"}

    for item in all_items(table):
        assert raw_key not in item.values()


def test_reissue_replaces_previous_key(credentials, table):
    first = credentials.issue("u1")
    second = credentials.issue("u1")
    assert first != second

    with pytest.raises(NotFound):
        credentials.resolve(first)
    assert credentials.resolve(second) == "u1"

    # exactly one pair left for the user
    assert len(credential_items(table)) == 2


def test_keys_of_different_users_are_independent(credentials):
    k1 = credentials.issue("u1")
    k2 = credentials.issue("u2")
    credentials.revoke("u1")

    with pytest.raises(NotFound):
        credentials.resolve(k1)
    assert credentials.resolve(k2) == "u2"


def test_resolve_unknown_key(credentials):
    with pytest.raises(NotFound):
        credentials.resolve("0" * 64)


def test_resolve_empty_key(credentials):
    with pytest.raises(NotFound):
        credentials.resolve("")


def test_resolve_error_does_not_leak_key(credentials):
    raw_key = "f" * 64
    with pytest.raises(NotFound) as exc:
        credentials.resolve(raw_key)
    assert raw_key not in str(exc.value)
    assert hash_key(raw_key) not in str(exc.value)


def test_resolve_lookup_without_owner_is_corrupt(credentials, table):
    raw_key = "a" * 64
    lookup_id = "apikey#" + hash_key(raw_key)
    table.put_item(Item={"uid": lookup_id, "sk": lookup_id})

    with pytest.raises(Corrupt):
        credentials.resolve(raw_key)


def test_resolve_lookup_with_non_string_owner_is_corrupt(credentials, table):
    raw_key = "b" * 64
    lookup_id = "apikey#" + hash_key(raw_key)
    table.put_item(Item={"uid": lookup_id, "sk": lookup_id, "UID": 42})

    with pytest.raises(Corrupt):
        credentials.resolve(raw_key)


def test_revoke_removes_both_records(credentials, table):
    raw_key = credentials.issue("u1")
    credentials.revoke("u1")

    with pytest.raises(NotFound):
        credentials.resolve(raw_key)
    assert credential_items(table) == []


def test_revoke_without_key_is_noop(credentials):
    credentials.revoke("nobody")
    credentials.revoke("nobody")


def test_revoke_malformed_record_is_noop_and_reissue_works(credentials, table):
    table.put_item(Item={"uid": "u1", "sk": "apikey"})

    credentials.revoke("u1")
    assert table.get_item(Key={"uid": "u1", "sk": "apikey"})["Item"] == {"uid": "u1", "sk": "apikey"}

    raw_key = credentials.issue("u1")
    assert credentials.resolve(raw_key) == "u1"


def test_failed_issue_leaves_no_half_pair(credentials, table, monkeypatch):
    fail_transactions(monkeypatch, table)

    with pytest.raises(StoreUnavailable):
        credentials.issue("u1")
    assert credential_items(table) == []


def test_failed_revoke_keeps_pair_intact(credentials, table, monkeypatch):
    raw_key = credentials.issue("u1")

    with monkeypatch.context() as m:
        fail_transactions(m, table)
        with pytest.raises(StoreUnavailable) as exc:
            credentials.revoke("u1")
    assert raw_key not in str(exc.value)
    assert hash_key(raw_key) not in str(exc.value)

    assert credentials.resolve(raw_key) == "u1"
    assert len(credential_items(table)) == 2


def test_missing_table_is_store_unavailable(dynamodb):
    store = CredentialStore(dynamodb.Table("does-not-exist"))

    with pytest.raises(StoreUnavailable):
        store.resolve("c" * 64)
    with pytest.raises(StoreUnavailable):
        store.revoke("u1")


def test_concurrent_issue_does_not_orphan_a_lookup_record(credentials, table, monkeypatch):
    rival_key = "d" * 64
    rival_digest = hash_key(rival_key)
    transact_write_items = table.meta.client.transact_write_items

    def rival_commits_first(**kwargs):
        # another issue for u1 writes its pair between our revoke and our transaction
        table.put_item(Item={"uid": "u1", "sk": "apikey", "KeyHash": rival_digest})
        table.put_item(Item={"uid": "apikey#" + rival_digest, "sk": "apikey#" + rival_digest, "UID": "u1"})
        return transact_write_items(**kwargs)

    with monkeypatch.context() as m:
        m.setattr(table.meta.client, "transact_write_items", rival_commits_first)
        with pytest.raises(StoreUnavailable):
            credentials.issue("u1")

    assert len(credential_items(table)) == 2
    assert table.get_item(Key={"uid": "u1", "sk": "apikey"})["Item"]["KeyHash"] == rival_digest
    assert credentials.resolve(rival_key) == "u1"

    credentials.revoke("u1")
    assert credential_items(table) == []
    with pytest.raises(NotFound):
        credentials.resolve(rival_key)


def test_issue_replaces_credential_record_with_non_string_hash(credentials, table):
    table.put_item(Item={"uid": "u1", "sk": "apikey", "KeyHash": 7})

    raw_key = credentials.issue("u1")

    assert credentials.resolve(raw_key) == "u1"
    assert table.get_item(Key={"uid": "u1", "sk": "apikey"})["Item"]["KeyHash"] == hash_key(raw_key)
