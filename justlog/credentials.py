"""
API key credentials.

Each user has at most one active API key. The raw key is handed back once on
issue and never stored: the table only holds its SHA-256 digest, in two
records written and deleted together in one DynamoDB transaction.

    credential record   uid=<user id>            sk="apikey"           KeyHash=<digest>
    lookup record       uid="apikey#<digest>"    sk="apikey#<digest>"  UID=<user id>

The lookup record turns "which user owns this key" into a single GetItem
instead of a table scan.
"""
import secrets

from justlog.db import store_call
from justlog.errors import Corrupt, NotFound
from justlog.keys import PARTITION_KEY, credential_key, hash_key, lookup_key
from justlog.logging_config import get_logger

logger = get_logger("credentials")

KEY_BYTES = 32


class CredentialStore:
    """Issue, resolve and revoke the single API key of each user."""

    def __init__(self, table):
        self._table = table

    @property
    def _client(self):
        # The resource-level client marshals plain Python values, so
        # transaction items can be written without AttributeValue wrappers
        return self._table.meta.client

    def issue(self, user_id: str) -> str:
        """
        Generate a new API key for ``user_id``, replacing any existing one.

        Returns the raw key. This is the only time it is available. The new
        pair is only written while the user has no credential record, so a
        concurrent issue for the same user fails instead of orphaning a
        lookup record.
        """
        logger.info(f"[issue] START - user_id={user_id}")
        if not self._revoke(user_id):
            # Malformed record: nothing to pair with, drop it to free the slot
            with store_call("issue", f"user_id={user_id}"):
                self._table.delete_item(Key=credential_key(user_id))

        raw_key = secrets.token_hex(KEY_BYTES)
        digest = hash_key(raw_key)

        with store_call("issue", f"user_id={user_id}"):
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self._table.name,
                            "Item": {**credential_key(user_id), "KeyHash": digest},
                            "ConditionExpression": "attribute_not_exists(#uid)",
                            "ExpressionAttributeNames": {"#uid": PARTITION_KEY},
                        }
                    },
                    {
                        "Put": {
                            "TableName": self._table.name,
                            "Item": {**lookup_key(digest), "UID": user_id},
                        }
                    },
                ]
            )

        logger.info(f"[issue] SUCCESS - user_id={user_id}")
        return raw_key

    def resolve(self, raw_key: str) -> str:
        """
        Return the user id owning ``raw_key``.

        Raises NotFound when no key matches and Corrupt when the lookup
        record has no usable owner.
        """
        if not raw_key:
            raise NotFound("api key not found")

        with store_call("resolve", "api key lookup"):
            response = self._table.get_item(
                Key=lookup_key(hash_key(raw_key)),
                ProjectionExpression="#owner",
                ExpressionAttributeNames={"#owner": "UID"},
            )

        item = response.get("Item")
        if item is None:
            raise NotFound("api key not found")

        user_id = item.get("UID")
        if not isinstance(user_id, str) or not user_id:
            logger.warning("[resolve] lookup record has no valid owner")
            raise Corrupt("invalid api key record")
        return user_id

    def revoke(self, user_id: str) -> None:
        """
        Delete the API key of ``user_id``. A user without a key, or with a
        malformed credential record, is left as is.
        """
        self._revoke(user_id)

    def _revoke(self, user_id: str) -> bool:
        # False when a malformed credential record was left in place
        with store_call("revoke", f"user_id={user_id}"):
            response = self._table.get_item(
                Key=credential_key(user_id),
                ProjectionExpression="KeyHash",
            )

        item = response.get("Item")
        if item is None:
            return True

        digest = item.get("KeyHash")
        if not isinstance(digest, str) or not digest:
            logger.warning(f"[revoke] SKIPPED - malformed credential record, user_id={user_id}")
            return False

        with store_call("revoke", f"user_id={user_id}"):
            self._client.transact_write_items(
                TransactItems=[
                    {"Delete": {"TableName": self._table.name, "Key": credential_key(user_id)}},
                    {"Delete": {"TableName": self._table.name, "Key": lookup_key(digest)}},
                ]
            )

        logger.info(f"[revoke] SUCCESS - user_id={user_id}")
        return True
