"""
DynamoDB table handle.

The process entry point builds the table once with :func:`connect` and passes
it to each store. Nothing here is cached at module level.
"""
from contextlib import contextmanager
from typing import Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from justlog.config import Settings
from justlog.errors import Conflict, StoreUnavailable
from justlog.keys import PARTITION_KEY, SORT_KEY
from justlog.logging_config import get_logger

logger = get_logger("db")


def connect(settings: Settings):
    """Return the boto3 ``Table`` resource described by ``settings``."""
    logger.info(f"Initializing DynamoDB resource with region: {settings.aws_region}, table: {settings.full_table_name}")
    dynamodb = boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.endpoint_url,
    )
    return dynamodb.Table(settings.full_table_name)


def create_table(dynamodb, table_name: str):
    """
    Create the single JustLog table (on-demand billing) and wait until it
    exists. Used for DynamoDB Local and tests; production tables are
    provisioned outside the application.
    """
    table = dynamodb.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": PARTITION_KEY, "KeyType": "HASH"},
            {"AttributeName": SORT_KEY, "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": PARTITION_KEY, "AttributeType": "S"},
            {"AttributeName": SORT_KEY, "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    logger.info(f"Created table {table_name}")
    return table


@contextmanager
def store_call(operation: str, subject: str) -> Iterator[None]:
    """
    Turn botocore failures into :class:`StoreUnavailable`, or :class:`Conflict`
    when a single-item condition did not hold.

    ``subject`` names what the call was about (a user id or sort id) and ends
    up in the error message, so it must never be a raw key or digest.
    """
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        code = e.response.get("Error", {}).get("Code", "") if isinstance(e, ClientError) else type(e).__name__
        if code == "ConditionalCheckFailedException":
            logger.warning(f"[{operation}] CONFLICT - {subject}")
            raise Conflict(f"{operation} failed for {subject}: record already exists") from e
        logger.error(f"[{operation}] ERROR - {subject}, code={code}")
        raise StoreUnavailable(f"{operation} failed for {subject}: {code or 'store error'}") from e
