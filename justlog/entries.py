"""
Food, exercise and weight log entries.

Entries live in their user's partition under ``sk = "<type>#<RFC3339 UTC>"``,
so all entries of one type sit next to each other in time order and a date
range is a single ``BETWEEN`` on the sort key. Entries are never updated: an
append onto an existing sort id is refused with :class:`Conflict`.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional, Union

from boto3.dynamodb.conditions import Attr, Key
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from justlog.db import store_call
from justlog.errors import Corrupt, ValidationError
from justlog.keys import (
    PARTITION_KEY,
    SORT_KEY,
    entry_sort_id,
    format_timestamp,
    parse_timestamp,
    to_utc,
)
from justlog.logging_config import get_logger

logger = get_logger("entries")


class EntryType(str, Enum):
    food = "food"
    exercise = "exercise"
    weight = "weight"


# Measurements only some entry types use; unmeasured ones are not stored
NUMERIC_FIELDS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "caffeine",
    "cholesterol",
    "duration",
    "value",
)
TEXT_FIELDS = ("description", "unit", "notes")

Measure = Annotated[float, Field(ge=0)]


class Entry(BaseModel):
    """A single log entry owned by one user."""
    model_config = ConfigDict(allow_inf_nan=False)

    user_id: Annotated[str, Field(description="Owning user id")] = ""
    type: Annotated[Optional[EntryType], Field(description="Entry kind: food, exercise or weight")] = None
    description: Annotated[str, Field(description="Free text, e.g. '2 eggs and toast'")] = ""
    calories: Annotated[Optional[Measure], Field(description="Calories eaten, or burned for exercise")] = None
    protein: Annotated[Optional[Measure], Field(description="Protein in grams")] = None
    carbs: Annotated[Optional[Measure], Field(description="Carbohydrates in grams")] = None
    fat: Annotated[Optional[Measure], Field(description="Fat in grams")] = None
    fiber: Annotated[Optional[Measure], Field(description="Fiber in grams")] = None
    caffeine: Annotated[Optional[Measure], Field(description="Caffeine in milligrams")] = None
    cholesterol: Annotated[Optional[Measure], Field(description="Cholesterol in milligrams")] = None
    duration: Annotated[Optional[Measure], Field(description="Exercise duration in minutes")] = None
    value: Annotated[Optional[Measure], Field(description="Measured value, e.g. body weight")] = None
    unit: Annotated[str, Field(description="Unit of value, e.g. 'kg' or 'lb'")] = ""
    notes: Annotated[str, Field(description="Optional notes")] = ""
    timestamp: Annotated[Optional[datetime], Field(description="When the entry happened")] = None

    @field_validator("timestamp")
    @classmethod
    def whole_utc_seconds(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Sort ids carry second precision; keep the model equal to what is stored
        if value is None:
            return None
        return to_utc(value).replace(microsecond=0)

    @property
    def sort_id(self) -> str:
        return entry_sort_id(self.type.value, self.timestamp)

    def to_item(self) -> dict:
        created_at = format_timestamp(self.timestamp)
        item = {
            PARTITION_KEY: self.user_id,
            SORT_KEY: self.sort_id,
            "type": self.type.value,
            "createdAt": created_at,
        }
        for name in TEXT_FIELDS:
            text = getattr(self, name)
            if text:
                item[name] = text
        for name in NUMERIC_FIELDS:
            number = getattr(self, name)
            if number is not None:
                # DynamoDB numbers must be Decimal; str() keeps 0.1 as 0.1
                item[name] = Decimal(str(number))
        return item

    @classmethod
    def from_item(cls, item: dict) -> "Entry":
        try:
            data = {
                "user_id": item[PARTITION_KEY],
                "type": item["type"],
                "timestamp": parse_timestamp(item["createdAt"]),
            }
            for name in TEXT_FIELDS:
                if name in item:
                    data[name] = item[name]
            for name in NUMERIC_FIELDS:
                if name in item:
                    data[name] = float(item[name])
            return cls(**data)
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise Corrupt(f"invalid entry record sk={item.get(SORT_KEY)}") from e

    def to_dict(self) -> dict:
        """JSON-friendly view used by the tools; unset measurements are left out."""
        data = {
            "sk": self.sort_id,
            "type": self.type.value,
            "created_at": format_timestamp(self.timestamp),
        }
        for name in TEXT_FIELDS:
            if getattr(self, name):
                data[name] = getattr(self, name)
        for name in NUMERIC_FIELDS:
            if getattr(self, name) is not None:
                data[name] = getattr(self, name)
        return data


class EntryStore:
    """Append, query and delete log entries. There is no update."""

    def __init__(self, table):
        self._table = table

    def append(self, entry: Entry) -> None:
        missing = [
            name for name, present in (
                ("user_id", bool(entry.user_id)),
                ("type", entry.type is not None),
                ("timestamp", entry.timestamp is not None),
            ) if not present
        ]
        if missing:
            raise ValidationError(f"entry is missing required fields: {', '.join(missing)}")

        item = entry.to_item()
        with store_call("append", f"user_id={entry.user_id}, sk={item[SORT_KEY]}"):
            self._table.put_item(Item=item, ConditionExpression=Attr(SORT_KEY).not_exists())

        logger.info(f"[append] SUCCESS - user_id={entry.user_id}, sk={item[SORT_KEY]}")

    def query(
        self,
        user_id: str,
        entry_type: Union[EntryType, str],
        start: datetime,
        end: datetime,
    ) -> List[Entry]:
        """
        Entries of ``entry_type`` with ``start <= timestamp <= end``, newest
        first. Ordering comes from the sort key, read backwards.
        """
        type_name = entry_type.value if isinstance(entry_type, EntryType) else entry_type
        start = to_utc(start)
        if start.microsecond:
            # Stored timestamps are whole seconds, the first one at or after start
            start = start.replace(microsecond=0) + timedelta(seconds=1)
        lower = entry_sort_id(type_name, start)
        upper = entry_sort_id(type_name, end)
        if lower > upper:
            return []

        query_kwargs = {
            "KeyConditionExpression": Key(PARTITION_KEY).eq(user_id) & Key(SORT_KEY).between(lower, upper),
            "ScanIndexForward": False,
        }

        items = []
        with store_call("query", f"user_id={user_id}, type={type_name}"):
            response = self._table.query(**query_kwargs)
            items.extend(response.get("Items", []))

            # Handle pagination if there are more items
            while "LastEvaluatedKey" in response:
                response = self._table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **query_kwargs)
                items.extend(response.get("Items", []))

        logger.info(f"[query] SUCCESS - user_id={user_id}, type={type_name}, found {len(items)} entries")
        return [Entry.from_item(item) for item in items]

    def delete(self, user_id: str, sort_id: str) -> None:
        """
        Delete one entry. Deleting a missing entry is not an error.

        Only entry sort ids are accepted; credential and profile records
        share the partition and are not deleted here.
        """
        type_name, sep, stamp = sort_id.partition("#")
        if not sep or not stamp or type_name not in {t.value for t in EntryType}:
            raise ValidationError(f"not an entry sort id: {sort_id}")

        with store_call("delete", f"user_id={user_id}, sk={sort_id}"):
            self._table.delete_item(Key={PARTITION_KEY: user_id, SORT_KEY: sort_id})

        logger.info(f"[delete] SUCCESS - user_id={user_id}, sk={sort_id}")
