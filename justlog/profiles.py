"""User profiles, stored under ``uid=<user id>, sk="profile"``."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, List, NamedTuple, Optional

from pydantic import BaseModel, Field

from justlog.db import store_call
from justlog.keys import format_timestamp, profile_key
from justlog.logging_config import get_logger

logger = get_logger("profiles")


class ProfileField(NamedTuple):
    name: str
    label: str
    description: str


REQUIRED_FIELDS = (
    ProfileField("gender", "Gender", "What is your gender? (used to estimate calorie needs)"),
    ProfileField("height", "Height", "How tall are you, in centimeters?"),
    ProfileField("activity_level", "Activity level", "How active are you day to day: sedentary, light, moderate or very active?"),
)

# Python attribute -> DynamoDB attribute
_ATTRIBUTES = {
    "email": "email",
    "gender": "gender",
    "height": "height",
    "activity_level": "activityLevel",
    "health_goals": "healthGoals",
}


class Profile(BaseModel):
    """Body and lifestyle facts used to interpret a user's logs."""
    email: Annotated[Optional[str], Field(description="Contact email")] = None
    gender: Annotated[Optional[str], Field(description="Gender")] = None
    height: Annotated[Optional[float], Field(description="Height in centimeters", gt=0)] = None
    activity_level: Annotated[Optional[str], Field(description="sedentary, light, moderate or very active")] = None
    health_goals: Annotated[Optional[str], Field(description="Free text goals, e.g. 'lose 5 kg'")] = None

    def missing_fields(self) -> List[ProfileField]:
        return [f for f in REQUIRED_FIELDS if getattr(self, f.name) in (None, "")]


class ProfileStore:
    def __init__(self, table):
        self._table = table

    def get(self, user_id: str) -> Profile:
        """The stored profile, or an empty one."""
        with store_call("get_profile", f"user_id={user_id}"):
            response = self._table.get_item(Key=profile_key(user_id))

        item = response.get("Item") or {}
        data = {name: item[attr] for name, attr in _ATTRIBUTES.items() if attr in item}
        if "height" in data:
            data["height"] = float(data["height"])
        return Profile(**data)

    def update(self, user_id: str, **fields) -> Profile:
        """Merge the non-None ``fields`` into the stored profile."""
        unknown = set(fields) - set(_ATTRIBUTES)
        if unknown:
            raise ValueError(f"unknown profile fields: {', '.join(sorted(unknown))}")

        current = self.get(user_id)
        merged = current.model_copy(update={k: v for k, v in fields.items() if v is not None})
        # Re-validate the merged values
        profile = Profile(**merged.model_dump())

        item = {**profile_key(user_id), "updatedAt": format_timestamp(datetime.now(timezone.utc))}
        for name, attr in _ATTRIBUTES.items():
            value = getattr(profile, name)
            if value is None:
                continue
            item[attr] = Decimal(str(value)) if isinstance(value, float) else value

        with store_call("update_profile", f"user_id={user_id}"):
            self._table.put_item(Item=item)

        logger.info(f"[update_profile] SUCCESS - user_id={user_id}, fields={sorted(k for k, v in fields.items() if v is not None)}")
        return profile
