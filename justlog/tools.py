"""
Tool implementations behind the MCP server.

Every method takes an already-resolved ``user_id`` and returns a JSON string
with a ``success`` flag, which is what the LLM client gets to read.
"""
import json
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple

from justlog.credentials import CredentialStore
from justlog.entries import Entry, EntryStore, EntryType
from justlog.errors import JustLogError
from justlog.keys import parse_timestamp
from justlog.logging_config import get_logger
from justlog.profiles import ProfileStore

logger = get_logger("tools")

PROFILE_INCOMPLETE = (
    "PROFILE INCOMPLETE: you must ask the user the following questions before proceeding. "
    "Do NOT guess; ask each one directly and save their answers with the update_profile tool.\n"
)


def parse_entry_timestamp(value: Optional[str], now: datetime) -> datetime:
    """RFC3339 timestamp from a tool argument, defaulting to ``now``."""
    if not value:
        return now
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValueError(f"invalid timestamp: {value}") from e


def day_range(start: Optional[str], end: Optional[str], today: date) -> Tuple[datetime, datetime]:
    """
    Inclusive query window for ``YYYY-MM-DD`` dates, defaulting to today.

    ``end`` covers its whole day: the window stops one second before the next
    midnight, since stored timestamps have second precision.
    """
    def parse_day(value: str, name: str) -> date:
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"invalid {name} date: {value}") from e

    first = parse_day(start, "from") if start else today
    last = parse_day(end, "to") if end else today
    lower = datetime.combine(first, time(), tzinfo=timezone.utc)
    upper = datetime.combine(last + timedelta(days=1), time(), tzinfo=timezone.utc) - timedelta(seconds=1)
    return lower, upper


def _ok(message: str, **data) -> str:
    return json.dumps({"success": True, "message": message, **data}, indent=2)


def _error(error: Exception) -> str:
    return json.dumps({"success": False, "error": str(error)}, indent=2)


class Tools:
    """The MCP tool set, bound to the three stores."""

    def __init__(
        self,
        credentials: CredentialStore,
        entries: EntryStore,
        profiles: ProfileStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.credentials = credentials
        self.entries = entries
        self.profiles = profiles
        self._clock = clock

    def _run(self, operation: str, user_id: str, action: Callable[[], str], check_profile: bool = True) -> str:
        logger.info(f"[{operation}] START - user_id={user_id}")
        try:
            if check_profile:
                missing = self.profiles.get(user_id).missing_fields()
                if missing:
                    logger.info(f"[{operation}] PROFILE_INCOMPLETE - user_id={user_id}, missing={[f.name for f in missing]}")
                    lines = [PROFILE_INCOMPLETE] + [f"- {f.label}: {f.description}" for f in missing]
                    return "\n".join(lines)
            result = action()
            logger.info(f"[{operation}] SUCCESS - user_id={user_id}")
            return result
        except (JustLogError, ValueError) as e:
            logger.error(f"[{operation}] ERROR - user_id={user_id}, error={str(e)}")
            return _error(e)

    def _log(self, entry: Entry) -> str:
        self.entries.append(entry)
        return _ok(f"Logged {entry.type.value}: {entry.description}", data=entry.to_dict())

    def _get(self, user_id: str, entry_type: EntryType, start: Optional[str], end: Optional[str]) -> str:
        lower, upper = day_range(start, end, self._clock().date())
        found = self.entries.query(user_id, entry_type, lower, upper)
        if not found:
            return _ok(f"No {entry_type.value} entries found for that date range.", count=0, data=[])
        return _ok(
            f"Found {len(found)} {entry_type.value} entries.",
            count=len(found),
            data=[e.to_dict() for e in found],
        )

    # -- food ---------------------------------------------------------------

    def log_food(
        self,
        user_id: str,
        description: str,
        calories: Optional[float] = None,
        protein: Optional[float] = None,
        carbs: Optional[float] = None,
        fat: Optional[float] = None,
        fiber: Optional[float] = None,
        caffeine: Optional[float] = None,
        cholesterol: Optional[float] = None,
        notes: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        def action():
            entry = Entry(
                user_id=user_id,
                type=EntryType.food,
                description=description,
                calories=calories,
                protein=protein,
                carbs=carbs,
                fat=fat,
                fiber=fiber,
                caffeine=caffeine,
                cholesterol=cholesterol,
                notes=notes or "",
                timestamp=parse_entry_timestamp(timestamp, self._clock()),
            )
            return self._log(entry)
        return self._run("log_food", user_id, action)

    def get_food(self, user_id: str, start: Optional[str] = None, end: Optional[str] = None) -> str:
        return self._run("get_food", user_id, lambda: self._get(user_id, EntryType.food, start, end))

    # -- exercise -----------------------------------------------------------

    def log_exercise(
        self,
        user_id: str,
        description: str,
        calories_burned: Optional[float] = None,
        duration_minutes: Optional[float] = None,
        notes: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        def action():
            entry = Entry(
                user_id=user_id,
                type=EntryType.exercise,
                description=description,
                calories=calories_burned,
                duration=duration_minutes,
                notes=notes or "",
                timestamp=parse_entry_timestamp(timestamp, self._clock()),
            )
            return self._log(entry)
        return self._run("log_exercise", user_id, action)

    def get_exercise(self, user_id: str, start: Optional[str] = None, end: Optional[str] = None) -> str:
        return self._run("get_exercise", user_id, lambda: self._get(user_id, EntryType.exercise, start, end))

    # -- weight -------------------------------------------------------------

    def log_weight(
        self,
        user_id: str,
        value: float,
        unit: str = "kg",
        notes: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        def action():
            entry = Entry(
                user_id=user_id,
                type=EntryType.weight,
                description=f"{value:g} {unit}",
                value=value,
                unit=unit,
                notes=notes or "",
                timestamp=parse_entry_timestamp(timestamp, self._clock()),
            )
            return self._log(entry)
        return self._run("log_weight", user_id, action)

    def get_weight(self, user_id: str, start: Optional[str] = None, end: Optional[str] = None) -> str:
        return self._run("get_weight", user_id, lambda: self._get(user_id, EntryType.weight, start, end))

    def delete_entry(self, user_id: str, sk: str) -> str:
        def action():
            self.entries.delete(user_id, sk)
            return _ok(f"Deleted entry {sk}")
        return self._run("delete_entry", user_id, action)

    # -- profile ------------------------------------------------------------

    def get_profile(self, user_id: str) -> str:
        def action():
            profile = self.profiles.get(user_id)
            return _ok(
                "Profile loaded",
                data=profile.model_dump(exclude_none=True),
                missing=[f.name for f in profile.missing_fields()],
            )
        return self._run("get_profile", user_id, action, check_profile=False)

    def update_profile(
        self,
        user_id: str,
        email: Optional[str] = None,
        gender: Optional[str] = None,
        height: Optional[float] = None,
        activity_level: Optional[str] = None,
        health_goals: Optional[str] = None,
    ) -> str:
        def action():
            profile = self.profiles.update(
                user_id,
                email=email,
                gender=gender,
                height=height,
                activity_level=activity_level,
                health_goals=health_goals,
            )
            return _ok(
                "Profile updated",
                data=profile.model_dump(exclude_none=True),
                missing=[f.name for f in profile.missing_fields()],
            )
        return self._run("update_profile", user_id, action, check_profile=False)

    # -- api keys -----------------------------------------------------------

    def regenerate_api_key(self, user_id: str) -> str:
        def action():
            raw_key = self.credentials.issue(user_id)
            return _ok(
                "New API key created. Save it now; it will not be shown again. The previous key no longer works.",
                api_key=raw_key,
            )
        return self._run("regenerate_api_key", user_id, action, check_profile=False)

    def revoke_api_key(self, user_id: str) -> str:
        def action():
            self.credentials.revoke(user_id)
            return _ok("API key revoked")
        return self._run("revoke_api_key", user_id, action, check_profile=False)
