"""
JustLog MCP Server

Exposes food, exercise and weight logging to MCP clients. The caller is
identified by the API key in the ``Authorization: Bearer`` header, or by
``DEV_USER`` for local development.
"""
from typing import Annotated, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_headers
from pydantic import Field

from justlog.config import Settings
from justlog.credentials import CredentialStore
from justlog.db import connect
from justlog.entries import EntryStore
from justlog.errors import Corrupt, NotFound
from justlog.logging_config import get_logger, setup_logging
from justlog.profiles import ProfileStore
from justlog.tools import Tools

logger = get_logger("server")

INSTRUCTIONS = (
    "JustLog helps users track calories, macros, exercise, and weight. "
    "Use the provided tools to log and retrieve entries."
)

FromDate = Annotated[Optional[str], Field(description="Start date, ISO 8601 (e.g. 2026-02-05); defaults to today")]
ToDate = Annotated[Optional[str], Field(description="End date, ISO 8601 (e.g. 2026-02-05), inclusive; defaults to today")]
Timestamp = Annotated[Optional[str], Field(description="RFC3339 timestamp, e.g. 2026-02-05T08:00:00Z; defaults to now")]
Notes = Annotated[Optional[str], Field(description="Optional notes")]


def bearer_token(headers: dict) -> str:
    auth = headers.get("authorization", "")
    if auth[:7].lower() != "bearer ":
        return ""
    return auth[7:].strip()


def build_server(settings: Settings, tools: Tools) -> FastMCP:
    """Register the JustLog tool set on a new FastMCP server."""
    mcp = FastMCP("JustLog", instructions=INSTRUCTIONS)

    def current_user() -> str:
        if settings.dev_user:
            return settings.dev_user
        token = bearer_token(get_http_headers(include_all=True))
        try:
            return tools.credentials.resolve(token)
        except (NotFound, Corrupt) as e:
            logger.warning(f"[auth] REJECTED - {type(e).__name__}")
            raise ToolError("unauthorized") from e

    def log_food(
        description: Annotated[str, Field(description="What was eaten, e.g. '2 eggs and toast'")],
        calories: Annotated[Optional[float], Field(description="Total calories", ge=0)] = None,
        protein: Annotated[Optional[float], Field(description="Protein in grams", ge=0)] = None,
        carbs: Annotated[Optional[float], Field(description="Carbohydrates in grams", ge=0)] = None,
        fat: Annotated[Optional[float], Field(description="Fat in grams", ge=0)] = None,
        fiber: Annotated[Optional[float], Field(description="Fiber in grams", ge=0)] = None,
        caffeine: Annotated[Optional[float], Field(description="Caffeine in milligrams", ge=0)] = None,
        cholesterol: Annotated[Optional[float], Field(description="Cholesterol in milligrams", ge=0)] = None,
        notes: Notes = None,
        timestamp: Timestamp = None,
    ) -> str:
        """Log a food entry with nutritional info. Use this when the user tells you what they ate."""
        return tools.log_food(
            current_user(), description,
            calories=calories, protein=protein, carbs=carbs, fat=fat, fiber=fiber,
            caffeine=caffeine, cholesterol=cholesterol, notes=notes, timestamp=timestamp,
        )

    def get_food(from_date: FromDate = None, to_date: ToDate = None) -> str:
        """Get food entries for a date range, most recent first. Defaults to today."""
        return tools.get_food(current_user(), from_date, to_date)

    def log_exercise(
        description: Annotated[str, Field(description="What exercise was done, e.g. '30 min run'")],
        calories_burned: Annotated[Optional[float], Field(description="Estimated calories burned", ge=0)] = None,
        duration_minutes: Annotated[Optional[float], Field(description="Duration in minutes", ge=0)] = None,
        notes: Notes = None,
        timestamp: Timestamp = None,
    ) -> str:
        """Log an exercise entry. Use this when the user tells you about a workout or physical activity."""
        return tools.log_exercise(
            current_user(), description,
            calories_burned=calories_burned, duration_minutes=duration_minutes,
            notes=notes, timestamp=timestamp,
        )

    def get_exercise(from_date: FromDate = None, to_date: ToDate = None) -> str:
        """Get exercise entries for a date range, most recent first. Defaults to today."""
        return tools.get_exercise(current_user(), from_date, to_date)

    def log_weight(
        value: Annotated[float, Field(description="Body weight", gt=0)],
        unit: Annotated[str, Field(description="'kg' or 'lb'")] = "kg",
        notes: Notes = None,
        timestamp: Timestamp = None,
    ) -> str:
        """Log a body weight measurement."""
        return tools.log_weight(current_user(), value, unit=unit, notes=notes, timestamp=timestamp)

    def get_weight(from_date: FromDate = None, to_date: ToDate = None) -> str:
        """Get weight entries for a date range, most recent first. Defaults to today."""
        return tools.get_weight(current_user(), from_date, to_date)

    def delete_entry(
        sk: Annotated[str, Field(description="The 'sk' of the entry to delete, e.g. 'food#2026-02-05T08:00:00Z'")],
    ) -> str:
        """Delete a logged entry."""
        return tools.delete_entry(current_user(), sk)

    def get_profile() -> str:
        """Get the user's profile and the fields still missing from it."""
        return tools.get_profile(current_user())

    def update_profile(
        email: Annotated[Optional[str], Field(description="Email address")] = None,
        gender: Annotated[Optional[str], Field(description="Gender")] = None,
        height: Annotated[Optional[float], Field(description="Height in centimeters")] = None,
        activity_level: Annotated[Optional[str], Field(description="sedentary, light, moderate or very active")] = None,
        health_goals: Annotated[Optional[str], Field(description="Health goals, e.g. 'lose 5 kg'")] = None,
    ) -> str:
        """Save the user's answers to profile questions. Only the given fields change."""
        return tools.update_profile(
            current_user(),
            email=email, gender=gender, height=height,
            activity_level=activity_level, health_goals=health_goals,
        )

    def regenerate_api_key() -> str:
        """Create a new API key for the user. The previous key stops working immediately."""
        return tools.regenerate_api_key(current_user())

    def revoke_api_key() -> str:
        """Revoke the user's API key."""
        return tools.revoke_api_key(current_user())

    for tool in (
        log_food,
        get_food,
        log_exercise,
        get_exercise,
        log_weight,
        get_weight,
        delete_entry,
        get_profile,
        update_profile,
        regenerate_api_key,
        revoke_api_key,
    ):
        mcp.tool(tool)

    return mcp


def create_app(settings: Optional[Settings] = None) -> FastMCP:
    """Build settings, logging, the table handle and the stores, then the server."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    table = connect(settings)
    tools = Tools(
        credentials=CredentialStore(table),
        entries=EntryStore(table),
        profiles=ProfileStore(table),
    )
    logger.info(f"JustLog server ready, table={settings.full_table_name}, dev_user={'set' if settings.dev_user else 'unset'}")
    return build_server(settings, tools)
