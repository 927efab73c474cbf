"""Built-in tool set.

``getWeatherInformation`` needs human confirmation; its executor is
registered separately and only runs after approval.  ``getLocalTime``
and ``scheduleTask`` run as soon as the model calls them.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from toolgate.tools.base import define_tool
from toolgate.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from toolgate.tools.base import ExecutionContext

logger = logging.getLogger(__name__)


class WeatherArgs(BaseModel):
    city: str


class LocalTimeArgs(BaseModel):
    location: str


class ScheduleTaskArgs(BaseModel):
    type: Literal["scheduled", "delayed", "cron"]
    when: int | str = Field(
        description=(
            "ISO date or epoch milliseconds for 'scheduled', "
            "seconds for 'delayed', cron pattern for 'cron'"
        )
    )
    payload: str


get_weather_information = define_tool(
    "getWeatherInformation",
    "show the weather in a given city to the user",
    WeatherArgs,
)


async def execute_weather(args: WeatherArgs, context: ExecutionContext) -> str:
    logger.info("Getting weather information for %s", args.city)
    return f"The weather in {args.city} is sunny"


async def _local_time(args: LocalTimeArgs, context: ExecutionContext) -> str:
    logger.info("Getting local time for %s", args.location)
    return "10am"


get_local_time = define_tool(
    "getLocalTime",
    "get the local time for a specified location",
    LocalTimeArgs,
    execute=_local_time,
)


def _schedule_when(args: ScheduleTaskArgs) -> datetime | int | str:
    if args.type == "scheduled":
        # Numbers are epoch milliseconds.
        if isinstance(args.when, int):
            return datetime.fromtimestamp(args.when / 1000, tz=UTC)
        return datetime.fromisoformat(args.when)
    return args.when


async def _schedule_task(args: ScheduleTaskArgs, context: ExecutionContext) -> str:
    session = context.require_session()
    try:
        if session.scheduler is None:
            msg = "no scheduler configured"
            raise RuntimeError(msg)
        session.scheduler.schedule(_schedule_when(args), "execute_task", args.payload)
    except Exception as exc:
        logger.exception("Error scheduling task for chat %s", session.id)
        return f"Error scheduling task: {exc}"
    return f"Task scheduled for {args.when}"


schedule_task = define_tool(
    "scheduleTask",
    "schedule a task to be executed at a later time. "
    "'when' can be a date, a delay in seconds, or a cron pattern.",
    ScheduleTaskArgs,
    execute=_schedule_task,
)


def build_default_registry() -> ToolRegistry:
    """Registry with the built-in tools and the weather executor."""
    registry = ToolRegistry()
    registry.register(get_weather_information)
    registry.register(get_local_time)
    registry.register(schedule_task)
    registry.register_execution(get_weather_information.name, execute_weather)
    return registry
