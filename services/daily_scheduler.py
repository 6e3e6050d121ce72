"""
Daily post scheduling and de-duplication.

Three triggers publish the daily astronomy update: the daily timer, a one-shot
startup trigger outside production, and the manual /post-daily command. All of
them go through ``DailyPostScheduler.publish``, which consults one shared
``PublishGuard`` so that no two posts go out within the minimum interval.
"""

from __future__ import annotations

import asyncio
import datetime
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from discord.ext import tasks

from config.config_loader import ConfigLoader
from utils.logging import get_logger
from utils.tasks import spawn

if TYPE_CHECKING:
    import discord

    from config.settings import BotSettings
    from services.daily_content import AstronomyContentService

logger = get_logger(__name__)

TRIGGER_DAILY = "daily"
TRIGGER_STARTUP = "startup"
TRIGGER_MANUAL = "manual"


class PublishGuard:
    """
    Minimum-interval guard around publishing.

    ``try_acquire`` records the attempt time before returning True, so a second
    trigger arriving while the first is still publishing is refused.
    """

    def __init__(
        self,
        min_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self.last_post_time: float | None = None

    def age(self) -> float | None:
        """Seconds since the last accepted publish, or None if there was none."""
        if self.last_post_time is None:
            return None
        return self._clock() - self.last_post_time

    def seconds_remaining(self) -> float:
        age = self.age()
        if age is None:
            return 0.0
        return max(0.0, self.min_interval - age)

    def try_acquire(self) -> bool:
        now = self._clock()
        if self.last_post_time is not None and now - self.last_post_time < self.min_interval:
            return False
        self.last_post_time = now
        return True


class PublishStatus(Enum):
    SENT = "sent"
    THROTTLED = "throttled"
    FAILED = "failed"
    NO_TARGET = "no_target"


class DailyPostScheduler:
    """Owns the daily timer, the startup trigger and the hourly heartbeat."""

    def __init__(
        self,
        settings: BotSettings,
        content: AstronomyContentService,
        guard: PublishGuard,
        bot: discord.Client | None = None,
    ) -> None:
        self.settings = settings
        self.content = content
        self.guard = guard
        self.bot = bot
        self._startup_task: asyncio.Task | None = None

        schedule = settings.schedule
        self.daily_post.change_interval(
            time=datetime.time(
                hour=schedule.hour,
                minute=schedule.minute,
                tzinfo=ZoneInfo(schedule.timezone),
            )
        )

    def start(self) -> None:
        if not self.daily_post.is_running():
            self.daily_post.start()
        if not self.heartbeat.is_running():
            self.heartbeat.start()

        schedule = self.settings.schedule
        logger.info(
            "Daily post scheduled at %02d:%02d %s",
            schedule.hour,
            schedule.minute,
            schedule.timezone,
        )
        if not self.settings.is_production:
            logger.info("Development mode: sending a startup post shortly")
            self._startup_task = spawn(self._startup_publish(), name="daily_startup_post")

    def stop(self) -> None:
        self.daily_post.cancel()
        self.heartbeat.cancel()
        if self._startup_task and not self._startup_task.done():
            self._startup_task.cancel()

    async def _startup_publish(self) -> None:
        await asyncio.sleep(self.settings.schedule.startup_delay_seconds)
        if self.bot is not None:
            await self.bot.wait_until_ready()
        await self.publish(TRIGGER_STARTUP)

    async def publish(self, trigger: str) -> PublishStatus:
        """Publish the daily update unless one went out within the guard interval."""
        extra = {"trigger": trigger}

        if not self.content.has_target:
            logger.warning("Daily post skipped: no webhook or channel configured", extra=extra)
            return PublishStatus.NO_TARGET

        if not self.guard.try_acquire():
            logger.info(
                "Daily post skipped: last post was %.0fs ago",
                self.guard.age() or 0.0,
                extra=extra,
            )
            return PublishStatus.THROTTLED

        logger.info("Publishing daily astronomy update", extra=extra)
        try:
            delivered = await self.content.publish_daily()
        except Exception:
            logger.exception("Daily post failed", extra=extra)
            return PublishStatus.FAILED
        return PublishStatus.SENT if delivered else PublishStatus.FAILED

    @tasks.loop()
    async def daily_post(self) -> None:
        """Fires once a day at the configured local time."""
        await self.publish(TRIGGER_DAILY)

    @daily_post.before_loop
    async def before_daily(self) -> None:
        if self.bot is not None:
            await self.bot.wait_until_ready()

    @tasks.loop(hours=1)
    async def heartbeat(self) -> None:
        age = self.guard.age()
        health = self.content.http.get_health_status()
        config_status = ConfigLoader.get_config_status()
        logger.info(
            "Bot is healthy and running (last post: %s, http requests=%s errors=%s, config=%s)",
            "never" if age is None else f"{age / 3600:.1f}h ago",
            health["total_requests"],
            health["total_errors"],
            config_status["config_status"],
        )
