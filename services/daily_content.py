"""
Daily astronomy content.

Fetches NASA's Astronomy Picture of the Day and Open Notify's ISS and crew data,
computes the moon phase and a viewing tip locally, and delivers the assembled
embed through a webhook or a bot channel. Each source is optional: a failed
fetch drops that section instead of failing the post.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from helpers.discord_api import channel_send, webhook_send
from helpers.embeds import DAILY_GREETING, build_daily_update_embed
from helpers.http_helper import ForbiddenError, HTTPClient, NotFoundError
from services.base import BaseService

if TYPE_CHECKING:
    import discord

    from config.settings import BotSettings

APOD_URL = "https://api.nasa.gov/planetary/apod"
ISS_NOW_URL = "http://api.open-notify.org/iss-now.json"
ISS_PASS_URL = "http://api.open-notify.org/iss-pass.json"
ASTROS_URL = "http://api.open-notify.org/astros.json"

EARTH_RADIUS_KM = 6371.0
LUNAR_CYCLE_DAYS = 29.53
APOD_EXPLANATION_LIMIT = 200

# Upper bound of each phase as a fraction of the cycle; the last bucket wraps to New Moon
_MOON_PHASES = (
    (0.0625, "New Moon", "🌑"),
    (0.1875, "Waxing Crescent", "🌒"),
    (0.3125, "First Quarter", "🌓"),
    (0.4375, "Waxing Gibbous", "🌔"),
    (0.5625, "Full Moon", "🌕"),
    (0.6875, "Waning Gibbous", "🌖"),
    (0.8125, "Last Quarter", "🌗"),
    (0.9375, "Waning Crescent", "🌘"),
)


@dataclass(frozen=True)
class Apod:
    title: str
    explanation: str
    url: str | None = None
    hdurl: str | None = None
    media_type: str | None = None
    date: str | None = None
    copyright: str | None = None

    @property
    def short_explanation(self) -> str:
        return truncate_explanation(self.explanation)

    @property
    def image_url(self) -> str | None:
        if self.media_type != "image":
            return None
        return self.hdurl or self.url


@dataclass(frozen=True)
class IssPosition:
    latitude: float
    longitude: float
    distance_km: int
    timestamp: datetime


@dataclass(frozen=True)
class IssPass:
    rise_time: datetime
    duration_minutes: int
    formatted_time: str


@dataclass(frozen=True)
class MoonPhase:
    name: str
    emoji: str


@dataclass(frozen=True)
class Astronauts:
    number: int
    people: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class DailyContent:
    moon: MoonPhase
    viewing_tip: str
    observer_name: str
    apod: Apod | None = None
    iss_position: IssPosition | None = None
    iss_pass: IssPass | None = None
    astronauts: Astronauts | None = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def moon_phase(day: date) -> MoonPhase:
    """Approximate phase from days elapsed since 2000 modulo the lunar cycle."""
    total_days = (
        math.floor((day.year - 2000) * 365.25)
        + math.floor((day.month - 1) * 30.44)
        + day.day
    )
    phase = (total_days % LUNAR_CYCLE_DAYS) / LUNAR_CYCLE_DAYS
    for upper, name, emoji in _MOON_PHASES:
        if phase < upper:
            return MoonPhase(name, emoji)
    return MoonPhase("New Moon", "🌑")


def viewing_tip(hour: int, observer_name: str = "Manipur") -> str:
    if hour >= 18 or hour <= 6:
        return f"🌃 **Perfect time for stargazing!** Clear skies tonight in {observer_name}."
    return (
        "☀️ **Daytime astronomy:** Try observing the Moon if visible, "
        "or plan tonight's viewing session."
    )


def truncate_explanation(text: str, limit: int = APOD_EXPLANATION_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def format_pass_time(when: datetime, tz: ZoneInfo) -> str:
    """e.g. 'Monday, March 3, 7:05 PM' in the observer's timezone."""
    local = when.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{local:%A}, {local:%B} {local.day}, {hour}:{local:%M} {suffix}"


class AstronomyContentService(BaseService):
    """Builds and delivers the daily astronomy update."""

    def __init__(
        self,
        settings: BotSettings,
        http: HTTPClient,
        bot: discord.Client | None = None,
    ) -> None:
        super().__init__("daily_content")
        self.settings = settings
        self.http = http
        self.bot = bot
        self.tz = ZoneInfo(settings.schedule.timezone)

    async def _initialize_impl(self) -> None:
        await self.http.get_session()

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Any | None:
        try:
            return await self.http.fetch_json(url, params=params)
        except (NotFoundError, ForbiddenError) as e:
            self.logger.warning("Content source rejected request: %s", e)
            return None

    async def fetch_apod(self) -> Apod | None:
        data = await self._get(APOD_URL, {"api_key": self.settings.nasa_api_key})
        if not isinstance(data, dict) or not data.get("title"):
            return None
        return Apod(
            title=str(data["title"]),
            explanation=str(data.get("explanation") or ""),
            url=data.get("url"),
            hdurl=data.get("hdurl"),
            media_type=data.get("media_type"),
            date=data.get("date"),
            copyright=(data.get("copyright") or "").strip() or None,
        )

    async def fetch_iss_position(self) -> IssPosition | None:
        data = await self._get(ISS_NOW_URL)
        if not isinstance(data, dict) or data.get("message") != "success":
            return None
        try:
            lat = float(data["iss_position"]["latitude"])
            lon = float(data["iss_position"]["longitude"])
            timestamp = datetime.fromtimestamp(int(data["timestamp"]), UTC)
        except (KeyError, TypeError, ValueError):
            self.logger.warning("Malformed ISS position payload")
            return None
        observer = self.settings.observer
        distance = haversine_km(observer.latitude, observer.longitude, lat, lon)
        return IssPosition(lat, lon, round(distance), timestamp)

    async def fetch_iss_pass(self) -> IssPass | None:
        observer = self.settings.observer
        data = await self._get(
            ISS_PASS_URL,
            {"lat": observer.latitude, "lon": observer.longitude, "n": 1},
        )
        if not isinstance(data, dict) or data.get("message") != "success":
            return None
        passes = data.get("response") or []
        if not passes:
            return None
        try:
            rise = datetime.fromtimestamp(int(passes[0]["risetime"]), UTC)
            duration = round(int(passes[0]["duration"]) / 60)
        except (KeyError, TypeError, ValueError):
            self.logger.warning("Malformed ISS pass payload")
            return None
        return IssPass(rise, duration, format_pass_time(rise, self.tz))

    async def fetch_astronauts(self) -> Astronauts | None:
        data = await self._get(ASTROS_URL)
        if not isinstance(data, dict) or data.get("message") != "success":
            return None
        people = tuple(
            (str(p.get("name", "Unknown")), str(p.get("craft", "?")))
            for p in data.get("people") or []
            if isinstance(p, dict)
        )
        return Astronauts(int(data.get("number", len(people))), people)

    async def assemble(self, now: datetime | None = None) -> DailyContent:
        """Fetch every source concurrently and combine whatever came back."""
        now = now or datetime.now(UTC)
        local_now = now.astimezone(self.tz)
        apod, position, next_pass, astronauts = await asyncio.gather(
            self.fetch_apod(),
            self.fetch_iss_position(),
            self.fetch_iss_pass(),
            self.fetch_astronauts(),
        )
        observer_name = self.settings.observer.name
        return DailyContent(
            moon=moon_phase(local_now.date()),
            viewing_tip=viewing_tip(local_now.hour, observer_name),
            observer_name=observer_name,
            apod=apod,
            iss_position=position,
            iss_pass=next_pass,
            astronauts=astronauts,
            generated_at=now,
        )

    @property
    def has_target(self) -> bool:
        return bool(self.settings.webhook_url or self.settings.daily_channel_id)

    async def deliver(self, content: DailyContent) -> bool:
        """Send to the webhook when configured, otherwise to the daily channel."""
        embed = build_daily_update_embed(content)

        if self.settings.webhook_url:
            session = await self.http.get_session()
            return await webhook_send(
                self.settings.webhook_url,
                session,
                content=DAILY_GREETING,
                embed=embed,
            )

        channel_id = self.settings.daily_channel_id
        if channel_id is None:
            self.logger.warning("No daily post target configured; skipping delivery")
            return False
        if self.bot is None:
            self.logger.warning("DAILY_CHANNEL_ID set but no bot session; skipping delivery")
            return False

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            self.logger.warning(
                "Daily channel %s not found", channel_id, extra={"channel_id": str(channel_id)}
            )
            return False
        return await channel_send(channel, content=DAILY_GREETING, embed=embed)

    async def publish_daily(self) -> bool:
        content = await self.assemble()
        delivered = await self.deliver(content)
        if delivered:
            self.logger.info("Daily astronomy content sent")
        else:
            self.logger.error("Failed to send daily astronomy content")
        return delivered
