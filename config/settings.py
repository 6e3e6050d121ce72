"""
Process settings read once at startup.

Secrets and Discord identifiers come from the environment (python-dotenv loads
``.env`` before ``BotSettings.from_env`` runs); tunables come from config.yaml.
Missing values never stop the process: without a token the bot runs in
webhook-only mode, without a member role or restricted channels provisioning
skips those steps.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_PATH = "data/directory.db"
DEFAULT_JOIN_URL = "https://manipurastronomy.org/join"


def parse_snowflake(value: Any) -> int | None:
    """Parse a Discord id from an env/config value, returning None when unusable."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if not text.isdigit():
        logger.warning("Ignoring non-numeric Discord id %r", text)
        return None
    return int(text)


def parse_id_list(raw: str | Iterable[Any] | None) -> tuple[int, ...]:
    """Parse a comma separated (or already split) list of Discord ids."""
    if raw is None:
        return ()
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    ids: list[int] = []
    for item in items:
        parsed = parse_snowflake(item)
        if parsed is not None and parsed not in ids:
            ids.append(parsed)
    return tuple(ids)


@dataclass(frozen=True)
class ScheduleSettings:
    hour: int = 8
    minute: int = 0
    timezone: str = "Asia/Kolkata"
    startup_delay_seconds: float = 5.0
    min_interval_minutes: float = 5.0

    @classmethod
    def from_config(cls, section: Mapping[str, Any] | None) -> ScheduleSettings:
        section = section or {}
        hour = int(section.get("hour", cls.hour))
        minute = int(section.get("minute", cls.minute))
        if not 0 <= hour < 24:
            logger.warning("Invalid schedule.hour %s; using %s", hour, cls.hour)
            hour = cls.hour
        if not 0 <= minute < 60:
            logger.warning("Invalid schedule.minute %s; using %s", minute, cls.minute)
            minute = cls.minute
        return cls(
            hour=hour,
            minute=minute,
            timezone=str(section.get("timezone", cls.timezone)),
            startup_delay_seconds=float(
                section.get("startup_delay_seconds", cls.startup_delay_seconds)
            ),
            min_interval_minutes=float(
                section.get("min_interval_minutes", cls.min_interval_minutes)
            ),
        )


@dataclass(frozen=True)
class ObserverSettings:
    name: str = "Manipur"
    latitude: float = 24.8170
    longitude: float = 93.9368

    @classmethod
    def from_config(cls, section: Mapping[str, Any] | None) -> ObserverSettings:
        section = section or {}
        return cls(
            name=str(section.get("name", cls.name)),
            latitude=float(section.get("latitude", cls.latitude)),
            longitude=float(section.get("longitude", cls.longitude)),
        )


@dataclass(frozen=True)
class BotSettings:
    """Operator-supplied configuration, immutable after startup."""

    discord_token: str | None = None
    client_id: int | None = None
    guild_id: int | None = None
    webhook_url: str | None = None
    daily_channel_id: int | None = None
    welcome_channel_id: int | None = None
    nasa_api_key: str = "DEMO_KEY"
    member_role_id: int | None = None
    restricted_channel_ids: tuple[int, ...] = ()
    super_admin_ids: frozenset[int] = field(default_factory=frozenset)
    directory_path: str = DEFAULT_DIRECTORY_PATH
    environment: str = "development"
    join_url: str = DEFAULT_JOIN_URL
    http_timeout: int = 15
    user_agent: str | None = None
    schedule: ScheduleSettings = field(default_factory=ScheduleSettings)
    observer: ObserverSettings = field(default_factory=ObserverSettings)

    @property
    def interactive(self) -> bool:
        """True when slash commands can be served (a bot token is present)."""
        return bool(self.discord_token)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> BotSettings:
        """Build settings from environment variables and the YAML config."""
        env = os.environ if env is None else env
        config = config or {}

        def _section(name: str) -> Mapping[str, Any]:
            value = config.get(name)
            return value if isinstance(value, Mapping) else {}

        directory_cfg = _section("directory")
        links_cfg = _section("links")
        http_cfg = _section("http")

        settings = cls(
            discord_token=(env.get("DISCORD_TOKEN") or "").strip() or None,
            client_id=parse_snowflake(env.get("CLIENT_ID")),
            guild_id=parse_snowflake(env.get("GUILD_ID")),
            webhook_url=(env.get("DISCORD_WEBHOOK_URL") or "").strip() or None,
            daily_channel_id=parse_snowflake(env.get("DAILY_CHANNEL_ID")),
            welcome_channel_id=parse_snowflake(env.get("WELCOME_CHANNEL_ID")),
            nasa_api_key=(env.get("NASA_API_KEY") or "").strip() or "DEMO_KEY",
            member_role_id=parse_snowflake(env.get("MEMBER_ROLE_ID")),
            restricted_channel_ids=parse_id_list(env.get("RESTRICTED_CHANNEL_IDS")),
            super_admin_ids=frozenset(parse_id_list(env.get("SUPER_ADMIN_IDS"))),
            directory_path=(
                env.get("DIRECTORY_PATH")
                or directory_cfg.get("path")
                or DEFAULT_DIRECTORY_PATH
            ),
            environment=(env.get("BOT_ENV") or "development").strip().lower(),
            join_url=str(links_cfg.get("join_url", DEFAULT_JOIN_URL)),
            http_timeout=int(http_cfg.get("timeout", 15)),
            user_agent=http_cfg.get("user_agent"),
            schedule=ScheduleSettings.from_config(_section("schedule")),
            observer=ObserverSettings.from_config(_section("observer")),
        )
        settings.log_degraded_modes()
        return settings

    def log_degraded_modes(self) -> None:
        """Warn about each missing value that reduces what the bot can do."""
        if not self.interactive:
            logger.warning(
                "DISCORD_TOKEN not set; running webhook-only (no interactive commands)"
            )
        if not self.webhook_url and not self.daily_channel_id:
            logger.warning(
                "Neither DISCORD_WEBHOOK_URL nor DAILY_CHANNEL_ID set; daily posts will be skipped"
            )
        if self.interactive and self.member_role_id is None:
            logger.warning("MEMBER_ROLE_ID not set; verification will not grant a role")
        if self.interactive and not self.restricted_channel_ids:
            logger.warning(
                "RESTRICTED_CHANNEL_IDS not set; verification will not grant channel access"
            )
        if not self.super_admin_ids:
            logger.warning(
                "SUPER_ADMIN_IDS not set; super-admin access depends on the directory"
            )
