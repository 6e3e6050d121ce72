"""
Centralized module for outbound Discord API calls.

Every call runs under a shared aiolimiter budget and is retried on transient
5xx errors. Failures are logged and reported as ``False``; nothing here raises,
so a failed grant never aborts the caller's remaining steps.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp
import discord
from aiolimiter import AsyncLimiter

from utils.logging import get_logger

logger = get_logger(__name__)

API_RATE = 45

_limiter: AsyncLimiter | None = None
_limiter_loop: asyncio.AbstractEventLoop | None = None

MAX_RETRIES = 3
BASE_DELAY = 0.5

_ALLOWED_MENTIONS = discord.AllowedMentions(users=True, roles=False, everyone=False)


def get_api_limiter() -> AsyncLimiter:
    """Shared call budget, rebuilt when the running event loop changes."""
    global _limiter, _limiter_loop
    loop = asyncio.get_running_loop()
    if _limiter is None or _limiter_loop is not loop:
        _limiter = AsyncLimiter(max_rate=API_RATE, time_period=1)
        _limiter_loop = loop
    return _limiter


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, discord.DiscordServerError):
        return True
    if isinstance(exc, discord.HTTPException):
        status = getattr(exc, "status", None)
        return isinstance(status, int) and 500 <= status < 600
    return False


async def run_call(
    action: str,
    call: Callable[[], Awaitable[Any]],
    extra: dict[str, Any] | None = None,
) -> bool:
    """
    Execute one Discord API call with rate limiting and 5xx retry.

    Args:
        action: Short description used in log lines
        call: Zero-argument coroutine factory performing the request
        extra: Structured logging fields

    Returns:
        True when the call succeeded.
    """
    extra = extra or {}
    attempt = 0
    while True:
        attempt += 1
        try:
            async with get_api_limiter():
                await call()
            logger.debug("%s succeeded", action, extra=extra)
            return True
        except discord.Forbidden:
            logger.warning("%s forbidden (missing permission or hierarchy)", action, extra=extra)
            return False
        except discord.NotFound:
            logger.warning("%s target not found", action, extra=extra)
            return False
        except (discord.HTTPException, aiohttp.ClientError) as e:
            if _is_transient(e) and attempt < MAX_RETRIES:
                delay = BASE_DELAY * (2 ** (attempt - 1))
                delay = delay + random.uniform(0, 0.1 * delay)
                logger.warning(
                    "%s failed transiently (attempt %s/%s), retrying in %.2fs: %s",
                    action,
                    attempt,
                    MAX_RETRIES,
                    delay,
                    e,
                    extra=extra,
                )
                await asyncio.sleep(delay)
                continue
            logger.exception("%s failed", action, extra=extra)
            return False


async def add_roles(
    member: discord.Member, *roles: discord.abc.Snowflake, reason: str | None = None
) -> bool:
    return await run_call(
        "add_roles",
        lambda: member.add_roles(*roles, reason=reason),
        {"user_id": str(member.id), "guild_id": str(member.guild.id)},
    )


async def set_channel_permissions(
    channel: discord.abc.GuildChannel,
    target: discord.Member | discord.Role,
    overwrite: discord.PermissionOverwrite,
    *,
    reason: str | None = None,
) -> bool:
    """Replace the per-member (or per-role) overwrite on a channel with ``overwrite``."""
    return await run_call(
        "set_permissions",
        lambda: channel.set_permissions(target, overwrite=overwrite, reason=reason),
        {"user_id": str(target.id), "channel_id": str(channel.id)},
    )


async def send_dm(
    user: discord.abc.User,
    content: str | None = None,
    embed: discord.Embed | None = None,
) -> bool:
    """Send a direct message. Closed DMs are expected and logged at debug level."""
    try:
        async with get_api_limiter():
            if embed is not None:
                await user.send(content, embed=embed)
            else:
                await user.send(content)
        logger.debug("Sent DM to user", extra={"user_id": str(user.id)})
        return True
    except discord.Forbidden:
        logger.debug("Cannot send DM to user (forbidden)", extra={"user_id": str(user.id)})
        return False
    except (discord.HTTPException, aiohttp.ClientError):
        logger.exception("Failed to send DM", extra={"user_id": str(user.id)})
        return False


async def channel_send(
    channel: discord.abc.Messageable,
    content: str | None = None,
    embed: discord.Embed | None = None,
) -> bool:
    kwargs: dict[str, Any] = {"allowed_mentions": _ALLOWED_MENTIONS}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    return await run_call(
        "channel_send",
        lambda: channel.send(**kwargs),
        {"channel_id": str(getattr(channel, "id", ""))},
    )


async def webhook_send(
    webhook_url: str,
    session: aiohttp.ClientSession,
    *,
    content: str | None = None,
    embed: discord.Embed | None = None,
    username: str | None = None,
) -> bool:
    """Post through an incoming webhook; no bot login required."""
    try:
        webhook = discord.Webhook.from_url(webhook_url, session=session)
    except ValueError:
        logger.error("DISCORD_WEBHOOK_URL is not a valid Discord webhook URL")
        return False
    kwargs: dict[str, Any] = {"allowed_mentions": _ALLOWED_MENTIONS}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if username:
        kwargs["username"] = username
    return await run_call("webhook_send", lambda: webhook.send(**kwargs))
