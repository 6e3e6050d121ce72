"""Reusable permission and error guards for Discord app commands."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TYPE_CHECKING, TypeVar

import discord

from helpers.discord_reply import respond
from helpers.error_messages import format_user_error
from utils.log_context import get_interaction_extra
from utils.logging import get_logger

if TYPE_CHECKING:
    from services.privileges import PrivilegeDecision, PrivilegeResolver

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable])


async def _send_permission_denied(
    interaction: discord.Interaction, code: str = "PERMISSION"
) -> None:
    """Send the standardized permission error message."""
    await respond(interaction, format_user_error(code), ephemeral=True)


def _resolve_privileges(self) -> PrivilegeResolver | None:
    """Find the privilege resolver on the cog's service container."""
    services = getattr(self, "services", None)
    if services is None:
        bot = getattr(self, "bot", None)
        services = getattr(bot, "services", None)
    if services is None:
        return None
    try:
        return services.privileges
    except RuntimeError:
        return None


def _require(
    check: Callable[[PrivilegeResolver, discord.abc.User], Awaitable[PrivilegeDecision]],
    denied_code: str,
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            resolver = _resolve_privileges(self)
            if resolver is None:
                logger.warning(
                    "Permission check failed for %s: services not initialized",
                    func.__qualname__,
                )
                await _send_permission_denied(interaction, "DB_TEMP_ERROR")
                return None

            decision = await check(resolver, interaction.user)
            if not decision.granted:
                logger.warning(
                    "Permission denied for %s",
                    func.__qualname__,
                    extra=get_interaction_extra(
                        interaction, error_code=decision.error.code if decision.error else None
                    ),
                )
                code = "DB_TEMP_ERROR" if decision.unavailable else denied_code
                await _send_permission_denied(interaction, code)
                return None

            logger.debug(
                "Permission granted for %s via %s",
                func.__qualname__,
                decision.source.value,
                extra=get_interaction_extra(interaction),
            )
            return await func(self, interaction, *args, **kwargs)

        return wrapper  # type: ignore[misc]

    return decorator


def require_admin() -> Callable[[F], F]:
    """Limit a command to admins: native administrators, allow-listed ids or directory grants.

    Example:
        @app_commands.command()
        @require_admin()
        async def approve(self, interaction: discord.Interaction, email: str):
            ...
    """
    return _require(lambda r, user: r.check_admin(user), "PERMISSION")


def require_super_admin() -> Callable[[F], F]:
    """Limit a command to super-admins. Discord's administrator permission is not enough."""
    return _require(lambda r, user: r.check_super_admin(user), "SUPER_ADMIN_REQUIRED")


def guard_command(func: F) -> F:
    """Log any unhandled exception from a command and reply with a generic error."""

    @wraps(func)
    async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
        try:
            return await func(self, interaction, *args, **kwargs)
        except Exception as e:
            logger.exception(
                "Unhandled error in %s",
                func.__qualname__,
                extra=get_interaction_extra(interaction),
                exc_info=e,
            )
            await respond(interaction, format_user_error("UNKNOWN"), ephemeral=True)
            return None

    return wrapper  # type: ignore[return-value]


__all__ = [
    "guard_command",
    "require_admin",
    "require_super_admin",
]
